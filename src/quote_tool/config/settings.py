"""
Centralized settings and data paths for the quote tool.
"""
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_package_root() -> Path:
    """Get the quote_tool package directory (where data/ lives)."""
    return Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return current.parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path
    data_dir: Path

    # Pricing configuration files
    rate_table_csv: Path
    coefficients_csv: Path
    quote_policy_json: Path

    # Optional workbook with 'Rate Table' and 'Coefficients' sheets; wins over the CSVs
    policy_workbook: Optional[Path] = None

    @classmethod
    def load(cls, data_dir: Optional[Path] = None, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the package data directory (or an explicit one)."""
        root = project_root or get_project_root()
        data = Path(data_dir) if data_dir else get_package_root() / 'data'

        workbook = data / 'Pricing Policy.xlsx'

        return cls(
            project_root=root,
            data_dir=data,
            rate_table_csv=data / 'rate_table.csv',
            coefficients_csv=data / 'coefficients.csv',
            quote_policy_json=data / 'quote_policy.json',
            policy_workbook=workbook if workbook.exists() else None,
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
