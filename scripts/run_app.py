#!/usr/bin/env python
"""
Run the Streamlit quote builder.

Usage:
    python scripts/run_app.py [--port 8501]
"""
import argparse
import subprocess
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Run the Streamlit quote builder")
    parser.add_argument('--port', type=int, default=8501)
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    ui_path = project_root / 'src' / 'quote_tool' / 'ui' / 'app_streamlit.py'
    data_dir = project_root / 'src' / 'quote_tool' / 'data'

    if not ui_path.exists():
        print(f"ERROR: UI module not found at {ui_path}")
        sys.exit(1)
    if not (data_dir / 'rate_table.csv').exists():
        print(f"ERROR: rate_table.csv not found in {data_dir}")
        sys.exit(1)

    cmd = [sys.executable, '-m', 'streamlit', 'run', str(ui_path), '--server.port', str(args.port)]
    print(f"Starting Streamlit quote builder: {' '.join(cmd)}")

    try:
        subprocess.run(cmd, cwd=str(project_root))
    except KeyboardInterrupt:
        print("\nQuote builder stopped.")


if __name__ == "__main__":
    main()
