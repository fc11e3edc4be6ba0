#!/usr/bin/env python
"""
Run the quote tool API with uvicorn.

Usage:
    python scripts/run_api.py [--host 0.0.0.0] [--port 8000] [--no-reload]
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Run the Quote Tool API")
    parser.add_argument('--host', default="0.0.0.0")
    parser.add_argument('--port', type=int, default=8000)
    parser.add_argument('--no-reload', action='store_true', help="Disable auto-reload")
    parser.add_argument('--log-level', default="info", choices=["debug", "info", "warning", "error"])
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent

    # Ensure src is in python path for the uvicorn subprocess
    env = os.environ.copy()
    src_path = str(project_root / "src")
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src_path, env.get("PYTHONPATH")) if p)

    cmd = [
        sys.executable, "-m", "uvicorn", "quote_tool.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
        "--log-level", args.log_level,
    ]
    if not args.no_reload:
        cmd.append("--reload")

    print(f"Starting Quote Tool API on http://{args.host}:{args.port} ...")
    try:
        subprocess.run(cmd, env=env, cwd=str(project_root))
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
