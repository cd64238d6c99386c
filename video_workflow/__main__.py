"""
Entry point for running the package as a module.

Usage:
    python -m video_workflow --idea "solar panels"
"""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
