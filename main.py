#!/usr/bin/env python3
"""
Wine Sales Manager - Entry point.

Run this to use the command-line interface from a source checkout.
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from wine_sales.cli import main

if __name__ == "__main__":
    sys.exit(main())
