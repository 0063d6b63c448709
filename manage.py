#!/usr/bin/env python3
"""
Management script for running CLI commands from the project root
"""

import sys

from dashboard.interfaces.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
