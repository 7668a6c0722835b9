#!/usr/bin/env python3
"""
VEO Content Analysis
Main entry point for the application

Usage:
    python main.py --help                          # Show help
    python main.py analyse -s support/ veos/       # Analyse VEOs
    python main.py analyse -r -e x.veo.zip         # Analyse with HTML reports and error listing
    python main.py formats -s support/             # List long term formats
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# Import and run CLI (logging is initialised by the CLI group)
from cli.main import main

if __name__ == '__main__':
    main()
