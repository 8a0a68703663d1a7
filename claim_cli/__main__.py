"""
Module execution entry point.

Allows running with: python -m claim_cli
"""

import sys
from claim_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
