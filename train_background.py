#!/usr/bin/env python3
"""
Launch script for background training of the fuel-aware navigation agent.
Runs from a source checkout without installing the package.
"""

import sys
from pathlib import Path

# Add the project root to Python path
sys.path.append(str(Path(__file__).parent))

from fuelnav.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
