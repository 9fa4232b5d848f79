"""BlakeBot - main entry point.

Run this file to start the console:
    python main.py

Or run it as a module:
    python -m blakebot
"""

import sys
from pathlib import Path

# Add src to the import path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from blakebot.app import main

if __name__ == "__main__":
    sys.exit(main())
