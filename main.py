"""
ClearNano - Main Entry Point
============================
Run from a source checkout without installing:

    python main.py photo.png other.jpg -o cleaned/
"""

import sys

from clearnano.cli import main

if __name__ == "__main__":
    sys.exit(main())
