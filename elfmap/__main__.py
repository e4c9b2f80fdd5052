"""
elfmap Module Entry Point
==========================

Allows running the elfmap CLI via: python -m elfmap
"""

from elfmap.cli import main

if __name__ == "__main__":
    main()
