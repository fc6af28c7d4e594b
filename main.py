"""
Busylight — Entry Point.

Single entry point: `python main.py Work,Personal` starts the indicator.
"""

from busylight.app import main

if __name__ == "__main__":
    main()
