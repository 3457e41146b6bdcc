"""
Package entry point.

Allows running the application via:

    python -m casecalendar

This simply forwards execution to casecalendar.cli.main().
"""

from casecalendar.cli import main

if __name__ == "__main__":
    main()
