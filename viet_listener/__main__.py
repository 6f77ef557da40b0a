"""Package entry point for ``python -m viet_listener``.

WHY: Users run the tool as ``python -m viet_listener segment "..."`` without
installing console scripts.

HOW: Delegates to the CLI's main() function.
"""

from viet_listener.cli import main

if __name__ == "__main__":
    main()
