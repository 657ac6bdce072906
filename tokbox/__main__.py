"""Package entry point for ``python -m tokbox``.

Delegates to the CLI's main() and exits with its return code.
"""

import sys

if __name__ == "__main__":
    from tokbox.cli import main
    sys.exit(main())
