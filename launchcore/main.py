import sys
from typing import Optional, Sequence

from .launcher import LauncherApp


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console entry point."""
    arguments = sys.argv[1:] if argv is None else list(argv)
    return LauncherApp(arguments).run()


if __name__ == "__main__":
    sys.exit(main())
