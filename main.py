import sys

from launchcore.main import main

if __name__ == "__main__":
    sys.exit(main())
