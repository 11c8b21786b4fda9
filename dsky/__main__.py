import sys

from dsky.cli import main

if __name__ == "__main__":
    sys.exit(main())
