import sys

from .hub import main

if __name__ == '__main__':
    sys.exit(main())
