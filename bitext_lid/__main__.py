import sys

from bitext_lid.cli import main


if __name__ == "__main__":
    sys.exit(main())
