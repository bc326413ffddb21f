"""Allow ``python -m reactloop``."""

from reactloop.cli.main import main

if __name__ == "__main__":
    main()
