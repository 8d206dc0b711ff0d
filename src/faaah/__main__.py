"""Allow ``python -m faaah``."""

from faaah.cli import main

if __name__ == "__main__":
    main()
