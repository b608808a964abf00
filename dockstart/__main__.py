"""Allow ``python -m dockstart``."""

from .cli import main

if __name__ == "__main__":
    main()
