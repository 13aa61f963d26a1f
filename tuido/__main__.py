"""Allow ``python -m tuido``."""
from .tui import main

if __name__ == "__main__":
    main()
