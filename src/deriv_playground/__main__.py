"""Entry point for `python -m deriv_playground`."""

from .cli import main

if __name__ == "__main__":
    main()
