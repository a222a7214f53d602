"""Allow `python -m seastar`."""

from seastar.cli import main

if __name__ == "__main__":
    main()
