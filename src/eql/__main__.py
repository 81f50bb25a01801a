"""Entry point for python -m eql."""

from eql import cli


if __name__ == "__main__":
    cli.main()
