"""Module entrypoint for `python -m vmbridge`."""

from vmbridge.cli import run

if __name__ == "__main__":
    raise SystemExit(run())
