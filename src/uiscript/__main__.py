"""Allow running as python -m uiscript."""

from uiscript.cli.main import app

if __name__ == "__main__":
    app()
