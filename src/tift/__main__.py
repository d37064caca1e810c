"""tift CLI bootstrap."""

from tift.cli.app import app

if __name__ == "__main__":
    app()
