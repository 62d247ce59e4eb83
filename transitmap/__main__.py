"""Main entry point for the transitmap CLI."""

from transitmap.cli import cli


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
