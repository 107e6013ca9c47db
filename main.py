"""Command line entry for Rental Manager documents and alerts."""

from cli.documents import run_cli


def main() -> None:
    """Run the documents CLI."""
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
