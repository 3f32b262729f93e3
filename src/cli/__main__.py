"""Allow ``python -m src.cli`` execution as the search command."""

from src.cli.search import main

main()
