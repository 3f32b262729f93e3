"""CLI tools for the knowledge search service.

- ``python -m src.cli.search``: run one search and print a report or JSON.
"""
