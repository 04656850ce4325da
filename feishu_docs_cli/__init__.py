"""Command line tool for Feishu cloud documents."""

__version__ = "0.1.0"
