"""LeetCode friend tracker: headless-browser profile scraping service."""

__version__ = "0.1.0"
