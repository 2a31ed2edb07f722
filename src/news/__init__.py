"""News provider — top headlines passthrough."""

from src.news.client import HeadlinesQuery, NewsClient

__all__ = ["HeadlinesQuery", "NewsClient"]
