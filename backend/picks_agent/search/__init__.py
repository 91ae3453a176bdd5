"""Retrieval and web-search tools used by the recommendation graph."""
