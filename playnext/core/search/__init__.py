"""
Text search for playnext.
"""

from .search_index import SearchIndex, is_regex_query, search_document

__all__ = ["SearchIndex", "is_regex_query", "search_document"]
