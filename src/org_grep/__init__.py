"""
Org Grep - regular expression search across every repository of a GitHub
user or organization.

Each repository is shallow-cloned into memory, walked, and matched line by
line; matches stream to standard output as delimiter-separated records.
"""

__version__ = "0.3.0"
