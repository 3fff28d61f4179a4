"""
Impel: fitness challenge commitments kept in partitioned key-value storage.
"""

__version__ = "0.1.40"
