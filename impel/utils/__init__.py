"""
Utilities package for Impel.
"""
