"""
Storage package: HTTP retry helper and SQLite page cache.
"""
