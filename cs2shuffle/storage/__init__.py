"""
Storage module: SQLite database with a transaction scope.
"""
from cs2shuffle.storage.database import Database, chunked

__all__ = ['Database', 'chunked']
