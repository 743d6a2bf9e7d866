from .db import SQLiteRunStore

__all__ = ["SQLiteRunStore"]
