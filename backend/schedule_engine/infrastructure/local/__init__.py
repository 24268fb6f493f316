"""SQLite (SQLAlchemy asyncio) implementations of the repository interfaces."""
