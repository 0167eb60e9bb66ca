"""Database package: SQLAlchemy models, sessions and the document store."""
