"""JSON REST backend for a small clothing shop, built on Flask and SQLAlchemy."""

__version__ = "0.1.0"