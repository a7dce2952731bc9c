"""Database package: declarative base, models, and session management."""
