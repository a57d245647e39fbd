"""
Database Configuration

FLOW OVERVIEW
- Provides the global SQLAlchemy instance `db` used across all models.
- Initialized in app factory (talentika/__init__.py) with app context.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


class SerializerMixin:
    """Column-wise dict conversion shared by every table model."""

    # Columns never handed back to API callers
    __serialize_exclude__ = ()

    def to_dict(self):
        """Convert model to dictionary."""
        data = {}
        for column in self.__table__.columns:
            if column.key in self.__serialize_exclude__:
                continue
            value = getattr(self, column.key)
            if hasattr(value, 'isoformat'):
                value = value.isoformat()
            data[column.key] = value
        return data

    @classmethod
    def column_names(cls):
        return {column.key for column in cls.__table__.columns}
