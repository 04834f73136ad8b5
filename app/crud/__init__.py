"""
CRUD operations (Create, Read, Update, Delete) for database models.

This layer keeps query code out of the API routes.
"""

from app.crud import announcement, attendance, homework, message, school_class, school_config, user

__all__ = ["announcement", "attendance", "homework", "message", "school_class", "school_config", "user"]
