"""
Celery tasks package.

Tasks are organized by domain:
- backup_tasks: Manual/scheduled database backups and log housekeeping
"""

from app.tasks import backup_tasks

__all__ = ["backup_tasks"]
