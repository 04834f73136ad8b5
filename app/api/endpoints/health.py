"""
Health check and monitoring endpoints.

Provides health status for the database and the Celery broker.
"""

import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends, status
from kombu import Connection
from sqlalchemy.orm import Session
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.database import get_db, utcnow
from app.crud import user as user_crud
from app.models.user import User

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """
    Basic health check endpoint.

    Returns 200 OK if the service is running.
    Use this for simple uptime monitoring and load balancer health checks.
    """
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat()
    }


@router.get("/health/detailed", status_code=status.HTTP_200_OK)
def detailed_health_check(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    Checks:
    - Database connectivity
    - Celery broker (Redis) reachability

    Returns 200 with the status of each component.
    """
    health_status = {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "checks": {}
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "message": "Database error"
        }

    try:
        with Connection(settings.REDIS_URL, connect_timeout=2) as conn:
            conn.ensure_connection(max_retries=1)
        health_status["checks"]["broker"] = {
            "status": "healthy",
            "message": "Task broker reachable"
        }
    except Exception as e:
        # Backups are delayed, not lost, while the broker is down
        logger.warning(f"Broker health check failed: {e}")
        health_status["status"] = "degraded" if health_status["status"] == "healthy" else health_status["status"]
        health_status["checks"]["broker"] = {
            "status": "unhealthy",
            "message": "Task broker unreachable"
        }

    return health_status


@router.get("/metrics", status_code=status.HTTP_200_OK)
def get_metrics(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Application metrics endpoint.

    Returns basic operational metrics: users per role, active and pending
    accounts.
    """
    by_role = user_crud.count_by_role(db)

    return {
        "timestamp": utcnow().isoformat(),
        "metrics": {
            "total_users": sum(by_role.values()),
            "users_by_role": by_role,
            "active_users": db.query(func.count(User.id)).filter(User.is_active == True).scalar() or 0,
            "pending_approvals": user_crud.count_pending(db),
        }
    }
