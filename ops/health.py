"""
Health check endpoints for operations monitoring.

Endpoints:
- /_health/live    - liveness probe (is the process running?)
- /_health/ready   - readiness probe (can the upload database be reached?)
- /_health/full    - full report including the staging backlog
"""
import logging
import time
from typing import Dict, Any

from django.conf import settings
from django.db import DatabaseError, connections
from django.http import JsonResponse
from django.utils import timezone
from django.views import View

logger = logging.getLogger(__name__)


class HealthCheck:
    """Health check implementation."""

    @staticmethod
    def check_database(alias: str = "default") -> Dict[str, Any]:
        """Check database connectivity."""
        start = time.time()
        try:
            conn = connections[alias]
            conn.ensure_connection()
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            duration_ms = (time.time() - start) * 1000
            return {
                "status": "healthy",
                "alias": alias,
                "duration_ms": round(duration_ms, 2),
            }
        except DatabaseError as e:
            duration_ms = (time.time() - start) * 1000
            logger.warning("Database health check failed", extra={"alias": alias, "error": str(e)})
            return {
                "status": "unhealthy",
                "alias": alias,
                "error": str(e),
                "duration_ms": round(duration_ms, 2),
            }

    @staticmethod
    def check_staging_backlog() -> Dict[str, Any]:
        """Report batches that are staged and waiting for an operator decision."""
        from uploads.models import UploadBatch

        try:
            awaiting = UploadBatch.objects.filter(status__in=UploadBatch.REVIEWABLE_STATUSES)
            oldest = awaiting.order_by("created_at").values_list("created_at", flat=True).first()
        except DatabaseError as e:
            return {"status": "error", "error": str(e)}

        return {
            "status": "healthy",
            "awaiting_review": awaiting.count(),
            "oldest_age_seconds": (
                round((timezone.now() - oldest).total_seconds()) if oldest else None
            ),
        }

    @staticmethod
    def get_full_health() -> Dict[str, Any]:
        """Get comprehensive health report."""
        alias = getattr(settings, "UPLOADS_DATABASE_ALIAS", "default")
        checks = {
            "database": HealthCheck.check_database(alias),
            "staging_backlog": HealthCheck.check_staging_backlog(),
        }

        statuses = [c.get("status", "unknown") for c in checks.values()]
        if all(s == "healthy" for s in statuses):
            overall = "healthy"
        elif any(s == "unhealthy" for s in statuses):
            overall = "unhealthy"
        else:
            overall = "degraded"

        return {
            "status": overall,
            "checks": checks,
            "version": getattr(settings, "VERSION", "unknown"),
            "environment": "production" if not settings.DEBUG else "development",
        }


class LivenessView(View):
    """Returns 200 while the process is running."""

    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    """Returns 200 if the upload database answers."""

    def get(self, request):
        db_check = HealthCheck.check_database(getattr(settings, "UPLOADS_DATABASE_ALIAS", "default"))

        if db_check["status"] == "healthy":
            return JsonResponse({
                "status": "ready",
                "database": db_check,
            })
        return JsonResponse({
            "status": "not_ready",
            "database": db_check,
        }, status=503)


class FullHealthView(View):
    """
    Full health check for debugging and dashboards.

    Should be protected in production (internal network only).
    """

    def get(self, request):
        health = HealthCheck.get_full_health()

        status_code = 200 if health["status"] == "healthy" else 503
        return JsonResponse(health, status=status_code)
