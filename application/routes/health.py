"""Liveness endpoint."""

from quart import Blueprint, current_app

from application.routes.common.response import APIResponse

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
async def health():
    """Liveness plus which optional integrations are configured."""
    services = current_app.services
    return APIResponse.success(
        {
            "status": "ok",
            "integrations": services.integrations(),
            "tools": services.registry.names(),
            "memoryQueue": {
                "running": services.memory_supervisor.running,
                "pending": services.memory_supervisor.pending,
                **services.memory_supervisor.stats,
            },
        }
    )
