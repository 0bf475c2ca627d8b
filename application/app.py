import sys
from pathlib import Path

# Load environment variables FIRST, before any other imports
from dotenv import load_dotenv
load_dotenv()

# Add project root to path so imports work whether running as module or directly
project_root = Path(__file__).parent.parent.resolve()
project_root_str = str(project_root)

if sys.path and Path(sys.path[0]).name == 'application':
    sys.path[0] = project_root_str
elif project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

import asyncio
import logging
import os
from typing import Optional

from quart import Quart, Response, jsonify
from quart_rate_limiter import RateLimiter
from quart_schema import QuartSchema, hide

from application.routes import chat_bp, health_bp
from application.routes.common.error_handlers import register_error_handlers
from application.services.service_factory import ServiceContainer

# Configure root logging to both stdout and a file for debugging/triage.
# Default file is app-log.log in the current working directory; override with APP_LOG_FILE.
log_file = os.getenv("APP_LOG_FILE", "app-log.log")
log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logging.basicConfig(
    level=logging.INFO,
    format=log_format,
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_file, mode="a"),
    ],
)

logger = logging.getLogger(__name__)

# Enable debug logging for the OpenAI SDK if DEBUG_OPENAI is set
if os.getenv("DEBUG_OPENAI", "false").lower() == "true":
    logging.getLogger("openai").setLevel(logging.DEBUG)
    logger.info("🔍 OpenAI SDK debug mode enabled")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}


def create_app(services: Optional[ServiceContainer] = None) -> Quart:
    """Build the Quart application.

    ``services`` is used as-is when given; otherwise the container is
    built from configuration when the server starts.
    """
    app = Quart(__name__)
    app.services = services

    # Extend Quart timeouts for long-lived SSE responses
    app.config["RESPONSE_TIMEOUT"] = int(os.getenv("QUART_RESPONSE_TIMEOUT", "600"))
    app.config["BODY_TIMEOUT"] = int(os.getenv("QUART_BODY_TIMEOUT", "600"))

    RateLimiter(app)

    QuartSchema(
        app,
        info={"title": "Bakame Chat API", "version": "1.0.0"},
        tags=[
            {"name": "Chat", "description": "Streaming chat completion"},
            {"name": "System", "description": "System and health endpoints"},
        ],
        security=[{"bearerAuth": []}],
        security_schemes={
            "bearerAuth": {
                "type": "http",
                "scheme": "bearer",
            }
        },
    )

    register_error_handlers(app)

    app.register_blueprint(chat_bp, url_prefix="/api")
    app.register_blueprint(health_bp, url_prefix="/api")

    @app.route("/favicon.ico")
    @hide
    def favicon() -> tuple[str, int]:
        return "", 200

    @app.before_serving
    async def startup() -> None:
        if app.services is None:
            logger.info("Initializing services at application startup...")
            app.services = ServiceContainer.build()
        await app.services.start()
        logger.info("All services initialized successfully at startup")

    @app.after_serving
    async def shutdown() -> None:
        """Cleanup tasks on shutdown."""
        logger.info("Shutting down application...")
        if app.services is not None:
            await app.services.close()
        logger.info("Application shutdown complete")

    @app.after_request
    async def apply_cors(response: Response) -> Response:
        # Allow all origins (bearer auth, no cookies)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response

    @app.route("/<path:path>", methods=["OPTIONS"])
    async def handle_options(path: str) -> tuple[Response, int]:
        """Handle CORS preflight OPTIONS requests."""
        return jsonify({"status": "ok"}), 200

    return app


app = create_app()


if __name__ == "__main__":
    from hypercorn.asyncio import serve

    from application.server import build_hypercorn_config

    asyncio.run(serve(app, build_hypercorn_config()))
