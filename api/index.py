"""
Serverless entry point (Vercel python runtime picks up `app`).

If the application fails to import, serve a 500 describing the import
error on every path instead of a bare platform crash page.
"""
import logging
import sys
import traceback

from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route

logger = logging.getLogger(__name__)


def build_error_app(error: BaseException) -> Starlette:
    details = {
        "error": str(error),
        "type": type(error).__name__,
        "traceback": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        "python_version": sys.version,
    }

    async def report(request):
        return JSONResponse(details, status_code=500)

    methods = ["GET", "POST", "PUT", "PATCH", "DELETE"]
    return Starlette(routes=[
        Route("/", report, methods=methods),
        Route("/{path:path}", report, methods=methods),
    ])


startup_error = None

try:
    from turmeric_care.main import app
except Exception as e:
    startup_error = e
    logger.error(f"TurmericCare failed to start: {e}", exc_info=True)
    app = build_error_app(e)
