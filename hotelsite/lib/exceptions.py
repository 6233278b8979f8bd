import logging
from pathlib import Path

from litestar import Request, Response
from litestar.exceptions import HTTPException
from litestar.status_codes import HTTP_409_CONFLICT, HTTP_500_INTERNAL_SERVER_ERROR

from hotelsite.lib import observability
from hotelsite.lib.media_errors import ProtectedMediaError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


def _accepts_html(request: Request) -> bool:
    """Check if the request accepts HTML responses (browser request)."""
    accept = request.headers.get("accept", "")
    return "text/html" in accept


def _resolve_error_template(status_code: int) -> str:
    specific_template = f"error-{status_code}.html"
    if (TEMPLATE_DIR / specific_template).exists():
        return specific_template
    return "error.html"


def _error_response(request: Request, status_code: int, detail: str) -> Response:
    if _accepts_html(request):
        template = request.app.template_engine.get_template(_resolve_error_template(status_code))
        content = template.render(
            status_code=status_code,
            message=detail,
            site_name=request.app.state.settings.site_name,
        )
        return Response(content=content, status_code=status_code, media_type="text/html")

    # JSON response for API clients
    return Response(
        content={"status_code": status_code, "detail": detail},
        status_code=status_code,
        media_type="application/json",
    )


def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Handle HTTP exceptions with HTML for browsers, JSON for APIs."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(request, exc.status_code, detail)


def protected_media_handler(request: Request, exc: ProtectedMediaError) -> Response:
    """A delete that would remove a protected asset is a conflict."""
    return _error_response(request, HTTP_409_CONFLICT, str(exc))


def internal_server_error_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected exceptions with HTML for browsers, JSON for APIs."""
    if not observability.exception(
        "Unhandled exception on {method} {path}",
        method=request.method,
        path=request.url.path,
    ):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    if _accepts_html(request):
        return _error_response(request, HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred.")
    return _error_response(request, HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")
