"""Session flash messages for the admin pages.

A message can carry a short list of details, e.g. the duplicate groups that
failed during a merge, rendered under the message text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from litestar import Request

SESSION_KEY = "flash_messages"


class FlashType(str, Enum):
    """Types of flash messages with corresponding CSS classes."""

    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class FlashMessage:
    message: str
    type: FlashType = FlashType.INFO
    details: list[str] = field(default_factory=list)


def add_flash(
    request: "Request",
    message: str,
    flash_type: FlashType = FlashType.INFO,
    details: list[str] | None = None,
) -> None:
    """Queue a flash message in the session (stored as plain dicts)."""
    entry = {"message": message, "type": flash_type.value}
    if details:
        entry["details"] = [str(d) for d in details]
    request.session.setdefault(SESSION_KEY, []).append(entry)


def get_flash_messages(request: "Request") -> list[FlashMessage]:
    """Get and clear all flash messages from the session."""
    return [
        FlashMessage(
            message=m["message"],
            type=FlashType(m["type"]),
            details=list(m.get("details", [])),
        )
        for m in request.session.pop(SESSION_KEY, [])
    ]


def flash_success(request: "Request", message: str) -> None:
    add_flash(request, message, FlashType.SUCCESS)


def flash_error(request: "Request", message: str) -> None:
    add_flash(request, message, FlashType.ERROR)


def flash_warning(request: "Request", message: str, details: list[str] | None = None) -> None:
    add_flash(request, message, FlashType.WARNING, details)
