"""Error taxonomy for the eval agent.

Every error carries a stable ``code`` so the outer ops layer can map it to a
response without inspecting messages:

- UnauthorizedError: caller failed the shared-secret check (no side effects)
- InvalidRequestError: malformed payload or a rejected precondition
- NotFoundError: referenced run, issue, or content object does not exist
- ConflictError: a status or content precondition no longer holds
- UpstreamFailureError: the reasoning capability or storage failed
"""

from typing import Any, Optional


class EvalAgentError(Exception):
    """Base class for all eval agent errors.

    Attributes:
        code: Stable machine-readable error code.
        details: Optional structured context (ids, statuses, validation errors).
    """

    code = "error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the ops layer."""
        payload: dict[str, Any] = {"success": False, "code": self.code, "error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class UnauthorizedError(EvalAgentError):
    code = "unauthorized"


class InvalidRequestError(EvalAgentError):
    code = "invalid_request"


class NotFoundError(EvalAgentError):
    code = "not_found"


class ConflictError(EvalAgentError):
    code = "conflict"


class UpstreamFailureError(EvalAgentError):
    code = "upstream_failure"


__all__ = [
    "EvalAgentError",
    "UnauthorizedError",
    "InvalidRequestError",
    "NotFoundError",
    "ConflictError",
    "UpstreamFailureError",
]
