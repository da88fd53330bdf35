"""Typed procedure errors.

Handlers raise these; the dispatcher turns them into error envelopes with a
stable code and the matching HTTP status.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError


HTTP_STATUS: Dict[str, int] = {
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "METHOD_NOT_SUPPORTED": 405,
    "CONFLICT": 409,
    "INTERNAL_SERVER_ERROR": 500,
}


class RpcError(Exception):
    code = "INTERNAL_SERVER_ERROR"
    default_message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        field_errors: Optional[Dict[str, List[str]]] = None,
    ):
        self.message = message or self.default_message
        self.field_errors = field_errors
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS.get(self.code, 500)

    def to_dict(self, path: str | None = None) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": self.code,
            "httpStatus": self.http_status,
            "path": path,
        }
        if self.field_errors is not None:
            data["fieldErrors"] = self.field_errors
        return {"message": self.message, "code": self.code, "data": data}


class ValidationFailed(RpcError):
    code = "BAD_REQUEST"
    default_message = "Invalid input"

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "ValidationFailed":
        field_errors: Dict[str, List[str]] = {}
        for err in exc.errors():
            key = ".".join(str(p) for p in err.get("loc", ())) or "input"
            field_errors.setdefault(key, []).append(str(err.get("msg", "invalid")))
        first = next(iter(field_errors.values()))[0] if field_errors else cls.default_message
        return cls(first, field_errors=field_errors)


class Unauthorized(RpcError):
    code = "UNAUTHORIZED"
    default_message = "Login required"


class Forbidden(RpcError):
    code = "FORBIDDEN"
    default_message = "Admin privileges required"


class NotFound(RpcError):
    code = "NOT_FOUND"
    default_message = "Not found"


class MethodNotSupported(RpcError):
    code = "METHOD_NOT_SUPPORTED"
    default_message = "Method not supported"


class Conflict(RpcError):
    code = "CONFLICT"
    default_message = "Already exists"


class InternalError(RpcError):
    code = "INTERNAL_SERVER_ERROR"
