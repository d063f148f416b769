from __future__ import annotations

from typing import Any, Dict, List, Optional


CONNECTION_ERROR = "connection_error"


class AltTextApiError(Exception):
    """Classified failure from the AltText.ai API.

    `status` is 0 for failures that never produced a server response.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int,
        error_code: Optional[str] = None,
        errors: Optional[Dict[str, List[str]]] = None,
        raw_body: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.error_code = error_code
        self.errors: Dict[str, List[str]] = dict(errors or {})
        self.raw_body: Dict[str, Any] = dict(raw_body or {})

    @property
    def is_connection_error(self) -> bool:
        return self.status == 0 and self.error_code == CONNECTION_ERROR

    @classmethod
    def from_response(cls, status: int, body: Dict[str, Any]) -> "AltTextApiError":
        error_code = body.get("error_code")
        if not isinstance(error_code, str):
            error_code = None

        errors: Dict[str, List[str]] = {}
        raw_errors = body.get("errors")
        if isinstance(raw_errors, dict):
            for field, messages in raw_errors.items():
                if isinstance(messages, list) and all(isinstance(m, str) for m in messages):
                    errors[str(field)] = list(messages)

        flattened = [m for messages in errors.values() for m in messages]
        top_level = body.get("error")
        if isinstance(top_level, str):
            message = top_level
        elif flattened:
            message = ", ".join(flattened)
        else:
            message = f"HTTP {status}"

        return cls(message, status=status, error_code=error_code, errors=errors, raw_body=body)

    @classmethod
    def connection_error(cls, exc: BaseException) -> "AltTextApiError":
        return cls(
            f"Could not connect to AltText.ai API: {exc}",
            status=0,
            error_code=CONNECTION_ERROR,
        )


class LocalValidationError(ValueError):
    """Input rejected locally, before any request is made."""


class ConfigError(RuntimeError):
    pass
