"""Domain-specific exception types for Courier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class CourierError(Exception):
    """Base exception for Courier domain errors."""

    message: str
    code: str = "courier_error"
    details: Dict[str, Any] | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.details is None:
            self.details = {}

    def __str__(self) -> str:
        return self.message


class MissingParameterError(CourierError):
    """Raised when a required action parameter is absent or empty."""

    def __init__(
        self,
        message: str,
        *,
        param: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if param:
            details.setdefault("param", param)
        self.param = param
        super().__init__(message=message, code="missing_parameter", details=details)


class InvalidParameterError(CourierError):
    """Raised when an action parameter is present but malformed."""

    def __init__(
        self,
        message: str,
        *,
        param: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if param:
            details.setdefault("param", param)
        self.param = param
        super().__init__(message=message, code="invalid_parameter", details=details)


class CrossContextDeniedError(CourierError):
    """Raised when an action addresses a conversation other than the bound one."""

    def __init__(
        self,
        *,
        action: str,
        target: str,
        current: str,
        provider: str,
    ) -> None:
        message = (
            f"Cross-context messaging denied: action={action} "
            f'target="{target}" while bound to "{current}" (provider={provider}).'
        )
        self.action = action
        self.target = target
        self.current = current
        self.provider = provider
        super().__init__(
            message=message,
            code="cross_context_denied",
            details={
                "action": action,
                "target": target,
                "current": current,
                "provider": provider,
            },
        )


class UnsupportedActionError(CourierError):
    """Raised when no handler claims a message action."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="unsupported_action", details=details)


class ProviderSelectionError(CourierError):
    """Raised when a provider hint cannot be resolved to a provider."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="provider_selection_error", details=details)


class ConfigError(CourierError):
    """Error raised for configuration failures."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="config_error", details=details)


class DeliveryError(CourierError):
    """Error raised when a transport rejects or fails an outbound delivery."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if provider:
            details.setdefault("provider", provider)
        if status_code is not None:
            details.setdefault("status_code", status_code)
        self.provider = provider
        self.status_code = status_code
        super().__init__(message=message, code="delivery_error", details=details)


def error_payload(error: CourierError, extra: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Convert a CourierError into a standardized JSON-friendly payload."""
    payload = {
        "ok": False,
        "error": str(error),
        "error_type": type(error).__name__,
        "code": error.code,
        "details": error.details or {},
    }
    if extra:
        payload.update(extra)
    return payload
