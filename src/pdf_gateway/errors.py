"""Failure taxonomy shared by the engine and its HTTP surface."""

from __future__ import annotations


class GatewayError(RuntimeError):
    code = "GATEWAY_ERROR"
    status_code = 500

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def detail(self) -> str:
        return str(self)

    def to_payload(self) -> dict[str, object]:
        return {"error": {"kind": self.code, "detail": self.detail}}


class ValidationFailure(GatewayError):
    code = "VALIDATION_FAILURE"
    status_code = 400


class UploadTooLarge(ValidationFailure):
    status_code = 413


class UnsupportedFormat(GatewayError):
    code = "UNSUPPORTED_FORMAT"
    status_code = 415


class BackendUnavailable(GatewayError):
    code = "BACKEND_UNAVAILABLE"
    status_code = 502


class StorageFailure(GatewayError):
    code = "STORAGE_FAILURE"
    status_code = 500


class InvalidOrder(GatewayError):
    code = "INVALID_ORDER"
    status_code = 400


class EmptyInput(GatewayError):
    code = "EMPTY_INPUT"
    status_code = 400


class ConversionFailure(GatewayError):
    code = "CONVERSION_FAILURE"
    status_code = 502

    def __init__(self, index: int, reason: str, *, cause_code: str | None = None) -> None:
        super().__init__(f"Conversion of item {index} failed: {reason}")
        self.index = index
        self.reason = reason
        self.cause_code = cause_code

    def to_payload(self) -> dict[str, object]:
        error: dict[str, object] = {"kind": self.code, "detail": self.detail, "index": self.index}
        if self.cause_code:
            error["cause"] = self.cause_code
        return {"error": error}


class SessionNotFound(GatewayError):
    code = "NOT_FOUND"
    status_code = 404


class AlreadyProcessing(GatewayError):
    code = "ALREADY_PROCESSING"
    status_code = 409


INTERNAL_ERROR = "INTERNAL_ERROR"


def error_code(exc: BaseException) -> str:
    return exc.code if isinstance(exc, GatewayError) else INTERNAL_ERROR


__all__ = [
    "INTERNAL_ERROR",
    "error_code",
    "AlreadyProcessing",
    "BackendUnavailable",
    "ConversionFailure",
    "EmptyInput",
    "GatewayError",
    "InvalidOrder",
    "SessionNotFound",
    "StorageFailure",
    "UnsupportedFormat",
    "UploadTooLarge",
    "ValidationFailure",
]
