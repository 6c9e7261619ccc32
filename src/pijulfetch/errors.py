"""Typed fetcher error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    VALIDATION = "E_VALIDATION"
    UNSUPPORTED_ATTRIBUTE = "E_UNSUPPORTED_ATTRIBUTE"
    MALFORMED_URL = "E_MALFORMED_URL"
    TOOL_INVOCATION = "E_TOOL_INVOCATION"
    MALFORMED_OUTPUT = "E_MALFORMED_OUTPUT"
    MALFORMED_TIMESTAMP = "E_MALFORMED_TIMESTAMP"
    CHANNEL_MISMATCH = "E_CHANNEL_MISMATCH"
    STATE_MISMATCH = "E_STATE_MISMATCH"
    ATTRIBUTE_CONFLICT = "E_ATTRIBUTE_CONFLICT"
    CACHE = "E_CACHE"
    POLICY = "E_POLICY"


class FetchError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for k, v in self.context.items():
            if v:
                parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class UnsupportedAttributeError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.UNSUPPORTED_ATTRIBUTE, hint=hint, context=context
        )


class MalformedURLError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.MALFORMED_URL, hint=hint, context=context)


class ToolInvocationError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.TOOL_INVOCATION, hint=hint, context=context)


class MalformedOutputError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.MALFORMED_OUTPUT, hint=hint, context=context)


class MalformedTimestampError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.MALFORMED_TIMESTAMP, hint=hint, context=context
        )


class ChannelMismatchError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CHANNEL_MISMATCH, hint=hint, context=context)


class StateMismatchError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.STATE_MISMATCH, hint=hint, context=context)


class AttributeConflictError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.ATTRIBUTE_CONFLICT, hint=hint, context=context
        )


class CacheError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CACHE, hint=hint, context=context)


class PolicyError(FetchError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.POLICY, hint=hint, context=context)


__all__ = [
    "AttributeConflictError",
    "CacheError",
    "ChannelMismatchError",
    "ErrorCode",
    "FetchError",
    "MalformedOutputError",
    "MalformedTimestampError",
    "MalformedURLError",
    "PolicyError",
    "StateMismatchError",
    "ToolInvocationError",
    "UnsupportedAttributeError",
    "ValidationError",
]
