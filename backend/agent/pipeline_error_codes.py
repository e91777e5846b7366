from __future__ import annotations

from enum import StrEnum


class PipelineErrorCode(StrEnum):
    CLASSIFICATION_FAILED = "CLASSIFICATION_FAILED"
    TURN_CANCELLED = "TURN_CANCELLED"
    TOOL_INVOCATION_FAILED = "TOOL_INVOCATION_FAILED"
    TOOL_RATE_LIMITED = "TOOL_RATE_LIMITED"
    TOOL_TIMEOUT = "TOOL_TIMEOUT"
    TOOL_NETWORK_ERROR = "TOOL_NETWORK_ERROR"
    TOOL_AUTH_ERROR = "TOOL_AUTH_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    CONTEXT_TOO_LARGE = "CONTEXT_TOO_LARGE"
    CONFIGURATION_MISSING = "CONFIGURATION_MISSING"


class ToolInvocationError(Exception):
    def __init__(self, message: str, *, code: str | PipelineErrorCode | None = None) -> None:
        self.code = PipelineErrorCode(code) if code else classify_error_message(message)
        super().__init__(message)


class ConfigurationError(Exception):
    """A required prompt/schema/collaborator lookup is missing."""

    code = PipelineErrorCode.CONFIGURATION_MISSING


_RETRYABLE_ERROR_CODES = {
    PipelineErrorCode.TOOL_INVOCATION_FAILED,
    PipelineErrorCode.TOOL_RATE_LIMITED,
    PipelineErrorCode.TOOL_TIMEOUT,
    PipelineErrorCode.TOOL_NETWORK_ERROR,
}

_USER_MESSAGES = {
    PipelineErrorCode.TOOL_RATE_LIMITED: "Taking a quick break to avoid rate limits. Please try again in a moment.",
    PipelineErrorCode.TOOL_TIMEOUT: "Request timed out. Please try again with a shorter message.",
    PipelineErrorCode.TOOL_NETWORK_ERROR: "Network connection issue. Please check your connection and try again.",
    PipelineErrorCode.TOOL_AUTH_ERROR: "Authentication error. Please refresh the page and try again.",
    PipelineErrorCode.INVALID_RESPONSE: "Received an unexpected response. Please try again.",
    PipelineErrorCode.CONTEXT_TOO_LARGE: "Your conversation history is too long. Try clearing the chat and starting fresh.",
    PipelineErrorCode.CONFIGURATION_MISSING: "This action isn't available right now because it is not configured.",
}

APOLOGY_MESSAGE = "I apologize, but I'm having trouble responding right now. Please try again."
STOPPED_MESSAGE = "Response stopped by user."


def classify_error_message(message: str) -> PipelineErrorCode:
    lower = (message or "").lower()
    if "rate limit" in lower or "429" in lower:
        return PipelineErrorCode.TOOL_RATE_LIMITED
    if "timeout" in lower or "timed out" in lower:
        return PipelineErrorCode.TOOL_TIMEOUT
    if "network" in lower or "connect" in lower or "fetch failed" in lower:
        return PipelineErrorCode.TOOL_NETWORK_ERROR
    if "unauthorized" in lower or "401" in lower or "403" in lower:
        return PipelineErrorCode.TOOL_AUTH_ERROR
    if "context length" in lower or "token limit" in lower:
        return PipelineErrorCode.CONTEXT_TOO_LARGE
    if "invalid" in lower or "parse" in lower or "empty_content" in lower:
        return PipelineErrorCode.INVALID_RESPONSE
    return PipelineErrorCode.TOOL_INVOCATION_FAILED


def is_retryable_pipeline_error(code: str | PipelineErrorCode) -> bool:
    try:
        value = PipelineErrorCode(str(code))
    except ValueError:
        return False
    return value in _RETRYABLE_ERROR_CODES


def user_message_for_error(code: str | PipelineErrorCode) -> str:
    try:
        value = PipelineErrorCode(str(code))
    except ValueError:
        return APOLOGY_MESSAGE
    if value in _RETRYABLE_ERROR_CODES and value != PipelineErrorCode.TOOL_INVOCATION_FAILED:
        return f"{APOLOGY_MESSAGE} ({_USER_MESSAGES[value]})"
    return _USER_MESSAGES.get(value, APOLOGY_MESSAGE)
