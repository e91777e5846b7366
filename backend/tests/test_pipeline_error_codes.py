from agent.pipeline_error_codes import (
    APOLOGY_MESSAGE,
    ConfigurationError,
    PipelineErrorCode,
    ToolInvocationError,
    classify_error_message,
    is_retryable_pipeline_error,
    user_message_for_error,
)


def test_classify_error_message_buckets():
    assert classify_error_message("openai:http_429") == PipelineErrorCode.TOOL_RATE_LIMITED
    assert classify_error_message("Request timed out") == PipelineErrorCode.TOOL_TIMEOUT
    assert classify_error_message("error:ConnectError") == PipelineErrorCode.TOOL_NETWORK_ERROR
    assert classify_error_message("gemini:http_401") == PipelineErrorCode.TOOL_AUTH_ERROR
    assert classify_error_message("maximum context length exceeded") == PipelineErrorCode.CONTEXT_TOO_LARGE
    assert classify_error_message("openai:invalid_json") == PipelineErrorCode.INVALID_RESPONSE
    assert classify_error_message("boom") == PipelineErrorCode.TOOL_INVOCATION_FAILED


def test_retryable_codes():
    assert is_retryable_pipeline_error(PipelineErrorCode.TOOL_TIMEOUT)
    assert is_retryable_pipeline_error("TOOL_RATE_LIMITED")
    assert not is_retryable_pipeline_error(PipelineErrorCode.TOOL_AUTH_ERROR)
    assert not is_retryable_pipeline_error("UNKNOWN_CODE")


def test_user_message_for_error():
    assert user_message_for_error(PipelineErrorCode.TOOL_INVOCATION_FAILED) == APOLOGY_MESSAGE
    timeout = user_message_for_error(PipelineErrorCode.TOOL_TIMEOUT)
    assert timeout.startswith(APOLOGY_MESSAGE)
    assert "timed out" in timeout
    assert "clearing the chat" in user_message_for_error(PipelineErrorCode.CONTEXT_TOO_LARGE)
    assert user_message_for_error("nope") == APOLOGY_MESSAGE


def test_error_types_carry_codes():
    assert ToolInvocationError("openai:http_429").code == PipelineErrorCode.TOOL_RATE_LIMITED
    assert ToolInvocationError("anything", code="TOOL_AUTH_ERROR").code == PipelineErrorCode.TOOL_AUTH_ERROR
    assert ConfigurationError("missing").code == PipelineErrorCode.CONFIGURATION_MISSING
