"""Exception types shared by the tool layer and the transports."""

from typing import Optional


class RagAlgoError(Exception):
    """Base class for every error raised by this package."""


class InvalidArgumentsError(RagAlgoError):
    """Tool arguments did not match the tool's parameter model."""

    def __init__(self, tool_name: str, detail: str):
        self.tool_name = tool_name
        self.detail = detail
        super().__init__(f"Invalid arguments for {tool_name}: {detail}")


class UnknownToolError(RagAlgoError):
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class MissingApiKeyError(RagAlgoError):
    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"{variable} environment variable is not set")


class UpstreamError(RagAlgoError):
    """The RagAlgo API answered with a non-success status or could not be reached.

    ``status`` is ``None`` when no HTTP response was received at all.
    """

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        if status is None:
            super().__init__(f"API request failed: {message}")
        else:
            super().__init__(f"API request failed with status {status}: {message}")


class SessionNotFoundError(RagAlgoError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class ProtocolTimeoutError(RagAlgoError):
    """A stateless exchange did not finish inside the request timeout."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout:g}s")
