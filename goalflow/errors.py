"""Exception types raised by the executor and tool backends."""


class GoalflowError(Exception):
    """Base class for goalflow errors."""


class UnsupportedOperationError(GoalflowError):
    """Raised when a task names a tool category or function nobody handles."""

    def __init__(self, tool: str, function: str):
        self.tool = tool
        self.function = function
        super().__init__(f"Unsupported operation: {tool}.{function}")


class InvalidTaskParamsError(GoalflowError):
    """Raised when a task is missing a parameter its function requires."""


class ToolError(GoalflowError):
    """Failure raised by a tool backend."""


class HTTPRequestError(ToolError):
    """A backend responded with a non-success HTTP status."""

    def __init__(self, status: int, reason: str | None, url: str | None = None):
        self.status = status
        self.reason = reason or ""
        self.url = url
        message = f"HTTP {status}: {self.reason}".rstrip(": ")
        if url:
            message = f"{message} ({url})"
        super().__init__(message)
