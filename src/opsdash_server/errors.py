"""Exception hierarchy for opsdash-server.

Every failure is scoped to the request or tool call that produced it. Routers
translate these exceptions into JSON error bodies, and the tool executor
renders them as plain-text tool results.
"""


class OpsDashError(Exception):
    """Base class for errors raised by opsdash-server components.

    Attributes:
        message: Human-readable description of the failure.
        collaborator: Name of the external service involved, if any.
    """

    status_code = 500

    def __init__(self, message: str, collaborator: str | None = None) -> None:
        self.message = message
        self.collaborator = collaborator
        super().__init__(message)

    def __str__(self) -> str:
        if self.collaborator:
            return f"{self.collaborator}: {self.message}"
        return self.message


class ConfigurationError(OpsDashError):
    """Required credentials or settings are missing; no network call was made."""

    status_code = 400


class ConnectivityError(OpsDashError):
    """A collaborator could not be reached or timed out."""

    status_code = 503


class UpstreamError(OpsDashError):
    """A collaborator answered with an error (4xx/5xx)."""

    status_code = 502


class StoreError(UpstreamError):
    """The data store rejected a query or mutation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, collaborator="Database")


class AuthenticationRequired(OpsDashError):
    """Google tokens are missing, expired or revoked."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated. Please sign in with Google.") -> None:
        super().__init__(message, collaborator="Google")


class ToolValidationError(OpsDashError):
    """Arguments for a tool call are missing or invalid.

    Attributes:
        tool_name: Name of the tool whose arguments failed validation.
    """

    status_code = 400

    def __init__(self, tool_name: str, message: str) -> None:
        self.tool_name = tool_name
        super().__init__(message)


class OrchestrationError(OpsDashError):
    """A provider call inside the conversation loop failed.

    Attributes:
        stage: "first" for the initial provider call, "final" for any later one.
    """

    status_code = 500

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(message)
