"""Error types for build_router.

Every failure the router knows about carries a stable ``code`` so the CLI
and logs can report it without parsing messages.
"""

# Error code constants
CONFIGURATION_ERROR = "configuration_error"
ORCHESTRATOR_ERROR = "orchestrator_error"
EXPORT_ERROR = "export_error"


class BuildRouterError(Exception):
    """Base class for errors that terminate an invocation."""

    def __init__(self, message: str, code: str = "build_router_error") -> None:
        """Initialize BuildRouterError.

        Args:
            message: Error description.
            code: Error code for structured error handling.
        """
        super().__init__(message)
        self.code = code


class ConfigurationError(BuildRouterError):
    """Raised when the CI environment or region configuration is unusable."""

    def __init__(self, message: str, code: str = CONFIGURATION_ERROR) -> None:
        super().__init__(message, code)


class OrchestratorError(BuildRouterError):
    """Raised when the build orchestration API call fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str = ORCHESTRATOR_ERROR,
    ) -> None:
        super().__init__(message, code)
        self.status_code = status_code


class ExportError(BuildRouterError):
    """Raised when a value cannot be exported to the CI environment."""

    def __init__(self, message: str, key: str, code: str = EXPORT_ERROR) -> None:
        super().__init__(message, code)
        self.key = key


__all__ = [
    "CONFIGURATION_ERROR",
    "EXPORT_ERROR",
    "ORCHESTRATOR_ERROR",
    "BuildRouterError",
    "ConfigurationError",
    "ExportError",
    "OrchestratorError",
]
