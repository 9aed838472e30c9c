"""Exception types raised across the tandem package."""


class TandemError(Exception):
    """Base class for errors raised by tandem."""


class ConfigError(TandemError):
    """Raised when a configuration profile cannot be turned into backends."""


class UnknownToolError(TandemError):
    """Raised when a tool call names a tool outside the known set."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(
            f'Unknown tool "{name}". Available tools: {", ".join(available)}'
        )


class ToolArgumentError(TandemError):
    """Raised when tool call arguments do not match the tool's schema."""
