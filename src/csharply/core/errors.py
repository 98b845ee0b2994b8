"""
Exception types raised by CSharply
"""


class CSharplyError(Exception):
    """Base class for all CSharply errors"""


class SourceParseError(CSharplyError):
    """Raised when the C# parser cannot build a clean tree from the source"""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class ConfigError(CSharplyError):
    """Raised when a configuration file cannot be used"""
