class FormatError(ValueError):
    """The statement decoded but its holdings section, header row or columns are missing."""


class DecodeFailure(FormatError):
    """No candidate encoding produced text containing the holdings section marker."""


class EmptyStatementError(ValueError):
    """The statement is well formed but no data row survived validation."""


class StatementError(ValueError):
    """A per-file failure, attributed to the file that caused it."""

    def __init__(self, filename: str, cause: Exception):
        self.filename = filename
        self.cause = cause
        super().__init__(f"{filename}: {cause}")

    @property
    def error_code(self) -> str:
        if isinstance(self.cause, DecodeFailure):
            return "UNSUPPORTED_FILE"
        if isinstance(self.cause, FormatError):
            return "INVALID_FORMAT"
        if isinstance(self.cause, EmptyStatementError):
            return "NO_HOLDINGS"
        return "INVALID_FILE"


class PortfolioNotFoundError(LookupError):
    pass


class HoldingNotFoundError(LookupError):
    pass
