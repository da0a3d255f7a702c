class LexiStreamError(Exception):
    """Base error for all user-facing lexistream exceptions."""


class ConfigurationError(LexiStreamError):
    """Raised when configuration is invalid or incomplete."""


class ValidationError(LexiStreamError):
    """Raised when caller input fails basic checks."""


class ParserFinalizedError(LexiStreamError):
    """Raised when a chunk is fed to a parser that has already been finalized."""


class IncompleteEntryError(LexiStreamError):
    """Raised when a finalized entry lacks required fields."""

    def __init__(self, missing: tuple[str, ...]) -> None:
        self.missing = missing
        super().__init__(f"Streamed entry is missing required fields: {', '.join(missing)}")


class LookupFailedError(LexiStreamError):
    """Raised when neither the stream nor the fallback produced an entry."""
