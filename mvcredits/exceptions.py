"""Exception types raised by the credits pipeline."""


class CreditsError(Exception):
    """Base class for pipeline errors."""

    pass


class MalformedRecordError(CreditsError):
    """A content record whose header cannot be parsed."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class SourceTableError(CreditsError):
    """A source table that cannot be read at all."""

    pass


class FetchError(CreditsError):
    """Metadata could not be fetched from the provider."""

    pass


class SlugCollisionError(CreditsError):
    """A rename would overwrite an existing content record."""

    pass
