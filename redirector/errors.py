class RedirectorError(Exception):
    """Base for errors reported to the client as a 400 with an ``error`` message."""

    message = "Bad request"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidUrl(RedirectorError):
    message = "unparsable url"


class InvalidTtl(RedirectorError):
    message = "expires must be a non-negative number"


class MissingId(RedirectorError):
    message = "No id"


class NotFound(RedirectorError):
    message = "Not found"


class Expired(RedirectorError):
    message = "Expired"


class InvalidPath(RedirectorError):
    message = "Invalid path"
