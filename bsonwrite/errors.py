class BsonWriteError(Exception):
    """Base error for the project."""


class InvalidId(BsonWriteError, ValueError):
    """Raised when an ObjectId is built from a malformed value."""


class EncodeError(BsonWriteError):
    """Raised when a document cannot be encoded.

    ``path`` is the dotted location of the offending field ("" for the
    document itself) and ``value`` the offending value or field name.
    """

    def __init__(self, message: str, path: str = "", value: object = None) -> None:
        if path:
            message = f"{message} (at {path!r})"
        super().__init__(message)
        self.path = path
        self.value = value


class InvalidUtf8String(EncodeError):
    """Raised when a string cannot be encoded as UTF-8."""


class InvalidFieldName(EncodeError):
    """Raised for field names the server would reject."""


class UnsupportedRegexFlag(EncodeError):
    """Raised for regex flags outside the BSON flag set."""


class InvalidRegexPattern(EncodeError):
    """Raised when a regex pattern cannot be stored as a C string."""


class NumericOverflow(EncodeError, OverflowError):
    """Raised for integers outside the signed 64-bit range."""


class UnsupportedValueType(EncodeError, TypeError):
    """Raised for values with no BSON representation."""


class DocumentTooLarge(EncodeError):
    """Raised when the encoded document would exceed the size limit."""

    def __init__(self, size: int, max_size: int, path: str = "") -> None:
        super().__init__(
            f"document too large: {size} bytes exceeds limit of {max_size} bytes",
            path=path,
            value=size,
        )
        self.size = size
        self.max_size = max_size
