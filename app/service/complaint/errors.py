class ComplaintProcessingError(Exception):
    """Base class for failures raised while working a reserved complaint."""

    terminal = False

    def __init__(self, reason: str, cause: Exception | None = None):
        self.reason = reason
        self.cause = cause
        super().__init__(reason)


class ParseError(ComplaintProcessingError):
    """Payload bytes could not be decoded into a JSON object."""


class SchemaInvalid(ComplaintProcessingError):
    terminal = True


class ReferenceInvalid(ComplaintProcessingError):
    terminal = True


class ConstraintViolation(ComplaintProcessingError):
    """The store refused the write on a referential or uniqueness constraint."""

    terminal = True


class TransientInfra(ComplaintProcessingError):
    """Store or network failure that may succeed on a later attempt."""
