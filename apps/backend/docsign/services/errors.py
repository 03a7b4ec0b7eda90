"""Error taxonomy raised by the signing services."""


class SigningError(Exception):
    """Base exception for all lifecycle and signing errors."""

    code = "SIGNING_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SigningError):
    """Raised when input has the wrong shape (empty name, malformed email)."""

    code = "VALIDATION_ERROR"


class InvalidState(SigningError):
    """Raised when an operation is not permitted in the current status."""

    code = "INVALID_STATE"


class NotReady(SigningError):
    """
    Raised when a precondition is not yet satisfied.

    ``reasons`` holds machine-readable reason codes so callers can tell the
    user exactly what is missing.
    """

    code = "NOT_READY"

    NO_SIGNERS = "NO_SIGNERS"
    NO_FIELDS = "NO_FIELDS"
    UNASSIGNED_FIELDS = "UNASSIGNED_FIELDS"
    SIGNING_ORDER_INCOMPLETE = "SIGNING_ORDER_INCOMPLETE"
    REQUIRED_FIELDS_INCOMPLETE = "REQUIRED_FIELDS_INCOMPLETE"

    def __init__(self, message: str, reasons: list[str]):
        super().__init__(message)
        self.reasons = list(reasons)


class OutOfSequence(SigningError):
    """Raised when a signer acts before the signers ahead of them."""

    code = "OUT_OF_SEQUENCE"

    def __init__(self, message: str, waiting_for: list[str] | None = None):
        super().__init__(message)
        self.waiting_for = list(waiting_for or [])


class Forbidden(SigningError):
    """Raised on an actor/field or actor/signer mismatch."""

    code = "FORBIDDEN"


class NotFound(SigningError):
    """Raised for an unknown document, field or signer."""

    code = "NOT_FOUND"
