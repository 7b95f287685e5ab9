"""
Exception hierarchy.

Defines categorized exception types for commission processing.

Categories:
- ValidationError: caller-correctable input problems, no state change
- DataIntegrityError: the stored person graph violates an invariant
- PersistenceError: the store failed, the whole batch is rolled back

Lookups of unknown ids return None instead of raising.
"""

from sqlalchemy.exc import SQLAlchemyError


class CommissionManagerError(Exception):
    """Base class for all commission manager errors."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CommissionManagerError):
    """Raised when caller input is invalid."""

    code = "validation_error"


class InvalidPercentage(ValidationError):
    """Raised when a percentage is outside 0..100."""

    code = "invalid_percentage"


class MissingSeller(ValidationError):
    """Raised when a calculation has no seller."""

    code = "missing_seller"


class MissingPropertyOrPrice(ValidationError):
    """Raised when a calculation has no property or no price."""

    code = "missing_property_or_price"


class InvalidPrice(ValidationError):
    """Raised when a property price is negative or out of range."""

    code = "invalid_price"


class DuplicateUsername(ValidationError):
    """Raised when a username is already taken."""

    code = "duplicate_username"


class UnknownReferrer(ValidationError):
    """Raised when a new referrer id does not exist."""

    code = "unknown_referrer"


class InvalidPersonData(ValidationError):
    """Raised when person fields fail validation."""

    code = "invalid_person_data"


class AlreadyCommitted(ValidationError):
    """Raised when a property already has committed commissions."""

    code = "already_committed"

    def __init__(self, property_id: int) -> None:
        super().__init__(
            f"Property {property_id} already has committed commissions; "
            "use override to recompute"
        )
        self.property_id = property_id


class DataIntegrityError(CommissionManagerError):
    """Raised when stored data violates an invariant."""

    code = "data_integrity_error"


class CycleDetected(DataIntegrityError):
    """Raised when a referral chain revisits a person."""

    code = "cycle_detected"

    def __init__(self, person_id: int, path: list[int]) -> None:
        chain = " -> ".join(str(p) for p in [*path, person_id])
        super().__init__(f"Referral cycle detected: {chain}")
        self.person_id = person_id
        self.path = path


class DanglingReferrer(DataIntegrityError):
    """Raised when referred_by points at a person that does not exist."""

    code = "dangling_referrer"

    def __init__(self, person_id: int, referrer_id: int) -> None:
        super().__init__(
            f"Person {person_id} is referred by unknown person {referrer_id}"
        )
        self.person_id = person_id
        self.referrer_id = referrer_id


class PersistenceError(CommissionManagerError):
    """Raised when the store fails; no part of the batch is kept."""

    code = "persistence_error"

    @classmethod
    def from_exception(
        cls, exc: SQLAlchemyError, operation: str
    ) -> "PersistenceError":
        """
        Wrap a SQLAlchemy error.

        Args:
            exc: Original database error
            operation: Operation name for the message

        Returns:
            PersistenceError with the original error chained
        """
        error = cls(f"{operation} failed: {type(exc).__name__}: {exc}")
        error.__cause__ = exc
        return error
