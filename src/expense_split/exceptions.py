"""Custom exceptions for expense-split."""

from decimal import Decimal


class ExpenseSplitError(Exception):
    """Base exception for all expense-split errors."""

    pass


class ConfigurationError(ExpenseSplitError):
    """Raised when configuration is invalid or missing."""

    pass


class SplitError(ExpenseSplitError):
    """Base class for split computation and validation failures.

    These always indicate a defect in the caller's input, never a transient
    fault, so they are not retried. ``field`` names the form field the
    failure should be reported against.
    """

    field: str = "splits"

    def __init__(self, message: str, field: str | None = None):
        if field is not None:
            self.field = field
        super().__init__(message)


class NoParticipantsError(SplitError):
    """Raised when a split is requested for an empty participant set."""

    field = "participants"

    def __init__(self, message: str | None = None):
        super().__init__(message or "An expense needs at least one participant")


class ParticipantInputMismatchError(SplitError):
    """Raised when per-participant inputs don't line up with the participants."""

    def __init__(self, expected: int, actual: int | None):
        self.expected = expected
        self.actual = actual
        got = "no inputs" if actual is None else f"{actual} inputs"
        super().__init__(f"Expected {expected} split inputs, got {got}")


class ParticipantSetMismatchError(SplitError):
    """Raised when split lines and participants don't cover the same people."""

    def __init__(self, missing: set[str], unexpected: set[str]):
        self.missing = missing
        self.unexpected = unexpected
        parts = []
        if missing:
            parts.append(f"missing shares for {sorted(missing)}")
        if unexpected:
            parts.append(f"shares for non-participants {sorted(unexpected)}")
        super().__init__("Split doesn't match participants: " + "; ".join(parts))


class DuplicateParticipantError(SplitError):
    """Raised when the same participant appears twice in a split."""

    def __init__(self, participant_id: str):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} appears more than once")


class PayerNotParticipantError(SplitError):
    """Raised when the payer is not one of the expense participants."""

    field = "payer_id"

    def __init__(self, payer_id: str):
        self.payer_id = payer_id
        super().__init__(f"Payer {payer_id} is not a participant of this expense")


class InvalidStrategyInputError(SplitError):
    """Raised when percentages or exact amounts are unusable."""

    field = "split_inputs"


class SplitSumMismatchError(SplitError):
    """Raised when split amounts don't add up to the expense total."""

    def __init__(self, total: Decimal, actual: Decimal):
        self.total = total
        self.actual = actual
        self.delta = total - actual
        super().__init__(
            f"Split amounts don't add up to the total: "
            f"expected {total}, got {actual} (delta {self.delta})"
        )


class GroupNotSelectedError(SplitError):
    """Raised when a group expense is submitted without a group."""

    field = "group_id"

    def __init__(self, message: str | None = None):
        super().__init__(message or "Please select a group for this expense")


class InvalidExpenseInputError(SplitError):
    """Raised when a raw form field fails parsing or range checks."""

    def __init__(self, field: str, message: str):
        super().__init__(message, field=field)


class AssemblyError(ExpenseSplitError):
    """Raised when an expense record can't be assembled.

    Wraps the underlying :class:`SplitError` so callers can render
    field-specific feedback from ``cause`` and ``field``.
    """

    def __init__(self, cause: SplitError):
        self.cause = cause
        self.field = cause.field
        super().__init__(str(cause))
