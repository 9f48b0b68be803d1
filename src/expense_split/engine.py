"""Split computation for equal, percentage and exact expense splits."""

import logging
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .exceptions import (
    InvalidStrategyInputError,
    NoParticipantsError,
    ParticipantInputMismatchError,
)
from .models import Participant, ShareLine, SplitStrategy

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
DEFAULT_PERCENTAGE_TOLERANCE = Decimal("0.5")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Convert a form value to Decimal without binary float drift.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")``.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Not a number: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return amount


def quantize_money(amount: Decimal) -> Decimal:
    """
    Round a Decimal amount to the nearest cent (ROUND_HALF_UP).

    Raises:
        ValueError: If the amount has too many digits to hold in cents
    """
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Amount out of range: {amount}") from e


def to_minor_units(amount: Decimal) -> int:
    """
    Convert Decimal currency to integer cents.
    Uses ROUND_HALF_UP for consistency.

    Args:
        amount: Currency amount as Decimal

    Returns:
        Amount in cents (integer)

    Raises:
        ValueError: If the amount has too many digits to hold in cents
    """
    cents = amount * 100
    try:
        return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation as e:
        raise ValueError(f"Amount out of range: {amount}") from e


def from_minor_units(units: int) -> Decimal:
    """Convert integer cents back to a two-place Decimal."""
    return (Decimal(units) / 100).quantize(CENT)


def distribute_remainder(base_units: list[int], total_units: int) -> list[int]:
    """
    Hand out leftover cents so the allocation sums exactly to the total.

    Leftover cents go one at a time to each position in input order,
    wrapping around if there are more cents than positions.

    Args:
        base_units: Truncated per-participant allocations in cents
        total_units: The exact total in cents

    Returns:
        New list of allocations summing to ``total_units``
    """
    remainder = total_units - sum(base_units)
    if remainder < 0:
        raise ValueError(
            f"Base allocation {sum(base_units)} exceeds total {total_units}"
        )

    rounds, extra = divmod(remainder, len(base_units))
    allocated = [
        units + rounds + (1 if index < extra else 0)
        for index, units in enumerate(base_units)
    ]

    if remainder:
        logger.debug(
            f"Distributed {remainder} leftover cent(s) across "
            f"{len(base_units)} participants"
        )

    assert sum(allocated) == total_units, "Remainder distribution failed"
    return allocated


def split_equal(total_units: int, count: int) -> list[int]:
    """Split a total in cents into ``count`` near-equal parts."""
    base = total_units // count
    return distribute_remainder([base] * count, total_units)


def split_by_percentage(
    total_units: int,
    percentages: Sequence[Decimal],
    tolerance: Decimal = DEFAULT_PERCENTAGE_TOLERANCE,
) -> list[int]:
    """
    Split a total in cents by per-participant percentages.

    Percentages whose sum is within tolerance of 100 are treated as relative
    weights, so the resulting cents always add up to the total.

    Raises:
        InvalidStrategyInputError: If a percentage is outside 0-100 or the
            percentages don't sum to 100 within tolerance
    """
    for pct in percentages:
        if pct < 0 or pct > HUNDRED:
            raise InvalidStrategyInputError(
                f"Percentage must be between 0 and 100, got {pct}"
            )

    total_pct = sum(percentages, Decimal("0"))
    if abs(total_pct - HUNDRED) >= tolerance:
        raise InvalidStrategyInputError(
            f"Percentages must add up to 100%, got {total_pct}%"
        )

    base = [int(Decimal(total_units) * pct / total_pct) for pct in percentages]
    return distribute_remainder(base, total_units)


def _parse_inputs(values: Sequence[Decimal | int | float | str]) -> list[Decimal]:
    parsed = []
    for value in values:
        try:
            parsed.append(to_decimal(value))
        except ValueError as e:
            raise InvalidStrategyInputError(str(e)) from e
    return parsed


def compute_shares(
    strategy: SplitStrategy,
    total_amount: Decimal,
    participants: Sequence[Participant],
    split_inputs: Sequence[Decimal | int | float | str] | None = None,
    payer_id: str | None = None,
    percentage_tolerance: Decimal = DEFAULT_PERCENTAGE_TOLERANCE,
) -> list[ShareLine]:
    """
    Compute each participant's share of an expense.

    Equal and percentage splits reconcile to the total exactly by
    distributing leftover cents in participant order. Exact amounts are passed
    through unchanged (rounded to cents) and left for the validator to check.

    Args:
        strategy: Split strategy to apply
        total_amount: Expense total as Decimal
        participants: Participants in a stable order
        split_inputs: Percentages or amounts aligned with ``participants``
            (ignored for equal splits)
        payer_id: Optional payer to flag on the resulting lines

    Returns:
        One share line per participant, in participant order

    Raises:
        NoParticipantsError: If ``participants`` is empty
        ParticipantInputMismatchError: If inputs are missing or their count
            differs from the participant count
        InvalidStrategyInputError: If an input is unusable
    """
    if not participants:
        raise NoParticipantsError()

    count = len(participants)
    if split_inputs is not None and len(split_inputs) != count:
        raise ParticipantInputMismatchError(expected=count, actual=len(split_inputs))

    if total_amount < 0:
        raise InvalidStrategyInputError(
            f"Total amount can't be negative, got {total_amount}", field="amount"
        )

    # Shares reconcile against the total in whole cents
    try:
        total_amount = quantize_money(total_amount)
    except ValueError as e:
        raise InvalidStrategyInputError(str(e), field="amount") from e

    if strategy == SplitStrategy.EQUAL:
        amounts = [
            from_minor_units(units)
            for units in split_equal(to_minor_units(total_amount), count)
        ]
    else:
        if split_inputs is None:
            raise ParticipantInputMismatchError(expected=count, actual=None)
        values = _parse_inputs(split_inputs)

        if strategy == SplitStrategy.PERCENTAGE:
            allocation = split_by_percentage(
                to_minor_units(total_amount), values, tolerance=percentage_tolerance
            )
            amounts = [from_minor_units(units) for units in allocation]
        else:
            negative = [v for v in values if v < 0]
            if negative:
                raise InvalidStrategyInputError(
                    f"Exact amounts can't be negative, got {negative[0]}"
                )
            try:
                amounts = [quantize_money(v) for v in values]
            except ValueError as e:
                raise InvalidStrategyInputError(str(e)) from e

    logger.debug(
        f"Computed {strategy.value} split of {total_amount} across {count} "
        f"participants: {[str(a) for a in amounts]}"
    )

    return [
        ShareLine(
            participant_id=participant.id,
            amount=amount,
            is_payer=participant.id == payer_id,
        )
        for participant, amount in zip(participants, amounts)
    ]
