"""Reconciliation checks for computed or user-edited expense splits."""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from decimal import Decimal

from .exceptions import (
    DuplicateParticipantError,
    NoParticipantsError,
    ParticipantSetMismatchError,
    PayerNotParticipantError,
    SplitError,
    SplitSumMismatchError,
)
from .models import Participant, ShareLine

logger = logging.getLogger(__name__)

SPLIT_TOLERANCE = Decimal("0.01")  # one cent


def validate_split(
    shares: Sequence[ShareLine],
    total_amount: Decimal,
    payer_id: str,
    participants: Iterable[Participant],
    tolerance: Decimal = SPLIT_TOLERANCE,
) -> None:
    """
    Check that a split reconciles with its expense.

    Checks run in order and the first failure is raised:
    1. participants are non-empty
    2. share participants and expense participants are the same set
    3. no participant has more than one share
    4. the payer is a participant
    5. shares sum to the total within tolerance

    Args:
        shares: Share lines to check
        total_amount: Declared expense total
        payer_id: Participant who fronted the money
        participants: Participants of the expense
        tolerance: Allowed absolute difference between sum and total

    Raises:
        NoParticipantsError, ParticipantSetMismatchError,
        DuplicateParticipantError, PayerNotParticipantError,
        SplitSumMismatchError
    """
    participant_ids = {p.id for p in participants}
    if not participant_ids:
        raise NoParticipantsError()

    share_ids = [line.participant_id for line in shares]
    share_id_set = set(share_ids)
    if share_id_set != participant_ids:
        raise ParticipantSetMismatchError(
            missing=participant_ids - share_id_set,
            unexpected=share_id_set - participant_ids,
        )

    duplicates = [pid for pid, seen in Counter(share_ids).items() if seen > 1]
    if duplicates:
        raise DuplicateParticipantError(duplicates[0])

    if payer_id not in participant_ids:
        raise PayerNotParticipantError(payer_id)

    actual = sum((line.amount for line in shares), Decimal("0"))
    if abs(total_amount - actual) > tolerance:
        raise SplitSumMismatchError(total=total_amount, actual=actual)

    logger.debug(f"Split of {total_amount} across {len(shares)} shares is valid")


def check_split(
    shares: Sequence[ShareLine],
    total_amount: Decimal,
    payer_id: str,
    participants: Iterable[Participant],
    tolerance: Decimal = SPLIT_TOLERANCE,
) -> SplitError | None:
    """
    Same checks as :func:`validate_split`, returning the failure instead.

    Returns:
        The first failed check, or None if the split is valid
    """
    try:
        validate_split(shares, total_amount, payer_id, participants, tolerance)
    except SplitError as e:
        return e
    return None
