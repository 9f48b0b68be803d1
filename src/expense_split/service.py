"""Service layer that hands assembled expenses to the persistence collaborator.

The core never performs storage itself; :class:`ExpenseStore` is the contract
the surrounding application implements.
"""

import logging
from collections.abc import Sequence
from typing import NamedTuple, Protocol

from .assembler import ExpenseAssembler, compute_record_fingerprint
from .models import ExpenseInput, ExpenseRecord, Group, Participant

logger = logging.getLogger(__name__)


class ExpenseStore(Protocol):
    """Persistence collaborator for finished expense records."""

    def create_expense(self, record: ExpenseRecord) -> str:
        """Persist ``record`` and return its generated identifier."""
        ...


class SubmittedExpense(NamedTuple):
    """Outcome of a successful submission."""

    expense_id: str
    record: ExpenseRecord
    redirect_to: str


def navigation_target(
    record: ExpenseRecord,
    current_user_id: str,
    participants: Sequence[Participant] | None = None,
) -> str:
    """
    Pick where the submitter should land after creating an expense.

    Group expenses go to the group. Individual expenses go to the first other
    participant, or back to the submitter for a self-payment. Participants are
    walked in the order they were chosen when given, otherwise in share order.
    """
    if record.group_id is not None:
        return record.group_id
    if participants:
        ids = [p.id for p in participants]
    else:
        ids = [line.participant_id for line in record.shares]
    for participant_id in ids:
        if participant_id != current_user_id:
            return participant_id
    return current_user_id


class ExpenseService:
    """Assembles expense submissions and persists them."""

    def __init__(self, assembler: ExpenseAssembler, store: ExpenseStore):
        """Initialize the expense service."""
        self.assembler = assembler
        self.store = store

    def submit(
        self,
        raw: ExpenseInput,
        current_user: Participant,
        group: Group | None = None,
    ) -> SubmittedExpense:
        """
        Assemble a form submission and hand it to the store.

        Storage failures are not retried; they propagate to the caller as
        raised by the store.

        Args:
            raw: The submitted form values
            current_user: The authenticated submitter
            group: The selected group (group expenses)

        Returns:
            The stored expense id, the record and the navigation target

        Raises:
            AssemblyError: If the submission doesn't produce a valid record
        """
        record = self.assembler.assemble(raw, current_user, group)

        fingerprint = compute_record_fingerprint(record)
        logger.debug(f"Persisting expense (fingerprint: {fingerprint[:8]}...)")

        expense_id = self.store.create_expense(record)

        logger.info(f"Created expense {expense_id}: '{record.description}'")

        return SubmittedExpense(
            expense_id=expense_id,
            record=record,
            redirect_to=navigation_target(
                record, current_user.id, raw.participants
            ),
        )
