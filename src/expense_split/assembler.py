"""Assembly of raw expense form input into validated expense records."""

import hashlib
import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal

from pydantic import TypeAdapter, ValidationError

from .categories import DEFAULT_CATEGORIES, resolve_category
from .config import Settings
from .engine import compute_shares, quantize_money, to_decimal
from .exceptions import (
    AssemblyError,
    GroupNotSelectedError,
    InvalidExpenseInputError,
    InvalidStrategyInputError,
    SplitError,
)
from .models import (
    Category,
    ExpenseInput,
    ExpenseRecord,
    Group,
    Participant,
    ShareLine,
    SplitStrategy,
)
from .validator import validate_split

logger = logging.getLogger(__name__)

_datetime_adapter = TypeAdapter(datetime)


def mark_payer(shares: Sequence[ShareLine], payer_id: str) -> list[ShareLine]:
    """Return copies of ``shares`` with ``is_payer`` set only for the payer."""
    return [
        line.model_copy(update={"is_payer": line.participant_id == payer_id})
        for line in shares
    ]


def compute_record_fingerprint(record: ExpenseRecord) -> str:
    """
    Compute a stable hash of an expense record.

    Two submissions of the same form produce the same fingerprint, which lets
    callers detect duplicate submissions before persisting.
    """
    payload = record.model_dump_json(by_alias=True, exclude_none=True)
    return hashlib.sha256(payload.encode()).hexdigest()


class ExpenseAssembler:
    """Turns raw expense form input into a validated :class:`ExpenseRecord`.

    The assembler keeps no state between calls; one instance can serve any
    number of callers.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        categories: Iterable[Category] | None = None,
    ):
        """Initialize the assembler."""
        self.settings = settings or Settings()
        self.categories = (
            list(categories) if categories is not None else DEFAULT_CATEGORIES
        )

    def assemble(
        self,
        raw: ExpenseInput,
        current_user: Participant,
        group: Group | None = None,
    ) -> ExpenseRecord:
        """
        Build a validated expense record from raw form input.

        Args:
            raw: The submitted form values
            current_user: The authenticated submitter
            group: The selected group with resolved members (group expenses)

        Returns:
            The normalized expense record

        Raises:
            AssemblyError: Wrapping the first failed parse, split or
                validation check
        """
        try:
            record = self._assemble(raw, current_user, group)
        except SplitError as e:
            logger.info(f"Rejected expense '{raw.description}': {e}")
            raise AssemblyError(e) from e

        logger.info(
            f"Assembled {record.strategy.value} expense '{record.description}' "
            f"for {record.total_amount} across {len(record.shares)} participant(s)"
        )
        return record

    def _assemble(
        self,
        raw: ExpenseInput,
        current_user: Participant,
        group: Group | None,
    ) -> ExpenseRecord:
        total = self._parse_amount(raw.amount)

        description = raw.description.strip()
        if not description:
            raise InvalidExpenseInputError("description", "Description is required")

        date = self._parse_date(raw.date)

        payer_id = raw.payer_id.strip()
        if not payer_id:
            raise InvalidExpenseInputError("payer_id", "Payer is required")

        category = resolve_category(
            raw.category, self.categories, default=self.settings.default_category
        )
        if category is None:
            raise InvalidExpenseInputError(
                "category", f"Unknown category '{raw.category}'"
            )

        participants, group_id = self._resolve_participants(raw, current_user, group)

        shares = mark_payer(self._build_shares(raw, total, participants), payer_id)

        validate_split(
            shares,
            total,
            payer_id,
            participants,
            tolerance=self.settings.split_tolerance,
        )

        return ExpenseRecord(
            description=description,
            total_amount=total,
            category=category,
            date=date,
            payer_id=payer_id,
            strategy=raw.split_type,
            shares=shares,
            group_id=group_id,
        )

    def _parse_amount(self, value: Decimal | int | float | str | None) -> Decimal:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise InvalidExpenseInputError("amount", "Amount is required")
        try:
            amount = quantize_money(to_decimal(value))
        except ValueError as e:
            raise InvalidExpenseInputError(
                "amount", "Amount must be a positive number"
            ) from e
        if amount <= 0:
            raise InvalidExpenseInputError("amount", "Amount must be a positive number")
        return amount

    def _parse_date(self, value: datetime | int | float | str | None) -> datetime:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise InvalidExpenseInputError("date", "Date is required")
        try:
            return _datetime_adapter.validate_python(value)
        except ValidationError as e:
            raise InvalidExpenseInputError(
                "date", f"Invalid date: {value!r}"
            ) from e

    def _resolve_participants(
        self,
        raw: ExpenseInput,
        current_user: Participant,
        group: Group | None,
    ) -> tuple[list[Participant], str | None]:
        if raw.expense_type == "group":
            if group is None:
                raise GroupNotSelectedError()
            if raw.group_id is not None and raw.group_id != group.id:
                raise GroupNotSelectedError(
                    f"Selected group {raw.group_id} doesn't match group {group.id}"
                )
            if len(group.members) == 1:
                logger.warning(
                    f"Group {group.id} has only one member; "
                    f"recording a one-person group expense"
                )
            return list(group.members), group.id

        if raw.participants:
            return list(raw.participants), None

        # Paying for yourself is valid for individual expenses
        return [current_user], None

    def _build_shares(
        self,
        raw: ExpenseInput,
        total: Decimal,
        participants: list[Participant],
    ) -> list[ShareLine]:
        if raw.shares:
            # Caller-edited shares are validated as-is, never recomputed
            lines = []
            for share in raw.shares:
                if share.amount < 0:
                    raise InvalidStrategyInputError(
                        f"Share for {share.participant_id} can't be negative"
                    )
                try:
                    amount = quantize_money(share.amount)
                except ValueError as e:
                    raise InvalidStrategyInputError(str(e)) from e
                lines.append(
                    ShareLine(participant_id=share.participant_id, amount=amount)
                )
            return lines

        tolerance = self.settings.percentage_tolerance

        if raw.split_type == SplitStrategy.EQUAL or raw.split_inputs:
            return compute_shares(
                raw.split_type,
                total,
                participants,
                split_inputs=raw.split_inputs or None,
                percentage_tolerance=tolerance,
            )

        logger.info(
            f"No {raw.split_type.value} split provided for '{raw.description}', "
            f"falling back to an equal split over {len(participants)} participant(s)"
        )
        return compute_shares(SplitStrategy.EQUAL, total, participants)
