"""Pydantic domain models for expense-split."""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ExpenseType = Literal["individual", "group"]

# ============================================================================
# Collaborator Models
# ============================================================================


class Participant(BaseModel):
    """A person taking part in an expense, as supplied by the identity service."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str | None = None
    image_url: str | None = None


class Group(BaseModel):
    """A group with its resolved membership."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    members: list[Participant] = Field(default_factory=list)


class Category(BaseModel):
    """An expense category."""

    model_config = ConfigDict(frozen=True)

    id: str
    group_name: str

    @property
    def display_name(self) -> str:
        return f"{self.group_name} > {self.id}"


# ============================================================================
# Split Models
# ============================================================================


class SplitStrategy(StrEnum):
    """How an expense total is allocated across participants."""

    EQUAL = "equal"
    PERCENTAGE = "percentage"
    EXACT = "exact"


class ShareLine(BaseModel):
    """One participant's portion of an expense.

    ``amount`` is a fixed-point Decimal in the currency's minor unit.
    ``is_payer`` is derived from the expense payer and never set independently.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    participant_id: str
    amount: Decimal = Field(ge=0)
    is_payer: bool = False


class ShareInput(BaseModel):
    """A share typed in by the user (manual exact/percentage edits)."""

    participant_id: str
    amount: Decimal


# ============================================================================
# Expense Models
# ============================================================================


class ExpenseInput(BaseModel):
    """Raw expense form input.

    Values are kept loosely typed here; the assembler owns parsing and range
    checks so it can report failures against the offending field.
    """

    description: str = ""
    amount: Decimal | int | float | str | None = None
    category: str | None = None
    date: datetime | int | float | str | None = None
    payer_id: str = ""
    split_type: SplitStrategy = SplitStrategy.EQUAL
    expense_type: ExpenseType = "individual"
    group_id: str | None = None
    participants: list[Participant] = Field(default_factory=list)
    split_inputs: list[Decimal | int | float | str] | None = None
    shares: list[ShareInput] = Field(default_factory=list)


class ExpenseRecord(BaseModel):
    """A normalized, validated expense ready for persistence.

    Records are never mutated; edits produce a new record.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    description: str
    total_amount: Decimal
    category: str
    date: datetime
    payer_id: str
    strategy: SplitStrategy
    shares: list[ShareLine]
    group_id: str | None = None

    @property
    def payer_share(self) -> ShareLine:
        for line in self.shares:
            if line.is_payer:
                return line
        raise ValueError(f"Expense '{self.description}' has no payer line")

    def amount_owed_to_payer(self) -> Decimal:
        """Sum of every other participant's share (what the payer gets back)."""
        return sum(
            (line.amount for line in self.shares if not line.is_payer), Decimal("0")
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize with the storage-facing camelCase field names.

        ``groupId`` is omitted entirely for individual expenses.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
