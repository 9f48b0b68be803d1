"""Tests for expense assembly."""

import logging
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from expense_split.assembler import ExpenseAssembler, compute_record_fingerprint
from expense_split.config import Settings
from expense_split.exceptions import (
    AssemblyError,
    DuplicateParticipantError,
    GroupNotSelectedError,
    InvalidExpenseInputError,
    InvalidStrategyInputError,
    PayerNotParticipantError,
    SplitSumMismatchError,
)
from expense_split.models import (
    ExpenseInput,
    Group,
    Participant,
    ShareInput,
    SplitStrategy,
)

EXPENSE_DATE = datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def assembler():
    """Create an ExpenseAssembler with default settings."""
    return ExpenseAssembler(Settings())


@pytest.fixture
def me():
    return Participant(id="u1", name="Me", email="me@example.com")


@pytest.fixture
def friends(me):
    """Me plus two friends, in form order."""
    return [
        me,
        Participant(id="u2", name="Alice"),
        Participant(id="u3", name="Bob"),
    ]


@pytest.fixture
def trip_group(friends):
    return Group(id="g1", name="Trip", members=friends)


def make_input(**overrides) -> ExpenseInput:
    """Create a valid individual expense form, overriding any field."""
    values = {
        "description": "Dinner",
        "amount": "10.00",
        "date": EXPENSE_DATE,
        "payer_id": "u1",
    }
    values.update(overrides)
    return ExpenseInput(**values)


def assembly_cause(excinfo):
    assert isinstance(excinfo.value, AssemblyError)
    return excinfo.value.cause


class TestSelfPayment:
    """Individual expenses with no chosen participants."""

    def test_defaults_to_submitter(self, assembler, me):
        """The submitter alone owes the full amount."""
        record = assembler.assemble(make_input(amount="12.50"), me)

        assert len(record.shares) == 1
        assert record.shares[0].participant_id == "u1"
        assert record.shares[0].amount == Decimal("12.50")
        assert record.shares[0].is_payer
        assert record.group_id is None

    def test_no_warning_logged(self, assembler, me, caplog):
        with caplog.at_level(logging.WARNING):
            assembler.assemble(make_input(), me)

        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_nothing_owed_to_payer(self, assembler, me):
        record = assembler.assemble(make_input(), me)

        assert record.amount_owed_to_payer() == Decimal("0")


class TestIndividualSplits:
    """Individual expenses with explicitly chosen participants."""

    def test_equal_split(self, assembler, me, friends):
        record = assembler.assemble(make_input(participants=friends), me)

        assert [line.amount for line in record.shares] == [
            Decimal("3.34"),
            Decimal("3.33"),
            Decimal("3.33"),
        ]
        assert record.strategy == SplitStrategy.EQUAL
        assert record.amount_owed_to_payer() == Decimal("6.66")

    def test_percentage_split(self, assembler, me, friends):
        raw = make_input(
            amount="100.00",
            participants=friends,
            split_type="percentage",
            split_inputs=[50, 30, 20],
        )

        record = assembler.assemble(raw, me)

        assert [line.amount for line in record.shares] == [
            Decimal("50.00"),
            Decimal("30.00"),
            Decimal("20.00"),
        ]

    def test_bad_percentages_rejected(self, assembler, me, friends):
        raw = make_input(
            amount="100.00",
            participants=friends,
            split_type="percentage",
            split_inputs=[50, 30, 19.5],
        )

        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(raw, me)

        assert isinstance(assembly_cause(excinfo), InvalidStrategyInputError)

    def test_exact_split(self, assembler, me, friends):
        raw = make_input(
            amount="100.00",
            participants=friends[:2],
            split_type="exact",
            split_inputs=["40.00", "60.00"],
        )

        record = assembler.assemble(raw, me)

        assert [line.amount for line in record.shares] == [
            Decimal("40.00"),
            Decimal("60.00"),
        ]

    def test_exact_split_that_does_not_add_up(self, assembler, me, friends):
        raw = make_input(
            amount="100.00",
            participants=friends[:2],
            split_type="exact",
            split_inputs=["40.00", "59.00"],
        )

        with pytest.raises(AssemblyError, match="don't add up") as excinfo:
            assembler.assemble(raw, me)

        cause = assembly_cause(excinfo)
        assert isinstance(cause, SplitSumMismatchError)
        assert cause.delta == Decimal("1.00")
        assert excinfo.value.field == "splits"

    def test_payer_must_be_participant(self, assembler, me, friends):
        raw = make_input(participants=friends[1:], payer_id="u1")

        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(raw, me)

        assert isinstance(assembly_cause(excinfo), PayerNotParticipantError)
        assert excinfo.value.field == "payer_id"

    def test_participant_chosen_twice_rejected(self, assembler, me, friends):
        raw = make_input(participants=[me, friends[1], friends[1]])

        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(raw, me)

        cause = assembly_cause(excinfo)
        assert isinstance(cause, DuplicateParticipantError)
        assert cause.participant_id == "u2"

    def test_other_participant_can_pay(self, assembler, me, friends):
        record = assembler.assemble(make_input(participants=friends, payer_id="u2"), me)

        assert record.payer_share.participant_id == "u2"

    @pytest.mark.parametrize(
        "split_type, split_inputs",
        [
            ("equal", None),
            ("percentage", ["25", "25", "50"]),
            ("exact", ["3.00", "3.00", "4.00"]),
        ],
    )
    def test_exactly_one_payer_line(
        self, assembler, me, friends, split_type, split_inputs
    ):
        raw = make_input(
            participants=friends,
            payer_id="u3",
            split_type=split_type,
            split_inputs=split_inputs,
        )

        record = assembler.assemble(raw, me)

        payers = [line for line in record.shares if line.is_payer]
        assert len(payers) == 1
        assert payers[0].participant_id == "u3"


class TestFallback:
    """Equal split is only a safety net for missing shares."""

    def test_empty_percentage_split_falls_back_to_equal(
        self, assembler, me, friends, caplog
    ):
        raw = make_input(participants=friends, split_type="percentage")

        with caplog.at_level(logging.INFO, logger="expense_split.assembler"):
            record = assembler.assemble(raw, me)

        assert [line.amount for line in record.shares] == [
            Decimal("3.34"),
            Decimal("3.33"),
            Decimal("3.33"),
        ]
        assert record.strategy == SplitStrategy.PERCENTAGE
        assert "falling back" in caplog.text

    def test_empty_inputs_list_falls_back(self, assembler, me, friends):
        raw = make_input(participants=friends, split_type="exact", split_inputs=[])

        record = assembler.assemble(raw, me)

        assert sum(line.amount for line in record.shares) == Decimal("10.00")

    def test_supplied_shares_are_used(self, assembler, me, friends):
        shares = [
            ShareInput(participant_id="u1", amount=Decimal("5.00")),
            ShareInput(participant_id="u2", amount=Decimal("3.00")),
            ShareInput(participant_id="u3", amount=Decimal("2.00")),
        ]
        raw = make_input(participants=friends, split_type="exact", shares=shares)

        record = assembler.assemble(raw, me)

        assert [line.amount for line in record.shares] == [
            Decimal("5.00"),
            Decimal("3.00"),
            Decimal("2.00"),
        ]

    def test_wrong_supplied_shares_are_not_replaced(self, assembler, me, friends):
        """A non-empty but wrong split fails instead of becoming an equal split."""
        shares = [
            ShareInput(participant_id="u1", amount=Decimal("5.00")),
            ShareInput(participant_id="u2", amount=Decimal("3.00")),
            ShareInput(participant_id="u3", amount=Decimal("1.00")),
        ]
        raw = make_input(participants=friends, split_type="exact", shares=shares)

        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(raw, me)

        assert isinstance(assembly_cause(excinfo), SplitSumMismatchError)

    def test_negative_supplied_share_rejected(self, assembler, me, friends):
        shares = [
            ShareInput(participant_id="u1", amount=Decimal("12.00")),
            ShareInput(participant_id="u2", amount=Decimal("-2.00")),
        ]
        raw = make_input(participants=friends[:2], split_type="exact", shares=shares)

        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(raw, me)

        assert isinstance(assembly_cause(excinfo), InvalidStrategyInputError)

    def test_supplied_share_too_large_rejected(self, assembler, me, friends):
        shares = [
            ShareInput(participant_id="u1", amount=Decimal("10.00")),
            ShareInput(participant_id="u2", amount=Decimal("1e30")),
        ]
        raw = make_input(participants=friends[:2], split_type="exact", shares=shares)

        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(raw, me)

        assert isinstance(assembly_cause(excinfo), InvalidStrategyInputError)


class TestGroupExpenses:
    """Group expenses take participants from the group."""

    def test_group_members_become_participants(self, assembler, me, trip_group):
        raw = make_input(expense_type="group", group_id="g1")

        record = assembler.assemble(raw, me, trip_group)

        assert record.group_id == "g1"
        assert [line.participant_id for line in record.shares] == ["u1", "u2", "u3"]

    def test_group_not_selected(self, assembler, me):
        raw = make_input(expense_type="group")

        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(raw, me)

        assert isinstance(assembly_cause(excinfo), GroupNotSelectedError)
        assert excinfo.value.field == "group_id"

    def test_group_id_without_members_is_not_selected(self, assembler, me):
        raw = make_input(expense_type="group", group_id="g1")

        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(raw, me)

        assert isinstance(assembly_cause(excinfo), GroupNotSelectedError)

    def test_group_mismatch(self, assembler, me, trip_group):
        raw = make_input(expense_type="group", group_id="g2")

        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(raw, me, trip_group)

        assert isinstance(assembly_cause(excinfo), GroupNotSelectedError)

    def test_one_person_group_warns(self, assembler, me, caplog):
        solo = Group(id="g9", members=[me])
        raw = make_input(expense_type="group", group_id="g9")

        with caplog.at_level(logging.WARNING, logger="expense_split.assembler"):
            record = assembler.assemble(raw, me, solo)

        assert record.group_id == "g9"
        assert "only one member" in caplog.text

    def test_individual_expense_drops_group_id(self, assembler, me, trip_group):
        raw = make_input(group_id="g1")

        record = assembler.assemble(raw, me, trip_group)

        assert record.group_id is None
        assert "groupId" not in record.to_payload()

    def test_payload_includes_group_id(self, assembler, me, trip_group):
        raw = make_input(expense_type="group", group_id="g1")

        payload = assembler.assemble(raw, me, trip_group).to_payload()

        assert payload["groupId"] == "g1"
        assert payload["totalAmount"] == "10.00"
        assert payload["shares"][0] == {
            "participantId": "u1",
            "amount": "3.34",
            "isPayer": True,
        }


class TestFormParsing:
    """Field checks report the offending field."""

    @pytest.mark.parametrize(
        "amount", [None, "", "abc", "0", "-5", "0.001", "1e30"]
    )
    def test_bad_amount(self, assembler, me, amount):
        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(make_input(amount=amount), me)

        assert isinstance(assembly_cause(excinfo), InvalidExpenseInputError)
        assert excinfo.value.field == "amount"

    def test_float_amount_is_exact(self, assembler, me):
        record = assembler.assemble(make_input(amount=0.1 + 0.2), me)

        assert record.total_amount == Decimal("0.30")

    @pytest.mark.parametrize("description", ["", "   "])
    def test_blank_description(self, assembler, me, description):
        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(make_input(description=description), me)

        assert excinfo.value.field == "description"

    def test_description_is_trimmed(self, assembler, me):
        record = assembler.assemble(make_input(description="  Taxi  "), me)

        assert record.description == "Taxi"

    @pytest.mark.parametrize("date", [None, "", "not-a-date"])
    def test_bad_date(self, assembler, me, date):
        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(make_input(date=date), me)

        assert excinfo.value.field == "date"

    def test_epoch_milliseconds_date(self, assembler, me):
        record = assembler.assemble(make_input(date=1736942400000), me)

        assert record.date.date().isoformat() == "2025-01-15"

    def test_iso_date(self, assembler, me):
        record = assembler.assemble(make_input(date="2025-01-15T12:00:00Z"), me)

        assert record.date == EXPENSE_DATE

    def test_blank_payer(self, assembler, me):
        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(make_input(payer_id=" "), me)

        assert excinfo.value.field == "payer_id"

    def test_blank_category_defaults_to_other(self, assembler, me):
        record = assembler.assemble(make_input(category=""), me)

        assert record.category == "Other"

    def test_category_is_canonicalized(self, assembler, me):
        record = assembler.assemble(make_input(category="groceries"), me)

        assert record.category == "Groceries"

    def test_unknown_category(self, assembler, me):
        with pytest.raises(AssemblyError) as excinfo:
            assembler.assemble(make_input(category="Yachts"), me)

        assert excinfo.value.field == "category"

    def test_configured_default_category(self, me):
        assembler = ExpenseAssembler(Settings(default_category="Groceries"))

        record = assembler.assemble(make_input(), me)

        assert record.category == "Groceries"


class TestIdempotence:
    """Same input, same record."""

    def test_assembling_twice_gives_equal_records(self, assembler, me, friends):
        raw = make_input(participants=friends, category="Travel")

        first = assembler.assemble(raw, me)
        second = assembler.assemble(raw, me)

        assert first == second
        assert first.to_payload() == second.to_payload()
        assert compute_record_fingerprint(first) == compute_record_fingerprint(second)

    def test_input_is_not_mutated(self, assembler, me, friends):
        raw = make_input(participants=friends, split_type="percentage")
        before = raw.model_dump()

        assembler.assemble(raw, me)

        assert raw.model_dump() == before
