"""Tests for payroll line items and total recomputation."""

import itertools
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from hypothesis import given
from hypothesis import strategies as st

from hr_payroll.errors import Forbidden, InvalidState, NotFound, ValidationError
from hr_payroll.models import Payroll
from hr_payroll.money import non_negative_money, to_money
from hr_payroll.services.ledger import LedgerTotals, PayrollItemType, summarize
from hr_payroll.services.payroll_service import PayrollService

amounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("99999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
items_strategy = st.lists(
    st.builds(
        SimpleNamespace,
        item_type=st.sampled_from(["earning", "deduction"]),
        amount=amounts,
    ),
    max_size=30,
)


class TestSummarize:
    """Pure summation over item amounts."""

    def test_empty_is_zero(self):
        totals = summarize([])
        assert totals == LedgerTotals(Decimal("0.00"), Decimal("0.00"))
        assert totals.net_for(Decimal("5000.00")) == Decimal("5000.00")

    def test_sums_by_type(self):
        items = [
            SimpleNamespace(item_type="earning", amount=Decimal("500.00")),
            SimpleNamespace(item_type="deduction", amount=Decimal("200.00")),
            SimpleNamespace(item_type="earning", amount=Decimal("0.10")),
            SimpleNamespace(item_type="earning", amount=Decimal("0.20")),
        ]
        totals = summarize(items)
        assert totals.earnings == Decimal("500.30")
        assert totals.deductions == Decimal("200.00")
        assert totals.net_for(Decimal("5000.00")) == Decimal("5300.30")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            summarize([SimpleNamespace(item_type="bonus", amount=Decimal("1.00"))])

    @given(items=items_strategy, data=st.data())
    def test_order_independent(self, items, data):
        shuffled = data.draw(st.permutations(items))
        assert summarize(shuffled) == summarize(items)

    @given(items=items_strategy)
    def test_totals_match_item_sums(self, items):
        totals = summarize(items)
        assert totals.earnings == sum(
            (i.amount for i in items if i.item_type == "earning"), Decimal("0")
        )
        assert totals.deductions == sum(
            (i.amount for i in items if i.item_type == "deduction"), Decimal("0")
        )
        assert totals.earnings >= 0
        assert totals.deductions >= 0


async def _draft(session, manager, seeded) -> Payroll:
    service = PayrollService(session)
    return await service.create_payroll(
        manager, seeded.alice_id, date(2024, 6, 1), date(2024, 6, 30)
    )


class TestPayrollLedger:
    """Item insertion against the database."""

    async def test_add_item_updates_totals(self, session, manager, seeded):
        payroll = await _draft(session, manager, seeded)
        ledger = PayrollService(session).ledger

        await ledger.add_item(manager, payroll.id, "earning", "Bonus", Decimal("500.00"))
        await ledger.add_item(manager, payroll.id, "deduction", "Tax", Decimal("200.00"))

        assert payroll.total_earnings == Decimal("500.00")
        assert payroll.total_deductions == Decimal("200.00")
        assert payroll.net_salary == Decimal("5300.00")

    async def test_items_listed_in_insertion_order(self, session, manager, seeded):
        payroll = await _draft(session, manager, seeded)
        ledger = PayrollService(session).ledger

        await ledger.add_item(manager, payroll.id, PayrollItemType.EARNING, "Overtime", Decimal("1"))
        await ledger.add_item(manager, payroll.id, PayrollItemType.DEDUCTION, "Loan", Decimal("2"))

        items = await ledger.items_for(payroll.id)
        assert [i.item_name for i in items] == ["Overtime", "Loan"]
        assert items[0].amount == Decimal("1.00")

    @pytest.mark.parametrize(
        "order",
        list(itertools.permutations(range(3))),
    )
    async def test_insertion_order_does_not_change_totals(self, session, manager, seeded, order):
        entries = [
            ("earning", "Bonus", Decimal("0.10")),
            ("earning", "Overtime", Decimal("0.20")),
            ("deduction", "Tax", Decimal("0.30")),
        ]
        payroll = await _draft(session, manager, seeded)
        ledger = PayrollService(session).ledger
        for index in order:
            await ledger.add_item(manager, payroll.id, *entries[index])

        assert payroll.total_earnings == Decimal("0.30")
        assert payroll.total_deductions == Decimal("0.30")
        assert payroll.net_salary == Decimal("5000.00")

    async def test_negative_amount_rejected(self, session, manager, seeded):
        payroll = await _draft(session, manager, seeded)
        ledger = PayrollService(session).ledger

        with pytest.raises(ValidationError):
            await ledger.add_item(manager, payroll.id, "deduction", "Tax", Decimal("-1.00"))
        assert await ledger.items_for(payroll.id) == []

    async def test_invalid_type_rejected(self, session, manager, seeded):
        payroll = await _draft(session, manager, seeded)
        with pytest.raises(ValidationError):
            await PayrollService(session).ledger.add_item(
                manager, payroll.id, "bonus", "X", Decimal("1.00")
            )

    async def test_blank_name_rejected(self, session, manager, seeded):
        payroll = await _draft(session, manager, seeded)
        with pytest.raises(ValidationError):
            await PayrollService(session).ledger.add_item(
                manager, payroll.id, "earning", "   ", Decimal("1.00")
            )

    async def test_missing_payroll(self, session, manager, seeded):
        with pytest.raises(NotFound):
            await PayrollService(session).ledger.add_item(
                manager, 9999, "earning", "Bonus", Decimal("1.00")
            )

    async def test_staff_cannot_add_items(self, session, manager, staff, seeded):
        payroll = await _draft(session, manager, seeded)
        with pytest.raises(Forbidden):
            await PayrollService(session).ledger.add_item(
                staff, payroll.id, "earning", "Bonus", Decimal("1.00")
            )

    async def test_items_frozen_after_approval(self, session, manager, seeded):
        payroll = await _draft(session, manager, seeded)
        service = PayrollService(session)
        await service.approve_payroll(manager, payroll.id)

        with pytest.raises(InvalidState):
            await service.ledger.add_item(manager, payroll.id, "earning", "Late", Decimal("1"))

        assert await service.ledger.items_for(payroll.id) == []
        assert payroll.net_salary == Decimal("5000.00")

    async def test_out_of_range_amount_rejected(self, session, manager, seeded):
        payroll = await _draft(session, manager, seeded)
        ledger = PayrollService(session).ledger

        with pytest.raises(ValidationError) as exc_info:
            await ledger.add_item(manager, payroll.id, "earning", "Bonus", Decimal("1E+30"))

        assert exc_info.value.context["field"] == "amount"
        assert await ledger.items_for(payroll.id) == []

    async def test_net_past_column_limit_rejected(self, session, manager, seeded):
        payroll = await _draft(session, manager, seeded)
        ledger = PayrollService(session).ledger

        with pytest.raises(ValidationError) as exc_info:
            await ledger.add_item(
                manager, payroll.id, "earning", "Bonus", Decimal("99999999.99")
            )

        assert exc_info.value.context["field"] == "net_salary"
        assert await ledger.items_for(payroll.id) == []
        assert payroll.total_earnings == Decimal("0.00")
        assert payroll.net_salary == Decimal("5000.00")

    async def test_summed_earnings_past_column_limit_rejected(self, session, manager, seeded):
        payroll = await _draft(session, manager, seeded)
        ledger = PayrollService(session).ledger
        await ledger.add_item(manager, payroll.id, "deduction", "Loan", Decimal("99999999.99"))
        await ledger.add_item(manager, payroll.id, "earning", "Bonus", Decimal("99999999.99"))
        assert payroll.net_salary == Decimal("5000.00")

        with pytest.raises(ValidationError) as exc_info:
            await ledger.add_item(manager, payroll.id, "earning", "Overtime", Decimal("1.00"))

        assert exc_info.value.context["field"] == "total_earnings"
        assert [i.item_name for i in await ledger.items_for(payroll.id)] == ["Loan", "Bonus"]
        assert payroll.total_earnings == Decimal("99999999.99")


class TestMoney:
    @pytest.mark.parametrize("value", [Decimal("1E+30"), "1e40", Decimal("-1E+30")])
    def test_huge_values_are_validation_errors(self, value):
        with pytest.raises(ValidationError):
            non_negative_money(value, "amount")

    def test_rounds_half_up(self):
        assert to_money("0.125") == Decimal("0.13")
        assert to_money(0.1) == Decimal("0.10")

    @pytest.mark.parametrize("value", [True, "abc", Decimal("NaN"), "Infinity"])
    def test_non_numbers_rejected(self, value):
        with pytest.raises(ValidationError):
            to_money(value)
