"""Tests for the income manager and its balance effects."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finance_tracker.exceptions import InvalidInputError, NotFoundError
from finance_tracker.models import BalanceChange, Frequency, IncomeDraft


def income_draft(amount="1000", account_id=None, **extra) -> IncomeDraft:
    fields = {
        "amount": amount,
        "source": "PT Example",
        "category": "Salary",
        "income_date": date(2024, 1, 31),
        "account_id": account_id,
    }
    fields.update(extra)
    return IncomeDraft(**fields)


class TestIncomeCreate:
    """Tests for recording income."""

    @pytest.mark.asyncio
    async def test_create_credits_account(self, incomes, owner_id, checking, balance_of):
        write = await incomes.create(owner_id, income_draft("1,000,000", checking.id))

        assert write.balance_changes == [
            BalanceChange(account_id=checking.id, delta=Decimal("1000000.00"))
        ]
        assert await balance_of(checking.id) == Decimal("6000000.00")

    @pytest.mark.asyncio
    async def test_non_recurring_has_no_schedule(self, incomes, owner_id):
        """A frequency sent without the recurring flag is dropped."""
        write = await incomes.create(owner_id, income_draft(frequency=Frequency.MONTHLY))

        assert not write.record.is_recurring
        assert write.record.frequency is None
        assert write.record.next_date is None

    @pytest.mark.asyncio
    async def test_recurring_gets_next_date(self, incomes, owner_id):
        write = await incomes.create(
            owner_id, income_draft(is_recurring=True, frequency="monthly")
        )

        assert write.record.frequency == Frequency.MONTHLY
        assert write.record.next_date == date(2024, 2, 29)

    @pytest.mark.asyncio
    async def test_recurring_requires_frequency(self, incomes, owner_id):
        with pytest.raises(InvalidInputError, match="frequency"):
            await incomes.create(owner_id, income_draft(is_recurring=True))

        assert await incomes.list(owner_id) == []

    @pytest.mark.asyncio
    async def test_zero_amount_rejected(self, incomes, owner_id):
        with pytest.raises(InvalidInputError, match="amount"):
            await incomes.create(owner_id, income_draft("0"))

    @pytest.mark.asyncio
    async def test_unknown_account_rolls_back_insert(self, incomes, owner_id):
        with pytest.raises(NotFoundError):
            await incomes.create(owner_id, income_draft("10", uuid4()))

        assert await incomes.list(owner_id) == []


class TestIncomeUpdate:
    """Tests for editing income."""

    @pytest.mark.asyncio
    async def test_same_account_applies_difference(self, incomes, owner_id, checking, balance_of):
        created = await incomes.create(owner_id, income_draft("1000", checking.id))

        write = await incomes.update(owner_id, created.record.id, income_draft("800", checking.id))

        assert write.balance_changes == [BalanceChange(account_id=checking.id, delta=Decimal("-200.00"))]
        assert await balance_of(checking.id) == Decimal("5000800.00")

    @pytest.mark.asyncio
    async def test_move_to_other_account(self, incomes, owner_id, checking, ewallet, balance_of):
        created = await incomes.create(owner_id, income_draft("1000", checking.id))

        await incomes.update(owner_id, created.record.id, income_draft("1000", ewallet.id))

        assert await balance_of(checking.id) == Decimal("5000000.00")
        assert await balance_of(ewallet.id) == Decimal("501000.00")

    @pytest.mark.asyncio
    async def test_turning_recurrence_off_clears_schedule(self, incomes, owner_id):
        created = await incomes.create(
            owner_id, income_draft(is_recurring=True, frequency=Frequency.WEEKLY)
        )
        assert created.record.next_date == date(2024, 2, 7)

        write = await incomes.update(owner_id, created.record.id, income_draft())

        assert write.record.frequency is None
        assert write.record.next_date is None

    @pytest.mark.asyncio
    async def test_update_unknown(self, incomes, owner_id):
        with pytest.raises(NotFoundError):
            await incomes.update(owner_id, uuid4(), income_draft())


class TestIncomeDelete:
    """Tests for deleting income."""

    @pytest.mark.asyncio
    async def test_delete_takes_amount_back(self, incomes, owner_id, checking, balance_of):
        created = await incomes.create(owner_id, income_draft("1000", checking.id))

        write = await incomes.delete(owner_id, created.record.id)

        assert write.balance_changes == [BalanceChange(account_id=checking.id, delta=Decimal("-1000.00"))]
        assert await balance_of(checking.id) == Decimal("5000000.00")

    @pytest.mark.asyncio
    async def test_delete_unknown(self, incomes, owner_id):
        with pytest.raises(NotFoundError):
            await incomes.delete(owner_id, uuid4())

    @pytest.mark.asyncio
    async def test_list_scoped_to_owner(self, incomes, owner_id, other_owner_id):
        await incomes.create(owner_id, income_draft())
        assert len(await incomes.list(owner_id)) == 1
        assert await incomes.list(other_owner_id) == []


class TestIncomeOnDeactivatedAccount:
    """Income credited to a deactivated account cannot be taken back."""

    @pytest.mark.asyncio
    async def test_delete_and_move_are_refused(
        self, incomes, accounts, owner_id, checking, ewallet, balance_of
    ):
        created = await incomes.create(owner_id, income_draft("1000", checking.id))
        await accounts.deactivate(owner_id, checking.id)

        with pytest.raises(NotFoundError, match="Account"):
            await incomes.delete(owner_id, created.record.id)
        with pytest.raises(NotFoundError, match="Account"):
            await incomes.update(owner_id, created.record.id, income_draft("1000", ewallet.id))

        assert (await incomes.get(owner_id, created.record.id)).account_id == checking.id
        assert await balance_of(checking.id) == Decimal("5001000.00")
        assert await balance_of(ewallet.id) == Decimal("500000.00")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
