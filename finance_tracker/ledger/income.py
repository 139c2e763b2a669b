"""
Income Manager

Mirror image of the expense manager: income credits its account, and
edits and deletes reconcile balances the same way with the sign
flipped.

Recurring income carries a frequency and a computed next date. These
are metadata only; nothing posts future income automatically.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from finance_tracker.exceptions import InvalidInputError, NotFoundError
from finance_tracker.ledger.balance import BalanceMutator
from finance_tracker.ledger.validation import (
    build_record,
    compute_next_date,
    require_positive,
    require_text,
)
from finance_tracker.models.ledger import BalanceChange, Income, IncomeDraft, LedgerWrite
from finance_tracker.services.storage import LedgerStorage

# Direction of an income's effect on its account
CREDIT = 1


class IncomeManager:
    """Lifecycle of income records and their balance effects."""

    def __init__(self, storage: LedgerStorage, mutator: Optional[BalanceMutator] = None):
        self._storage = storage
        self._mutator = mutator or BalanceMutator()

    def _validated(self, owner_id: str, draft: IncomeDraft) -> Income:
        amount = require_positive("amount", draft.amount)
        category = require_text("category", draft.category)

        frequency = None
        next_date = None
        if draft.is_recurring:
            if draft.frequency is None:
                raise InvalidInputError("frequency", "is required for recurring income")
            frequency = draft.frequency
            next_date = compute_next_date(draft.income_date, frequency)

        return build_record(
            Income,
            owner_id=owner_id,
            amount=amount,
            source=draft.source,
            category=category,
            description=draft.description,
            income_date=draft.income_date,
            is_recurring=draft.is_recurring,
            frequency=frequency,
            next_date=next_date,
            account_id=draft.account_id,
        )

    async def create(self, owner_id: str, draft: IncomeDraft) -> LedgerWrite[Income]:
        """
        Record an income.

        Raises:
            InvalidInputError: Amount not positive, category empty, or
                recurring without a frequency
            NotFoundError: Referenced account is not an active account of the owner
        """
        income = self._validated(owner_id, draft)
        changes: list[BalanceChange] = []

        async with self._storage.transaction() as session:
            await session.insert_income(income)
            if income.account_id is not None:
                delta = CREDIT * income.amount
                await self._mutator.apply_delta(session, income.account_id, owner_id, delta)
                changes.append(BalanceChange(account_id=income.account_id, delta=delta))

        return LedgerWrite[Income](record=income, balance_changes=changes)

    async def get(self, owner_id: str, income_id: UUID) -> Income:
        async with self._storage.reader() as session:
            income = await session.get_income(income_id, owner_id)
        if income is None:
            raise NotFoundError("Income", income_id)
        return income

    async def list(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> list[Income]:
        async with self._storage.reader() as session:
            return await session.list_incomes(
                owner_id,
                date_from=date_from,
                date_to=date_to,
                category=category,
                account_id=account_id,
            )

    async def update(self, owner_id: str, income_id: UUID, draft: IncomeDraft) -> LedgerWrite[Income]:
        """Replace an income's fields and move its balance effect."""
        candidate = self._validated(owner_id, draft)

        async with self._storage.transaction() as session:
            original = await session.get_income(income_id, owner_id)
            if original is None:
                raise NotFoundError("Income", income_id)

            changes = await self._mutator.reconcile(
                session,
                owner_id,
                CREDIT,
                original_account_id=original.account_id,
                original_amount=original.amount,
                new_account_id=candidate.account_id,
                new_amount=candidate.amount,
            )

            updated = candidate.model_copy(update={
                "id": original.id,
                "created_at": original.created_at,
                "updated_at": datetime.utcnow(),
            })
            await session.update_income(updated)

        return LedgerWrite[Income](record=updated, balance_changes=changes)

    async def delete(self, owner_id: str, income_id: UUID) -> LedgerWrite[Income]:
        """Delete an income and take its amount back out of its account."""
        changes: list[BalanceChange] = []

        async with self._storage.transaction() as session:
            income = await session.get_income(income_id, owner_id)
            if income is None:
                raise NotFoundError("Income", income_id)

            if income.account_id is not None:
                delta = -CREDIT * income.amount
                await self._mutator.apply_delta(session, income.account_id, owner_id, delta)
                changes.append(BalanceChange(account_id=income.account_id, delta=delta))
            await session.delete_income(income_id, owner_id)

        return LedgerWrite[Income](record=income, balance_changes=changes)
