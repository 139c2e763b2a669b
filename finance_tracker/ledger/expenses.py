"""
Expense Manager

Every mutating operation writes the expense row and its balance effect
in one unit of work:

- create: insert, then debit the referenced account
- update: load the stored expense, reconcile old vs new account/amount,
  overwrite the row
- delete: load, refund the referenced account, delete the row

The pre-edit snapshot used by update is always the stored row, never a
value supplied by the caller.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from finance_tracker.exceptions import NotFoundError
from finance_tracker.ledger.balance import BalanceMutator
from finance_tracker.ledger.validation import build_record, require_positive, require_text
from finance_tracker.models.ledger import BalanceChange, Expense, ExpenseDraft, LedgerWrite
from finance_tracker.services.storage import LedgerStorage

# Direction of an expense's effect on its account
DEBIT = -1


class ExpenseManager:
    """Lifecycle of expenses and their balance effects."""

    def __init__(self, storage: LedgerStorage, mutator: Optional[BalanceMutator] = None):
        self._storage = storage
        self._mutator = mutator or BalanceMutator()

    def _validated(self, owner_id: str, draft: ExpenseDraft) -> Expense:
        return build_record(
            Expense,
            owner_id=owner_id,
            amount=require_positive("amount", draft.amount),
            category=require_text("category", draft.category),
            description=draft.description,
            expense_date=draft.expense_date,
            tags=draft.tags,
            account_id=draft.account_id,
        )

    async def create(self, owner_id: str, draft: ExpenseDraft) -> LedgerWrite[Expense]:
        """
        Record an expense.

        Raises:
            InvalidInputError: Amount not positive or category empty
            NotFoundError: Referenced account is not an active account of the owner
        """
        expense = self._validated(owner_id, draft)
        changes: list[BalanceChange] = []

        async with self._storage.transaction() as session:
            await session.insert_expense(expense)
            if expense.account_id is not None:
                delta = DEBIT * expense.amount
                await self._mutator.apply_delta(session, expense.account_id, owner_id, delta)
                changes.append(BalanceChange(account_id=expense.account_id, delta=delta))

        return LedgerWrite[Expense](record=expense, balance_changes=changes)

    async def get(self, owner_id: str, expense_id: UUID) -> Expense:
        async with self._storage.reader() as session:
            expense = await session.get_expense(expense_id, owner_id)
        if expense is None:
            raise NotFoundError("Expense", expense_id)
        return expense

    async def list(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> list[Expense]:
        async with self._storage.reader() as session:
            return await session.list_expenses(
                owner_id,
                date_from=date_from,
                date_to=date_to,
                category=category,
                account_id=account_id,
            )

    async def update(self, owner_id: str, expense_id: UUID, draft: ExpenseDraft) -> LedgerWrite[Expense]:
        """
        Replace an expense's fields and move its balance effect.

        Raises:
            InvalidInputError: New values fail validation
            NotFoundError: Expense, or an account involved, does not exist
        """
        candidate = self._validated(owner_id, draft)

        async with self._storage.transaction() as session:
            original = await session.get_expense(expense_id, owner_id)
            if original is None:
                raise NotFoundError("Expense", expense_id)

            changes = await self._mutator.reconcile(
                session,
                owner_id,
                DEBIT,
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
            await session.update_expense(updated)

        return LedgerWrite[Expense](record=updated, balance_changes=changes)

    async def delete(self, owner_id: str, expense_id: UUID) -> LedgerWrite[Expense]:
        """Delete an expense and refund its account."""
        changes: list[BalanceChange] = []

        async with self._storage.transaction() as session:
            expense = await session.get_expense(expense_id, owner_id)
            if expense is None:
                raise NotFoundError("Expense", expense_id)

            if expense.account_id is not None:
                delta = -DEBIT * expense.amount
                await self._mutator.apply_delta(session, expense.account_id, owner_id, delta)
                changes.append(BalanceChange(account_id=expense.account_id, delta=delta))
            await session.delete_expense(expense_id, owner_id)

        return LedgerWrite[Expense](record=expense, balance_changes=changes)
