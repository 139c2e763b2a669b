"""
Balance Mutator

The single code path that changes an account balance after creation.
It always runs inside the unit of work of the ledger write that caused
it, so a record and its balance effect commit or roll back together.

The mutator does no sign checking of its own: expense, income and
transfer managers decide the sign of each delta.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from finance_tracker.exceptions import NotFoundError
from finance_tracker.models.account import BankAccount
from finance_tracker.models.ledger import BalanceChange
from finance_tracker.services.storage import LedgerSession


class BalanceMutator:
    """Applies signed deltas to account balances."""

    async def apply_delta(
        self,
        session: LedgerSession,
        account_id: UUID,
        owner_id: str,
        delta: Decimal,
    ) -> BankAccount:
        """
        Add `delta` to an account balance.

        Args:
            session: The unit of work the causing record is written in
            account_id: Account to change
            owner_id: Owner the account must belong to
            delta: Signed amount; negative debits, positive credits

        Returns:
            The account with its new balance

        Raises:
            NotFoundError: No active account with that id for this owner
        """
        account = await session.get_account(account_id, owner_id)
        if account is None or not account.is_active:
            raise NotFoundError("Account", account_id)

        updated = account.model_copy(update={
            "balance": account.balance + delta,
            "updated_at": datetime.utcnow(),
        })
        await session.update_account(updated)
        return updated

    async def reconcile(
        self,
        session: LedgerSession,
        owner_id: str,
        sign: int,
        original_account_id: Optional[UUID],
        original_amount: Decimal,
        new_account_id: Optional[UUID],
        new_amount: Decimal,
    ) -> list[BalanceChange]:
        """
        Move the balance effect of an edited record from its old values to its new ones.

        `sign` is the direction of the record's effect: -1 for expenses
        (debit), +1 for income (credit).

        - Same account before and after: only the difference is applied.
        - Account changed or removed: the original account gets the old
          effect reversed, then the new account (if any) gets the full
          new effect.
        - No account before or after: nothing moves.
        """
        changes: list[BalanceChange] = []

        if original_account_id is not None and original_account_id == new_account_id:
            delta = sign * (new_amount - original_amount)
            if delta != 0:
                await self.apply_delta(session, new_account_id, owner_id, delta)
                changes.append(BalanceChange(account_id=new_account_id, delta=delta))
            return changes

        if original_account_id is not None:
            refund = -sign * original_amount
            await self.apply_delta(session, original_account_id, owner_id, refund)
            changes.append(BalanceChange(account_id=original_account_id, delta=refund))

        if new_account_id is not None:
            effect = sign * new_amount
            await self.apply_delta(session, new_account_id, owner_id, effect)
            changes.append(BalanceChange(account_id=new_account_id, delta=effect))

        return changes
