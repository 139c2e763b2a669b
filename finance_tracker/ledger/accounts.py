"""
Account Manager

Accounts are created with a seed balance and afterwards only move
through ledger records. Editing an account never touches its balance.
"""

from datetime import datetime
from uuid import UUID

from finance_tracker.exceptions import NotFoundError
from finance_tracker.ledger.validation import build_record, require_text
from finance_tracker.models.account import AccountDraft, AccountUpdate, BankAccount
from finance_tracker.services.storage import LedgerStorage

_DEFAULT_ACCOUNT_COLOR = "#3b82f6"


class AccountManager:
    """CRUD for bank accounts, e-wallets and credit cards."""

    def __init__(self, storage: LedgerStorage):
        self._storage = storage

    async def create(self, owner_id: str, draft: AccountDraft) -> BankAccount:
        """Create an account. The draft balance becomes the opening balance."""
        account = build_record(
            BankAccount,
            owner_id=owner_id,
            name=require_text("name", draft.name),
            bank_name=draft.bank_name or None,
            account_number=draft.account_number or None,
            balance=draft.balance,
            type=draft.type,
            color=draft.color or _DEFAULT_ACCOUNT_COLOR,
            is_active=draft.is_active,
        )

        async with self._storage.transaction() as session:
            await session.insert_account(account)

        return account

    async def get(self, owner_id: str, account_id: UUID) -> BankAccount:
        async with self._storage.reader() as session:
            account = await session.get_account(account_id, owner_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    async def list(self, owner_id: str, include_inactive: bool = True) -> list[BankAccount]:
        async with self._storage.reader() as session:
            accounts = await session.list_accounts(owner_id)
        if include_inactive:
            return accounts
        return [a for a in accounts if a.is_active]

    async def update(self, owner_id: str, account_id: UUID, changes: AccountUpdate) -> BankAccount:
        """
        Edit account metadata.

        Only fields set on `changes` are applied. The balance is not
        editable here.
        """
        fields = changes.model_dump(exclude_unset=True)
        if "name" in fields:
            fields["name"] = require_text("name", fields["name"])

        async with self._storage.transaction() as session:
            account = await session.get_account(account_id, owner_id)
            if account is None:
                raise NotFoundError("Account", account_id)

            updated = build_record(
                BankAccount,
                **{**account.model_dump(), **fields, "updated_at": datetime.utcnow()},
            )
            await session.update_account(updated)

        return updated

    async def deactivate(self, owner_id: str, account_id: UUID) -> BankAccount:
        """Hide an account from new ledger writes without deleting it."""
        return await self.update(owner_id, account_id, AccountUpdate(is_active=False))

    async def delete(self, owner_id: str, account_id: UUID) -> BankAccount:
        """
        Delete an account.

        Expenses and incomes that referenced it become untracked cash;
        transfers keep their account name snapshots.
        """
        async with self._storage.transaction() as session:
            account = await session.get_account(account_id, owner_id)
            if account is None:
                raise NotFoundError("Account", account_id)

            await session.detach_account(account_id, owner_id)
            await session.delete_account(account_id, owner_id)

        return account
