"""
Transfer Manager

Moves money between two of the owner's accounts:

1. Reject a transfer to the same account
2. Load both accounts; both must be active accounts of the owner
3. The source must cover amount + fee
4. In one unit of work: insert the transfer (with account name
   snapshots), debit the source by amount + fee, credit the
   destination by amount

The fee is not credited anywhere. Transfers are append-only.

Preconditions are checked through a storage reader before the write
unit of work opens, so a rejected transfer never opens a transaction.
They are checked again inside the unit of work against the balances it
commits on.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from finance_tracker.exceptions import (
    InsufficientBalanceError,
    InvalidAccountError,
    NotFoundError,
    SameAccountTransferError,
)
from finance_tracker.ledger.balance import BalanceMutator
from finance_tracker.ledger.validation import build_record, require_non_negative, require_positive
from finance_tracker.models.account import BankAccount
from finance_tracker.models.ledger import BalanceChange, LedgerWrite, Transfer, TransferDraft
from finance_tracker.services.storage import LedgerSession, LedgerStorage


class TransferManager:
    """Create-only transfers between accounts."""

    def __init__(self, storage: LedgerStorage, mutator: Optional[BalanceMutator] = None):
        self._storage = storage
        self._mutator = mutator or BalanceMutator()

    async def _check_preconditions(
        self,
        session: LedgerSession,
        owner_id: str,
        draft: TransferDraft,
    ) -> tuple[BankAccount, BankAccount]:
        source = await session.get_account(draft.from_account_id, owner_id)
        destination = await session.get_account(draft.to_account_id, owner_id)

        if source is None or not source.is_active:
            raise InvalidAccountError(f"Source account not found: {draft.from_account_id}")
        if destination is None or not destination.is_active:
            raise InvalidAccountError(f"Destination account not found: {draft.to_account_id}")

        total = draft.amount + draft.fee
        if source.balance < total:
            raise InsufficientBalanceError(available=source.balance, required=total)

        return source, destination

    async def create(self, owner_id: str, draft: TransferDraft) -> LedgerWrite[Transfer]:
        """
        Execute a transfer.

        Raises:
            InvalidInputError: Amount not positive or fee negative
            SameAccountTransferError: Source and destination are the same
            InvalidAccountError: Either account missing for this owner
            InsufficientBalanceError: Source balance below amount + fee
        """
        require_positive("amount", draft.amount)
        require_non_negative("fee", draft.fee)
        if draft.from_account_id == draft.to_account_id:
            raise SameAccountTransferError("Cannot transfer to the same account")

        async with self._storage.reader() as session:
            await self._check_preconditions(session, owner_id, draft)

        async with self._storage.transaction() as session:
            source, destination = await self._check_preconditions(session, owner_id, draft)

            transfer = build_record(
                Transfer,
                owner_id=owner_id,
                from_account_id=source.id,
                to_account_id=destination.id,
                from_account_name=source.name,
                to_account_name=destination.name,
                amount=draft.amount,
                fee=draft.fee,
                description=draft.description,
                transfer_date=draft.transfer_date,
            )
            await session.insert_transfer(transfer)

            debit = -transfer.total_debit
            credit = transfer.amount
            await self._mutator.apply_delta(session, source.id, owner_id, debit)
            await self._mutator.apply_delta(session, destination.id, owner_id, credit)

        return LedgerWrite[Transfer](
            record=transfer,
            balance_changes=[
                BalanceChange(account_id=source.id, delta=debit),
                BalanceChange(account_id=destination.id, delta=credit),
            ],
        )

    async def get(self, owner_id: str, transfer_id: UUID) -> Transfer:
        async with self._storage.reader() as session:
            transfer = await session.get_transfer(transfer_id, owner_id)
        if transfer is None:
            raise NotFoundError("Transfer", transfer_id)
        return transfer

    async def list(
        self,
        owner_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transfer]:
        async with self._storage.reader() as session:
            return await session.list_transfers(owner_id, date_from=date_from, date_to=date_to)
