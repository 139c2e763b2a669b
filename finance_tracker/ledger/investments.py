"""
Investment Manager

Investment positions are tracked alongside the ledger but are never
linked to an account: recording or revaluing a position moves no
balance.
"""

from datetime import datetime
from uuid import UUID

from finance_tracker.exceptions import NotFoundError
from finance_tracker.ledger.validation import (
    build_record,
    require_non_negative,
    require_positive,
    require_text,
)
from finance_tracker.models.investment import Investment, InvestmentDraft
from finance_tracker.services.storage import LedgerStorage


class InvestmentManager:
    """CRUD for investment positions."""

    def __init__(self, storage: LedgerStorage):
        self._storage = storage

    def _validated(self, owner_id: str, draft: InvestmentDraft) -> Investment:
        return build_record(
            Investment,
            owner_id=owner_id,
            symbol=require_text("symbol", draft.symbol).upper(),
            name=require_text("name", draft.name),
            type=draft.type,
            quantity=require_positive("quantity", draft.quantity),
            purchase_price=require_non_negative("purchase_price", draft.purchase_price),
            current_price=require_non_negative("current_price", draft.current_price),
            purchase_date=draft.purchase_date,
        )

    async def create(self, owner_id: str, draft: InvestmentDraft) -> Investment:
        investment = self._validated(owner_id, draft)
        async with self._storage.transaction() as session:
            await session.insert_investment(investment)
        return investment

    async def get(self, owner_id: str, investment_id: UUID) -> Investment:
        async with self._storage.reader() as session:
            investment = await session.get_investment(investment_id, owner_id)
        if investment is None:
            raise NotFoundError("Investment", investment_id)
        return investment

    async def list(self, owner_id: str) -> list[Investment]:
        async with self._storage.reader() as session:
            return await session.list_investments(owner_id)

    async def update(self, owner_id: str, investment_id: UUID, draft: InvestmentDraft) -> Investment:
        """Replace a position's fields (typically a new current price)."""
        candidate = self._validated(owner_id, draft)

        async with self._storage.transaction() as session:
            original = await session.get_investment(investment_id, owner_id)
            if original is None:
                raise NotFoundError("Investment", investment_id)

            updated = candidate.model_copy(update={
                "id": original.id,
                "created_at": original.created_at,
                "updated_at": datetime.utcnow(),
            })
            await session.update_investment(updated)

        return updated

    async def delete(self, owner_id: str, investment_id: UUID) -> Investment:
        async with self._storage.transaction() as session:
            investment = await session.get_investment(investment_id, owner_id)
            if investment is None:
                raise NotFoundError("Investment", investment_id)
            await session.delete_investment(investment_id, owner_id)
        return investment
