"""
Budget Manager

Budgets are spending limits per category. They never touch account
balances; analytics compares them against summed expenses.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from finance_tracker.config import AppSettings, get_settings
from finance_tracker.exceptions import NotFoundError
from finance_tracker.ledger.validation import build_record, require_positive, require_text
from finance_tracker.models.budget import Budget, BudgetDraft
from finance_tracker.services.storage import LedgerStorage


class BudgetManager:
    """CRUD for budgets."""

    def __init__(self, storage: LedgerStorage, app_settings: Optional[AppSettings] = None):
        self._storage = storage
        self._app_settings = app_settings or get_settings().app

    def _validated(self, owner_id: str, draft: BudgetDraft) -> Budget:
        category = require_text("category", draft.category)
        return build_record(
            Budget,
            owner_id=owner_id,
            category=category,
            limit_amount=require_positive("limit_amount", draft.limit_amount),
            color=draft.color or self._app_settings.color_for(category),
        )

    async def create(self, owner_id: str, draft: BudgetDraft) -> Budget:
        """Create a budget. Without a color, the category's palette color is used."""
        budget = self._validated(owner_id, draft)
        async with self._storage.transaction() as session:
            await session.insert_budget(budget)
        return budget

    async def get(self, owner_id: str, budget_id: UUID) -> Budget:
        async with self._storage.reader() as session:
            budget = await session.get_budget(budget_id, owner_id)
        if budget is None:
            raise NotFoundError("Budget", budget_id)
        return budget

    async def list(self, owner_id: str) -> list[Budget]:
        async with self._storage.reader() as session:
            return await session.list_budgets(owner_id)

    async def update(self, owner_id: str, budget_id: UUID, draft: BudgetDraft) -> Budget:
        candidate = self._validated(owner_id, draft)

        async with self._storage.transaction() as session:
            original = await session.get_budget(budget_id, owner_id)
            if original is None:
                raise NotFoundError("Budget", budget_id)

            updated = candidate.model_copy(update={
                "id": original.id,
                "created_at": original.created_at,
                "updated_at": datetime.utcnow(),
            })
            await session.update_budget(updated)

        return updated

    async def delete(self, owner_id: str, budget_id: UUID) -> Budget:
        async with self._storage.transaction() as session:
            budget = await session.get_budget(budget_id, owner_id)
            if budget is None:
                raise NotFoundError("Budget", budget_id)
            await session.delete_budget(budget_id, owner_id)
        return budget
