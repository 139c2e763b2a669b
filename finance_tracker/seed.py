"""
Demo data.

Seeds one owner with a checking account, an e-wallet and two budgets,
enough to exercise the ledger and the dashboards by hand.

Usage:
    python -m finance_tracker.seed demo-user
"""

import asyncio
import sys
from decimal import Decimal

import structlog

from finance_tracker.models.account import AccountDraft, AccountType, BankAccount
from finance_tracker.models.budget import Budget, BudgetDraft
from finance_tracker.tracker import FinanceTracker, create_tracker

logger = structlog.get_logger(__name__)

DEMO_ACCOUNTS = (
    AccountDraft(
        name="BCA Main Account",
        bank_name="BCA (Bank Central Asia)",
        account_number="1234567890",
        balance=Decimal("5000000"),
        type=AccountType.CHECKING,
        color="#3b82f6",
    ),
    AccountDraft(
        name="OVO Wallet",
        bank_name="OVO",
        account_number="081234567890",
        balance=Decimal("500000"),
        type=AccountType.EWALLET,
        color="#8b5cf6",
    ),
)

DEMO_BUDGETS = (
    BudgetDraft(category="Food & Dining", limit_amount=Decimal("1000000"), color="#ef4444"),
    BudgetDraft(category="Transportation", limit_amount=Decimal("500000"), color="#3b82f6"),
)


async def seed_demo_data(
    tracker: FinanceTracker,
    owner_id: str,
) -> tuple[list[BankAccount], list[Budget]]:
    """Create the demo accounts and budgets for an owner."""
    accounts = [await tracker.accounts.create(owner_id, draft) for draft in DEMO_ACCOUNTS]
    budgets = [await tracker.budgets.create(owner_id, draft) for draft in DEMO_BUDGETS]

    logger.info(
        "demo_data_seeded",
        owner_id=owner_id,
        accounts=len(accounts),
        budgets=len(budgets),
    )
    return accounts, budgets


async def _main(owner_id: str) -> None:
    tracker = create_tracker()
    try:
        await seed_demo_data(tracker, owner_id)
    finally:
        await tracker.close()


if __name__ == "__main__":
    asyncio.run(_main(sys.argv[1] if len(sys.argv) > 1 else "demo-user"))
