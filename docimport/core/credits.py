"""Credit ledger interface and in-memory reference implementation.

The ledger owns balances and the transaction history. guarded_extract makes
three independent calls per extraction: check, consume, and on total failure
a compensating refund. They are not wrapped in a cross-call transaction.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from docimport.core.errors import InsufficientCreditsError

logger = logging.getLogger(__name__)


class CreditTransactionType(str, Enum):
    CONSUMPTION = "CONSUMPTION"
    REFUND = "REFUND"
    ADMIN_ADJUSTMENT = "ADMIN_ADJUSTMENT"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CreditTransaction:
    """One ledger movement. Consumptions are stored as negative amounts."""

    user_id: str
    amount: int
    type: CreditTransactionType
    description: str
    metadata: dict[str, Any] = field(default_factory=dict)
    balance_after: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class CreditLedger(ABC):
    """Ledger operations used by guarded extraction."""

    @abstractmethod
    async def check_credits(self, user_id: str, amount: int) -> bool:
        """True if the user can pay amount."""

    @abstractmethod
    async def consume_credits(
        self,
        user_id: str,
        amount: int,
        type: CreditTransactionType = CreditTransactionType.CONSUMPTION,
        description: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> CreditTransaction:
        """Debit amount from the user."""

    @abstractmethod
    async def add_credits(
        self,
        user_id: str,
        amount: int,
        type: CreditTransactionType = CreditTransactionType.REFUND,
        description: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> CreditTransaction:
        """Credit amount to the user."""


class InMemoryCreditLedger(CreditLedger):
    """Dict-backed ledger.

    Users listed in unlimited_users always pass the check and are never
    debited below zero; their transactions are still recorded.
    """

    def __init__(
        self,
        balances: dict[str, int] | None = None,
        unlimited_users: Iterable[str] = (),
    ):
        self.balances: dict[str, int] = dict(balances or {})
        self.unlimited_users = set(unlimited_users)
        self.transactions: list[CreditTransaction] = []

    def balance(self, user_id: str) -> int:
        return self.balances.get(user_id, 0)

    def transactions_for(self, user_id: str, type: CreditTransactionType | None = None) -> list[CreditTransaction]:
        return [
            t for t in self.transactions
            if t.user_id == user_id and (type is None or t.type == type)
        ]

    async def check_credits(self, user_id: str, amount: int) -> bool:
        if user_id in self.unlimited_users:
            return True
        return self.balance(user_id) >= amount

    async def consume_credits(
        self,
        user_id: str,
        amount: int,
        type: CreditTransactionType = CreditTransactionType.CONSUMPTION,
        description: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> CreditTransaction:
        if amount < 0:
            raise ValueError(f"Cannot consume a negative amount: {amount}")
        unlimited = user_id in self.unlimited_users
        if not unlimited and self.balance(user_id) < amount:
            raise InsufficientCreditsError(amount)

        if not unlimited:
            self.balances[user_id] = self.balance(user_id) - amount
        transaction = CreditTransaction(
            user_id=user_id,
            amount=-amount,
            type=CreditTransactionType(type),
            description=description,
            metadata=dict(metadata or {}),
            balance_after=self.balance(user_id),
        )
        self.transactions.append(transaction)
        logger.debug(f"Consumed {amount} credits from {user_id}: {description}")
        return transaction

    async def add_credits(
        self,
        user_id: str,
        amount: int,
        type: CreditTransactionType = CreditTransactionType.REFUND,
        description: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> CreditTransaction:
        if amount < 0:
            raise ValueError(f"Cannot add a negative amount: {amount}")
        if user_id not in self.unlimited_users:
            self.balances[user_id] = self.balance(user_id) + amount
        transaction = CreditTransaction(
            user_id=user_id,
            amount=amount,
            type=CreditTransactionType(type),
            description=description,
            metadata=dict(metadata or {}),
            balance_after=self.balance(user_id),
        )
        self.transactions.append(transaction)
        logger.debug(f"Added {amount} credits to {user_id}: {description}")
        return transaction
