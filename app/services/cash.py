"""Bankroll deposits and withdrawals."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.domain import CashTransaction, TransactionType
from app.services.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def _check_amount(amount: Decimal) -> Decimal:
    if amount is None or Decimal(amount) <= 0:
        raise ValidationError.for_field("amount", "Amount must be greater than 0")
    return Decimal(amount)


class CashTransactionService:
    """CRUD over cash movements, newest first."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list(self) -> list[CashTransaction]:
        result = await self.session.execute(
            select(CashTransaction).order_by(
                CashTransaction.transaction_date.desc(),
                CashTransaction.transaction_time.desc(),
            )
        )
        return list(result.scalars().all())

    async def get(self, transaction_id: int) -> CashTransaction:
        transaction = await self.session.get(CashTransaction, transaction_id)
        if transaction is None:
            raise NotFoundError("CashTransaction", transaction_id)
        return transaction

    async def create(
        self,
        transaction_date: date,
        transaction_time: time,
        amount: Decimal,
        transaction_type: TransactionType | str,
    ) -> CashTransaction:
        transaction = CashTransaction(
            transaction_date=transaction_date,
            transaction_time=transaction_time,
            amount=_check_amount(amount),
            transaction_type=TransactionType(transaction_type).value,
        )
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)

        logger.info(
            "cash_transaction_created",
            transaction_id=transaction.id,
            transaction_type=transaction.transaction_type,
            amount=str(transaction.amount),
        )
        return transaction

    async def update(
        self,
        transaction_id: int,
        transaction_date: date,
        transaction_time: time,
        amount: Decimal,
        transaction_type: TransactionType | str,
    ) -> CashTransaction:
        """Full replacement of a movement's fields."""
        transaction = await self.get(transaction_id)
        transaction.transaction_date = transaction_date
        transaction.transaction_time = transaction_time
        transaction.amount = _check_amount(amount)
        transaction.transaction_type = TransactionType(transaction_type).value
        await self.session.flush()
        await self.session.refresh(transaction)

        logger.info("cash_transaction_updated", transaction_id=transaction_id)
        return transaction

    async def delete(self, transaction_id: int) -> None:
        transaction = await self.get(transaction_id)
        await self.session.delete(transaction)
        await self.session.flush()
        logger.info("cash_transaction_deleted", transaction_id=transaction_id)
