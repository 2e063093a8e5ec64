"""Cash transaction endpoints (bankroll deposits and withdrawals)."""

from datetime import date, datetime, time
from decimal import Decimal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db
from app.models.domain import TransactionType
from app.services.cash import CashTransactionService

router = APIRouter(prefix="/api/cash-transactions", tags=["cash"])


class CashTransactionResponse(BaseModel):
    id: int
    transaction_date: date
    transaction_time: time
    amount: Decimal
    transaction_type: str
    created_at: datetime

    class Config:
        from_attributes = True


class CashTransactionRequest(BaseModel):
    transaction_date: date
    transaction_time: time
    amount: Decimal = Field(..., gt=0)
    transaction_type: TransactionType


@router.get("", response_model=list[CashTransactionResponse])
async def list_transactions(db: AsyncSession = Depends(get_db)):
    """Movements, newest first."""
    return await CashTransactionService(db).list()


@router.get("/{transaction_id}", response_model=CashTransactionResponse)
async def get_transaction(transaction_id: int, db: AsyncSession = Depends(get_db)):
    return await CashTransactionService(db).get(transaction_id)


@router.post("", response_model=CashTransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(body: CashTransactionRequest, db: AsyncSession = Depends(get_db)):
    return await CashTransactionService(db).create(**body.model_dump())


@router.put("/{transaction_id}", response_model=CashTransactionResponse)
async def update_transaction(
    transaction_id: int, body: CashTransactionRequest, db: AsyncSession = Depends(get_db)
):
    return await CashTransactionService(db).update(transaction_id, **body.model_dump())


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(transaction_id: int, db: AsyncSession = Depends(get_db)):
    await CashTransactionService(db).delete(transaction_id)
