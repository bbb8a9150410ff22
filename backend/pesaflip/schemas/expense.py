import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ExpenseCreate(BaseModel):
    date: Optional[datetime.date] = None
    category: str
    amount: Decimal
    description: str = Field(min_length=1, max_length=500)
    receipt: Optional[str] = None


class ExpenseStatusUpdate(BaseModel):
    status: str


class ExpenseRecord(BaseModel):
    id: str
    date: datetime.date
    category: str
    amount: float
    description: str
    receipt: Optional[str] = None
    status: str
    created_at: datetime.datetime

    class Config:
        from_attributes = True
