from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from pesaflip.schemas.wallet import Pagination


class InvoiceItemCreate(BaseModel):
    description: str = Field(min_length=1, max_length=500)
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)


class InvoiceCreate(BaseModel):
    client_name: str = Field(min_length=1, max_length=100)
    client_email: EmailStr
    client_address: Optional[str] = None
    client_id: Optional[str] = None
    invoice_number: Optional[str] = None
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    payment_terms: str = "14"
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    status: str = "draft"
    notes: Optional[str] = None
    items: List[InvoiceItemCreate] = Field(min_length=1)


class InvoiceStatusUpdate(BaseModel):
    status: str


class InvoicePaymentCreate(BaseModel):
    amount: Decimal
    method: str
    payer_name: Optional[str] = None
    payer_phone: Optional[str] = None
    transaction_id: Optional[str] = None


class InvoiceItemRecord(BaseModel):
    id: str
    description: str
    quantity: float
    unit_price: float
    amount: float

    class Config:
        from_attributes = True


class InvoicePaymentRecord(BaseModel):
    id: str
    amount: float
    method: str
    payer_name: Optional[str] = None
    payer_phone: Optional[str] = None
    transaction_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InvoiceSummary(BaseModel):
    id: str
    invoice_number: str
    client_name: str
    client_email: str
    title: str
    issue_date: date
    due_date: date
    total: float
    status: str

    class Config:
        from_attributes = True


class InvoiceRecord(InvoiceSummary):
    client_id: Optional[str] = None
    client_address: Optional[str] = None
    description: Optional[str] = None
    payment_terms: str
    tax_rate: float
    tax_amount: float
    subtotal: float
    amount_paid: float = 0
    balance_due: float = 0
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[InvoiceItemRecord] = []
    payments: List[InvoicePaymentRecord] = []


class InvoicePage(BaseModel):
    invoices: List[InvoiceSummary]
    pagination: Pagination
