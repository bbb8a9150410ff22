from typing import List, Optional

from pydantic import BaseModel, Field


class SuggestedItem(BaseModel):
    description: str
    quantity: float = 1
    amount: float = 0
    unit_price: Optional[float] = None


class TitleSuggestionRequest(BaseModel):
    business_name: Optional[str] = None
    client_name: Optional[str] = None
    previous_titles: List[str] = []


class DueDateSuggestionRequest(BaseModel):
    previous_due_dates: List[int] = []


class ItemSuggestionRequest(BaseModel):
    previous_items: List[SuggestedItem] = []
    partial_description: Optional[str] = None


class PaymentTermsSuggestionRequest(BaseModel):
    previous_terms: List[str] = []


class PreviousInvoice(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: str
    items: List[SuggestedItem] = []
    payment_terms: Optional[str] = None
    client_id: Optional[str] = None


class InvoiceSuggestionRequest(BaseModel):
    previous_invoices: List[PreviousInvoice] = []
    client_id: Optional[str] = None


class InvoiceSuggestions(BaseModel):
    title: str
    description: str
    suggested_due_date: str
    suggested_items: List[SuggestedItem] = Field(default_factory=list)
    suggested_payment_terms: str
