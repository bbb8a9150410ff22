"""AI drafting helpers for the invoice form. Authenticated; suggestions only."""
from fastapi import APIRouter, Depends

from pesaflip.ai import invoice_ai
from pesaflip.api.deps import get_current_user_id
from pesaflip.core.exceptions import BusinessError, success_response
from pesaflip.schemas.ai import (
    DueDateSuggestionRequest,
    InvoiceSuggestionRequest,
    ItemSuggestionRequest,
    PaymentTermsSuggestionRequest,
    TitleSuggestionRequest,
)

router = APIRouter(dependencies=[Depends(get_current_user_id)])


@router.post("/title")
def suggest_title(data: TitleSuggestionRequest):
    business_name = (data.business_name or "").strip()
    client_name = (data.client_name or "").strip()
    if not business_name or not client_name:
        raise BusinessError.bad_request("Business name and client name are required")
    return success_response(invoice_ai.suggest_invoice_title(business_name, client_name, data.previous_titles))


@router.post("/due-date")
def suggest_due_date(data: DueDateSuggestionRequest):
    days = invoice_ai.predict_due_date(data.previous_due_dates)
    return success_response({"days": days})


@router.post("/items")
def suggest_items(data: ItemSuggestionRequest):
    items = invoice_ai.suggest_invoice_items(data.previous_items, data.partial_description)
    return success_response({"items": items})


@router.post("/payment-terms")
def suggest_payment_terms(data: PaymentTermsSuggestionRequest):
    terms = invoice_ai.suggest_payment_terms(data.previous_terms)
    return success_response({"payment_terms": terms})


@router.post("/suggestions")
def suggest_invoice(data: InvoiceSuggestionRequest):
    try:
        suggestions = invoice_ai.generate_invoice_suggestions(data.previous_invoices, data.client_id)
    except invoice_ai.AISuggestionError as e:
        raise BusinessError.service_unavailable(str(e))
    return success_response(suggestions)
