"""
AI helpers for the invoice form.

Each helper degrades to a deterministic default when Groq is unavailable
or answers with something unusable. Only generate_invoice_suggestions
raises, because it has no sensible default for a whole invoice.
"""
import json
import logging
import re
from datetime import date, timedelta
from typing import List, Optional

from pydantic import ValidationError

from pesaflip.ai.groq_client import get_groq_client
from pesaflip.ai import prompts
from pesaflip.schemas.ai import InvoiceSuggestions, PreviousInvoice, SuggestedItem

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 14
DEFAULT_PAYMENT_TERMS = "Net 14"
MAX_DUE_DAYS = 365
CONTEXT_INVOICES = 5


class AISuggestionError(Exception):
    """The completion API could not produce suggestions."""


def _strip_code_fence(text: str) -> str:
    """The model sometimes wraps JSON in ```json ... ``` fences."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines).strip()
    return text


def _parse_json(text: Optional[str]):
    if not text:
        return None
    try:
        return json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON from LLM: {e}")
        return None


def _clean_items(raw) -> List[SuggestedItem]:
    """Keep only entries that validate as items; drop the rest."""
    if isinstance(raw, dict):
        raw = raw.get("items") or raw.get("suggested_items") or []
    if not isinstance(raw, list):
        return []
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        if "unitPrice" in entry and "unit_price" not in entry:
            entry = {**entry, "unit_price": entry["unitPrice"]}
        try:
            item = SuggestedItem.model_validate(entry)
        except ValidationError:
            continue
        if item.description.strip():
            items.append(item)
    return items


def suggest_invoice_title(business_name: str, client_name: str, previous_titles: Optional[List[str]] = None) -> dict:
    fallback = {
        "title": f"Invoice for {client_name}",
        "description": f"Services provided by {business_name}",
    }
    content = get_groq_client().complete(
        prompts.title_prompt(business_name, client_name, previous_titles or []),
        temperature=0.7,
        max_tokens=150,
        json_mode=True,
    )
    data = _parse_json(content)
    if not isinstance(data, dict):
        return fallback
    return {
        "title": str(data.get("title") or fallback["title"]).strip(),
        "description": str(data.get("description") or fallback["description"]).strip(),
    }


def predict_due_date(previous_due_dates: Optional[List[int]] = None) -> int:
    """Days from issue date. 14 with no history or an unusable answer."""
    if not previous_due_dates:
        return DEFAULT_DUE_DAYS

    content = get_groq_client().complete(
        prompts.due_date_prompt(previous_due_dates),
        temperature=0.3,
        max_tokens=10,
    )
    match = re.match(r"\s*(\d+)", content or "")
    if not match:
        return DEFAULT_DUE_DAYS
    days = int(match.group(1))
    if not 0 < days <= MAX_DUE_DAYS:
        return DEFAULT_DUE_DAYS
    return days


def suggest_invoice_items(previous_items: Optional[List[SuggestedItem]] = None, partial_description: Optional[str] = None) -> List[SuggestedItem]:
    history = [item.model_dump(exclude_none=True) for item in (previous_items or [])]
    content = get_groq_client().complete(
        prompts.items_prompt(history, partial_description),
        temperature=0.7,
        max_tokens=500,
        json_mode=True,
    )
    return _clean_items(_parse_json(content))


def suggest_payment_terms(previous_terms: Optional[List[str]] = None) -> str:
    if not previous_terms:
        return DEFAULT_PAYMENT_TERMS

    content = get_groq_client().complete(
        prompts.payment_terms_prompt(previous_terms),
        temperature=0.5,
        max_tokens=50,
    )
    terms = (content or "").strip().strip('"')
    return terms or DEFAULT_PAYMENT_TERMS


def generate_invoice_suggestions(
    previous_invoices: List[PreviousInvoice],
    client_id: Optional[str] = None,
    today: Optional[date] = None,
) -> InvoiceSuggestions:
    """Draft a whole invoice from the last five (optionally client-filtered) invoices."""
    relevant = [inv for inv in previous_invoices if inv.client_id == client_id] if client_id else previous_invoices
    context = [inv.model_dump(exclude_none=True) for inv in relevant[-CONTEXT_INVOICES:]]
    default_due = ((today or date.today()) + timedelta(days=DEFAULT_DUE_DAYS)).isoformat()

    content = get_groq_client().complete(
        prompts.suggestions_prompt(context, default_due),
        temperature=0.7,
        max_tokens=1000,
        json_mode=True,
    )
    data = _parse_json(content)
    if not isinstance(data, dict):
        raise AISuggestionError("Failed to generate AI suggestions for invoice")

    return InvoiceSuggestions(
        title=str(data.get("title") or "Invoice"),
        description=str(data.get("description") or "Services provided"),
        suggested_due_date=str(data.get("suggested_due_date") or data.get("suggestedDueDate") or default_due),
        suggested_items=_clean_items(data.get("suggested_items") or data.get("suggestedItems") or []),
        suggested_payment_terms=str(
            data.get("suggested_payment_terms") or data.get("suggestedPaymentTerms") or DEFAULT_PAYMENT_TERMS
        ),
    )
