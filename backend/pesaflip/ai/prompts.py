"""
Prompts for invoice suggestions.

The model drafts wording only. Amounts it proposes are suggestions the
user edits before an invoice is created; nothing here is trusted as-is.
Every prompt asks for bare JSON (or a bare number/phrase) so the output
can be parsed and validated.
"""
import json
from typing import List, Optional

TITLE_SYSTEM = "You are an assistant that writes professional invoice titles and descriptions."
DUE_DATE_SYSTEM = "You are an assistant that predicts appropriate invoice due dates."
ITEMS_SYSTEM = "You are an assistant that suggests invoice line items based on previous patterns."
TERMS_SYSTEM = "You are an assistant that suggests appropriate invoice payment terms."
SUGGESTIONS_SYSTEM = (
    "You are an assistant that drafts new invoices for a Kenyan small business "
    "based on its previous invoices. Amounts are in KES."
)


def _messages(system: str, user: str) -> List[dict]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


def title_prompt(business_name: str, client_name: str, previous_titles: List[str]) -> List[dict]:
    previous = ", ".join(previous_titles) if previous_titles else "none"
    return _messages(TITLE_SYSTEM, (
        f"Generate a professional invoice title and description for {business_name} "
        f"billing {client_name}. Previous titles include: {previous}.\n"
        'Respond with JSON only: {"title": "...", "description": "..."}'
    ))


def due_date_prompt(previous_due_dates: List[int]) -> List[dict]:
    days = ", ".join(str(d) for d in previous_due_dates)
    return _messages(DUE_DATE_SYSTEM, (
        f"Based on these previous invoice due dates (in days): {days}, suggest a "
        "reasonable due date in days for a new invoice. Return only a number."
    ))


def items_prompt(previous_items: List[dict], partial_description: Optional[str]) -> List[dict]:
    partial = f'and this partial description: "{partial_description}", ' if partial_description else ""
    return _messages(ITEMS_SYSTEM, (
        f"Based on these previous invoice items: {json.dumps(previous_items)}, {partial}"
        "suggest 3-5 relevant invoice items.\n"
        'Respond with JSON only: {"items": [{"description": "...", "quantity": 1, "amount": 0}]}'
    ))


def payment_terms_prompt(previous_terms: List[str]) -> List[dict]:
    return _messages(TERMS_SYSTEM, (
        f"Based on these previous payment terms: {'; '.join(previous_terms)}, suggest "
        "appropriate payment terms for a new invoice. Provide only the payment terms text."
    ))


def suggestions_prompt(previous_invoices: List[dict], default_due_date: str) -> List[dict]:
    return _messages(SUGGESTIONS_SYSTEM, (
        f"Based on these previous invoices: {json.dumps(previous_invoices)}, suggest a title, "
        f"description, due date (default {default_due_date}), invoice items and payment terms "
        "for a new invoice.\n"
        "Respond with JSON only, using the fields: title, description, suggested_due_date "
        "(YYYY-MM-DD), suggested_items (array of objects with description, quantity, amount) "
        "and suggested_payment_terms."
    ))
