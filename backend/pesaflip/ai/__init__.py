"""AI module: Groq completions for invoice drafting.

Suggestions are optional. If the LLM is unavailable the helpers fall back
to fixed defaults; nothing here writes to the database.
"""

from .invoice_ai import (
    AISuggestionError,
    generate_invoice_suggestions,
    predict_due_date,
    suggest_invoice_items,
    suggest_invoice_title,
    suggest_payment_terms,
)

__all__ = [
    "AISuggestionError",
    "generate_invoice_suggestions",
    "predict_due_date",
    "suggest_invoice_items",
    "suggest_invoice_title",
    "suggest_payment_terms",
]
