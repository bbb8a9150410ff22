from pesaflip.models.user import User
from pesaflip.models.wallet import Wallet, WalletTransaction
from pesaflip.models.invoice import Invoice, InvoiceItem, InvoicePayment
from pesaflip.models.expense import Expense
from pesaflip.models.loan import Loan, LoanPayment

__all__ = [
    "User",
    "Wallet",
    "WalletTransaction",
    "Invoice",
    "InvoiceItem",
    "InvoicePayment",
    "Expense",
    "Loan",
    "LoanPayment",
]
