"""
Audit logging for security-critical operations.

Logs authentication, wallet movements and other sensitive business events
for compliance, investigation, and monitoring purposes.

LOGGING SENSITIVE DATA: passwords, tokens and card numbers are never logged.
"""
import logging
import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Dict

# Separate logger for audit events (can be shipped to centralized logging)
audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _emit(level: int, entry: Dict[str, Any]):
    audit_logger.log(level, json.dumps(entry, default=str))


class AuditLog:
    """Central audit logging for security-critical events."""

    @staticmethod
    def log_authentication(
        action: str,  # "login", "logout", "register", "failed_login"
        phone_number: str,
        ip_address: str,
        success: bool,
        reason: str = "",
    ):
        """
        Log authentication events.

        Usage:
            AuditLog.log_authentication("login", "+254712345678", "192.168.1.1", True)
            AuditLog.log_authentication("failed_login", "+254712345678", "192.168.1.1", False, reason="Invalid password")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "phone_number": phone_number,
            "ip_address": ip_address,
            "success": success,
        }
        if reason and not success:
            log_entry["reason"] = reason

        _emit(logging.INFO if success else logging.WARNING, log_entry)

    @staticmethod
    def log_wallet_movement(
        action: str,  # "topup", "withdraw"
        user_id: str,
        wallet_id: str,
        amount: Decimal,
        new_balance: Decimal,
        transaction_id: str,
        method: str,
    ):
        """Every balance change is written here alongside the DB transaction row."""
        _emit(logging.INFO, {
            "timestamp": _now(),
            "event_type": f"wallet.{action}",
            "user_id": user_id,
            "wallet_id": wallet_id,
            "transaction_id": transaction_id,
            "amount": str(amount),
            "new_balance": str(new_balance),
            "method": method,
        })

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "status"
        resource_type: str,  # "invoice", "expense", "loan"
        resource_id: str,
        user_id: str,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log business-critical actions.

        Usage:
            AuditLog.log_action("status", "invoice", invoice.id, user.id, changes={"status": "paid"})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": user_id,
            "resource_id": resource_id,
        }
        if changes:
            log_entry["changes"] = changes

        _emit(logging.INFO, log_entry)

    @staticmethod
    def log_access_denied(
        action: str,
        resource_type: str,
        user_id: str,
        reason: str,
    ):
        """Track attempts to reach admin-only endpoints."""
        _emit(logging.WARNING, {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "action": action,
            "resource_type": resource_type,
            "user_id": user_id,
            "reason": reason,
        })
