"""
Invoice reminder job.

Checks sent/overdue invoices and e-mails the invoice owner:
- 3 days before the due date ("before")
- on the due date ("due")
- 3 days after it ("overdue"), which also flips the invoice to overdue

Runs on demand (admin endpoint) or from a simple asyncio loop started in
the app lifespan. Only one run at a time.
"""
import logging
import asyncio
import threading
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from pesaflip.core.config import settings
from pesaflip.db.base import utcnow
from pesaflip.db.session import SessionLocal
from pesaflip.models.invoice import Invoice
from pesaflip.models.user import User
from pesaflip.services import email_service

logger = logging.getLogger(__name__)

REMINDER_OFFSETS = {
    3: "before",
    0: "due",
    -3: "overdue",
}
REMINDABLE_STATUSES = ("sent", "overdue")


class JobAlreadyRunning(Exception):
    """A reminder run is already in progress."""


def get_reminder_type(due_date: date, today: Optional[date] = None) -> Optional[str]:
    """before / due / overdue, or None when no reminder is due today."""
    today = today or date.today()
    return REMINDER_OFFSETS.get((due_date - today).days)


def get_invoices_for_reminders(
    db: Session,
    days_ahead: int = 3,
    today: Optional[date] = None,
) -> List[Tuple[Invoice, User]]:
    """Unpaid (sent or overdue) invoices due on or before today + days_ahead, with their owner."""
    today = today or date.today()
    cutoff = today + timedelta(days=days_ahead)
    return (
        db.query(Invoice, User)
        .join(User, Invoice.user_id == User.id)
        .filter(
            Invoice.status.in_(REMINDABLE_STATUSES),
            Invoice.due_date <= cutoff,
        )
        .order_by(Invoice.due_date.asc())
        .all()
    )


def send_invoice_reminders(db: Session, today: Optional[date] = None) -> dict:
    """
    Send today's reminders and mark 3-days-late invoices overdue.

    Returns:
        {"checked", "sent", "failed", "marked_overdue"}
    """
    today = today or date.today()
    candidates = get_invoices_for_reminders(db, settings.REMINDER_DAYS_AHEAD, today)
    logger.info(f"Found {len(candidates)} unpaid invoices to check for reminders")

    due_now = []
    for invoice, owner in candidates:
        reminder_type = get_reminder_type(invoice.due_date, today)
        if reminder_type:
            due_now.append((invoice, owner, reminder_type))

    result = {"checked": len(candidates), "sent": 0, "failed": 0, "marked_overdue": 0}
    if not due_now:
        logger.info("No invoices to send reminders for")
        return result

    sendable = []
    for invoice, owner, _ in due_now:
        if owner.email:
            sendable.append((invoice, owner.email, owner.business_name or owner.name))
        else:
            logger.warning(f"Owner of invoice {invoice.invoice_number} has no email; reminder skipped")
            result["failed"] += 1

    for outcome in email_service.send_batch_invoice_reminders(sendable, today):
        result["sent" if outcome["success"] else "failed"] += 1

    for invoice, _, reminder_type in due_now:
        if reminder_type == "overdue" and invoice.status != "overdue":
            invoice.status = "overdue"
            result["marked_overdue"] += 1
            logger.info(f"Updated invoice {invoice.invoice_number} status to overdue")
    if result["marked_overdue"]:
        db.commit()

    logger.info(f"Successfully sent {result['sent']} of {len(due_now)} reminders")
    return result


# ============================================================================
# JOB STATE - one run at a time, last result kept for the admin endpoint
# ============================================================================

_run_lock = threading.Lock()
_last_run: Optional[datetime] = None
_last_result: Optional[dict] = None


def get_job_status() -> dict:
    return {
        "last_run": _last_run,
        "last_result": _last_result,
        "is_running": _run_lock.locked(),
    }


def run_invoice_reminder_job(db: Optional[Session] = None) -> dict:
    """
    Run the job once. Raises JobAlreadyRunning if another run holds the lock.

    Opens its own session unless one is passed in.
    """
    global _last_run, _last_result
    if not _run_lock.acquire(blocking=False):
        raise JobAlreadyRunning()

    own_session = db is None
    db = db or SessionLocal()
    try:
        logger.info("Starting invoice reminder job...")
        result = send_invoice_reminders(db)
        _last_result = result
        logger.info("Invoice reminder job completed")
        return result
    except Exception as e:
        _last_result = {"error": str(e)}
        logger.error(f"Error in invoice reminder job: {e}")
        raise
    finally:
        _last_run = utcnow()
        if own_session:
            db.close()
        _run_lock.release()


def reset_job_state():
    global _last_run, _last_result
    _last_run = None
    _last_result = None


# ============================================================================
# BACKGROUND TASK - runs in the asyncio loop alongside FastAPI
# ============================================================================

_scheduler_task: Optional[asyncio.Task] = None


async def _reminder_scheduler_loop(interval_seconds: int):
    logger.info(f"[Reminders] Scheduler started. Interval: {interval_seconds}s")

    # Initial delay to let server fully start
    await asyncio.sleep(10)

    while True:
        try:
            # Run in thread pool to avoid blocking event loop
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, run_invoice_reminder_job)
        except JobAlreadyRunning:
            logger.info("[Reminders] Previous run still in progress, skipping")
        except Exception as e:
            logger.error(f"[Reminders] Scheduler error: {e}")

        await asyncio.sleep(interval_seconds)


def start_reminder_scheduler(interval_seconds: Optional[int] = None):
    """Start the background reminder loop. Called from FastAPI lifespan."""
    global _scheduler_task
    if _scheduler_task and not _scheduler_task.done():
        return
    _scheduler_task = asyncio.create_task(
        _reminder_scheduler_loop(interval_seconds or settings.REMINDER_INTERVAL_SECONDS)
    )
    logger.info("[Reminders] Invoice reminder scheduler initialized")


def stop_reminder_scheduler():
    """Stop the loop. Called on FastAPI shutdown."""
    global _scheduler_task
    if _scheduler_task:
        _scheduler_task.cancel()
        _scheduler_task = None
        logger.info("[Reminders] Scheduler stopped")
