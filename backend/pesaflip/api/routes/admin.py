"""Admin-only job controls."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pesaflip.api.deps import get_db, require_admin
from pesaflip.core.audit import AuditLog
from pesaflip.core.exceptions import BusinessError, success_response
from pesaflip.jobs import invoice_reminders
from pesaflip.models.user import User

router = APIRouter()


@router.get("/jobs/invoice-reminders")
def reminder_job_status(admin: User = Depends(require_admin)):
    return success_response(invoice_reminders.get_job_status())


@router.post("/jobs/invoice-reminders")
def trigger_reminder_job(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """Run the reminder job now and return its counts."""
    try:
        result = invoice_reminders.run_invoice_reminder_job(db)
    except invoice_reminders.JobAlreadyRunning:
        raise BusinessError.conflict("Invoice reminder job is already running")
    AuditLog.log_action("run", "job", "invoice-reminders", admin.id, changes=result)
    return success_response(result, "Invoice reminder job completed")
