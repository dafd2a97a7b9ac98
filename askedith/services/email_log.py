import logging
from typing import Iterable, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from askedith.config import settings
from askedith.models import EmailLog
from askedith.services.delivery import OutgoingEmail, SendResult

logger = logging.getLogger(__name__)

def log_sends(session: Session, attempts: Iterable[Tuple[OutgoingEmail, SendResult]],
              mailbox_email: Optional[str] = None) -> int:
    """Write one EmailLog row per attempted send. A failed write is logged and never reaches the sender."""
    rows = 0
    try:
        for email, result in attempts:
            sender = mailbox_email if result.transport == "mailbox" and mailbox_email else settings.PLATFORM_FROM_EMAIL
            session.add(EmailLog(email_to=email.to, email_from=sender, reply_to=email.reply_to,
                                 subject=email.subject, category=email.category,
                                 transport=result.transport or "unknown",
                                 status="sent" if result.success else "failed",
                                 message_id=result.message_id, error_message=result.error))
            rows += 1
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Could not record {rows} email log row(s): {e}")
        return 0
    return rows
