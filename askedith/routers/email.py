import logging, secrets
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session
from typing import List, Optional
from askedith.config import settings
from askedith.deps import get_connection, get_dispatcher, get_mailbox_client, get_session, get_session_id
from askedith.errors import MailboxAuthError, MailboxError
from askedith.models import MailboxConnection, OAuthState, as_utc, utcnow
from askedith.services.delivery import REQUIRED_FIELDS, DeliveryDispatcher, OutgoingEmail
from askedith.services.email_log import log_sends
from askedith.services.mailbox import MailboxClient

logger = logging.getLogger(__name__)

router = APIRouter()

class SendRequest(OutgoingEmail):
    @field_validator(*REQUIRED_FIELDS)
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Missing required field")
        return v

class BatchRequest(BaseModel):
    # blank messages are reported per message, not as a rejected batch
    emails: List[OutgoingEmail] = Field(default_factory=list)

class AuthorizeRequest(BaseModel):
    email: str

class CodeExchange(BaseModel):
    code: str

def _needs_auth(message="Not authenticated with email provider"):
    return HTTPException(status_code=401, detail={"error": message, "needsAuth": True})

def _issue_state(session: Session, session_id: str) -> str:
    nonce = secrets.token_urlsafe(32)
    session.add(OAuthState(nonce=nonce, session_id=session_id)); session.commit()
    return nonce

def _consume_state(session: Session, nonce: str) -> str:
    """Resolve a single-use OAuth state back to the session that asked for it."""
    row = session.get(OAuthState, nonce)
    if not row:
        raise HTTPException(status_code=400, detail="Unknown or already used authorization state")
    session_id, issued_at = row.session_id, as_utc(row.created_at)
    session.delete(row); session.commit()
    if issued_at < utcnow() - timedelta(seconds=settings.OAUTH_STATE_TTL_SECONDS):
        raise HTTPException(status_code=400, detail="Authorization state expired")
    return session_id

async def _store_connection(session: Session, mailbox: MailboxClient, session_id: str, code: str) -> MailboxConnection:
    try:
        grant = await mailbox.exchange_code(code)
    except (MailboxAuthError, MailboxError) as e:
        logger.error(f"Mailbox code exchange failed: {e}")
        raise HTTPException(status_code=400, detail="Failed to connect your email account")

    conn = session.get(MailboxConnection, session_id) or MailboxConnection(session_id=session_id, grant_id=grant["grant_id"])
    conn.grant_id = grant["grant_id"]
    conn.email = grant.get("email")
    conn.provider = grant.get("provider")
    session.add(conn); session.commit(); session.refresh(conn)

    try:
        await mailbox.ensure_folder_structure(conn.grant_id)
    except Exception as e:
        logger.warning(f"Mailbox connected but folder setup failed: {e}")
    return conn

@router.get("/status")
def status(dispatcher: DeliveryDispatcher = Depends(get_dispatcher)):
    return {
        "available": dispatcher.available_transports(),
        "preferred": dispatcher.choose().name,
        "mailboxConfigured": settings.mailbox_configured,
        "transactionalConfigured": bool(settings.SENDGRID_API_KEY),
    }

@router.get("/connection-status")
async def connection_status(connection: Optional[MailboxConnection] = Depends(get_connection),
                            mailbox: MailboxClient = Depends(get_mailbox_client)):
    if not connection:
        return {"connected": False}
    connected = await mailbox.check_connection(connection.grant_id)
    return {"connected": connected, "email": connection.email}

@router.post("/authorize")
def authorize(req: AuthorizeRequest, session_id: str = Depends(get_session_id),
              session: Session = Depends(get_session), mailbox: MailboxClient = Depends(get_mailbox_client)):
    if not mailbox.configured:
        raise HTTPException(status_code=503, detail="Connected mailbox is not configured")
    return {"authUrl": mailbox.authorize_url(req.email, state=_issue_state(session, session_id))}

@router.get("/callback")
async def callback(code: str, state: str, session: Session = Depends(get_session),
                   mailbox: MailboxClient = Depends(get_mailbox_client)):
    # opened in a separate browser context; ``state`` is a nonce issued by /authorize
    conn = await _store_connection(session, mailbox, _consume_state(session, state), code)
    return {"success": True, "message": "Email account connected successfully", "email": conn.email}

@router.post("/manual-exchange")
async def manual_exchange(req: CodeExchange, session_id: str = Depends(get_session_id),
                          session: Session = Depends(get_session),
                          mailbox: MailboxClient = Depends(get_mailbox_client)):
    conn = await _store_connection(session, mailbox, session_id, req.code)
    return {"success": True, "message": "Email account connected successfully", "email": conn.email}

@router.post("/disconnect")
def disconnect(connection: Optional[MailboxConnection] = Depends(get_connection),
               session: Session = Depends(get_session)):
    if connection:
        session.delete(connection); session.commit()
    return {"connected": False}

@router.post("/send")
async def send(email: SendRequest, dispatcher: DeliveryDispatcher = Depends(get_dispatcher),
               connection: Optional[MailboxConnection] = Depends(get_connection),
               session: Session = Depends(get_session)):
    result = await dispatcher.send(email)
    log_sends(session, [(email, result)], connection.email if connection else None)
    return result.model_dump(by_alias=True, exclude_none=True)

@router.post("/send-batch")
async def send_batch(req: BatchRequest, dispatcher: DeliveryDispatcher = Depends(get_dispatcher),
                     connection: Optional[MailboxConnection] = Depends(get_connection),
                     session: Session = Depends(get_session)):
    batch = await dispatcher.send_batch(req.emails)
    log_sends(session, zip(req.emails, batch.results), connection.email if connection else None)
    logger.info(f"Batch send: {batch.message} ({batch.outcome.value})")
    return batch.model_dump(mode="json", by_alias=True, exclude_none=True)

@router.get("/messages/{category}")
async def messages(category: str, limit: int = Query(20, ge=1, le=100),
                   connection: Optional[MailboxConnection] = Depends(get_connection),
                   mailbox: MailboxClient = Depends(get_mailbox_client)):
    if not connection:
        raise _needs_auth()
    try:
        return await mailbox.list_by_category(connection.grant_id, category, limit)
    except MailboxAuthError:
        raise _needs_auth("Email authorization expired")
    except MailboxError as e:
        logger.error(f"Failed to fetch messages for {category}: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch messages")
