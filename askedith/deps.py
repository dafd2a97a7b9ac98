from sqlmodel import SQLModel, create_engine, Session
from fastapi import Depends, Request, Response
from typing import Optional
from askedith.config import settings
from askedith.models import MailboxConnection
from askedith.services.delivery import DeliveryDispatcher, build_dispatcher
from askedith.services.mailbox import MailboxClient
import os, uuid

if not os.path.exists(settings.DATA_DIR):
    os.makedirs(settings.DATA_DIR, exist_ok=True)

_connect_args = {"check_same_thread": False} if settings.DB_URL.startswith("sqlite") else {}
engine = create_engine(settings.DB_URL, echo=False, connect_args=_connect_args)

def get_session():
    with Session(engine) as session:
        yield session

def init_db():
    SQLModel.metadata.create_all(engine)

def get_session_id(request: Request, response: Response) -> str:
    """Browser session identity: header wins over cookie; a new id is issued when neither is present."""
    sid = request.headers.get("X-Session-Id") or request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not sid:
        sid = uuid.uuid4().hex
        response.set_cookie(settings.SESSION_COOKIE_NAME, sid, httponly=True, samesite="lax")
    return sid

def get_connection(session_id: str = Depends(get_session_id),
                   session: Session = Depends(get_session)) -> Optional[MailboxConnection]:
    return session.get(MailboxConnection, session_id)

async def get_mailbox_client():
    client = MailboxClient()
    try:
        yield client
    finally:
        await client.close()

def get_dispatcher(mailbox: MailboxClient = Depends(get_mailbox_client),
                   connection: Optional[MailboxConnection] = Depends(get_connection)) -> DeliveryDispatcher:
    return build_dispatcher(mailbox, connection.grant_id if connection else None)
