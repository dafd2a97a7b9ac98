from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone
import uuid

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    # naive values are taken to be UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)

class Resource(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    category: str = Field(index=True)  # free text, not an enum at this layer
    name: str
    company_name: Optional[str] = None
    address: str = ""
    city: Optional[str] = None
    county: Optional[str] = None
    zip_code: Optional[str] = Field(default=None, index=True)
    email: str
    phone: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[str] = None
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

class MailboxConnection(SQLModel, table=True):
    session_id: str = Field(primary_key=True)
    grant_id: str
    email: Optional[str] = None
    provider: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

class OAuthState(SQLModel, table=True):
    nonce: str = Field(primary_key=True)
    session_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow)

class EmailLog(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    email_to: str
    email_from: Optional[str] = None
    reply_to: Optional[str] = None
    subject: str
    category: Optional[str] = Field(default=None, index=True)
    transport: str  # mailbox|transactional|simulation
    status: str  # sent|failed
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    sent_at: datetime = Field(default_factory=utcnow)

class Questionnaire(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: str = Field(index=True)
    status: str = Field(default="in_progress", index=True)  # in_progress|completed|abandoned
    current_question: int = 1
    answers_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

class Appointment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    organization: str = ""
    to: str = ""
    notes: str = ""
    date: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow)
