import asyncio
import json
import logging
import os
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence
import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from askedith.config import settings
from askedith.errors import TransportAuthError, TransportSendError
from askedith.services.mailbox import MailboxClient

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("to", "subject", "body")

class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class OutgoingEmail(_Camel):
    to: str
    subject: str
    body: str
    category: str = "General"
    reply_to: Optional[str] = None

    def missing_fields(self) -> List[str]:
        return [f for f in REQUIRED_FIELDS if not getattr(self, f).strip()]

class SendResult(_Camel):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    transport: Optional[str] = None
    needs_auth: bool = False

class BatchOutcome(str, Enum):
    SENT = "sent"
    PARTIAL = "partial"
    FAILED = "failed"

class BatchSendResult(_Camel):
    success: bool
    outcome: BatchOutcome
    sent: int
    failed: int
    total: int
    results: List[SendResult] = Field(default_factory=list)
    message: str = ""

class SimulationTransport:
    """Records the would-be send to the log and a JSON-lines file. Never fails."""
    name = "simulation"

    def __init__(self, log_path: str | None = None, from_address: str | None = None):
        self.log_path = log_path or settings.SIMULATION_LOG_PATH
        self.from_address = from_address or settings.PLATFORM_FROM_EMAIL

    def available(self) -> bool:
        return True

    async def send(self, email: OutgoingEmail) -> str:
        message_id = f"sim-{uuid.uuid4().hex}"
        logger.info(f"Simulated email {message_id} to={email.to} subject={email.subject!r} category={email.category}")
        record = {"id": message_id, "at": datetime.now(timezone.utc).isoformat(), "from": self.from_address,
                  **email.model_dump()}
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.log_path)), exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.warning(f"Could not append simulated email to {self.log_path}: {e}")
        return message_id

class TransactionalTransport:
    """SendGrid v3 mail/send over httpx. The platform address sends; the user's address is the reply-to."""
    name = "transactional"

    def __init__(self, api_key: str | None = None, from_email: str | None = None, from_name: str | None = None,
                 api_url: str | None = None, timeout: float | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.from_email = from_email or settings.PLATFORM_FROM_EMAIL
        self.from_name = from_name or settings.PLATFORM_FROM_NAME
        self.api_url = (api_url or settings.SENDGRID_API_URL).rstrip("/")
        self.timeout = timeout or settings.SEND_TIMEOUT_SECONDS
        self._transport = transport

    def available(self) -> bool:
        return bool(self.api_key)

    async def send(self, email: OutgoingEmail) -> str:
        payload = {
            "personalizations": [{"to": [{"email": email.to}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": email.subject,
            "content": [{"type": "text/plain", "value": email.body}],
            "categories": [email.category[:255]],
        }
        if email.reply_to:
            payload["reply_to"] = {"email": email.reply_to}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(f"{self.api_url}/mail/send", json=payload,
                                     headers={"Authorization": f"Bearer {self.api_key}"})
        if resp.status_code in (401, 403):
            raise TransportAuthError(f"Transactional email API rejected the API key ({resp.status_code})")
        if resp.status_code >= 400:
            raise TransportSendError(f"Transactional email API error {resp.status_code}: {resp.text}")
        return resp.headers.get("X-Message-Id") or f"sg-{uuid.uuid4().hex}"

class MailboxTransport:
    """Sends from the user's own connected mailbox, then files the message by category."""
    name = "mailbox"

    def __init__(self, client: MailboxClient, grant_id: str | None):
        self.client = client
        self.grant_id = grant_id

    def available(self) -> bool:
        return bool(self.grant_id)

    async def send(self, email: OutgoingEmail) -> str:
        message_id = await self.client.send(self.grant_id, email.to, email.subject, email.body, email.reply_to)
        try:
            await self.client.file_into_category(self.grant_id, message_id, email.category)
        except Exception as e:
            # filing is best effort; the message is already sent
            logger.warning(f"Sent {message_id} but could not file it under {email.category!r}: {e}")
        return message_id

class DeliveryDispatcher:
    """Sends each message through the first available transport, in the order given.

    A failure on the chosen transport is that message's failure and is not retried lower down.
    Batches fan out concurrently, each message bounded by ``timeout``; results keep input order.
    """

    def __init__(self, transports: Sequence, timeout: float | None = None):
        if not transports:
            raise ValueError("at least one transport is required")
        self.transports = list(transports)
        self.timeout = timeout or settings.SEND_TIMEOUT_SECONDS

    def choose(self):
        for t in self.transports:
            if t.available():
                return t
        # the last transport is the fallback even if it reports unavailable
        return self.transports[-1]

    def available_transports(self) -> List[str]:
        return [t.name for t in self.transports if t.available()]

    async def send(self, email: OutgoingEmail) -> SendResult:
        missing = email.missing_fields()
        if missing:
            logger.warning(f"Refusing to send to {email.to!r}: missing {', '.join(missing)}")
            return SendResult(success=False, error=f"Missing required fields: {', '.join(missing)}")

        transport = self.choose()
        try:
            message_id = await asyncio.wait_for(transport.send(email), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Send to {email.to} via {transport.name} timed out after {self.timeout}s")
            return SendResult(success=False, transport=transport.name, error=f"Timed out after {self.timeout}s")
        except TransportAuthError as e:
            logger.warning(f"Send to {email.to} via {transport.name} needs authorization: {e}")
            return SendResult(success=False, transport=transport.name, error=str(e), needs_auth=True)
        except Exception as e:
            logger.error(f"Send to {email.to} via {transport.name} failed: {e}")
            return SendResult(success=False, transport=transport.name, error=str(e) or e.__class__.__name__)
        logger.info(f"Sent email {message_id} to {email.to} via {transport.name}")
        return SendResult(success=True, message_id=message_id, transport=transport.name)

    async def send_batch(self, emails: Sequence[OutgoingEmail]) -> BatchSendResult:
        results = list(await asyncio.gather(*(self.send(e) for e in emails)))
        return summarize(results)

def summarize(results: List[SendResult]) -> BatchSendResult:
    total = len(results)
    sent = sum(1 for r in results if r.success)
    failed = total - sent
    if failed == 0:
        outcome = BatchOutcome.SENT
    elif sent == 0:
        outcome = BatchOutcome.FAILED
    else:
        outcome = BatchOutcome.PARTIAL
    return BatchSendResult(success=outcome == BatchOutcome.SENT, outcome=outcome, sent=sent, failed=failed,
                           total=total, results=results, message=f"{sent} of {total} emails sent")

def unsent_indices(results: dict, total: int) -> List[int]:
    """Positions of a batch that have not gone out yet, so a resend never repeats a delivered message."""
    return [i for i in range(total) if not (i in results and results[i].success)]

def build_dispatcher(mailbox: MailboxClient | None = None, grant_id: str | None = None) -> DeliveryDispatcher:
    transports: list = []
    if mailbox is not None:
        transports.append(MailboxTransport(mailbox, grant_id))
    transports.append(TransactionalTransport())
    transports.append(SimulationTransport())
    return DeliveryDispatcher(transports)
