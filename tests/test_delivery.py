import asyncio, json
import httpx
import pytest
from askedith.errors import TransportAuthError, TransportSendError
from askedith.services.delivery import (BatchOutcome, DeliveryDispatcher, MailboxTransport, OutgoingEmail, SendResult,
                                        SimulationTransport, TransactionalTransport, unsent_indices)

class FakeTransport:
    def __init__(self, name, available=True, fail_for=(), error=TransportSendError, delay=0):
        self.name = name
        self._available = available
        self.fail_for = set(fail_for)
        self.error = error
        self.delay = delay
        self.sent = []

    def available(self):
        return self._available

    async def send(self, email):
        if self.delay:
            await asyncio.sleep(self.delay)
        if email.to in self.fail_for:
            raise self.error(f"rejected {email.to}")
        self.sent.append(email.to)
        return f"{self.name}-{len(self.sent)}"

def _email(to):
    return OutgoingEmail(to=to, subject="Hello", body="Body", category="Home Care Companies")

def test_first_available_transport_is_chosen():
    mailbox = FakeTransport("mailbox", available=False)
    transactional = FakeTransport("transactional")
    dispatcher = DeliveryDispatcher([mailbox, transactional, FakeTransport("simulation")])
    assert dispatcher.choose() is transactional
    assert dispatcher.available_transports() == ["transactional", "simulation"]

def test_failure_is_not_retried_on_lower_transport():
    primary = FakeTransport("mailbox", fail_for={"a@x.com"})
    fallback = FakeTransport("simulation")
    result = asyncio.run(DeliveryDispatcher([primary, fallback]).send(_email("a@x.com")))
    assert not result.success
    assert result.transport == "mailbox"
    assert fallback.sent == []

def test_partial_batch_keeps_input_order():
    t = FakeTransport("simulation", fail_for={"b@x.com"})
    batch = asyncio.run(DeliveryDispatcher([t]).send_batch([_email("a@x.com"), _email("b@x.com"), _email("c@x.com")]))
    assert batch.outcome == BatchOutcome.PARTIAL
    assert not batch.success
    assert (batch.sent, batch.failed, batch.total) == (2, 1, 3)
    assert [r.success for r in batch.results] == [True, False, True]
    assert batch.message == "2 of 3 emails sent"

def test_all_failed_batch():
    t = FakeTransport("simulation", fail_for={"a@x.com"})
    batch = asyncio.run(DeliveryDispatcher([t]).send_batch([_email("a@x.com")]))
    assert batch.outcome == BatchOutcome.FAILED
    assert batch.results[0].error == "rejected a@x.com"

def test_empty_batch_is_sent():
    batch = asyncio.run(DeliveryDispatcher([FakeTransport("simulation")]).send_batch([]))
    assert batch.outcome == BatchOutcome.SENT and batch.total == 0

def test_auth_failure_flags_needs_auth():
    t = FakeTransport("mailbox", fail_for={"a@x.com"}, error=TransportAuthError)
    result = asyncio.run(DeliveryDispatcher([t]).send(_email("a@x.com")))
    assert result.needs_auth and not result.success

def test_slow_send_times_out():
    t = FakeTransport("simulation", delay=1)
    result = asyncio.run(DeliveryDispatcher([t], timeout=0.05).send(_email("a@x.com")))
    assert not result.success
    assert "Timed out" in result.error

def test_dispatcher_needs_a_transport():
    with pytest.raises(ValueError):
        DeliveryDispatcher([])

def test_simulation_appends_jsonl(tmp_path):
    path = tmp_path / "sim.jsonl"
    t = SimulationTransport(log_path=str(path))
    mid = asyncio.run(t.send(_email("a@x.com")))
    record = json.loads(path.read_text().strip())
    assert mid.startswith("sim-") and record["id"] == mid
    assert record["to"] == "a@x.com" and record["category"] == "Home Care Companies"

def test_transactional_sends_from_platform_with_reply_to():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["payload"] = json.loads(request.content)
        return httpx.Response(202, headers={"X-Message-Id": "sg-123"})

    t = TransactionalTransport(api_key="key", from_email="noreply@askedith.org", api_url="https://sg.test/v3",
                               transport=httpx.MockTransport(handler))
    email = OutgoingEmail(to="a@x.com", subject="Hi", body="Body", reply_to="ann@example.com")
    assert asyncio.run(t.send(email)) == "sg-123"
    assert seen["auth"] == "Bearer key"
    assert seen["payload"]["from"]["email"] == "noreply@askedith.org"
    assert seen["payload"]["reply_to"] == {"email": "ann@example.com"}

def test_transactional_rejected_key_is_auth_error():
    t = TransactionalTransport(api_key="bad", api_url="https://sg.test/v3",
                               transport=httpx.MockTransport(lambda r: httpx.Response(401)))
    with pytest.raises(TransportAuthError):
        asyncio.run(t.send(_email("a@x.com")))
    assert not TransactionalTransport(api_key="").available()

class FilingFailsClient:
    async def send(self, grant_id, to, subject, body, reply_to=None):
        return "msg-1"

    async def file_into_category(self, grant_id, message_id, category):
        raise RuntimeError("folder API down")

def test_filing_failure_does_not_fail_the_send():
    transport = MailboxTransport(FilingFailsClient(), grant_id="g-1")
    result = asyncio.run(DeliveryDispatcher([transport]).send(_email("a@x.com")))
    assert result.success and result.message_id == "msg-1"
    assert not MailboxTransport(FilingFailsClient(), grant_id=None).available()

def test_blank_message_fails_without_reaching_a_transport():
    t = FakeTransport("simulation")
    batch = asyncio.run(DeliveryDispatcher([t]).send_batch([OutgoingEmail(to="", subject=" ", body=""),
                                                            _email("a@x.com")]))
    assert batch.outcome == BatchOutcome.PARTIAL
    assert batch.results[0].error == "Missing required fields: to, subject, body"
    assert batch.results[1].success
    assert t.sent == ["a@x.com"]

def test_unsent_indices_skip_delivered_messages():
    results = {0: SendResult(success=True), 1: SendResult(success=False, error="boom")}
    assert unsent_indices(results, 3) == [1, 2]
    assert unsent_indices({}, 2) == [0, 1]
