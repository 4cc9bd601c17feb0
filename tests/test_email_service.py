import pytest
from httpx import AsyncClient, ASGITransport
from pydantic import ValidationError

from email_service.events import SEND_EMAIL_EVENT
from email_service.main import app as email_app, register_handlers
from email_service.schemas import SendEmailMessage
from email_service.services.consumers.kafka_consumer import KafkaEventConsumer, kafka_consumer
from email_service.services.handlers import email_handlers
from email_service.services.handlers.email_handlers import EmailEventHandlers
from email_service.services.mailer import build_message
from shop_service.events.producer import EmailEventProducer


def send_email_event(**payload):
    return {
        "event_id": "evt-1",
        "event_type": "send_email",
        "event_timestamp": "2026-01-01T00:00:00",
        "producer_service": "shop-service",
        "payload": payload,
    }


class FakeMailer:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send(self, data):
        if self.fail:
            raise ConnectionError("smtp relay is down")
        self.sent.append(data)


@pytest.fixture
def fake_mailer(monkeypatch):
    mailer = FakeMailer()
    monkeypatch.setattr(email_handlers, "mailer", mailer)
    return mailer


def test_build_message_has_text_and_html():
    message = build_message(
        SendEmailMessage(email="eve@shopmail.com", subject="Order Confirmation", message="Thanks <3")
    )

    assert message["To"] == "eve@shopmail.com"
    assert message["Subject"] == "Order Confirmation"
    assert "Excited User" in message["From"]

    plain = message.get_body(preferencelist=("plain",)).get_content()
    html = message.get_body(preferencelist=("html",)).get_content()
    assert plain.strip() == "Thanks <3"
    assert "<h1>Thanks &lt;3</h1>" in html


async def test_handle_send_email_uses_mailer(fake_mailer):
    await EmailEventHandlers.handle_send_email(
        send_email_event(email="eve@shopmail.com", subject="Welcome to Our Platform", message="Hello")
    )

    assert len(fake_mailer.sent) == 1
    assert fake_mailer.sent[0].email == "eve@shopmail.com"
    assert fake_mailer.sent[0].subject == "Welcome to Our Platform"


async def test_handle_send_email_rejects_bad_payload(fake_mailer):
    with pytest.raises(ValidationError):
        await EmailEventHandlers.handle_send_email(send_email_event(email="nope", subject="", message="x"))

    assert fake_mailer.sent == []


async def test_consumer_dispatches_by_event_type(fake_mailer):
    consumer = KafkaEventConsumer()
    consumer.register_handler("send_email", EmailEventHandlers.handle_send_email)

    ok = await consumer.handle_message(
        send_email_event(email="eve@shopmail.com", subject="Login Notification", message="Hi"), "send_email"
    )

    assert ok is True
    assert consumer.processed == 1
    assert len(fake_mailer.sent) == 1


async def test_consumer_survives_failing_handler(monkeypatch):
    monkeypatch.setattr(email_handlers, "mailer", FakeMailer(fail=True))
    consumer = KafkaEventConsumer()
    consumer.register_handler("send_email", EmailEventHandlers.handle_send_email)

    ok = await consumer.handle_message(
        send_email_event(email="eve@shopmail.com", subject="Order Delivered", message="Done"), "send_email"
    )

    assert ok is False
    assert consumer.failed == 1


async def test_consumer_skips_unknown_and_malformed_events():
    consumer = KafkaEventConsumer()

    assert await consumer.handle_message({"event_type": "order_created", "payload": {}}, "send_email") is False
    assert await consumer.handle_message({"payload": {}}, "send_email") is False
    assert await consumer.handle_message("not json object", "send_email") is False
    assert consumer.failed == 3


async def test_consume_requires_started_consumer():
    with pytest.raises(RuntimeError):
        await KafkaEventConsumer().consume_events()


async def test_email_service_stats(monkeypatch):
    monkeypatch.setattr(kafka_consumer, "handlers", {})
    register_handlers()

    async with AsyncClient(transport=ASGITransport(app=email_app), base_url="http://test") as client:
        stats = (await client.get("/stats")).json()
        health = (await client.get("/health")).json()

    assert stats["registered_handlers"] == ["send_email"]
    assert stats["subscribed_topics"] == ["send_email"]
    assert health["status"] == "healthy"


class FakeRecordMetadata:
    partition = 0
    offset = 42


class FakeKafkaProducer:
    def __init__(self):
        self.sent = []

    async def send_and_wait(self, topic, value=None, key=None):
        self.sent.append((topic, value, key))
        return FakeRecordMetadata()


async def test_producer_wraps_email_task_in_event_envelope():
    producer = EmailEventProducer()
    producer.producer = FakeKafkaProducer()

    ok = await producer.send_email_task("eve@shopmail.com", "Order Confirmation", "Thanks")

    assert ok is True
    topic, event, key = producer.producer.sent[0]
    assert topic == "send_email"
    assert key == "eve@shopmail.com"
    assert event["event_type"] == "send_email"
    assert event["producer_service"] == "shop-service"
    assert event["payload"] == {
        "email": "eve@shopmail.com",
        "subject": "Order Confirmation",
        "message": "Thanks",
    }


async def test_producer_not_started_is_fire_and_forget():
    assert await EmailEventProducer().send_email_task("eve@shopmail.com", "Hi", "Hello") is False


class FakeMessage:
    def __init__(self, value, offset):
        self.value = value
        self.topic = "send_email"
        self.partition = 0
        self.offset = offset


class FakeKafkaConsumer:
    def __init__(self, messages, journal):
        self.messages = list(messages)
        self.journal = journal

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.messages:
            raise StopAsyncIteration
        return self.messages.pop(0)

    async def commit(self):
        self.journal.append("commit")


async def test_offset_committed_only_after_handler_runs():
    journal = []

    async def recording_handler(event_data):
        journal.append(f"handled {event_data['payload']['subject']}")

    consumer = KafkaEventConsumer()
    consumer.register_handler(SEND_EMAIL_EVENT, recording_handler)
    consumer.consumer = FakeKafkaConsumer(
        [
            FakeMessage(send_email_event(email="eve@shopmail.com", subject="First", message="1"), 0),
            FakeMessage(send_email_event(email="eve@shopmail.com", subject="Second", message="2"), 1),
        ],
        journal
    )

    await consumer.consume_events()

    assert journal == ["handled First", "commit", "handled Second", "commit"]
    assert consumer.processed == 2


async def test_crashed_handler_leaves_offset_uncommitted():
    journal = []

    async def recording_handler(event_data):
        journal.append("handled")

    consumer = KafkaEventConsumer()
    consumer.register_handler(SEND_EMAIL_EVENT, recording_handler)
    consumer.consumer = FakeKafkaConsumer(
        [FakeMessage(send_email_event(email="eve@shopmail.com", subject="Hi", message="1"), 0)],
        journal
    )

    async def process_then_crash(event_data, topic):
        await recording_handler(event_data)
        raise SystemExit("worker killed")

    consumer.handle_message = process_then_crash

    with pytest.raises(SystemExit):
        await consumer.consume_events()

    assert journal == ["handled"]
