"""Structured Logging — JSON formatter surfaces lifecycle extras."""

import json
import logging

import pytest

from custody.core.domain_types import NotificationIntent
from custody.core.errors import NotificationDeliveryError
from custody.infrastructure.notification_sender import LoggingNotificationSender
from custody.infrastructure.observability import JSONFormatter


def _record(**extra):
    record = logging.LogRecord(
        "custody.test", logging.INFO, __file__, 1, "hello %s", ("world",), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_base_fields():
    out = json.loads(JSONFormatter().format(_record()))
    assert out["level"] == "INFO"
    assert out["logger"] == "custody.test"
    assert out["message"] == "hello world"
    assert "timestamp" in out


def test_json_formatter_includes_known_extras_only():
    out = json.loads(JSONFormatter().format(
        _record(subscription_code="c-1", user_id="u1", unrelated="x"),
    ))
    assert out["subscription_code"] == "c-1"
    assert out["user_id"] == "u1"
    assert "unrelated" not in out


async def test_logging_sender_records_intent(caplog):
    sender = LoggingNotificationSender()
    payload = {
        "subject": "Custody requested: Widget",
        "subscription": {"subscription_code": "c-1", "user_id": "u1"},
    }
    with caplog.at_level(logging.INFO, logger="custody.infrastructure.notification_sender"):
        await sender.send("head@dept.test", NotificationIntent.SUBSCRIPTION_PREPARED, payload)

    record = caplog.records[-1]
    assert record.getMessage() == "Custody requested: Widget"
    assert record.recipient == "head@dept.test"
    assert record.intent == "subscription_prepared"
    assert record.subscription_code == "c-1"


@pytest.mark.parametrize("recipient", ["", "   "])
async def test_logging_sender_refuses_blank_recipient(recipient, caplog):
    sender = LoggingNotificationSender()
    with caplog.at_level(logging.INFO, logger="custody.infrastructure.notification_sender"):
        with pytest.raises(NotificationDeliveryError):
            await sender.send(recipient, NotificationIntent.SUBSCRIPTION_COMPLETED, {})
    assert caplog.records == []
