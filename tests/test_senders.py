"""
Tests for outbound WhatsApp senders.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from harmony_booking.config import ExternalAPIConfig
from harmony_booking.core.exceptions import ExternalAPIError, NotificationError
from harmony_booking.services.external import MetaWhatsAppSender, TwilioWhatsAppSender


def recording_transport(statuses):
    """Transport answering with the given status codes in order; the last one repeats."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        status = statuses[min(len(requests), len(statuses) - 1)]
        requests.append(request)
        return httpx.Response(status, json={"messages": [{"id": "wamid.out"}]})

    return httpx.MockTransport(handler), requests


def meta_config(**overrides):
    values = {"meta_access_token": "token", "meta_phone_number_id": "1122", "max_retries": 3}
    values.update(overrides)
    return ExternalAPIConfig(**values)


def twilio_config(**overrides):
    values = {
        "twilio_account_sid": "AC123",
        "twilio_auth_token": "secret",
        "twilio_whatsapp_number": "+14155238886",
    }
    values.update(overrides)
    return ExternalAPIConfig(**values)


@pytest.mark.asyncio
async def test_meta_sender_posts_graph_api_message():
    transport, requests = recording_transport([200])
    sender = MetaWhatsAppSender(meta_config(), transport=transport, backoff=0)

    assert await sender.send_message("9876543210", "Hello") is True

    [request] = requests
    assert str(request.url) == "https://graph.facebook.com/v19.0/1122/messages"
    assert request.headers["Authorization"] == "Bearer token"
    body = json.loads(request.content)
    assert body["to"] == "919876543210"
    assert body["text"]["body"] == "Hello"


@pytest.mark.asyncio
async def test_meta_sender_splits_long_messages():
    transport, requests = recording_transport([200])
    sender = MetaWhatsAppSender(meta_config(max_message_length=20), transport=transport, backoff=0)

    await sender.send_message("+919876543210", "first line here\nsecond line here")

    assert [json.loads(r.content)["text"]["body"] for r in requests] == [
        "first line here",
        "second line here",
    ]


@pytest.mark.asyncio
async def test_meta_sender_retries_server_errors():
    transport, requests = recording_transport([503, 429, 200])
    sender = MetaWhatsAppSender(meta_config(), transport=transport, backoff=0)

    assert await sender.send_message("+919876543210", "Hello") is True
    assert len(requests) == 3


@pytest.mark.asyncio
async def test_meta_sender_reports_failure_after_retries():
    transport, requests = recording_transport([500])
    sender = MetaWhatsAppSender(meta_config(), transport=transport, backoff=0)

    assert await sender.send_message("+919876543210", "Hello") is False
    assert len(requests) == 3


@pytest.mark.asyncio
async def test_unconfigured_meta_sender_sends_nothing():
    transport, requests = recording_transport([200])
    sender = MetaWhatsAppSender(ExternalAPIConfig(), transport=transport)

    assert await sender.send_message("+919876543210", "Hello") is False
    assert requests == []


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    transport, requests = recording_transport([400])
    sender = MetaWhatsAppSender(meta_config(), transport=transport, backoff=0)

    with pytest.raises(NotificationError):
        await sender._make_request("POST", "https://graph.facebook.com/v19.0/1122/messages", json={})
    assert len(requests) == 1


@pytest.mark.asyncio
async def test_timeouts_become_external_api_errors():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    sender = MetaWhatsAppSender(meta_config(max_retries=2), transport=httpx.MockTransport(handler), backoff=0)

    with pytest.raises(ExternalAPIError):
        await sender._make_request("POST", "https://graph.facebook.com/v19.0/1122/messages", json={})


@pytest.mark.asyncio
async def test_twilio_sender_posts_form_with_basic_auth():
    transport, requests = recording_transport([201])
    sender = TwilioWhatsAppSender(twilio_config(), transport=transport, backoff=0)

    assert await sender.send_message("+919876543210", "Booked") is True

    [request] = requests
    assert str(request.url) == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
    assert request.headers["Authorization"].startswith("Basic ")
    form = parse_qs(request.content.decode())
    assert form["To"] == ["whatsapp:+919876543210"]
    assert form["From"] == ["whatsapp:+14155238886"]
    assert form["Body"] == ["Booked"]


@pytest.mark.asyncio
async def test_twilio_sender_rejects_invalid_destination():
    transport, requests = recording_transport([201])
    sender = TwilioWhatsAppSender(twilio_config(), transport=transport)

    assert await sender.send_message("12", "Booked") is False
    assert requests == []
