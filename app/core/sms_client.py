# app/core/sms_client.py
"""
SMS client (Twilio Programmable Messaging REST API).

Responsibilities:
  - Decide whether SMS sending is configured at all.
  - Provide a single send_sms(...) coroutine for services to use.

Typical .env configuration:

    TWILIO_ACCOUNT_SID=ACxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    TWILIO_AUTH_TOKEN=xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    TWILIO_PHONE_NUMBER=+15005550006

If any of these is missing (or the SID is not an account SID), SMS is
considered not configured and callers skip sending.
"""

import httpx

from app.core.config import get_settings

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


def is_sms_configured() -> bool:
    settings = get_settings()
    return bool(
        settings.TWILIO_ACCOUNT_SID
        and settings.TWILIO_ACCOUNT_SID.startswith("AC")
        and settings.TWILIO_AUTH_TOKEN
        and settings.TWILIO_PHONE_NUMBER
    )


def create_sms_http_client() -> httpx.AsyncClient:
    """
    Async HTTP client authenticated against the Twilio account.

    One client is shared by all sends of a single alert.
    """
    settings = get_settings()
    return httpx.AsyncClient(
        base_url=TWILIO_API_BASE,
        auth=(settings.TWILIO_ACCOUNT_SID or "", settings.TWILIO_AUTH_TOKEN or ""),
        timeout=settings.SMS_TIMEOUT_SECONDS,
    )


async def send_sms(client: httpx.AsyncClient, to_number: str, body: str) -> str:
    """
    Send one SMS and return the provider message SID.

    Raises:
        httpx.HTTPError: on transport failure or a non-2xx response.
    """
    settings = get_settings()
    response = await client.post(
        f"/Accounts/{settings.TWILIO_ACCOUNT_SID}/Messages.json",
        data={
            "To": to_number,
            "From": settings.TWILIO_PHONE_NUMBER,
            "Body": body,
        },
    )
    response.raise_for_status()
    return response.json().get("sid", "")
