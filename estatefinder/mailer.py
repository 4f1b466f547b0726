# Outbound email boundary (password reset instructions).
# Delivery is fire-and-forget: callers schedule send_email as a background task and never see failures.
import logging

import httpx
from pydantic import BaseModel, Field

from . import config

logger = logging.getLogger("estatefinder.mailer")

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class EmailMessage(BaseModel):
    to: str
    from_: str = Field(alias="from")
    subject: str
    text: str
    html: str

    model_config = {"populate_by_name": True}


def reset_email(to: str, reset_token: str) -> EmailMessage:
    link = f"{config.RESET_BASE_URL}?token={reset_token}"
    return EmailMessage(
        to=to,
        from_=config.SENDGRID_FROM_EMAIL,
        subject="Password Reset Instructions",
        text=f"You requested a password reset. Please use the following link to reset your password: {link}",
        html=f'<p>You requested a password reset.</p><p>Please click <a href="{link}">here</a> to reset your password.</p>',
    )


def send_email(message: EmailMessage) -> bool:
    """
    Deliver through the SendGrid v3 API; returns True when accepted.

    Without SENDGRID_API_KEY the message is only logged (dev/tests).
    """
    if not config.SENDGRID_API_KEY:
        logger.info("mailer.skipped", extra={"to": message.to, "subject": message.subject})
        return False

    body = {
        "personalizations": [{"to": [{"email": message.to}]}],
        "from": {"email": message.from_},
        "subject": message.subject,
        "content": [
            {"type": "text/plain", "value": message.text},
            {"type": "text/html", "value": message.html},
        ],
    }
    try:
        resp = httpx.post(
            SENDGRID_SEND_URL,
            json=body,
            headers={"Authorization": f"Bearer {config.SENDGRID_API_KEY}"},
            timeout=10.0,
        )
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("Error sending email to %s: %s", message.to, exc)
        return False

    logger.info("mailer.sent", extra={"to": message.to, "subject": message.subject})
    return True
