"""
Outgoing email through AWS SES.

The Discord confirmation mail and the survey mailer both go through
``send_email``; a client is built per call from the app config so jobs
running in their own threads never share one.
"""

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

from logging_config import get_logger

logger = get_logger(__name__)


class MailError(RuntimeError):
    """SES refused or failed to send a message."""


def ses_configured() -> bool:
    cfg = current_app.config
    return bool(cfg.get("AWS_ACCESS_KEY") and cfg.get("AWS_SECRET_KEY"))


def _ses_client():
    cfg = current_app.config
    return boto3.client(
        "ses",
        region_name=cfg.get("AWS_SES_REGION"),
        aws_access_key_id=cfg.get("AWS_ACCESS_KEY"),
        aws_secret_access_key=cfg.get("AWS_SECRET_KEY"),
    )


def send_email(from_address: str, to: list[str], subject: str, body_html: str,
               reply_to: str | None = None) -> str:
    """Send one HTML message and return the SES message id."""
    if not to:
        raise MailError("No recipients")

    kwargs = {
        "Source": from_address,
        "Destination": {"ToAddresses": list(to)},
        "Message": {
            "Subject": {"Data": subject, "Charset": "UTF-8"},
            "Body": {"Html": {"Data": body_html, "Charset": "UTF-8"}},
        },
    }
    if reply_to:
        kwargs["ReplyToAddresses"] = [reply_to]

    try:
        resp = _ses_client().send_email(**kwargs)
    except (BotoCoreError, ClientError) as exc:
        logger.error("SES send failed", extra={"to": to, "subject": subject, "error": str(exc)})
        raise MailError(str(exc)) from exc

    message_id = resp.get("MessageId", "")
    logger.info("email sent", extra={"to": to, "subject": subject, "message_id": message_id})
    return message_id
