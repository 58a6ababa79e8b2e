"""
Email Notifications

Best-effort plain-text email. Failures are logged and never raised so a
mail outage cannot stop mining.
"""

import logging
import smtplib
from email.message import EmailMessage

from mining_data.config import EmailSettings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 30


def send_email(subject: str, body: str, user: str, password: str, server: str,
               port: str, to: str, sender: str) -> bool:
    """
    Send an email using the given SMTP login, recipient, etc.

    Args:
        subject: Subject for the email
        body: Plain-text body
        user: SMTP login user (blank skips login)
        password: SMTP login password
        server: SMTP server; blank disables sending
        port: SMTP server port
        to: Recipient
        sender: Originator of the email

    Returns:
        True if the message was handed to the server
    """
    if not server:
        return False

    try:
        message = EmailMessage()
        message['To'] = to
        message['From'] = sender
        message['Subject'] = subject
        message.set_content(body)

        with smtplib.SMTP(server, int(port), timeout=SMTP_TIMEOUT) as smtp:
            smtp.ehlo()
            if smtp.has_extn('starttls'):
                smtp.starttls()
                smtp.ehlo()
            if user:
                smtp.login(user, password)
            smtp.send_message(message, from_addr=sender, to_addrs=[to])

    except (smtplib.SMTPException, OSError, ValueError) as e:
        logger.error(f"Problem sending email notification: {e}")
        return False

    logger.info(f"Email sent: {subject}")
    return True


def send_notification(settings: EmailSettings, subject: str, body: str) -> bool:
    """send_email with credentials taken from EmailSettings"""
    if not settings.enabled:
        logger.debug(f"Email disabled, not sending: {subject}")
        return False
    return send_email(
        subject, body,
        settings.user, settings.password,
        settings.server, settings.port,
        settings.to, settings.sender,
    )
