"""
SMTP Email Provider

Standard SMTP delivery for claim emails, including file attachments.

Configuration comes from ``SMTPSettings`` (SMTP_HOST, SMTP_PORT,
SMTP_USERNAME, SMTP_PASSWORD, SMTP_USE_TLS, SMTP_USE_SSL, SMTP_FROM_EMAIL,
SMTP_FROM_NAME).
"""

import logging
import smtplib
import ssl
import uuid
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from config.settings import SMTPSettings

from .email_provider import (
    DeliveryResult,
    DeliveryStatus,
    EmailMessage,
    EmailProvider,
)

logger = logging.getLogger(__name__)


class SMTPProvider(EmailProvider):
    """
    SMTP email provider.

    Features:
    - Works with any SMTP server
    - STARTTLS or implicit SSL
    - Basic authentication
    - Mixed multipart messages carrying attachments
    """

    def __init__(self, settings: Optional[SMTPSettings] = None):
        self.settings = settings or SMTPSettings()

    @property
    def provider_name(self) -> str:
        return "smtp"

    def is_configured(self) -> bool:
        """Check if SMTP is properly configured."""
        return self.settings.is_configured

    def build_mime(self, message: EmailMessage) -> MIMEMultipart:
        """Assemble the MIME tree for a message."""
        msg = MIMEMultipart("mixed")

        from_email = message.from_email or self.settings.from_email
        from_name = message.from_name or self.settings.from_name
        msg["From"] = formataddr((from_name, from_email))
        msg["To"] = message.to
        msg["Subject"] = message.subject

        if message.reply_to:
            msg["Reply-To"] = message.reply_to

        # Add custom headers (sanitize against CRLF injection)
        for key, value in message.headers.items():
            if any(c in str(key) + str(value) for c in ('\r', '\n')):
                logger.warning(f"Rejected email header with CRLF: {key!r}")
                continue
            msg[key] = value

        body = MIMEMultipart("alternative")
        if message.body_text:
            body.attach(MIMEText(message.body_text, "plain", "utf-8"))
        if message.body_html:
            body.attach(MIMEText(message.body_html, "html", "utf-8"))
        msg.attach(body)

        for attachment in message.attachments:
            part = MIMEApplication(attachment.content, _subtype=attachment.subtype)
            part.replace_header("Content-Type", f"{attachment.content_type}; name=\"{attachment.filename}\"")
            part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
            msg.attach(part)

        return msg

    def send(self, message: EmailMessage) -> DeliveryResult:
        """
        Send email via SMTP.

        Args:
            message: Email message to send

        Returns:
            DeliveryResult with status
        """
        if not self.is_configured():
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message="SMTP not configured (missing SMTP_HOST)",
                error_code="NOT_CONFIGURED",
            )

        message.validate()
        from_email = message.from_email or self.settings.from_email
        s = self.settings

        try:
            msg = self.build_mime(message)

            if s.use_ssl:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(s.host, s.port, context=context, timeout=s.timeout) as server:
                    if s.username and s.password:
                        server.login(s.username, s.password)
                    server.sendmail(from_email, [message.to], msg.as_string())
            else:
                with smtplib.SMTP(s.host, s.port, timeout=s.timeout) as server:
                    if s.use_tls:
                        context = ssl.create_default_context()
                        server.starttls(context=context)
                    if s.username and s.password:
                        server.login(s.username, s.password)
                    server.sendmail(from_email, [message.to], msg.as_string())

            logger.info(f"SMTP: Email sent to {message.to}")

            return DeliveryResult(
                success=True,
                status=DeliveryStatus.SENT,
                message_id=f"smtp-{uuid.uuid4()}",
                provider=self.provider_name,
            )

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP auth error: {e}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message=f"SMTP authentication failed: {e}",
                error_code="AUTH_ERROR",
            )
        except smtplib.SMTPRecipientsRefused as e:
            logger.error(f"SMTP recipients refused: {e}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.BOUNCED,
                provider=self.provider_name,
                error_message=f"Recipients refused: {e}",
                error_code="RECIPIENTS_REFUSED",
            )
        except smtplib.SMTPException as e:
            logger.error(f"SMTP error: {e}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message=str(e),
                error_code="SMTP_ERROR",
            )
        except OSError as e:
            logger.error(f"SMTP connection error: {e}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message=str(e),
                error_code="CONNECTION_ERROR",
            )
