"""
Delivery transports.

A Deliverer takes one DeliveryRequest and reports success or failure.
Deliverers never raise for transport problems; they return a failed
DeliveryResult carrying the DeliveryError message.
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path
from typing import Protocol

from ..config.settings import SmtpSettings
from .errors import DeliveryError
from .models import DeliveryRequest, DeliveryResult

logger = logging.getLogger(__name__)

ATTACHMENT_MAINTYPE = "application"
ATTACHMENT_SUBTYPE = "epub+zip"
MESSAGE_BODY = "Here's your comic!"


class Deliverer(Protocol):
    """Delivery collaborator protocol."""

    def deliver(self, request: DeliveryRequest) -> DeliveryResult:
        """Deliver one package. Called exactly once per package."""
        ...


class NullDeliverer:
    """Dry-run deliverer: logs the request and reports success."""

    def deliver(self, request: DeliveryRequest) -> DeliveryResult:
        logger.info(f"[dry-run] Would deliver {request.artifact_path} as '{request.subject_hint}'")
        return DeliveryResult(
            artifact_path=request.artifact_path,
            success=True,
            delivered_at=datetime.now(),
        )


class SmtpDeliverer:
    """
    Sends each package as an e-mail attachment.

    Port 587 uses STARTTLS; use_ssl=True switches to implicit TLS (port 465).
    """

    def __init__(self, settings: SmtpSettings):
        self.settings = settings

    def deliver(self, request: DeliveryRequest) -> DeliveryResult:
        try:
            message = self.build_message(request)
            self._send(message, request.artifact_path)
        except DeliveryError as e:
            logger.error(str(e))
            return DeliveryResult(
                artifact_path=request.artifact_path, success=False, error_message=str(e)
            )

        logger.info(f"Delivered {Path(request.artifact_path).name} to {self.settings.to_email}")
        return DeliveryResult(
            artifact_path=request.artifact_path,
            success=True,
            delivered_at=datetime.now(),
        )

    def build_message(self, request: DeliveryRequest) -> EmailMessage:
        """
        Build the multipart message for one package.

        Raises:
            DeliveryError: If the package cannot be read
        """
        path = Path(request.artifact_path)
        try:
            payload = path.read_bytes()
        except OSError as e:
            raise DeliveryError(request.artifact_path, f"cannot read package: {e}") from e

        message = EmailMessage()
        message["From"] = self.settings.from_email
        message["To"] = self.settings.to_email
        message["Subject"] = request.subject_hint
        message.set_content(MESSAGE_BODY)
        message.add_attachment(
            payload,
            maintype=ATTACHMENT_MAINTYPE,
            subtype=ATTACHMENT_SUBTYPE,
            filename=path.name or "attachment.epub",
        )
        return message

    def _send(self, message: EmailMessage, artifact_path: str) -> None:
        settings = self.settings
        context = ssl.create_default_context()
        try:
            if settings.use_ssl:
                with smtplib.SMTP_SSL(
                    settings.server, settings.port, timeout=settings.timeout_seconds, context=context
                ) as client:
                    client.login(settings.username, settings.password)
                    client.send_message(message)
            else:
                with smtplib.SMTP(
                    settings.server, settings.port, timeout=settings.timeout_seconds
                ) as client:
                    client.starttls(context=context)
                    client.login(settings.username, settings.password)
                    client.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(artifact_path, f"SMTP error: {e}") from e
