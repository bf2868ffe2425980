"""
SMTP email sender adapter - Implements EmailSender protocol over smtplib.

Sends the verification code as a multipart message (plain text + HTML).
Port 465 uses implicit TLS; any other port upgrades with STARTTLS.
Transport failures surface as DeliveryFailed; nothing is retried here.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage

from src.domain.exceptions import DeliveryFailed

logger = logging.getLogger(__name__)


def _build_html_body(service_name: str, code: str, ttl_minutes: int) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; line-height: 1.6;">
    <h2 style="color: #333;">Hello from {service_name},</h2>
    <p>Thank you for starting the verification process for your account.
       Please use the following code to complete your registration:</p>
    <div style="text-align: center; margin: 20px 0; padding: 10px; background-color: #f0f0f0; border-radius: 8px;">
        <strong style="font-size: 24px; color: #007bff;">{code}</strong>
    </div>
    <p>This code is valid for {ttl_minutes} minutes. Please do not share this code with anyone.</p>
    <p>If you did not request this, please ignore this email.</p>
    <p>Best regards,<br>{service_name} Team</p>
</div>
"""


class SmtpEmailSender:
    """
    Implements EmailSender protocol via SMTP.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        from_address: str,
        from_name: str = "otpgate",
        ttl_seconds: int = 300,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._from_address = from_address
        self._from_name = from_name
        self._ttl_minutes = max(1, ttl_seconds // 60)
        self._timeout = timeout

    def build_message(self, email: str, code: str) -> EmailMessage:
        """Compose the verification email for a recipient."""
        msg = EmailMessage()
        msg["From"] = f"{self._from_name} <{self._from_address}>"
        msg["To"] = email
        msg["Subject"] = f"{self._from_name}: Your Verification Code"
        msg.set_content(
            f"Your verification code is {code}.\n\n"
            f"This code is valid for {self._ttl_minutes} minutes. "
            "Please do not share this code with anyone.\n"
            "If you did not request this, please ignore this email.\n"
        )
        msg.add_alternative(
            _build_html_body(self._from_name, code, self._ttl_minutes), subtype="html"
        )
        return msg

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Deliver the verification code.

        Raises:
            DeliveryFailed: On any SMTP or socket error
        """
        msg = self.build_message(email, code)
        context = ssl.create_default_context()

        try:
            if self._port == 465:
                with smtplib.SMTP_SSL(
                    self._host, self._port, context=context, timeout=self._timeout
                ) as server:
                    self._deliver(server, msg, email)
            else:
                with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                    server.starttls(context=context)
                    self._deliver(server, msg, email)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send verification email to %s: %s", email, e)
            raise DeliveryFailed(email) from e

        logger.info("Verification email sent to %s", email)

    def _deliver(self, server: smtplib.SMTP, msg: EmailMessage, email: str) -> None:
        if self._username and self._password:
            server.login(self._username, self._password)
        server.send_message(msg, from_addr=self._from_address, to_addrs=[email])
