"""SMTP implementation of the MailSender port."""

import asyncio
import html
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage

from speedcoding_config.settings import Settings
from speedcoding_identity.application.ports import MailSender
from speedcoding_identity.exceptions import MailDeliveryError

logger = logging.getLogger(__name__)


def describe_hours(hours: int) -> str:
    """Render a token lifetime for an email body ("one hour", "24 hours")."""
    return "one hour" if hours == 1 else f"{hours} hours"


@dataclass(frozen=True)
class _Template:
    subject: str
    heading: str
    # ``{validity}`` is replaced with the token lifetime
    intro: str
    button: str
    footer: str

    def text(self, username: str, link: str, validity: str) -> str:
        intro = self.intro.format(validity=validity)
        return (
            f"Hi {username},\n\n{intro}\n\n{link}\n\n{self.footer}\n\n"
            "The SpeedCoding team\n"
        )

    def html(self, username: str, link: str, validity: str) -> str:
        intro = self.intro.format(validity=validity)
        name = html.escape(username)
        href = html.escape(link)
        return f"""<!DOCTYPE html>
<html>
<body style="font-family: sans-serif; background: #f4f5f7; padding: 24px;">
  <div style="max-width: 560px; margin: 0 auto; background: #fff; padding: 32px; border-radius: 6px;">
    <h2 style="margin-top: 0;">{self.heading}</h2>
    <p>Hi {name},</p>
    <p>{intro}</p>
    <p style="text-align: center; margin: 28px 0;">
      <a href="{href}" style="background: #1d4ed8; color: #fff; padding: 12px 24px; border-radius: 4px; text-decoration: none;">{self.button}</a>
    </p>
    <p style="font-size: 13px; color: #555;">If the button does not work, open this address:<br>{href}</p>
    <p style="font-size: 13px; color: #888;">{self.footer}</p>
  </div>
</body>
</html>
"""


VERIFICATION = _Template(
    subject="Verify your SpeedCoding account",
    heading="Confirm your email address",
    intro="Welcome to SpeedCoding! Open the link below within {validity} to "
    "confirm your email address.",
    button="Verify email",
    footer="If you did not sign up, you can ignore this message.",
)

PASSWORD_RESET = _Template(
    subject="Reset your SpeedCoding password",
    heading="Password reset",
    intro="Someone asked to reset the password of your SpeedCoding account. "
    "Open the link below within {validity} to choose a new one.",
    button="Choose a new password",
    footer="If this was not you, ignore this message; your password stays unchanged.",
)


class SmtpMailSender(MailSender):
    """MailSender delivering through an SMTP relay.

    smtplib blocks, so every delivery runs in a worker thread. With SMTP
    disabled the link is written to the log instead, which keeps local
    development usable without a relay.
    """

    def __init__(self, settings: Settings):
        self._settings = settings

    async def send_verification_email(
        self,
        to_email: str,
        username: str,
        verification_link: str,
    ) -> None:
        validity = describe_hours(self._settings.verification_token_expire_hours)
        await self._deliver(VERIFICATION, to_email, username, verification_link, validity)

    async def send_password_reset_email(
        self,
        to_email: str,
        username: str,
        reset_link: str,
    ) -> None:
        validity = describe_hours(self._settings.reset_token_expire_hours)
        await self._deliver(PASSWORD_RESET, to_email, username, reset_link, validity)

    async def _deliver(  # noqa: PLR0913
        self,
        template: _Template,
        to_email: str,
        username: str,
        link: str,
        validity: str,
    ) -> None:
        if not self._settings.smtp_enabled:
            logger.warning(
                "SMTP disabled, not sending %r to %s (link: %s)",
                template.subject,
                to_email,
                link,
            )
            return

        message = self._build_message(template, to_email, username, link, validity)
        await asyncio.to_thread(self._send, message)

    def _build_message(  # noqa: PLR0913
        self,
        template: _Template,
        to_email: str,
        username: str,
        link: str,
        validity: str,
    ) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = template.subject
        message["From"] = f"{self._settings.smtp_from_name} <{self._settings.smtp_from_email}>"
        message["To"] = to_email
        message.set_content(template.text(username, link, validity))
        message.add_alternative(template.html(username, link, validity), subtype="html")
        return message

    def _connect(self) -> smtplib.SMTP:
        settings = self._settings
        if settings.smtp_use_tls and not settings.smtp_starttls:
            # Implicit TLS, usually port 465
            return smtplib.SMTP_SSL(
                settings.smtp_host,
                settings.smtp_port,
                context=ssl.create_default_context(),
            )
        client = smtplib.SMTP(settings.smtp_host, settings.smtp_port)
        if settings.smtp_starttls:
            client.starttls(context=ssl.create_default_context())
        return client

    def _send(self, message: EmailMessage) -> None:
        settings = self._settings
        if not settings.smtp_host:
            raise MailDeliveryError("SMTP host not configured")

        try:
            with self._connect() as client:
                if settings.smtp_user:
                    password = (
                        settings.smtp_password.get_secret_value()
                        if settings.smtp_password
                        else ""
                    )
                    client.login(settings.smtp_user, password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send %r to %s: %s", message["Subject"], message["To"], e)
            raise MailDeliveryError(f"Failed to send email: {e}") from e

        logger.info("Sent %r to %s", message["Subject"], message["To"])
