"""Outbound mail port."""

from abc import ABC, abstractmethod


class MailSender(ABC):
    """Delivers account emails.

    Links are fully formatted by the caller; implementations only render
    and deliver them.
    """

    @abstractmethod
    async def send_verification_email(
        self,
        to_email: str,
        username: str,
        verification_link: str,
    ) -> None:
        """Send the email-verification message.

        Raises
        ------
        MailDeliveryError
            If the message could not be delivered
        """

    @abstractmethod
    async def send_password_reset_email(
        self,
        to_email: str,
        username: str,
        reset_link: str,
    ) -> None:
        """Send the password-reset message.

        Raises
        ------
        MailDeliveryError
            If the message could not be delivered
        """
