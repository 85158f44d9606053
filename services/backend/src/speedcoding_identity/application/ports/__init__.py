"""Ports implemented by infrastructure adapters."""

from speedcoding_identity.application.ports.mail_sender import MailSender

__all__ = ["MailSender"]
