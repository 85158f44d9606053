from speedcoding_identity.infrastructure.email.smtp_mail_sender import SmtpMailSender

__all__ = ["SmtpMailSender"]
