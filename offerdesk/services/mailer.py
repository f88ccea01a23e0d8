"""
Outbound email via SMTP.

Set SMTP_HOST (plus SMTP_PORT, SMTP_SECURE, EMAIL_USER, EMAIL_PASS) in .env.
With no SMTP_HOST every send is skipped and reported as Failed("mail disabled").

smtplib is blocking, so sends run in a worker thread.
"""

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr

from offerdesk.settings import Settings

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class Delivered:
    recipient: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed:
    reason: str

    @property
    def ok(self) -> bool:
        return False


Delivery = Delivered | Failed


@dataclass(frozen=True)
class OutgoingMail:
    to: str
    subject: str
    text: str | None = None
    html: str | None = None


class Mailer:
    """SMTP mailer. `send` never raises; it reports the outcome as a Delivery."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.settings.mail_enabled

    async def send(self, mail: OutgoingMail) -> Delivery:
        to = (mail.to or "").strip()
        if not to:
            return Failed("no recipient")
        if not self.enabled:
            logger.debug("SMTP_HOST not set; skipping email to %s", to)
            return Failed("mail disabled")
        try:
            await asyncio.to_thread(self._send_sync, mail)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email to %s failed: %s", to, e)
            return Failed(str(e) or e.__class__.__name__)
        logger.info("Email sent to %s: %s", to, mail.subject)
        return Delivered(recipient=to)

    def _build_message(self, mail: OutgoingMail) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = mail.subject
        msg["From"] = self.settings.mail_from
        msg["To"] = mail.to
        if mail.text:
            msg.attach(MIMEText(mail.text, "plain", "utf-8"))
        if mail.html:
            msg.attach(MIMEText(mail.html, "html", "utf-8"))
        return msg

    def _send_sync(self, mail: OutgoingMail) -> None:
        s = self.settings
        msg = self._build_message(mail)
        smtp_cls = smtplib.SMTP_SSL if s.smtp_secure else smtplib.SMTP
        with smtp_cls(s.smtp_host, s.smtp_port, timeout=10) as server:
            server.ehlo()
            if not s.smtp_secure and server.has_extn("starttls"):
                server.starttls()
                server.ehlo()
            if s.email_user:
                server.login(s.email_user, s.email_pass)
            server.sendmail(parseaddr(s.mail_from)[1] or s.email_user, [mail.to], msg.as_string())
