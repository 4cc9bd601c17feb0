import html
import logging
from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib

from ..config import settings
from ..schemas import SendEmailMessage

logger = logging.getLogger(__name__)


def build_message(data: SendEmailMessage) -> EmailMessage:
    """Текстовая версия письма и HTML с сообщением в <h1>"""
    message = EmailMessage()
    message["From"] = formataddr((settings.smtp_from_name, settings.smtp_from_email))
    message["To"] = data.email
    message["Subject"] = data.subject
    message.set_content(data.message)
    message.add_alternative(f"<h1>{html.escape(data.message)}</h1>", subtype="html")
    return message


class Mailer:
    """Отправка писем через SMTP relay"""

    async def send(self, data: SendEmailMessage):
        message = build_message(data)
        try:
            await aiosmtplib.send(
                message,
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_user,
                password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
                start_tls=settings.smtp_start_tls if not settings.smtp_use_tls else False,
                timeout=settings.smtp_timeout
            )
            logger.info(f"📧 Email '{data.subject}' sent to {data.email}")
        except aiosmtplib.SMTPException as e:
            logger.error(f"❌ SMTP error sending '{data.subject}' to {data.email}: {e}")
            raise


mailer = Mailer()
