import logging
from typing import Dict, Any

from pydantic import ValidationError

from ...schemas import SendEmailMessage
from ..mailer import mailer

logger = logging.getLogger(__name__)


class EmailEventHandlers:
    """Обработчики событий send_email"""

    @staticmethod
    async def handle_send_email(event_data: Dict[str, Any]):
        """Валидирует payload и отправляет письмо"""
        payload = event_data.get('payload', {})

        try:
            data = SendEmailMessage.model_validate(payload)
        except ValidationError as e:
            logger.error(f"❌ Invalid send_email payload in event {event_data.get('event_id')}: {e}")
            raise

        logger.info(f"✉️ Sending '{data.subject}' to {data.email}")
        await mailer.send(data)
