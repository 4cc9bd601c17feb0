import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaConnectionError, KafkaTimeoutError

from ..config import settings

logger = logging.getLogger(__name__)

SEND_EMAIL_EVENT = "send_email"


class EmailEventProducer:
    """Producer задач на отправку писем в очередь send_email"""

    def __init__(self):
        self.producer: Optional[AIOKafkaProducer] = None
        self.bootstrap_servers = settings.kafka_bootstrap_servers
        self.topic = settings.email_topic

    async def start(self):
        """Запуск Kafka продюсера"""
        try:
            self.producer = AIOKafkaProducer(
                bootstrap_servers=self.bootstrap_servers,
                value_serializer=lambda v: json.dumps(v).encode('utf-8'),
                key_serializer=lambda k: k.encode('utf-8') if k else None,
                retry_backoff_ms=1000,
                request_timeout_ms=30000,
                acks='all',
                enable_idempotence=True
            )
            await self.producer.start()
            logger.info("✅ Email event producer started successfully")
        except Exception as e:
            logger.error(f"❌ Failed to start email event producer: {e}")
            raise

    async def stop(self):
        """Остановка Kafka продюсера"""
        if self.producer:
            try:
                await self.producer.stop()
                logger.info("✅ Email event producer stopped")
            except Exception as e:
                logger.error(f"❌ Error stopping email event producer: {e}")
            finally:
                self.producer = None

    async def publish_event(
            self,
            topic: str,
            event_type: str,
            payload: Dict[str, Any],
            key: Optional[str] = None
    ) -> bool:
        """
        Публикация события в Kafka

        Args:
            topic: Название топика
            event_type: Тип события
            payload: Данные события
            key: Ключ для партиционирования (опционально)

        Returns:
            bool: True если успешно отправлено
        """
        if not self.producer:
            logger.error(f"❌ Email event producer not started, dropping {event_type}")
            return False

        try:
            event = {
                "event_id": str(uuid.uuid4()),
                "event_type": event_type,
                "event_timestamp": datetime.now(timezone.utc).isoformat(),
                "producer_service": "shop-service",
                "payload": payload
            }

            record_metadata = await self.producer.send_and_wait(topic, value=event, key=key)

            logger.info(
                f"✅ Event published: {event_type} to {topic} "
                f"(partition: {record_metadata.partition}, offset: {record_metadata.offset})"
            )
            return True

        except KafkaTimeoutError:
            logger.error(f"❌ Timeout publishing event {event_type} to {topic}")
            return False
        except KafkaConnectionError:
            logger.error(f"❌ Connection error publishing event {event_type} to {topic}")
            return False
        except Exception as e:
            logger.error(f"❌ Error publishing event {event_type} to {topic}: {e}")
            return False

    async def send_email_task(self, email: str, subject: str, message: str) -> bool:
        """Fire-and-forget: ошибка отправки не должна ломать запрос"""
        logger.info(f"📤 Sending email task '{subject}' to {email}")
        return await self.publish_event(
            topic=self.topic,
            event_type=SEND_EMAIL_EVENT,
            payload={
                "email": email,
                "subject": subject,
                "message": message
            },
            key=email
        )


# Глобальный экземпляр продюсера
email_event_producer = EmailEventProducer()
