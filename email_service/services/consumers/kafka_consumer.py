import json
import logging
import asyncio
from typing import Dict, Any, List, Callable, Optional
from aiokafka import AIOKafkaConsumer

from ...config import settings

logger = logging.getLogger(__name__)


class KafkaEventConsumer:
    """Kafka Consumer задач на отправку писем"""

    def __init__(self):
        self.consumer: Optional[AIOKafkaConsumer] = None
        self.handlers: Dict[str, List[Callable]] = {}
        self.running = False
        self.processed = 0
        self.failed = 0

    async def start(self):
        """Запуск Kafka Consumer"""
        try:
            self.consumer = AIOKafkaConsumer(
                *settings.kafka_topics,
                bootstrap_servers=settings.kafka_bootstrap_servers,
                group_id=settings.kafka_group_id,
                auto_offset_reset=settings.kafka_auto_offset_reset,
                enable_auto_commit=False,  # offset подтверждается после обработки
                value_deserializer=lambda m: json.loads(m.decode('utf-8'))
            )

            await self.consumer.start()
            logger.info(f"✅ Kafka consumer started for topics: {settings.kafka_topics}")

        except Exception as e:
            logger.error(f"❌ Failed to start Kafka consumer: {e}")
            raise

    async def stop(self):
        """Остановка Kafka Consumer"""
        self.running = False
        if self.consumer:
            try:
                await self.consumer.stop()
                logger.info("✅ Kafka consumer stopped")
            except Exception as e:
                logger.error(f"❌ Error stopping Kafka consumer: {e}")

    def register_handler(self, event_type: str, handler: Callable):
        """Регистрация обработчика для типа события"""
        self.handlers.setdefault(event_type, []).append(handler)
        logger.info(f"✅ Registered handler for event type: {event_type}")

    async def consume_events(self):
        """Основной цикл потребления событий"""
        if not self.consumer:
            raise RuntimeError("Consumer not started")

        self.running = True
        logger.info("🔄 Starting event consumption...")

        try:
            async for message in self.consumer:
                if not self.running:
                    break

                logger.info(
                    f"📨 Received event from {message.topic} "
                    f"(partition: {message.partition}, offset: {message.offset})"
                )
                await self.handle_message(message.value, message.topic)
                await self.consumer.commit()

        except Exception as e:
            logger.error(f"❌ Error in consume loop: {e}")
            raise

    async def handle_message(self, event_data: Any, topic: str) -> bool:
        """
        Обрабатывает одно сообщение.

        Ошибка обработчика логируется и не останавливает цикл. Offset
        подтверждается только после обработки, поэтому доставка at-least-once:
        падение до commit приведет к повторной отправке письма.
        """
        try:
            ok = await self._process_event(event_data, topic)
        except Exception as e:
            logger.error(f"❌ Error processing message from {topic}: {e}")
            ok = False

        if ok:
            self.processed += 1
        else:
            self.failed += 1
        return ok

    async def _process_event(self, event_data: Any, topic: str) -> bool:
        """Обработка отдельного события"""
        if not isinstance(event_data, dict):
            logger.warning(f"⚠️ Malformed event received from {topic}: {event_data!r}")
            return False

        event_type = event_data.get('event_type')

        if not event_type:
            logger.warning(f"⚠️ Event without type received from {topic}")
            return False

        handlers = self.handlers.get(event_type, [])

        if not handlers:
            logger.warning(f"⚠️ No handlers registered for event type: {event_type}")
            return False

        # Выполняем все обработчики параллельно
        results = await asyncio.gather(
            *(handler(event_data) for handler in handlers),
            return_exceptions=True
        )

        ok = True
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(f"❌ Handler {handler.__name__} failed: {result}")
                ok = False
            else:
                logger.debug(f"✅ Handler {handler.__name__} completed successfully")
        return ok


# Глобальный экземпляр consumer'а
kafka_consumer = KafkaEventConsumer()
