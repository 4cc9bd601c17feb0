import logging
import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI

from .config import settings
from .events import SEND_EMAIL_EVENT
from .services.consumers.kafka_consumer import kafka_consumer
from .services.handlers.email_handlers import EmailEventHandlers

# Настройка логирования
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def register_handlers():
    kafka_consumer.register_handler(SEND_EMAIL_EVENT, EmailEventHandlers.handle_send_email)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    logger.info("🚀 Starting Email Service...")
    consumer_task = None

    try:
        logger.info("📋 Registering event handlers...")
        register_handlers()

        logger.info("🔌 Starting Kafka consumer...")
        await kafka_consumer.start()

        consumer_task = asyncio.create_task(kafka_consumer.consume_events())

        logger.info("✅ Email Service started successfully!")
        logger.info(f"🎯 Listening to topics: {settings.kafka_topics}")

        yield

    except Exception as e:
        logger.error(f"❌ Failed to start Email Service: {e}")
        raise

    # Shutdown
    logger.info("🛑 Shutting down Email Service...")

    try:
        await kafka_consumer.stop()
        if consumer_task and not consumer_task.done():
            consumer_task.cancel()
            try:
                await consumer_task
            except asyncio.CancelledError:
                pass
    except Exception as e:
        logger.error(f"❌ Error stopping Kafka consumer: {e}")

    logger.info("✅ Email Service shut down successfully!")


app = FastAPI(
    title=settings.app_name,
    description="Микросервис отправки писем из очереди send_email",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan
)


@app.get("/health")
async def health_check():
    """Проверка здоровья сервиса"""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "kafka_consumer": "running" if kafka_consumer.running else "stopped",
        "subscribed_topics": settings.kafka_topics,
        "version": "1.0.0"
    }


@app.get("/stats")
async def get_stats():
    """Статистика обработанных событий"""
    return {
        "consumer_status": "running" if kafka_consumer.running else "stopped",
        "registered_handlers": list(kafka_consumer.handlers.keys()),
        "subscribed_topics": settings.kafka_topics,
        "processed": kafka_consumer.processed,
        "failed": kafka_consumer.failed
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "email_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info"
    )
