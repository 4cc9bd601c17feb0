from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import api_router
from .config import settings
from .database import engine, Base
from .errors import AppException, Errors, ErrorLevel
from .events.producer import email_event_producer
from . import models  # noqa: F401  регистрирует таблицы в Base.metadata

# Настройка логирования
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    # Startup
    logger.info("🚀 Starting Shop Service...")

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Database tables created")

        await email_event_producer.start()
        logger.info("✅ Kafka producer started")

        logger.info("🎉 Shop Service started successfully!")

        yield

    except Exception as e:
        logger.error(f"❌ Failed to start Shop Service: {e}")
        raise

    # Shutdown
    logger.info("🛑 Shutting down Shop Service...")

    try:
        await email_event_producer.stop()
        logger.info("✅ Kafka producer stopped")

        await engine.dispose()
        logger.info("✅ Database connection closed")

        logger.info("👋 Shop Service shut down complete")

    except Exception as e:
        logger.error(f"❌ Error during shutdown: {e}")


app = FastAPI(
    title=settings.app_name,
    description="E-commerce API: пользователи, каталог, корзины и заказы",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


def flatten_validation_errors(errors) -> list:
    """Ошибки pydantic в плоский список строк "поле.путь: сообщение" """
    messages = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "request"
        messages.append(f"{field}: {error.get('msg')}")
    return messages


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Доменные ошибки в стандартном конверте"""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(f"❌ {request.method} {request.url.path} -> {exc.code} {exc.description}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Ошибки валидации запроса"""
    messages = flatten_validation_errors(exc.errors())
    logger.warning(f"⚠️ Validation failed for {request.method} {request.url.path}: {messages}")
    error = AppException(Errors.VALIDATION_KO, data=messages)
    return JSONResponse(status_code=error.status_code, content=error.to_response())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP ошибки фреймворка (404 маршрута, 405 и т.д.)"""
    logger.warning(f"⚠️ HTTP {exc.status_code} for {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "errorCode": exc.status_code,
            "errorLevel": ErrorLevel.ERROR.value,
            "errorDescription": str(exc.detail),
            "data": None,
        },
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Глобальный обработчик исключений"""
    logger.error(f"❌ Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    error = AppException(Errors.INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=error.status_code, content=error.to_response())


@app.get("/health")
async def health_check():
    """Проверка состояния сервиса"""
    try:
        return {
            "status": "healthy",
            "service": "shop-service",
            "version": "1.0.0",
            "kafka_producer": "running" if email_event_producer.producer is not None else "stopped"
        }
    except Exception as e:
        logger.error(f"❌ Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unhealthy")


@app.get("/")
async def root():
    """Корневой endpoint"""
    return {
        "message": "Shop Service API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "shop_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
