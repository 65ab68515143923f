import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import httpx
from fastapi import FastAPI
from openai import OpenAI

import app.config.config as configs
from app.api.v1.route import api_router as MainRouter
from app.client.db.redis import build_redis_client
from app.client.llm.chatgpt import SubcategoryClassifier
from app.client.moderation.moderation import ModerationClient
from app.db import models  # noqa: F401
from app.db.session import Base, build_engine, build_session_factory
from app.service.badge.badge import BadgeService
from app.service.complaint.processor import ComplaintProcessor
from app.service.complaint.repository import ComplaintRepository
from app.service.complaint.validation import ValidationPipeline
from app.service.queue.processed_queue import ProcessedComplaintQueue
from app.service.queue.queue_store import RedisQueueStore
from app.service.scheduler.polling import PollingScheduler

logging.basicConfig(
    level=configs.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


async def startup(app: FastAPI) -> None:
    engine = build_engine(configs.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    session_factory = build_session_factory(engine)

    redis_client = build_redis_client(configs.REDIS_URL)
    http_client = httpx.AsyncClient(timeout=configs.MODERATION_TIMEOUT)
    openai_client = OpenAI(api_key=configs.OPENAI_API_KEY) if configs.OPENAI_API_KEY else None
    if openai_client is None:
        logger.warning("OPENAI_API_KEY not set, sub-category standardization disabled")

    store = RedisQueueStore(redis_client)
    repository = ComplaintRepository(session_factory)
    processor = ComplaintProcessor(
        queue_store=store,
        pipeline=ValidationPipeline(
            repository,
            ModerationClient(http_client, configs.MODERATION_URL),
            SubcategoryClassifier(openai_client, configs.MODEL),
        ),
        repository=repository,
        processed_queue=ProcessedComplaintQueue(store, configs.PROCESSED_QUEUE),
        badge_service=BadgeService(session_factory),
        registration_queue=configs.REGISTRATION_QUEUE,
        processing_queue=configs.PROCESSING_QUEUE,
        duplicate_window=timedelta(hours=configs.DUPLICATE_WINDOW_HOURS),
    )
    scheduler = PollingScheduler(processor, configs.POLL_INTERVAL_SECONDS)

    app.state.engine = engine
    app.state.redis = redis_client
    app.state.http_client = http_client
    app.state.openai_client = openai_client
    app.state.processor = processor
    app.state.scheduler = scheduler

    if configs.AUTO_START_POLLING:
        scheduler.start()


async def shutdown(app: FastAPI) -> None:
    await app.state.scheduler.shutdown()
    await app.state.processor.wait_for_background_tasks()
    await app.state.http_client.aclose()
    if app.state.openai_client is not None:
        app.state.openai_client.close()
    app.state.redis.close()
    app.state.engine.dispose()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup(app)
    try:
        yield
    finally:
        await shutdown(app)


app = FastAPI(title="complaint_queue", version="0.1.0", lifespan=lifespan)
app.include_router(router=MainRouter, prefix="/api/v1")


@app.get("/health")
def health() -> dict:
    return {
        "status": "OK",
        "service": "complaint-queue",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
