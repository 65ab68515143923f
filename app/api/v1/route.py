import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.model.processing.processing_response import (
    OutcomeKind,
    PollingStatusResponse,
    ProcessingResponse,
)
from app.service.complaint.errors import TransientInfra
from app.service.complaint.processor import ComplaintProcessor
from app.service.scheduler.polling import PollingScheduler

logger = logging.getLogger(__name__)

api_router = APIRouter()


def get_processor(request: Request) -> ComplaintProcessor:
    return request.app.state.processor


def get_scheduler(request: Request) -> PollingScheduler:
    return request.app.state.scheduler


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@api_router.post("/processing", response_model=ProcessingResponse, status_code=201)
async def process_next_complaint(processor: ComplaintProcessor = Depends(get_processor)):
    try:
        outcome = await processor.process_next()
    except TransientInfra as e:
        logger.warning("manual processing failed reason=%s", e.reason)
        return _failure(503, e.reason)

    if outcome.kind is OutcomeKind.EMPTY:
        return Response(status_code=204)
    if outcome.kind is OutcomeKind.REJECTED:
        return _failure(400, outcome.reason)
    if outcome.kind is OutcomeKind.REQUEUED:
        return _failure(503, outcome.reason)

    message = "Complaint created successfully"
    if outcome.is_duplicate:
        message = "Complaint created and flagged as a possible duplicate"
    return ProcessingResponse(success=True, message=message, data=outcome.complaint)


@api_router.post("/processing/start")
async def start_polling(scheduler: PollingScheduler = Depends(get_scheduler)):
    started = scheduler.start()
    message = "Complaint polling started" if started else "Complaint polling already running"
    return {"success": True, "message": message}


@api_router.post("/processing/stop")
async def stop_polling(scheduler: PollingScheduler = Depends(get_scheduler)):
    scheduler.stop()
    return {"success": True, "message": "Complaint polling stopped"}


@api_router.get("/processing/status", response_model=PollingStatusResponse)
async def polling_status(
    processor: ComplaintProcessor = Depends(get_processor),
    scheduler: PollingScheduler = Depends(get_scheduler),
):
    try:
        queues = await processor.get_queue_status()
    except TransientInfra:
        logger.warning("queue status unavailable", exc_info=True)
        return PollingStatusResponse(is_polling=scheduler.status(), error="Failed to get queue status")
    return PollingStatusResponse(is_polling=scheduler.status(), queues=queues)
