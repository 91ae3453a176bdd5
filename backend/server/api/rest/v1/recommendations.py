from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi import Request
from fastapi.responses import StreamingResponse

from application.ports.recommendation_stream_port import RecommendationStreamPort
from application.recommendation import MoodRecommendationService
from config.settings import SSE_HEARTBEAT_S
from infrastructure.streaming.sse import HEARTBEAT_FRAME, format_sse, iter_with_heartbeat
from infrastructure.utils.event_logger import EventLogger
from server.api.rest.dependencies import (
    get_mood_service,
    get_recommendation_runner,
    get_usage_tracker,
)
from server.models.schemas import RecommendationRequest, RecommendationResponse
from server.models.stream_events import normalize_stream_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["recommendations-v1"])


@router.post("/recommendations/stream")
async def recommendations_stream(
    raw_request: Request,
    request: RecommendationRequest,
    runner: RecommendationStreamPort = Depends(get_recommendation_runner),
) -> StreamingResponse:
    """流式推荐接口：start -> step* -> final -> done（SSE）"""

    async def event_generator():
        request_id = str(uuid.uuid4())
        flow = EventLogger(logger, "[recommendations]", base_fields={"request_id": request_id})
        flow.info("start", query_chars=len(request.query))

        # SSE 第一帧：告知前端 request_id
        yield format_sse({"status": "start", "request_id": request_id})

        events = iter_with_heartbeat(runner.stream(request.query), max(float(SSE_HEARTBEAT_S), 1.0))
        steps = 0
        try:
            async for event in events:
                # 客户端断连：停止写 SSE，并关闭下游生成器
                if await raw_request.is_disconnected():
                    flow.warning("client_disconnected", steps=steps)
                    return
                if event is None:
                    yield HEARTBEAT_FRAME
                    continue

                payload = normalize_stream_event(event)
                if payload.get("status") == "step":
                    steps += 1
                elif payload.get("status") == "error":
                    flow.warning("run_error", node=payload.get("node"), message=payload.get("message"))
                yield format_sse(payload)
        except Exception as exc:
            flow.exception("failed", steps=steps)
            yield format_sse({"status": "error", "message": str(exc) or exc.__class__.__name__})
        finally:
            # Closing the heartbeat wrapper cancels the pending read and closes the run.
            await events.aclose()

        flow.info("done", steps=steps)
        yield format_sse({"status": "done", "request_id": request_id})

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/recommendations", response_model=RecommendationResponse)
async def recommend(
    request: RecommendationRequest,
    service: MoodRecommendationService = Depends(get_mood_service),
) -> Dict[str, Any]:
    """Non-streaming free-text recommendation with the ranked list parsed out."""
    result = await service.recommend(request.query)
    return result.to_dict()


@router.get("/usage")
async def get_usage(tracker=Depends(get_usage_tracker)) -> Dict[str, Any]:
    return tracker.get_usage_stats().to_dict()
