import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from ..models.chat_types import ChatRequest
from ..services.lm_studio_service import (
    UpstreamConnectionError,
    UpstreamStatusError,
    UpstreamStream,
    lm_studio_service,
)
from ..services.request_tracking_service import request_tracking_service
from ..services.stream_decoder import StreamDecoder

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["chat"])


class ChatResponseBody:
    """
    NDJSON body of one chat stream.

    aclose() releases the upstream response and stops tracking the request
    even when the body was never iterated (client gone before the first
    byte). It is idempotent.
    """

    def __init__(self, request_id: str, upstream: UpstreamStream, decoder: StreamDecoder):
        self.request_id = request_id
        self._upstream = upstream
        self._events = decoder.events(upstream)
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        try:
            event = await self._events.__anext__()
        except BaseException:
            await self.aclose()
            raise
        return event.to_ndjson()

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self._events.aclose()
            await self._upstream.aclose()
        finally:
            request_tracking_service.complete_request(self.request_id)


@router.post("/chat")
async def chat(request: ChatRequest) -> StreamingResponse:
    """
    Relay a conversation to LM Studio and stream the reply back.

    Stream format (one JSON object per line):
        {"content": "chunk", "isThinking": true, "stats": {...}, "completed": false}
        {"content": "chunk", "isThinking": false, "stats": {...}, "completed": false}
        {"content": "", "isThinking": false, "stats": {...}, "completed": true}

    With enableThinking=false, thinking chunks are counted in the stats but
    not sent.
    """
    logger.info(f"Thinking mode: {'ON' if request.enable_thinking else 'OFF'}")

    request_id = request_tracking_service.register_request(
        model=request.selected_model, request_id=request.request_id
    )

    try:
        upstream = await lm_studio_service.open_chat_stream(request)
    except UpstreamConnectionError as e:
        request_tracking_service.complete_request(request_id)
        raise HTTPException(
            status_code=503,
            detail={
                "error": "An error occurred while connecting to the LM Studio server.",
                "details": str(e),
            },
        )
    except UpstreamStatusError as e:
        request_tracking_service.complete_request(request_id)
        raise HTTPException(
            status_code=502,
            detail={
                "error": str(e),
                "details": e.body,
                "status_code": e.status_code,
            },
        )

    decoder = StreamDecoder(
        include_reasoning=request.enable_thinking,
        should_stop=lambda: request_tracking_service.is_cancelled(request_id),
    )

    body = ChatResponseBody(request_id, upstream, decoder)

    return StreamingResponse(
        body,
        background=BackgroundTask(body.aclose),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Request-ID": request_id,
        },
    )


@router.post("/chat/{request_id}/cancel")
async def cancel_chat(request_id: str) -> dict[str, object]:
    """
    Cancel an active chat stream.
    The stream stops reading from LM Studio and sends its final stats record.
    """
    if not request_tracking_service.cancel_request(request_id):
        raise HTTPException(status_code=404, detail="Request not found")

    return {"request_id": request_id, "cancelled": True}
