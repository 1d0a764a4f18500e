"""Feed Socket: WebSocket push channel and new_post ingress.

Invariants:
    - On connect the client receives the full current feed before anything else
    - Every successful create/delete reaches all connected sockets via BroadcastHub
    - new_post events use the same MutationPipeline.create_post as POST /api/posts
    - Bad events (binary frames included) get an error event on that socket
      only; the connection stays open
    - Once the hub drops the subscriber (and closes the socket) the loop ends
    - The subscriber is always unsubscribed when the handler exits

Design Decisions:
    - Attachments arrive base64-encoded (bare or data: URL) inside the JSON event
"""

import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from livefeed.core.domain_types import FeedEventType
from livefeed.core.errors import FeedError, FeedValidationError
from livefeed.core.feed import decode_base64_attachment
from livefeed.schemas.post import SocketPostSubmission
from livefeed.services.broadcast_hub import BroadcastHub
from livefeed.services.feed_runtime import get_hub, get_pipeline
from livefeed.services.mutation_pipeline import MutationPipeline

logger = logging.getLogger(__name__)
router = APIRouter(tags=["feed"])


@router.websocket("/ws")
async def feed_socket(
    websocket: WebSocket,
    hub: BroadcastHub = Depends(get_hub),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    """Subscribe to feed updates; accept new_post submissions."""
    await websocket.accept()
    subscriber = await hub.subscribe(websocket)
    try:
        while subscriber.connected:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            if not subscriber.connected:
                break
            raw = message.get("text")
            if raw is None:
                await _send_error(
                    websocket,
                    FeedValidationError("Binary frames are not supported", field="event"),
                )
                continue
            await handle_client_event(raw, websocket, pipeline)
    except WebSocketDisconnect:
        logger.info(
            "Client closed feed socket", extra={"subscriber_id": subscriber.id},
        )
    finally:
        hub.unsubscribe(subscriber)


async def handle_client_event(
    raw: str, websocket: WebSocket, pipeline: MutationPipeline,
) -> None:
    """Dispatch one inbound event. Errors are answered, not raised."""
    try:
        event = json.loads(raw)
    except ValueError:
        await _send_error(
            websocket, FeedValidationError("Event is not valid JSON", field="event"),
        )
        return

    event_type = event.get("type") if isinstance(event, dict) else None
    if event_type != FeedEventType.NEW_POST.value:
        await _send_error(
            websocket,
            FeedValidationError(f"Unsupported event type: {event_type!r}", field="type"),
        )
        return

    try:
        submission = SocketPostSubmission.model_validate(event.get("data") or {})
        upload = decode_base64_attachment(submission.image, submission.filename)
        await pipeline.create_post(submission, upload)
    except ValidationError as e:
        logger.warning(f"Invalid new_post payload: {e.errors()}")
        await _send_error(
            websocket, FeedValidationError("Invalid new_post payload", field="data"),
        )
    except FeedError as e:
        logger.warning(
            f"new_post rejected: {e.message}", extra={"error_code": e.code},
        )
        await _send_error(websocket, e)


async def _send_error(websocket: WebSocket, error: FeedError) -> None:
    await websocket.send_json(error.to_ws_event())
