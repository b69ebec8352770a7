"""Discussion thread endpoints, including the live message stream."""

import asyncio
import json
from typing import AsyncGenerator

from fastapi import APIRouter, status
from fastapi.responses import StreamingResponse

from examquiz.core import chat
from examquiz.utils.validators import ExamQuizError
from examquiz.web.errors import http_error
from examquiz.web.message_broker import get_message_broker
from examquiz.web.schemas import (
    MessageCreate,
    MessageResponse,
    StatusResponse,
    ThreadCreate,
    ThreadResponse,
)

router = APIRouter(prefix="/api", tags=["threads"])

KEEPALIVE_SECONDS = 30.0


@router.post("/threads", response_model=ThreadResponse, status_code=status.HTTP_201_CREATED)
async def create_thread(data: ThreadCreate) -> ThreadResponse:
    """Open a thread on a subject, optionally with a first message."""
    try:
        thread = chat.create_thread(
            title=data.title,
            subject_id=data.subject_id,
            created_by_id=data.created_by_id,
            created_by_name=data.created_by_name,
            grade=data.grade,
            initial_message=data.initial_message,
        )
    except ExamQuizError as e:
        raise http_error(e) from e

    return ThreadResponse.model_validate(thread)


@router.get("/subjects/{subject_id}/threads", response_model=list[ThreadResponse])
async def list_threads(subject_id: int) -> list[ThreadResponse]:
    """Threads of a subject, newest first."""
    return [ThreadResponse.model_validate(t) for t in chat.list_threads(subject_id)]


@router.get("/threads/{thread_id}", response_model=ThreadResponse)
async def get_thread(thread_id: int) -> ThreadResponse:
    try:
        return ThreadResponse.model_validate(chat.get_thread(thread_id))
    except ExamQuizError as e:
        raise http_error(e) from e


@router.delete("/threads/{thread_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_thread(thread_id: int) -> None:
    """Delete a thread and its messages; open streams are closed."""
    try:
        chat.delete_thread(thread_id)
    except ExamQuizError as e:
        raise http_error(e) from e

    await get_message_broker().close_thread(thread_id)


@router.get("/threads/{thread_id}/messages", response_model=list[MessageResponse])
async def list_messages(thread_id: int) -> list[MessageResponse]:
    """Messages of a thread, oldest first."""
    try:
        messages = chat.list_messages(thread_id)
    except ExamQuizError as e:
        raise http_error(e) from e

    return [MessageResponse.model_validate(m) for m in messages]


@router.post(
    "/threads/{thread_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(thread_id: int, data: MessageCreate) -> MessageResponse:
    """Post a message and push it to live subscribers."""
    try:
        message = chat.post_message(thread_id, data.author_uid, data.text, data.user_name)
    except ExamQuizError as e:
        raise http_error(e) from e

    response = MessageResponse.model_validate(message)
    await get_message_broker().publish(thread_id, response.model_dump())
    return response


@router.post("/messages/{message_id}/report", response_model=StatusResponse)
async def report_message(message_id: int) -> StatusResponse:
    try:
        chat.report_message(message_id)
    except ExamQuizError as e:
        raise http_error(e) from e

    return StatusResponse(message="Message reported")


@router.get("/messages/reported", response_model=list[MessageResponse])
async def reported_messages() -> list[MessageResponse]:
    """Reported messages for moderation, newest first."""
    return [MessageResponse.model_validate(m) for m in chat.reported_messages()]


async def _event_generator(
    thread_id: int,
    queue: asyncio.Queue,
    keepalive: float = KEEPALIVE_SECONDS,
) -> AsyncGenerator[str, None]:
    """Generate SSE events for a thread."""
    broker = get_message_broker()
    try:
        while True:
            try:
                message = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield "event: keepalive\ndata: ping\n\n"
                continue

            if message is None:
                yield "event: close\ndata: Thread deleted\n\n"
                return

            yield f"event: message\ndata: {json.dumps(message)}\n\n"
    finally:
        await broker.unsubscribe(thread_id, queue)


@router.get("/threads/{thread_id}/events")
async def stream_events(thread_id: int) -> StreamingResponse:
    """Stream new messages of a thread using Server-Sent Events.

    Events:
    - message: A new message as JSON
    - keepalive: Sent every 30s to keep connection alive
    - close: The thread was deleted
    """
    try:
        chat.get_thread(thread_id)
    except ExamQuizError as e:
        raise http_error(e) from e

    queue = await get_message_broker().subscribe(thread_id)
    return StreamingResponse(
        _event_generator(thread_id, queue),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
