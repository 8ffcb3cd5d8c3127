# index_mcp/routes/mcp.py

"""MCP Transport Endpoints

GET  <path>/sse             open an event stream; first event names the POST URL
POST <path>?sessionId=...   dispatch in the background, response goes to the stream
POST <path>                 dispatch and answer in the HTTP body
"""

from typing import Optional
import asyncio
import json
import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(event: str, data: str) -> str:
    """Frame one server-sent event"""
    lines = "".join(f"data: {line}\n" for line in data.split("\n"))
    return f"event: {event}\n{lines}\n"


def build_router(endpoint_path: str) -> APIRouter:
    """
    Create the transport router mounted at endpoint_path

    Args:
        endpoint_path: Base path such as "/index-mcp"
    """
    router = APIRouter(prefix=endpoint_path, tags=["mcp"])

    @router.get("/sse")
    async def open_stream(request: Request):
        """
        SSE stream

        Sends an "endpoint" event, then one "message" event per JSON-RPC
        response routed to this session. Idle streams get a ping comment.
        """
        server = request.app.state.mcp_server
        session = server.sessions.create()
        keepalive = server.settings.SSE_KEEPALIVE_SECONDS

        async def event_stream():
            try:
                yield format_sse("endpoint", f"{endpoint_path}?sessionId={session.session_id}")
                while True:
                    try:
                        message = await session.next_message(keepalive)
                    except asyncio.TimeoutError:
                        yield ": ping\n\n"
                        continue
                    if message is None:
                        break
                    yield format_sse("message", json.dumps(message))
            finally:
                server.sessions.close_session(session.session_id)

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers=SSE_HEADERS
        )

    async def post_message(request: Request, sessionId: Optional[str]) -> Response:
        server = request.app.state.mcp_server
        raw = await request.body()

        if sessionId is None:
            response = await server.handler.handle_body(raw)
            if response is None:
                return Response(status_code=202)
            return JSONResponse(content=response)

        if server.sessions.get(sessionId) is None:
            logger.warning(f"POST for unknown session {sessionId}")
            return JSONResponse(
                content={"error": "Session not found", "sessionId": sessionId},
                status_code=404
            )

        server.submit(sessionId, raw)
        return Response(status_code=202)

    @router.post("")
    async def post_endpoint(request: Request, sessionId: Optional[str] = Query(default=None)):
        """JSON-RPC message endpoint"""
        return await post_message(request, sessionId)

    @router.post("/sse")
    async def post_sse_endpoint(request: Request, sessionId: Optional[str] = Query(default=None)):
        """Same as the message endpoint, for clients that POST to the stream URL"""
        return await post_message(request, sessionId)

    return router
