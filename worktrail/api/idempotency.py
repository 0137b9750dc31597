"""Route class that replays cached responses for fingerprinted POST endpoints.

Routers built with ``APIRouter(route_class=IdempotentRoute)`` get the cache;
everything else is untouched. Requests without a valid token pass straight
through (the handler's own auth then rejects them).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.background import BackgroundTasks

from worktrail.api.deps import token_from_request
from worktrail.services.auth import user_id_from_token
from worktrail.services.idempotency import IdempotencyStore, fingerprint

logger = logging.getLogger(__name__)

REPLAY_HEADER = "Idempotent-Replayed"


def _response_payload(response: Response) -> Any:
    body = getattr(response, "body", None)
    if not body:
        return None
    return json.loads(body)


class IdempotentRoute(APIRoute):
    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_handler = super().get_route_handler()

        async def handler(request: Request) -> Response:
            store: IdempotencyStore | None = getattr(request.app.state, "idempotency_store", None)
            token = token_from_request(request)
            user_id = user_id_from_token(token) if token else None
            if store is None or user_id is None:
                return await original_handler(request)

            key = fingerprint(user_id, request.method, request.url.path, await request.body())
            try:
                cached = await run_in_threadpool(store.lookup, key)
            except Exception:
                logger.exception("Idempotency lookup failed; continuing without cache")
                cached = None
            if cached is not None:
                return JSONResponse(
                    status_code=cached.status_code,
                    content=cached.response_body,
                    headers={REPLAY_HEADER: "true"},
                )

            response = await original_handler(request)
            if 200 <= response.status_code < 300:
                try:
                    payload = _response_payload(response)
                except ValueError:
                    logger.warning("Not caching non-JSON response for %s", request.url.path)
                    return response
                # Saved after the response is sent; the client never waits on it
                tasks = BackgroundTasks([response.background] if response.background else None)
                tasks.add_task(store.save, key, response.status_code, payload)
                response.background = tasks
            return response

        return handler
