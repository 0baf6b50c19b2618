"""
Local development collector that accepts what the shipper sends.
"""

from __future__ import annotations

import json
import threading
from collections import deque
from typing import Any, Deque, Dict, List

from fastapi import FastAPI, Request, Response

from seeker_client.logging import setup_logging

log = setup_logging("seeker_client.collector")

DEFAULT_MAX_EVENTS = 1000


def create_app(max_events: int = DEFAULT_MAX_EVENTS) -> FastAPI:
    app = FastAPI(title="Seeker Dev Collector", version="0.1.0")
    received: Deque[Dict[str, Any]] = deque(maxlen=max_events)
    lock = threading.Lock()

    @app.get("/v1/health")
    def health():
        return {"ok": True}

    @app.post("/api/v1/logs")
    async def ingest(request: Request):
        body = await request.body()
        if not body:
            return Response(status_code=400, content="empty body")
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return Response(status_code=400, content="invalid json")

        items: List[Any] = payload if isinstance(payload, list) else [payload]
        events = [i for i in items if isinstance(i, dict)]
        if len(events) != len(items):
            return Response(status_code=400, content="events must be JSON objects")

        with lock:
            received.extend(events)
        for e in events:
            log.info(
                "event level=%s message=%s", e.get("level"), e.get("message")
            )
        return {"ok": True, "received": len(events)}

    @app.get("/api/v1/logs")
    def list_events():
        with lock:
            return {"events": list(received)}

    return app


app = create_app()
