"""WebSocket endpoint for live job stage updates."""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..services.job_manager import UnknownJobError, job_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


class ConnectionManager:
    """Tracks open sockets and the job listeners each one registered."""

    def __init__(self):
        self.active: dict[WebSocket, list[tuple[str, object]]] = {}

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.active[ws] = []

    def subscribe(self, ws: WebSocket, job_id: str):
        async def job_cb(record):
            try:
                await ws.send_json({
                    "type": "job_progress",
                    "job_id": record.id,
                    "status": record.status.value,
                    "stage": record.stage.value,
                })
            except Exception as e:
                logger.debug(f"Dropping job listener for {record.id}: {e}")
                self.disconnect(ws)

        job_manager.add_progress_listener(job_id, job_cb)
        self.active.setdefault(ws, []).append((job_id, job_cb))

    def disconnect(self, ws: WebSocket):
        for job_id, cb in self.active.pop(ws, []):
            job_manager.remove_progress_listener(job_id, cb)


manager = ConnectionManager()


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await manager.connect(ws)

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue

            if msg.get("action") == "subscribe_job":
                job_id = msg.get("job_id")
                if not job_id:
                    continue
                try:
                    manager.subscribe(ws, job_id)
                except UnknownJobError:
                    await ws.send_json({"type": "error", "detail": f"Unknown job {job_id}"})

    except WebSocketDisconnect:
        manager.disconnect(ws)
    except Exception as e:
        logger.debug(f"WebSocket closed: {e}")
        manager.disconnect(ws)
