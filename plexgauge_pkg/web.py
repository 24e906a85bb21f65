import logging
import threading
from typing import List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST, REGISTRY

logger = logging.getLogger(__name__)

app = FastAPI()

scheduler_instance = None
collector_instance = None
registry = REGISTRY

def set_scheduler(scheduler, metrics_registry=REGISTRY):
    global scheduler_instance, collector_instance, registry
    scheduler_instance = scheduler
    collector_instance = scheduler.collector if scheduler else None
    registry = metrics_registry

class RefreshSummary(BaseModel):
    start_time: str
    duration_seconds: float
    added: int
    updated: int
    removed: int
    unchanged: int
    retained: int
    total: int
    scanned_sections: List[str]
    skipped_sections: List[str]

class CollectorStatus(BaseModel):
    is_refreshing: bool
    tracked_items: int
    last_refresh: Optional[str] = None
    last_error: Optional[str] = None
    last_stats: Optional[RefreshSummary] = None

@app.get("/health")
async def health_check():
    return {"status": "ok"} if collector_instance else JSONResponse(status_code=503, content={"status": "init"})

@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

@app.get("/api/status", response_model=CollectorStatus)
async def get_status():
    if not collector_instance:
        return JSONResponse({"error": "init"}, status_code=503)
    snapshot = collector_instance.snapshot
    stats = collector_instance.last_stats
    return CollectorStatus(
        is_refreshing=collector_instance.is_refreshing,
        tracked_items=len(snapshot),
        last_refresh=snapshot.last_refresh.isoformat() if snapshot.last_refresh else None,
        last_error=collector_instance.last_error,
        last_stats=RefreshSummary(**stats.to_dict()) if stats else None,
    )

@app.post("/api/refresh")
async def trigger_refresh():
    if not collector_instance:
        return JSONResponse({"error": "init"}, status_code=503)
    if collector_instance.is_refreshing:
        return JSONResponse({"error": "busy"}, status_code=409)
    # Same path as scheduled cycles: failures are logged, counted and notified
    threading.Thread(target=scheduler_instance.run_refresh, daemon=True).start()
    return {"status": "success"}

def run_web_server(scheduler, host="0.0.0.0", port=9090):
    import uvicorn
    set_scheduler(scheduler)
    uvicorn.run(app, host=host, port=port, log_level="error")
