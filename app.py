"""
Subtitle Pipeline Backend - Unified Application Entry Point
Mounts the subtitle service and the progress WebSocket under a single FastAPI application
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from database import init_database
from services.subtitles import app as subtitles_module
from services.subtitles.worker import SubtitleWorker
from services.websocket_progress import websocket_manager
from shared.utils import config, setup_logging

logger = setup_logging("subtitle-backend")

subtitles_app = subtitles_module.app


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_database()

    worker: SubtitleWorker | None = None
    worker_task: asyncio.Task | None = None
    if config.get("subtitle_inprocess_worker", True):
        worker = SubtitleWorker(subtitles_module.orchestrator)
        worker_task = asyncio.create_task(worker.run_forever())
        logger.info("In-process subtitle worker started")

    try:
        yield
    finally:
        if worker and worker_task:
            worker.stop()
            await worker_task


app = FastAPI(
    title="Subtitle Pipeline API",
    description="""
    Transcribes training videos, builds SRT subtitles and translates them into multiple languages.

    Service routes are organized by tag; live progress is pushed over `/ws/progress`.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Health",
            "description": "Service health and status endpoints",
        },
        {
            "name": "Subtitles",
            "description": "Subtitle processing service - mounted at /api/v1/subtitles",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes to exclude (internal FastAPI docs routes)
EXCLUDED_PATHS = {"/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc"}

# Include Subtitles routes with prefix
for route in subtitles_app.routes:
    if hasattr(route, "path") and hasattr(route, "endpoint"):
        # Skip internal documentation routes
        if route.path in EXCLUDED_PATHS:
            continue
        route_kwargs = {
            "path": f"/api/v1/subtitles{route.path}",
            "endpoint": route.endpoint,
            "methods": route.methods,
            "tags": ["Subtitles"],
        }
        if hasattr(route, "name"):
            route_kwargs["name"] = f"subtitles_{route.name}"
        if hasattr(route, "response_model"):
            route_kwargs["response_model"] = route.response_model
        if getattr(route, "status_code", None):
            route_kwargs["status_code"] = route.status_code
        app.add_api_route(**route_kwargs)


@app.websocket("/ws/progress")
async def websocket_progress_endpoint(websocket: WebSocket):
    """WebSocket endpoint for subtitle job progress updates."""
    client_id = websocket.query_params.get("client_id")
    assigned_client_id = await websocket_manager.connect(websocket, client_id)
    await websocket.send_json({"event": "connected", "client_id": assigned_client_id})

    try:
        while True:
            message = await websocket.receive_json()
            action = message.get("action")

            if action == "subscribe":
                job_id = message.get("job_id")
                if not job_id:
                    await websocket.send_json(
                        {"event": "error", "message": "Missing job_id for subscribe"}
                    )
                    continue
                await websocket_manager.subscribe(assigned_client_id, job_id)
                await websocket.send_json({"event": "subscribed", "job_id": job_id})
            elif action == "unsubscribe":
                job_id = message.get("job_id")
                await websocket_manager.unsubscribe(assigned_client_id, job_id)
                await websocket.send_json({"event": "unsubscribed", "job_id": job_id})
            elif action == "ping":
                await websocket.send_json({"event": "pong"})
            else:
                await websocket.send_json(
                    {"event": "error", "message": f"Unknown action: {action}"}
                )
    except WebSocketDisconnect:
        await websocket_manager.disconnect(assigned_client_id, close=False)
    except Exception:
        await websocket_manager.disconnect(assigned_client_id)
        raise


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with service information and API navigation"""
    return {
        "service": "Subtitle Pipeline API",
        "version": "1.0.0",
        "services": {
            "subtitles": {
                "base_url": "/api/v1/subtitles",
                "health": "/api/v1/subtitles/health",
                "languages": "/api/v1/subtitles/languages",
            },
            "progress": {
                "websocket": "/ws/progress",
            },
        },
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json",
        },
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for all services"""
    return {
        "status": "healthy",
        "services": {
            "api_gateway": "operational",
            "subtitles": "operational",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Subtitle Pipeline Backend on http://0.0.0.0:8000")
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
