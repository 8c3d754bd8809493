import asyncio
import json
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import Response, StreamingResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from .broadcaster import Broadcaster, Subscription
from .colors import ColorDerivationError, average_color_from_url
from .commands import MatchController
from .config import Config
from .state import MatchState, StateStore, UpdateRequest
from .storage import InvalidSnapshot, SnapshotError, SnapshotNotFound, SnapshotStorage
from .timer import TimerDriver
from .utils import sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _controller(request: Request) -> MatchController:
    return request.app.state.controller


async def _json_body(request: Request) -> dict:
    """Request body as a JSON object, or {} when there is none."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _parse_snapshot(data: bytes) -> MatchState:
    try:
        return MatchState.model_validate_json(data)
    except ValidationError as exc:
        logger.warning("Rejected snapshot: %d invalid field(s)", exc.error_count())
        raise HTTPException(status_code=400, detail="Invalid JSON.")


# === State ===
@router.get("/state")
async def get_state(request: Request):
    return request.app.state.store.read().to_dict()


@router.get("/export")
async def export_state(request: Request):
    return Response(
        content=request.app.state.store.read_json(),
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=scoreboard-state.json"},
    )


@router.post("/update")
async def update_state(payload: UpdateRequest, request: Request):
    # Timer fields are not part of UpdateRequest; they only move via /api/timer/*
    return _controller(request).update_fields(payload).to_dict()


@router.post("/import")
async def import_state(request: Request):
    """Replace the whole state from a JSON body or an uploaded file (field 'file')."""
    if request.headers.get("content-type", "").startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise HTTPException(status_code=400, detail="No file uploaded (field 'file').")
        data = await upload.read()
    else:
        data = await request.body()
    return _controller(request).replace_state(_parse_snapshot(data)).to_dict()


# === Clock & Sides ===
@router.post("/timer/start")
async def start_timer(request: Request):
    return _controller(request).start().to_dict()


@router.post("/timer/pause")
async def pause_timer(request: Request):
    return _controller(request).pause().to_dict()


@router.post("/timer/reset")
async def reset_timer(request: Request):
    return _controller(request).reset().to_dict()


@router.post("/timer/secondHalf")
async def start_second_half(request: Request):
    return _controller(request).start_second_half().to_dict()


@router.post("/swapSides")
async def swap_sides(request: Request):
    return _controller(request).swap_sides().to_dict()


# === Saved Snapshots ===
@router.post("/save")
async def save_state(request: Request, filename: str = ""):
    if not filename:
        filename = str((await _json_body(request)).get("filename") or "")
    storage: SnapshotStorage = request.app.state.storage
    try:
        name = await asyncio.to_thread(storage.save, request.app.state.store.read(), filename)
    except OSError as exc:
        logger.error("Saving snapshot failed: %s", exc)
        raise HTTPException(status_code=500, detail="Save failed.")
    return {"saved": name}


@router.get("/saves")
async def list_saves(request: Request):
    try:
        return await asyncio.to_thread(request.app.state.storage.list_saves)
    except OSError as exc:
        logger.error("Listing snapshots failed: %s", exc)
        raise HTTPException(status_code=500, detail="Cannot read the saves directory.")


@router.api_route("/load", methods=["GET", "POST"])
async def load_saved(request: Request, filename: str = ""):
    if not sanitize_filename(filename):
        raise HTTPException(status_code=400, detail="Missing filename parameter.")
    try:
        state = await asyncio.to_thread(request.app.state.storage.load, filename)
    except SnapshotNotFound:
        raise HTTPException(status_code=404, detail="File not found.")
    except InvalidSnapshot as exc:
        logger.warning("Rejected snapshot %s", exc)
        raise HTTPException(status_code=400, detail="Invalid JSON.")
    except SnapshotError as exc:
        logger.error("Reading snapshot failed: %s", exc)
        raise HTTPException(status_code=500, detail="Cannot read file.")
    return _controller(request).replace_state(state).to_dict()


# === Logo Colours ===
async def _color_or_empty(url: str, timeout: float) -> str:
    if not url:
        return ""
    try:
        return await average_color_from_url(url, timeout)
    except ColorDerivationError as exc:
        logger.warning("Colour derivation failed: %s", exc)
        return ""


@router.api_route("/colors/derive", methods=["GET", "POST"])
async def derive_colors(
    request: Request,
    url: str = "",
    home_logo: str = Query("", alias="homeLogo"),
    away_logo: str = Query("", alias="awayLogo"),
):
    if not (url or home_logo or away_logo):
        body = await _json_body(request)
        url = str(body.get("url") or "")
        home_logo = str(body.get("homeLogo") or "")
        away_logo = str(body.get("awayLogo") or "")
    timeout = request.app.state.config.LOGO_FETCH_TIMEOUT_SEC

    if url:
        try:
            return {"color": await average_color_from_url(url, timeout)}
        except ColorDerivationError as exc:
            logger.warning("Colour derivation failed: %s", exc)
            raise HTTPException(status_code=400, detail="Cannot load the image or compute its colour.")

    if home_logo or away_logo:
        primary, secondary = await asyncio.gather(
            _color_or_empty(home_logo, timeout),
            _color_or_empty(away_logo, timeout),
        )
        return {"primaryColor": primary, "secondaryColor": secondary}

    raise HTTPException(status_code=400, detail="Provide ?url= or ?homeLogo=&awayLogo=.")


# === Viewer Streams ===
@router.get("/stream")
async def stream(request: Request):
    """Server-Sent Events: the current state on connect, then every broadcast."""
    broadcaster: Broadcaster = request.app.state.broadcaster

    async def events():
        subscription = broadcaster.subscribe()
        try:
            async for message in subscription:
                yield f"data: {message}\n\n"
        finally:
            broadcaster.unsubscribe(subscription)

    return StreamingResponse(events(), media_type="text/event-stream", headers={"Cache-Control": "no-cache"})


async def _forward(subscription: Subscription, websocket: WebSocket):
    async for message in subscription:
        await websocket.send_text(message)
    # Only reached when the broadcaster dropped us for falling behind
    await websocket.close()


async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()
    broadcaster: Broadcaster = websocket.app.state.broadcaster
    controller: MatchController = websocket.app.state.controller

    subscription = broadcaster.subscribe()
    sender = asyncio.create_task(_forward(subscription, websocket))
    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Ignoring malformed WebSocket message")
                continue
            controller.handle_message(msg)
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unsubscribe(subscription)
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)


# === FastAPI Application ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Start the match clock background task
    task = asyncio.create_task(app.state.timer.run())
    try:
        yield
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


def create_app(config_class=Config, store: Optional[StateStore] = None) -> FastAPI:
    app = FastAPI(title="Scoreboard", lifespan=lifespan)

    store = store or StateStore()
    broadcaster = Broadcaster(store, queue_size=config_class.SUBSCRIBER_QUEUE_SIZE)
    storage = SnapshotStorage(config_class.SAVES_DIR)
    storage.ensure_directory()

    app.state.config = config_class
    app.state.store = store
    app.state.broadcaster = broadcaster
    app.state.controller = MatchController(store, broadcaster)
    app.state.timer = TimerDriver(store, broadcaster, interval=config_class.TIMER_INTERVAL_SEC)
    app.state.storage = storage

    app.include_router(router)
    app.add_api_websocket_route("/ws", websocket_endpoint)

    app.mount("/saved", StaticFiles(directory=storage.directory), name="saved")
    if os.path.isdir(config_class.CONTROL_DIR):
        app.mount("/control", StaticFiles(directory=config_class.CONTROL_DIR, html=True), name="control")
    # Catch-all, so it goes last
    if os.path.isdir(config_class.STATIC_DIR):
        app.mount("/", StaticFiles(directory=config_class.STATIC_DIR, html=True), name="display")
    return app
