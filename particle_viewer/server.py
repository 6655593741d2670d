"""
Headless relay: an external detector POSTs hand landmarks, the server runs the
particle physics at a fixed tick and broadcasts every frame to websocket viewers.

  POST /hand   {"hands": [[{"x":..,"y":..,"z":..} * 21], ...]}
  POST /view   {"detail": 6, "color": "#00ffff", "rotation_x": 45}
  GET  /frame  latest positions + view parameters
  GET  /ws     frame stream
"""

import asyncio
import json
import time

from aiohttp import web

from controls import ViewParams
from landmarks import LandmarkSnapshot
from params import Params
from physics import ParticleShape

HOST = "0.0.0.0"
PORT = 8765
TICK_HZ = 60.0

# Viewport of the browser-side camera (fov 45, distance 8, 16:9)
VIEWPORT = (11.78, 6.63)

clients_key = web.AppKey("clients", set)
snapshot_key = web.AppKey("snapshot", LandmarkSnapshot)
shape_key = web.AppKey("shape", ParticleShape)
view_key = web.AppKey("view", ViewParams)
ticker_key = web.AppKey("ticker", asyncio.Task)


def frame_payload(app) -> dict:
    shape = app[shape_key]
    view = app[view_key]
    return {
        "type": "frame",
        "count": shape.count,
        "detail": shape.detail,
        "color": view.color,
        "rotation": [float(a) for a in shape.rotation],
        "positions": shape.positions.round(4).ravel().tolist(),
    }


def tick(app, dt: float) -> None:
    shape = app[shape_key]
    view = app[view_key]
    shape.set_detail(view.detail)
    shape.set_rotation_target(view.rotation_x)
    shape.step(dt, app[snapshot_key].latest(), VIEWPORT)


async def _broadcast(app, data: dict):
    clients = app[clients_key]
    if not clients:
        return
    payload = json.dumps(data)
    dead = []
    # Viewers may (dis)connect while a send is suspended
    for ws in list(clients):
        try:
            await ws.send_str(payload)
        except (ConnectionError, RuntimeError):
            dead.append(ws)
    for ws in dead:
        clients.discard(ws)


async def _ticker(app):
    period = 1.0 / TICK_HZ
    prev = time.monotonic()
    while True:
        await asyncio.sleep(period)
        now = time.monotonic()
        try:
            tick(app, now - prev)
            if app[shape_key].needs_update:
                await _broadcast(app, frame_payload(app))
                app[shape_key].needs_update = False
        except Exception as e:
            print(f"⚠️  Tick failed: {e!r}")
        prev = now


async def _run_ticker(app):
    app[ticker_key] = asyncio.create_task(_ticker(app))
    yield
    app[ticker_key].cancel()
    try:
        await app[ticker_key]
    except asyncio.CancelledError:
        pass


async def _read_json(request):
    try:
        data = await request.json()
    except json.JSONDecodeError as e:
        raise web.HTTPBadRequest(text=f"Invalid JSON: {e}")
    if not isinstance(data, dict):
        raise web.HTTPBadRequest(text="Expected a JSON object")
    return data


async def ws_handler(request):
    ws = web.WebSocketResponse()
    await ws.prepare(request)

    clients = request.app[clients_key]
    clients.add(ws)
    print("Viewer connected:", len(clients))

    try:
        await ws.send_json(frame_payload(request.app))
        async for _ in ws:
            pass
    finally:
        clients.discard(ws)
        print("Viewer disconnected:", len(clients))

    return ws


async def post_hand(request):
    data = await _read_json(request)
    snapshot = request.app[snapshot_key]
    snapshot.publish(data)
    return web.json_response({"ok": True, "hands": len(snapshot.latest()), "viewers": len(request.app[clients_key])})


async def post_view(request):
    data = await _read_json(request)
    view = request.app[view_key]
    try:
        if "detail" in data:
            view.set_detail(data["detail"])
        if "rotation_x" in data:
            view.set_rotation(data["rotation_x"])
        if "color" in data:
            view.set_color(data["color"])
    except (TypeError, ValueError, OverflowError) as e:
        raise web.HTTPBadRequest(text=str(e))
    return web.json_response({"ok": True, "detail": view.detail, "color": view.color, "rotation_x": view.rotation_x})


async def get_frame(request):
    return web.json_response(frame_payload(request.app))


def make_app(params=None, ticker=True):
    app = web.Application()
    app[clients_key] = set()
    app[snapshot_key] = LandmarkSnapshot()
    app[view_key] = ViewParams()
    app[shape_key] = ParticleShape(params or Params(), detail=app[view_key].detail)

    app.router.add_get("/ws", ws_handler)
    app.router.add_get("/frame", get_frame)
    app.router.add_post("/hand", post_hand)
    app.router.add_post("/view", post_view)

    if ticker:
        app.cleanup_ctx.append(_run_ticker)
    return app


if __name__ == "__main__":
    web.run_app(make_app(), host=HOST, port=PORT)
