from __future__ import annotations

from aiohttp import web

HEALTH_TEXT = "Discord Bot Server is running and operational."


async def handle_health(_request: web.Request) -> web.Response:
    return web.Response(text=HEALTH_TEXT, status=200)


def build_health_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/", handle_health)
    app.router.add_get("/health", handle_health)
    return app


async def start_health_server(port: int, host: str = "0.0.0.0") -> web.AppRunner:
    runner = web.AppRunner(build_health_app())
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    print(f"[health] web server listening on port {port}")
    return runner
