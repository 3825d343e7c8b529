"""
방송 오버레이용 HTTP + Socket.IO 서버.

- GET /             오버레이 HTML (public/index.html 있으면 그걸 사용)
- GET /fonts/{name} fonts/ 폴더의 폰트 파일
- GET /api/settings 현재 SessionConfig (settings 이벤트와 동일)
- /socket.io        settings, chatMessage 이벤트
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import socketio
from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from .broadcast import OverlayBroadcaster
from .fonts import FONT_EXTENSIONS, FontResolver, content_type_for, split_font_request

logger = logging.getLogger(__name__)

CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    "script-src 'self' 'unsafe-inline' https://cdn.socket.io",
    "style-src 'self' 'unsafe-inline'",
    "font-src 'self'",
    "img-src 'self' https://static-cdn.jtvnw.net https://cdn.jtvnw.net",
    "connect-src 'self' ws:",
])

OVERLAY_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Chat Overlay</title>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body { background: transparent; overflow: hidden; }
    #chat { position: absolute; bottom: 0; left: 0; right: 0; padding: 10px; display: flex; flex-direction: column; justify-content: flex-end; }
    .msg { color: #fff; font-size: 22px; margin-top: 6px; text-shadow: 0 0 3px #000; transition: opacity 0.5s ease; word-break: break-word; }
    .msg .name { font-weight: bold; margin-right: 6px; }
    .msg img { height: 1.2em; vertical-align: middle; }
  </style>
  <script src="https://cdn.socket.io/4.7.5/socket.io.min.js"></script>
</head>
<body>
  <div id="chat"></div>
  <script>
    var settings = { viewportHeight: 600, messageSeconds: 30, messageFont: "Arial", namefont: "Arial" };

    function fontFace(name) {
      if (!name || name.toLowerCase() === "arial") return "";
      return "@font-face { font-family: '" + name + "'; src: url('/fonts/" + encodeURIComponent(name) + "'); }";
    }

    function escapeHtml(text) {
      return (text || "").replace(/&/g, "&amp;").replace(/</g, "&lt;").replace(/>/g, "&gt;").replace(/"/g, "&quot;").replace(/'/g, "&#039;");
    }

    function renderText(message, emotes) {
      var chars = Array.from(message);
      var spans = (emotes || []).slice().sort(function(a, b) { return a.start - b.start; });
      var html = "", pos = 0;
      spans.forEach(function(e) {
        if (e.start < pos) return;
        html += escapeHtml(chars.slice(pos, e.start).join(""));
        html += '<img src="https://static-cdn.jtvnw.net/emoticons/v2/' + e.id + '/default/dark/1.0">';
        pos = e.end + 1;
      });
      return html + escapeHtml(chars.slice(pos).join(""));
    }

    var socket = io();
    socket.on("settings", function(s) {
      settings = s;
      var chat = document.getElementById("chat");
      chat.style.height = s.viewportHeight + "px";
      var style = document.createElement("style");
      style.textContent = fontFace(s.messageFont) + fontFace(s.namefont) +
        ".msg { font-family: '" + s.messageFont + "', Arial, sans-serif; }" +
        ".msg .name { font-family: '" + s.namefont + "', Arial, sans-serif; }";
      document.head.appendChild(style);
    });
    socket.on("chatMessage", function(m) {
      var el = document.createElement("div");
      el.className = "msg";
      el.innerHTML = '<span class="name" style="color:' + escapeHtml(m.color) + '">' + escapeHtml(m.username) + '</span>' + renderText(m.message, m.emotes);
      document.getElementById("chat").appendChild(el);
      setTimeout(function() {
        el.style.opacity = "0";
        setTimeout(function() { if (el.parentNode) el.parentNode.removeChild(el); }, 500);
      }, settings.messageSeconds * 1000);
    });
  </script>
</body>
</html>
"""


def create_fastapi_app(
    broadcaster: OverlayBroadcaster,
    fonts_dir: Union[Path, str],
    public_dir: Optional[Union[Path, str]] = None,
) -> FastAPI:
    """오버레이 HTTP 라우트만 가진 FastAPI 앱"""
    resolver = FontResolver(fonts_dir)
    public = Path(public_dir) if public_dir else None

    app = FastAPI(title="Twitch Chat Overlay", docs_url=None, redoc_url=None)
    app.state.broadcaster = broadcaster
    app.state.font_resolver = resolver

    @app.middleware("http")
    async def content_security_policy(request: Request, call_next):
        response = await call_next(request)
        response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        return response

    if public is not None and public.is_dir():
        app.mount("/static", StaticFiles(directory=str(public)), name="static")

    @app.get("/", response_class=HTMLResponse)
    def overlay_page():
        """OBS 브라우저 소스에 넣을 URL."""
        if public is not None and (public / "index.html").is_file():
            logger.info("Serving overlay: %s", public / "index.html")
            return FileResponse(public / "index.html", media_type="text/html")
        return HTMLResponse(OVERLAY_HTML)

    @app.get("/api/settings")
    def get_settings():
        return JSONResponse(broadcaster.config.to_payload())

    @app.get("/fonts/{font}")
    def get_font(font: str):
        """폰트 파일 스트리밍. 클라이언트가 붙인 확장자는 실제 파일 확장자와 같아야 함."""
        logger.info("Requested font: %s", font)
        name, ext = split_font_request(font)
        extensions = (ext,) if ext else FONT_EXTENSIONS
        path = resolver.find(name, extensions)
        if path is None:
            logger.warning("Font not found: %s in %s", font, resolver.fonts_dir)
            return PlainTextResponse("Font not found", status_code=404)
        logger.info("Serving font: %s", path)
        return FileResponse(path, media_type=content_type_for(path))

    return app


def create_app(
    broadcaster: OverlayBroadcaster,
    fonts_dir: Union[Path, str],
    public_dir: Optional[Union[Path, str]] = None,
) -> socketio.ASGIApp:
    """FastAPI 앱을 Socket.IO ASGI 앱으로 감싼다 (uvicorn에 넘길 앱)."""
    app = create_fastapi_app(broadcaster, fonts_dir, public_dir)
    return socketio.ASGIApp(broadcaster.sio, other_asgi_app=app)
