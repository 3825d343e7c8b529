"""
방송 오버레이: 트위치 채팅을 OBS 브라우저 소스로 실시간 전달.

- OBS에서 브라우저 소스 URL을 http://127.0.0.1:3005/ 로 설정.
"""

from .broadcast import OverlayBroadcaster
from .config import SessionConfig, StartupOptions, build_session_config
from .fonts import FontResolver
from .server import create_app, create_fastapi_app

__all__ = [
    "OverlayBroadcaster",
    "SessionConfig",
    "StartupOptions",
    "build_session_config",
    "FontResolver",
    "create_app",
    "create_fastapi_app",
]
