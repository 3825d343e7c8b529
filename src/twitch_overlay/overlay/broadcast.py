"""
Socket.IO 브로드캐스트 채널.

- 연결 시: 해당 클라이언트에게만 settings 1회 전송
- 채팅 수신 시: 연결된 모든 클라이언트에게 chatMessage 전송 (재전송/큐 없음)
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import socketio

from ..chat.base_client import ChatMessage
from ..chat.chat_parser import ChatEvent, ChatParser
from .config import SessionConfig

logger = logging.getLogger(__name__)

SETTINGS_EVENT = "settings"
CHAT_MESSAGE_EVENT = "chatMessage"


def _get_socketio_cors_origins():
    """CORS 허용 origin. 기본은 * (OBS 브라우저 소스는 로컬)."""
    origins = os.getenv("OVERLAY_ALLOWED_ORIGINS", "")
    if not origins:
        return "*"
    return [o.strip() for o in origins.split(",") if o.strip()]


def create_socketio_server() -> socketio.AsyncServer:
    # always_connect: connect 핸들러에서 보낸 settings가 연결 승인 뒤에 도착하도록
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=_get_socketio_cors_origins(),
        always_connect=True,
        logger=False,
        engineio_logger=False,
    )


class OverlayBroadcaster:
    """SessionConfig를 들고 오버레이 클라이언트에 이벤트를 뿌린다."""

    def __init__(
        self,
        config: SessionConfig,
        sio: Optional[socketio.AsyncServer] = None,
        parser: Optional[ChatParser] = None,
    ):
        self.config = config
        self.sio = sio or create_socketio_server()
        self.parser = parser or ChatParser()
        self._sids: set[str] = set()

        self.sio.on("connect", self.on_connect)
        self.sio.on("disconnect", self.on_disconnect)

    @property
    def connected_count(self) -> int:
        return len(self._sids)

    async def on_connect(self, sid: str, environ: Dict[str, Any], auth: Optional[Dict] = None):
        """새 연결: 이 클라이언트에게만 settings 전송"""
        self._sids.add(sid)
        logger.info("Socket.IO client connected: %s (total=%d)", sid, self.connected_count)
        await self.sio.emit(SETTINGS_EVENT, self.config.to_payload(), to=sid)

    async def on_disconnect(self, sid: str, reason: Any = None):
        self._sids.discard(sid)
        logger.info("Socket.IO client disconnected: %s (total=%d)", sid, self.connected_count)

    async def publish(self, event: ChatEvent):
        """모든 연결에 chatMessage 전송. 전송 실패는 로그만 남김."""
        try:
            await self.sio.emit(CHAT_MESSAGE_EVENT, event.to_dict())
        except Exception as e:
            logger.error("chatMessage 전송 실패: %s", e, exc_info=True)

    async def handle_chat_message(self, message: ChatMessage):
        """채팅 클라이언트 on_message 콜백. 정규화 실패한 메시지는 버린다."""
        event = self.parser.parse(message)
        if event is None:
            return
        logger.debug("chatMessage %s: %s", event.username, event.message)
        await self.publish(event)
