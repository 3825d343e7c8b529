"""Pytest configuration and shared fixtures."""
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from twitch_overlay.overlay.config import SessionConfig


class FakeSocketServer:
    """socketio.AsyncServer 대역: 핸들러 등록과 sid별 수신함만 흉내낸다."""

    def __init__(self):
        self.handlers: Dict[str, Callable] = {}
        self.inboxes: Dict[str, List[Tuple[str, Any]]] = {}
        self.emitted: List[Tuple[str, Any, Optional[str]]] = []

    def on(self, event, handler=None):
        self.handlers[event] = handler

    async def emit(self, event, data=None, to=None, **kwargs):
        self.emitted.append((event, data, to))
        targets = [to] if to is not None else list(self.inboxes)
        for sid in targets:
            if sid in self.inboxes:
                self.inboxes[sid].append((event, data))

    async def connect_client(self, sid: str):
        self.inboxes[sid] = []
        await self.handlers["connect"](sid, {})

    async def disconnect_client(self, sid: str):
        self.inboxes.pop(sid, None)
        await self.handlers["disconnect"](sid)


@pytest.fixture
def fonts_dir(tmp_path):
    """Return an empty fonts directory."""
    d = tmp_path / "fonts"
    d.mkdir()
    return d


@pytest.fixture
def session_config():
    return SessionConfig(
        viewport_height=1080,
        message_seconds=30,
        message_font="Comic-Sans",
        name_font="Arial",
    )


@pytest.fixture
def fake_sio():
    return FakeSocketServer()
