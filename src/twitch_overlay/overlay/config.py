"""오버레이 세션 설정. 시작할 때 한 번 만들고 이후 변경하지 않는다."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from ..errors import StartupConfigError
from .fonts import DEFAULT_FONT, FontResolver

_CHANNEL_PATTERN = re.compile(r"[a-zA-Z0-9_]{3,25}")

DEFAULT_PORT = 3005
DEFAULT_SECONDS = 30.0


@dataclass(frozen=True)
class SessionConfig:
    """새 연결마다 settings 이벤트로 보내는 표시 설정"""
    viewport_height: int
    message_seconds: float
    message_font: str = DEFAULT_FONT
    name_font: str = DEFAULT_FONT

    def to_payload(self) -> dict[str, Any]:
        """settings 이벤트 본문 (브라우저 쪽 키 이름)"""
        return {
            "viewportHeight": self.viewport_height,
            "messageSeconds": self.message_seconds,
            "messageFont": self.message_font,
            "namefont": self.name_font,
        }


@dataclass
class StartupOptions:
    """CLI/환경변수에서 받은 시작 파라미터 (검증 전)"""
    username: str
    height: int
    port: int = DEFAULT_PORT
    seconds: float = DEFAULT_SECONDS
    font: str = DEFAULT_FONT
    namefont: str = DEFAULT_FONT

    def validate(self) -> None:
        """
        범위/형식 검사. 문제를 모두 모아서 한 번에 던진다.

        Raises:
            StartupConfigError
        """
        errors = []
        if self.port < 1 or self.port > 65535:
            errors.append("Port must be between 1 and 65535")
        if not self.username or not _CHANNEL_PATTERN.fullmatch(self.username):
            errors.append(
                "Username must be a valid Twitch channel name "
                "(3-25 alphanumeric characters or underscores)"
            )
        if self.height < 100 or self.height > 2160:
            errors.append("Height must be between 100 and 2160 pixels")
        if self.seconds <= 0:
            errors.append("Seconds must be a positive number")
        if errors:
            raise StartupConfigError(errors)


def build_session_config(options: StartupOptions, resolver: FontResolver) -> SessionConfig:
    """
    검증 + 폰트 확인 후 SessionConfig 생성.

    폰트가 없으면 Arial로 대체할 뿐 실패하지 않는다. 범위/형식 오류만 StartupConfigError.
    """
    message_font = resolver.resolve_or_default(options.font, "Font")
    name_font = resolver.resolve_or_default(options.namefont, "Namefont")
    options.validate()
    return SessionConfig(
        viewport_height=options.height,
        message_seconds=options.seconds,
        message_font=message_font,
        name_font=name_font,
    )
