"""
채팅 클라이언트 추상 기본 클래스
채팅 플랫폼 클라이언트가 구현해야 하는 인터페이스 (연결·수신·재연결)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class ChatMessage:
    """채팅 메시지 수신 알림 (channel, tags, message, is_echo)"""
    channel: str
    tags: dict[str, Any]
    message: str
    is_echo: bool = False
    user: str = ""
    timestamp: datetime = field(default_factory=datetime.now)
    platform: str = ""
    message_id: Optional[str] = None
    user_id: Optional[str] = None


MessageCallback = Callable[[ChatMessage], Union[None, Awaitable[None]]]


class ChatClient(ABC):
    """채팅 클라이언트 추상 기본 클래스"""

    def __init__(
        self,
        channel_id: str,
        on_message: Optional[MessageCallback] = None,
        reconnect_delay: float = 5.0,
        max_reconnect_attempts: int = 10
    ):
        """
        Args:
            channel_id: 채널 이름
            on_message: 메시지 수신 시 호출할 콜백 (동기/비동기 모두 가능)
            reconnect_delay: 재연결 지연 시간 (초)
            max_reconnect_attempts: 최대 재연결 시도 횟수
        """
        self.channel_id = channel_id
        self.on_message = on_message
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_attempts = max_reconnect_attempts

        # 연결 상태
        self.is_connected = False
        self.reconnect_attempts = 0
        self._running = False

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """플랫폼 이름 반환 (예: 'twitch')"""

    @abstractmethod
    async def connect(self):
        """플랫폼별 연결 로직 구현"""

    @abstractmethod
    async def disconnect(self):
        """플랫폼별 연결 종료 로직 구현"""

    @abstractmethod
    async def listen(self):
        """메시지 수신 루프 구현"""

    async def _reconnect(self) -> bool:
        """
        재연결 시도 (지수 백오프) - 공통 로직

        Returns:
            False: 최대 시도 횟수 초과 (수신 루프 종료)
            True: 연결 성공, 또는 실패했지만 남은 시도가 있음
        """
        if self.reconnect_attempts >= self.max_reconnect_attempts:
            logger.error(
                f"[{self.platform_name}] 최대 재연결 시도 횟수 "
                f"({self.max_reconnect_attempts}) 초과"
            )
            return False

        delay = self.reconnect_delay * (2 ** self.reconnect_attempts)
        self.reconnect_attempts += 1

        logger.info(
            f"[{self.platform_name}] 재연결 시도 "
            f"{self.reconnect_attempts}/{self.max_reconnect_attempts} "
            f"({delay}초 후)"
        )
        await asyncio.sleep(delay)

        try:
            await self.connect()
            return True
        except Exception as e:
            logger.error(f"[{self.platform_name}] 재연결 실패: {e}")
            return True

    async def start(self):
        """클라이언트 시작. 첫 연결이 실패해도 listen()의 재연결 루프로 넘어간다."""
        try:
            await self.connect()
        except Exception as e:
            logger.error(f"[{self.platform_name}] 첫 연결 실패, 재연결 시도로 전환: {e}")
        await self.listen()

    async def stop(self):
        """클라이언트 중지"""
        self._running = False
        await self.disconnect()

    async def _dispatch(self, message: ChatMessage):
        """on_message 콜백 호출. 콜백 예외는 로그만 남기고 수신 루프는 유지."""
        if not self.on_message:
            return
        try:
            cb = self.on_message(message)
            if asyncio.iscoroutine(cb):
                await cb
        except Exception as e:
            logger.error(f"[{self.platform_name}] 메시지 콜백 오류: {e}", exc_info=True)

    def _create_message(
        self,
        tags: dict[str, Any],
        message: str,
        user: str = "",
        is_echo: bool = False,
        timestamp: Optional[datetime] = None,
        message_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ChatMessage:
        """ChatMessage 객체 생성 헬퍼 메서드"""
        return ChatMessage(
            channel=self.channel_id,
            tags=tags,
            message=message,
            is_echo=is_echo,
            user=user,
            timestamp=timestamp or datetime.now(),
            platform=self.platform_name,
            message_id=message_id,
            user_id=user_id,
        )
