"""
채팅 클라이언트 팩토리
플랫폼별 클라이언트를 생성하는 팩토리 패턴
"""

from typing import Dict

from .base_client import ChatClient
from .twitch_client import TwitchIRCClient


class ChatClientFactory:
    """채팅 클라이언트 팩토리 클래스"""

    _platforms: Dict[str, type[ChatClient]] = {
        "twitch": TwitchIRCClient,
    }

    @classmethod
    def create(
        cls,
        platform: str,
        channel_id: str,
        **kwargs
    ) -> ChatClient:
        """
        플랫폼별 채팅 클라이언트 생성

        Args:
            platform: 플랫폼 이름 ("twitch")
            channel_id: 채널 이름
            **kwargs: 플랫폼별 추가 설정 (on_message, reconnect_delay 등)

        Returns:
            ChatClient 인스턴스

        Raises:
            ValueError: 지원하지 않는 플랫폼인 경우
        """
        if platform not in cls._platforms:
            supported = ", ".join(cls._platforms.keys())
            raise ValueError(
                f"지원하지 않는 플랫폼: {platform}. "
                f"지원 플랫폼: {supported}"
            )

        client_class = cls._platforms[platform]
        return client_class(channel_id=channel_id, **kwargs)

    @classmethod
    def get_supported_platforms(cls) -> list[str]:
        """지원하는 플랫폼 목록 반환"""
        return list(cls._platforms.keys())
