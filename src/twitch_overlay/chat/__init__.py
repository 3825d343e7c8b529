"""
채팅 수집 모듈
트위치 채팅을 받아 오버레이용 이벤트로 정규화
"""

from .base_client import ChatClient, ChatMessage
from .chat_parser import (
    ChatEvent,
    ChatParser,
    EmoteSpan,
    extract_emote_spans,
    normalize,
    parse_emotes_tag,
)
from .client_factory import ChatClientFactory
from .twitch_client import TwitchIRCClient

__all__ = [
    "ChatClient",
    "ChatMessage",
    "ChatEvent",
    "ChatParser",
    "EmoteSpan",
    "extract_emote_spans",
    "normalize",
    "parse_emotes_tag",
    "ChatClientFactory",
    "TwitchIRCClient",
]
