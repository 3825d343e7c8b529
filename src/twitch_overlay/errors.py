"""오버레이 공통 예외."""


class OverlayError(Exception):
    """twitch_overlay 예외 기본 클래스"""


class StartupConfigError(OverlayError):
    """시작 파라미터 검증 실패. 메시지에 모든 오류가 줄바꿈으로 들어 있음."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("\n".join(self.errors))


class EmoteParseError(OverlayError, ValueError):
    """이모트 위치 토큰("start-end") 파싱 실패. 해당 메시지는 버린다."""

    def __init__(self, emote_id: str, token: str):
        self.emote_id = emote_id
        self.token = token
        super().__init__(f"잘못된 이모트 위치: id={emote_id!r}, token={token!r}")
