"""
오버레이 폰트 찾기. fonts/ 폴더에서 이름(확장자 제외)으로 폰트 파일을 찾는다.

- 대소문자 무시, 확장자 우선순위: .ttf → .otf → .woff → .woff2
- "Arial"은 브라우저 기본 폰트라 디스크를 보지 않고 항상 통과
- 캐시 없음: 호출할 때마다 폴더를 다시 읽는다
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

logger = logging.getLogger(__name__)

DEFAULT_FONT = "Arial"
FONT_EXTENSIONS: tuple[str, ...] = (".ttf", ".otf", ".woff", ".woff2")
FONT_CONTENT_TYPES: dict[str, str] = {
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}
FALLBACK_CONTENT_TYPE = "application/octet-stream"


def is_default_font(name: str) -> bool:
    return name.lower() == DEFAULT_FONT.lower()


def content_type_for(path: Union[Path, str]) -> str:
    """파일 확장자 → Content-Type. 모르는 확장자는 application/octet-stream."""
    return FONT_CONTENT_TYPES.get(Path(path).suffix.lower(), FALLBACK_CONTENT_TYPE)


def split_font_request(requested: str) -> tuple[str, Optional[str]]:
    """
    클라이언트가 요청한 이름에서 지원 확장자를 떼어낸다.

    "MyFont.ttf" → ("MyFont", ".ttf"), "MyFont" → ("MyFont", None)
    """
    suffix = Path(requested).suffix.lower()
    if suffix in FONT_EXTENSIONS:
        return requested[: -len(suffix)], suffix
    return requested, None


class FontResolver:
    """fonts 폴더 기준 폰트 이름 → 파일 경로"""

    def __init__(self, fonts_dir: Union[Path, str]):
        self.fonts_dir = Path(fonts_dir)

    def _entries(self) -> list[str]:
        if not self.fonts_dir.is_dir():
            return []
        return [p.name for p in self.fonts_dir.iterdir() if p.is_file()]

    def available_fonts(self) -> list[str]:
        """폴더 안 지원 폰트들의 이름(확장자 제외)"""
        return [
            Path(name).stem
            for name in sorted(self._entries())
            if Path(name).suffix.lower() in FONT_EXTENSIONS
        ]

    def find(self, name: str, extensions: Sequence[str] = FONT_EXTENSIONS) -> Optional[Path]:
        """
        디스크에서 폰트 파일 찾기 (기본 폰트 특례 없음)

        Returns:
            찾은 파일 경로 또는 None (폴더 없음 / 일치 없음)
        """
        entries = self._entries()
        if not entries:
            return None
        by_lower = {}
        for entry in entries:
            by_lower.setdefault(entry.lower(), entry)
        for ext in extensions:
            match = by_lower.get((name + ext).lower())
            if match:
                return self.fonts_dir / match
        return None

    def resolve(self, name: str) -> Optional[Union[Path, str]]:
        """
        폰트 이름 확인

        Returns:
            "Arial"이면 DEFAULT_FONT 문자열, 파일이 있으면 Path, 없으면 None
        """
        if is_default_font(name):
            return DEFAULT_FONT
        return self.find(name)

    def resolve_or_default(self, name: str, label: str = "Font") -> str:
        """
        시작 시 폰트 검증. 없으면 경고 로그 후 "Arial"로 대체 (예외 없음).

        Args:
            name: 요청 폰트 이름
            label: 로그용 구분 ("Font", "Namefont")
        """
        if is_default_font(name):
            return name
        logger.info("Checking fonts directory: %s", self.fonts_dir)
        if not self.fonts_dir.is_dir():
            logger.warning(
                '%s "%s" not found - fonts folder does not exist at %s. Falling back to %s.',
                label, name, self.fonts_dir, DEFAULT_FONT,
            )
            return DEFAULT_FONT
        available = self.available_fonts()
        logger.info("Available fonts: %s", ", ".join(available) or "none")
        if self.resolve(name) is None:
            logger.warning(
                '%s "%s" not found in fonts folder. Falling back to %s. Available fonts: %s',
                label, name, DEFAULT_FONT, ", ".join(available) or "none",
            )
            return DEFAULT_FONT
        return name
