"""
트위치 채팅 오버레이.

트위치 채팅을 받아 정규화한 뒤 Socket.IO로 OBS 브라우저 소스(오버레이)에 뿌린다.
"""

__version__ = "0.1.0"
