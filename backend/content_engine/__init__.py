"""게시글 버전 관리/권한 엔진 패키지입니다."""

__version__ = "1.0.0"
