"""제목/희망 슬러그를 URL-safe 문자열로 정규화하는 헬퍼입니다."""

import re

from unidecode import unidecode

from content_engine.config import settings

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_slug(text: str | None, max_length: int | None = None) -> str:
    max_length = max_length or settings.SLUG_MAX_LENGTH
    # 한글/키릴 문자 등은 버리지 않고 로마자로 옮긴다.
    ascii_text = unidecode(str(text or ""))
    slug = _NON_ALNUM.sub("-", ascii_text.lower()).strip("-")
    slug = slug[:max_length].rstrip("-")
    return slug or settings.SLUG_FALLBACK


def with_suffix(base: str, n: int, max_length: int | None = None) -> str:
    if n <= 1:
        return base
    max_length = max_length or settings.SLUG_MAX_LENGTH
    suffix = f"-{n}"
    return base[: max_length - len(suffix)].rstrip("-") + suffix
