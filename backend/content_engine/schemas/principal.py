"""호출자가 전달하는 인증 완료 주체(Principal)와 역할 정의입니다."""

from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    USER = "user"


class Principal(BaseModel):
    id: int
    role: Role

    model_config = {"frozen": True}
