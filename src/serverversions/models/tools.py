from __future__ import annotations

from pydantic import BaseModel, field_validator


class GetServerVersionInput(BaseModel):
    host: str

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("host must not be empty")
        if len(v) > 255:
            raise ValueError("host must be 255 characters or fewer")
        return v


class GetServerVersionOutput(BaseModel):
    host: str
    version: str
