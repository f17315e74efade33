from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from urllib.parse import urlparse

from .utils import DEFAULT_SLUG_LENGTH

# Only these schemes may be used as redirect targets
ALLOWED_SCHEMES = {'http', 'https'}


def validate_target(url: str) -> str:
    """Validate that a redirect target is an absolute http(s) URL"""
    parsed = urlparse(url.strip())
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise ValueError(f"URL scheme '{parsed.scheme}' is not allowed. Use http or https.")
    if not parsed.netloc:
        raise ValueError("URL must include a host")
    return url.strip()


class SlugCreate(BaseModel):
    table: str = Field(min_length=1)
    column: str = Field(min_length=1)
    # Bounds are checked by the allocator so the error is the same as for direct callers
    length: int = DEFAULT_SLUG_LENGTH


class SlugOut(BaseModel):
    slug: str


class LinkCreate(BaseModel):
    target: str
    slug_length: int = 7

    @field_validator('target')
    @classmethod
    def check_target(cls, v):
        return validate_target(v)


class LinkOut(BaseModel):
    id: int
    slug: str
    target: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
