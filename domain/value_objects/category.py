import re

from pydantic import BaseModel, field_validator

DEFAULT_CATEGORY = "Others"

_DISALLOWED = re.compile(r"[^A-Za-z0-9 \-]")


def sanitize_category(raw: str | None) -> str:
    """Strip characters outside ``[A-Za-z0-9 -]``, falling back to ``Others``."""
    cleaned = _DISALLOWED.sub("", raw or "")
    if not cleaned.strip():
        return DEFAULT_CATEGORY
    return cleaned


class Category(BaseModel):
    """Free-text label attached to a stored file and used as a listing filter."""

    name: str

    model_config = {"frozen": True}

    @field_validator("name", mode="before")
    @classmethod
    def sanitize_name(cls, v: str | None) -> str:
        return sanitize_category(v)

    @classmethod
    def from_raw(cls, raw: str | None) -> "Category":
        return cls(name=raw)

    def __str__(self) -> str:
        return self.name
