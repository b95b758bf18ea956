import secrets
import time
from uuid import uuid4

from pydantic import BaseModel, field_validator


class StorageName(BaseModel):
    """Unique name under which an upload is written to the blob store.

    Combines a millisecond timestamp, a random number and a short uuid fragment
    with the original filename, so two uploads of the same file issued in the
    same millisecond still get distinct names.
    """

    value: str

    model_config = {"frozen": True}

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "Storage name cannot be blank"
            raise ValueError(msg)
        return v

    @classmethod
    def generate(cls, original_name: str) -> "StorageName":
        millis = time.time_ns() // 1_000_000
        nonce = secrets.randbelow(1_000_000_000)
        return cls(value=f"{millis}-{nonce}-{uuid4().hex[:8]}-{original_name}")

    def __str__(self) -> str:
        return self.value
