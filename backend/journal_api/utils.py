"""Small helpers shared by models and services."""

import math
import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """Opaque row identifier (UUID4 text)."""
    return str(uuid.uuid4())


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
