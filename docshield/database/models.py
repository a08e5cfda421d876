from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class JobRecord:
    """Represents a row from the jobs table."""

    id: str
    dataset_id: str
    status: str
    policy_id: str | None = None
    progress: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    created_at: datetime | None = None
