"""Host and provisioning request models."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class HostRecord(BaseModel):
    """A single host as shown to the user, grouped by OS template or job id."""
    group_key: str = Field(..., description="OS template or job id")
    hostname: str = Field(..., description="Fully qualified hostname")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PollState(Enum):
    """On-demand request polling state."""
    PENDING = "pending"
    FULFILLED = "fulfilled"
    TIMED_OUT = "timed_out"


class ProvisioningRequest(BaseModel):
    """An accepted on-demand acquisition awaiting fulfilment."""
    request_id: str = Field(..., description="Id returned by the service")
    started_at: datetime = Field(default_factory=datetime.now)
