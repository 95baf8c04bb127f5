"""VM modification models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ModifyPatch(BaseModel):
    """Requested changes to a VM."""
    model_config = ConfigDict(extra="forbid")

    lifetime: Optional[int] = Field(None, description="Time to live in hours")
    disk: Optional[int] = Field(None, description="Additional disk in GB")
    tags: Optional[Dict[str, Any]] = None
    reason: Optional[str] = Field(None, description="Reservation reason")

    def as_request(self) -> Dict[str, Any]:
        """Return the set fields only."""
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        """True when nothing would be modified."""
        return not self.as_request()
