"""Configuration models."""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


ABS_TYPES = ("abs", "alwaysbescheduling", "always_be_scheduling")
NSPOOLER_TYPES = ("ns", "nspooler", "nonstandard", "nonstandard_pooler")


class BackendKind(Enum):
    """Pooler backend families."""
    VMPOOLER = "vmpooler"
    ABS = "abs"
    NSPOOLER = "nspooler"

    @classmethod
    def from_type(cls, value: Optional[str]) -> "BackendKind":
        """Map a configured ``type`` string to a backend kind.

        Matching is case-insensitive. Unknown or empty values fall back to
        vmpooler, which is the default service type.
        """
        name = (value or "").strip().lower()
        if name in ABS_TYPES:
            return cls.ABS
        if name in NSPOOLER_TYPES:
            return cls.NSPOOLER
        return cls.VMPOOLER

    @property
    def label(self) -> str:
        """Human readable service type name."""
        return {
            BackendKind.VMPOOLER: "Pooler",
            BackendKind.ABS: "ABS",
            BackendKind.NSPOOLER: "NonstandardPooler",
        }[self]


class CliOptions(BaseModel):
    """Service related options given on the command line."""
    service: Optional[str] = None
    url: Optional[str] = None
    user: Optional[str] = None
    token: Optional[str] = None
    priority: Optional[str] = None


class ServiceConfig(BaseModel):
    """Effective configuration for a single service connection."""
    model_config = ConfigDict(frozen=True)

    url: Optional[str] = None
    user: Optional[str] = None
    token: Optional[str] = None
    type: str = Field(default="vmpooler")
    vmpooler_fallback: Optional[str] = None
    priority: Optional[str] = None
    extra: Dict[str, str] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, v):
        """Absent type means vmpooler."""
        return v if v else "vmpooler"

    @property
    def kind(self) -> BackendKind:
        """Backend kind selected by ``type``."""
        return BackendKind.from_type(self.type)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ServiceConfig":
        """Build a config, moving unrecognised keys into ``extra``."""
        known: Dict[str, Any] = {}
        extra: Dict[str, str] = {}
        for key, value in values.items():
            if value is None:
                continue
            if key in cls.model_fields and key != "extra":
                known[key] = str(value)
            else:
                extra[str(key)] = str(value)
        return cls(extra=extra, **known)
