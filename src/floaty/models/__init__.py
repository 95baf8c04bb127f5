"""Pydantic models for configuration and validation."""

from floaty.models.config import BackendKind, CliOptions, ServiceConfig
from floaty.models.host import HostRecord, PollState, ProvisioningRequest
from floaty.models.modify import ModifyPatch

__all__ = [
    "BackendKind",
    "CliOptions",
    "ServiceConfig",
    "HostRecord",
    "PollState",
    "ProvisioningRequest",
    "ModifyPatch",
]
