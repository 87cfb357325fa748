"""Compute resource handlers."""

from .disk_models import DiskSpec, DiskState
from .disks import ManagedDiskHandler

__all__ = [
    "DiskSpec",
    "DiskState",
    "ManagedDiskHandler",
]
