"""
Origin Sync
Point an application's origin setting at its load balancer's address
"""

from .control_api import ControlAPI
from .endpoint import AppConfigPatch, ServiceEndpoint, format_origin
from .errors import (
    ControlAPIError,
    OriginSyncError,
    PatchRejected,
    ResolutionTimeout,
    RestartFailed,
)
from .patcher import apply_patch
from .resolver import resolve_endpoint
from .sync import SyncResult, SyncState, sync_origin

__all__ = [
    "ControlAPI",
    "ServiceEndpoint",
    "AppConfigPatch",
    "format_origin",
    "ControlAPIError",
    "OriginSyncError",
    "ResolutionTimeout",
    "PatchRejected",
    "RestartFailed",
    "resolve_endpoint",
    "apply_patch",
    "sync_origin",
    "SyncResult",
    "SyncState",
]
