"""
Origin Sync
Resolve a service address, then patch and restart the deployment
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

import pulumi

from .control_api import ControlAPI
from .endpoint import DEFAULT_ORIGIN_KEY, AppConfigPatch, ServiceEndpoint
from .errors import OriginSyncError
from .patcher import apply_patch
from .resolver import resolve_endpoint


class SyncState(Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    PATCHING = "patching"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS = {
    SyncState.IDLE: {SyncState.RESOLVING},
    SyncState.RESOLVING: {SyncState.RESOLVED, SyncState.FAILED},
    SyncState.RESOLVED: {SyncState.PATCHING},
    SyncState.PATCHING: {SyncState.DONE, SyncState.FAILED},
    SyncState.DONE: set(),
    SyncState.FAILED: set(),
}


@dataclass
class SyncResult:
    """Outcome of one origin sync run"""

    state: SyncState = SyncState.IDLE
    endpoint: Optional[ServiceEndpoint] = None
    patch: Optional[AppConfigPatch] = None
    changed: bool = False
    error: Optional[OriginSyncError] = None
    history: List[SyncState] = field(default_factory=lambda: [SyncState.IDLE])

    def advance(self, state: SyncState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid sync transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def fail(self, error: OriginSyncError) -> None:
        self.error = error
        self.advance(SyncState.FAILED)

    @property
    def failure(self) -> Optional[str]:
        """Name of the failure kind, e.g. 'RestartFailed'"""
        if self.error is None:
            return None
        return type(self.error).__name__

    @property
    def exit_code(self) -> int:
        if self.state is SyncState.DONE:
            return 0
        if self.error is not None:
            return self.error.exit_code
        return 1


def sync_origin(
    api: ControlAPI,
    service_id: str,
    deployment_id: str,
    key: str = DEFAULT_ORIGIN_KEY,
    scheme: Optional[str] = "http",
    port: Optional[int] = None,
    poll_interval: float = 10.0,
    max_attempts: int = 30,
    backoff: float = 1.0,
    max_interval: Optional[float] = None,
    rollout_timeout: float = 0,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncResult:
    """
    Point a deployment's origin setting at its service's external address

    Known failures end in the FAILED state with the error attached to the
    result instead of being raised.

    Args:
        api: Control API for reads and mutations
        service_id: Load-balancer service to resolve
        deployment_id: Deployment receiving the setting
        key: Environment variable to set
        scheme: Origin URL scheme, None for the bare address
        port: Port appended to the origin
        poll_interval: Seconds between address queries
        max_attempts: Maximum address queries
        backoff: Poll interval multiplier
        max_interval: Upper bound for the poll interval
        rollout_timeout: Seconds to wait for the restart rollout, 0 to skip
        sleep: Sleep function, replaced in tests

    Returns:
        SyncResult with the final state
    """
    result = SyncResult()

    result.advance(SyncState.RESOLVING)
    try:
        result.endpoint = resolve_endpoint(
            api, service_id,
            poll_interval=poll_interval,
            max_attempts=max_attempts,
            backoff=backoff,
            max_interval=max_interval,
            sleep=sleep,
        )
    except OriginSyncError as e:
        result.fail(e)
        return result
    result.advance(SyncState.RESOLVED)

    result.patch = AppConfigPatch.from_endpoint(result.endpoint, key=key, scheme=scheme, port=port)

    result.advance(SyncState.PATCHING)
    try:
        result.changed = apply_patch(
            api, deployment_id, result.patch,
            rollout_timeout=rollout_timeout,
            sleep=sleep,
        )
    except OriginSyncError as e:
        result.fail(e)
        return result
    result.advance(SyncState.DONE)

    pulumi.log.info(f"Origin sync of {deployment_id} done: {result.patch.key}={result.patch.value}")
    return result
