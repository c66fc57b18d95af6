"""
Configuration Patcher
Applies a resolved origin to a deployment and rolls its pods
"""
import re
import time
from typing import Callable

import pulumi

from .control_api import ControlAPI
from .endpoint import AppConfigPatch
from .errors import ControlAPIError, PatchRejected, RestartFailed

# C identifier, as read by shells
ENV_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def apply_patch(
    api: ControlAPI,
    deployment_id: str,
    patch: AppConfigPatch,
    rollout_timeout: float = 0,
    rollout_poll_interval: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """
    Update a deployment's configuration and restart it

    Args:
        api: Control API to mutate
        deployment_id: Target deployment identifier
        patch: Key/value pair to apply
        rollout_timeout: Seconds to wait for the restarted rollout, 0 to skip
        rollout_poll_interval: Seconds between rollout status checks
        sleep: Sleep function, replaced in tests

    Returns:
        True if the configuration changed, False if it already held the value

    Raises:
        PatchRejected: The update was refused; no restart was requested
        RestartFailed: The update was applied but the restart is unconfirmed
    """
    if not ENV_NAME_PATTERN.match(patch.key):
        raise PatchRejected(f"Invalid environment variable name: {patch.key!r}")
    if not patch.value:
        raise PatchRejected(f"Refusing to set {patch.key} to an empty value")

    try:
        changed = api.update_deployment_config(deployment_id, patch.key, patch.value)
    except ControlAPIError as e:
        pulumi.log.error(f"Update of {deployment_id} rejected: {e}")
        raise PatchRejected(f"Update of {deployment_id} rejected: {e}") from e

    if changed:
        pulumi.log.info(f"Set {patch.key}={patch.value} on {deployment_id}")
    else:
        pulumi.log.info(f"{deployment_id} already has {patch.key}={patch.value}")

    try:
        api.restart_deployment(deployment_id)
    except ControlAPIError as e:
        error = RestartFailed(deployment_id, str(e))
        pulumi.log.warn(str(error))
        raise error from e

    pulumi.log.info(f"Restart of {deployment_id} requested")

    if rollout_timeout > 0:
        _wait_for_rollout(api, deployment_id, rollout_timeout, rollout_poll_interval, sleep)

    return changed


def _wait_for_rollout(api: ControlAPI, deployment_id: str, timeout: float,
                      poll_interval: float, sleep: Callable[[float], None]) -> None:
    waited = 0.0
    message = "no status read"
    while True:
        try:
            complete, message = api.get_rollout_status(deployment_id)
        except ControlAPIError as e:
            raise RestartFailed(deployment_id, str(e)) from e

        if complete:
            pulumi.log.info(f"Rollout of {deployment_id} complete: {message}")
            return
        if waited >= timeout:
            break

        pulumi.log.debug(f"Rollout of {deployment_id} in progress: {message}")
        step = min(poll_interval, timeout - waited) if poll_interval > 0 else timeout - waited
        sleep(step)
        waited += step

    error = RestartFailed(deployment_id, f"rollout not complete after {timeout}s ({message})")
    pulumi.log.warn(str(error))
    raise error
