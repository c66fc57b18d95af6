"""
Origin Sync Errors
Failure taxonomy for endpoint resolution and deployment reconfiguration
"""
from typing import Optional


class ControlAPIError(Exception):
    """Raised by a control API implementation when a request fails"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class OriginSyncError(Exception):
    """Base class for failures that terminate an origin sync"""

    exit_code = 1


class ResolutionTimeout(OriginSyncError):
    """No address was assigned within the attempt budget"""

    exit_code = 3

    def __init__(self, service_id: str, attempts: int,
                 last_error: Optional[ControlAPIError] = None):
        message = f"No external address for service {service_id} after {attempts} attempts"
        if last_error is not None:
            message += f" (last error: {last_error})"
        super().__init__(message)
        self.service_id = service_id
        self.attempts = attempts
        self.last_error = last_error


class PatchRejected(OriginSyncError):
    """The configuration update was refused"""

    exit_code = 4


class RestartFailed(OriginSyncError):
    """The configuration was updated but the restart could not be confirmed"""

    exit_code = 5

    def __init__(self, deployment_id: str, reason: str):
        super().__init__(
            f"Restart of deployment {deployment_id} not confirmed: {reason}. "
            "Configuration was updated but running pods may still use the old "
            "value until the deployment is restarted manually"
        )
        self.deployment_id = deployment_id
        self.reason = reason
