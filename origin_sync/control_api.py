"""
Infrastructure Control API
Narrow interface over the orchestrator used by the resolver and patcher
"""
from abc import ABC, abstractmethod
from typing import Optional, Tuple


class ControlAPI(ABC):
    """Service and deployment operations consumed by origin sync

    Implementations raise ``ControlAPIError`` when a request fails.
    """

    @abstractmethod
    def get_service_address(self, service_id: str) -> Optional[str]:
        """Return the externally assigned address, or None while pending"""

    @abstractmethod
    def update_deployment_config(self, deployment_id: str, key: str, value: str) -> bool:
        """Set an environment value; return True when a change was submitted"""

    @abstractmethod
    def restart_deployment(self, deployment_id: str) -> None:
        """Request a rolling restart of the deployment"""

    @abstractmethod
    def get_rollout_status(self, deployment_id: str) -> Tuple[bool, str]:
        """Return (complete, message) for the deployment's current rollout"""
