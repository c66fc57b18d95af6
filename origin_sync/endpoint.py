"""
Endpoint Types
Resolved service address and the configuration patch derived from it
"""
import ipaddress
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

DEFAULT_ORIGIN_KEY = "ORIGIN"


@dataclass(frozen=True)
class ServiceEndpoint:
    """Externally reachable address of a service"""

    address: str
    resolved_at: datetime
    attempts: int = 1

    def __post_init__(self):
        if not self.address:
            raise ValueError("ServiceEndpoint requires a non-empty address")


@dataclass(frozen=True)
class AppConfigPatch:
    """Single environment setting to apply to a deployment"""

    key: str
    value: str

    @classmethod
    def from_endpoint(cls, endpoint: ServiceEndpoint, key: str = DEFAULT_ORIGIN_KEY,
                      scheme: Optional[str] = "http",
                      port: Optional[int] = None) -> "AppConfigPatch":
        """
        Build the patch for a resolved endpoint

        Args:
            endpoint: Resolved service endpoint
            key: Environment variable to set
            scheme: URL scheme of the origin, or None for the bare address
            port: Port appended to the address when given

        Returns:
            AppConfigPatch with the rendered origin value
        """
        return cls(key=key, value=format_origin(endpoint.address, scheme, port))


def format_origin(address: str, scheme: Optional[str] = "http",
                  port: Optional[int] = None) -> str:
    """Render an address as an origin URL"""
    host = address
    try:
        if ipaddress.ip_address(address).version == 6:
            host = f"[{address}]"
    except ValueError:
        pass  # hostname

    if port is not None:
        host = f"{host}:{port}"
    if not scheme:
        return host
    return f"{scheme}://{host}"
