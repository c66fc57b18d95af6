"""
Endpoint Resolver
Polls the control API until a service receives an external address
"""
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import pulumi

from .control_api import ControlAPI
from .endpoint import ServiceEndpoint
from .errors import ControlAPIError, ResolutionTimeout


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_endpoint(
    api: ControlAPI,
    service_id: str,
    poll_interval: float = 10.0,
    max_attempts: int = 30,
    backoff: float = 1.0,
    max_interval: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], datetime] = _utcnow,
) -> ServiceEndpoint:
    """
    Wait for a service's externally assigned address

    Args:
        api: Control API to query
        service_id: Service identifier understood by the API
        poll_interval: Seconds to wait before the second attempt
        max_attempts: Maximum number of queries
        backoff: Multiplier applied to the interval after each attempt
        max_interval: Upper bound for the interval
        sleep: Sleep function, replaced in tests
        clock: Timestamp source for the resolved endpoint

    Returns:
        ServiceEndpoint for the first non-empty address

    Raises:
        ResolutionTimeout: No address after max_attempts queries
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    if poll_interval < 0:
        raise ValueError(f"poll_interval must not be negative, got {poll_interval}")
    if backoff < 1.0:
        raise ValueError(f"backoff must be at least 1.0, got {backoff}")
    if max_interval is not None and max_interval < 0:
        raise ValueError(f"max_interval must not be negative, got {max_interval}")

    delay = poll_interval
    last_error = None

    for attempt in range(1, max_attempts + 1):
        try:
            address = api.get_service_address(service_id)
        except ControlAPIError as e:
            last_error = e
            address = None
            pulumi.log.warn(f"Attempt {attempt}/{max_attempts} to read {service_id} failed: {e}")

        if address:
            pulumi.log.info(f"Service {service_id} resolved to {address} after {attempt} attempt(s)")
            return ServiceEndpoint(address=address, resolved_at=clock(), attempts=attempt)

        if attempt < max_attempts:
            pulumi.log.debug(f"Service {service_id} has no address yet, retrying in {delay}s")
            sleep(delay)
            delay *= backoff
            if max_interval is not None:
                delay = min(delay, max_interval)

    pulumi.log.error(f"Service {service_id} has no external address after {max_attempts} attempts")
    raise ResolutionTimeout(service_id, max_attempts, last_error)
