"""
Configuration management for the origin sync stack
"""

import pulumi
from typing import Any, Dict, Optional

def _default(value, default):
    return default if value is None else value

class Config:
    """Centralized configuration management for the origin sync"""

    def __init__(self):
        self.config = pulumi.Config()

        # AWS Configuration
        self.aws_region = self.config.get("aws:region") or "af-south-1"

        # Cluster Configuration
        self.cluster_name = self.config.get("cluster_name") or "builder-space"
        self.namespace = self.config.get("namespace") or "default"

        # Workload Configuration
        self.service_name = self.config.require("service_name")
        self.deployment_name = self.config.require("deployment_name")
        self.container = self.config.get("container")

        # Origin Configuration
        self.origin_key = self.config.get("origin_key") or "ORIGIN"
        self.origin_scheme = self.config.get("origin_scheme") or "http"
        self.origin_port = self.config.get_int("origin_port")

        # Polling Configuration (0 is a valid interval/timeout)
        self.poll_interval = _default(self.config.get_float("poll_interval"), 10.0)
        self.max_attempts = _default(self.config.get_int("max_attempts"), 30)
        self.backoff = _default(self.config.get_float("backoff"), 1.0)
        self.max_interval = self.config.get_float("max_interval")
        self.rollout_timeout = _default(self.config.get_float("rollout_timeout"), 0)

        self._validate()

    def _validate(self):
        """Reject polling settings the resolver and patcher cannot honour"""
        errors = []
        if self.max_attempts < 1:
            errors.append(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.poll_interval < 0:
            errors.append(f"poll_interval must not be negative, got {self.poll_interval}")
        if self.backoff < 1.0:
            errors.append(f"backoff must be at least 1.0, got {self.backoff}")
        if self.max_interval is not None and self.max_interval < 0:
            errors.append(f"max_interval must not be negative, got {self.max_interval}")
        if self.rollout_timeout < 0:
            errors.append(f"rollout_timeout must not be negative, got {self.rollout_timeout}")
        if errors:
            raise pulumi.RunError("Invalid origin sync configuration: " + "; ".join(errors))

    @property
    def scheme(self) -> Optional[str]:
        """Origin scheme, None when configured as 'none' for the bare address"""
        return None if self.origin_scheme == "none" else self.origin_scheme

    @property
    def sync_args(self) -> Dict[str, Any]:
        """Keyword arguments for sync_origin"""
        return {
            "key": self.origin_key,
            "scheme": self.scheme,
            "port": self.origin_port,
            "poll_interval": self.poll_interval,
            "max_attempts": self.max_attempts,
            "backoff": self.backoff,
            "max_interval": self.max_interval,
            "rollout_timeout": self.rollout_timeout,
        }

def get_config() -> Config:
    """Get the global configuration instance"""
    return Config()
