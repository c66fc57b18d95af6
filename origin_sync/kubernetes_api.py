"""
Kubernetes Control API
ControlAPI implementation backed by the official Kubernetes client
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pulumi
from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from .control_api import ControlAPI
from .errors import ControlAPIError

RESTARTED_AT_ANNOTATION = "kubectl.kubernetes.io/restartedAt"


# urllib3 errors: refused or dropped connections and timeouts
TRANSPORT_ERRORS = (ApiException, HTTPError)


def _api_error(action: str, e: Exception) -> ControlAPIError:
    if isinstance(e, ApiException):
        return ControlAPIError(f"{action} failed: {e.status} {e.reason}", status=e.status)
    return ControlAPIError(f"{action} failed: {type(e).__name__}: {e}")


class KubernetesControlAPI(ControlAPI):
    """
    Services and deployments addressed as ``name`` or ``namespace/name``

    Names without a namespace resolve against ``namespace``.
    """

    def __init__(self, api_client: Optional[client.ApiClient] = None,
                 namespace: str = "default", container: Optional[str] = None):
        self.core_v1 = client.CoreV1Api(api_client)
        self.apps_v1 = client.AppsV1Api(api_client)
        self.namespace = namespace
        self.container = container

    @classmethod
    def from_kubeconfig(cls, config_file: Optional[str] = None, context: Optional[str] = None,
                        **kwargs) -> "KubernetesControlAPI":
        """Build from a kubeconfig file (default location when config_file is None)"""
        try:
            api_client = k8s_config.new_client_from_config(config_file=config_file, context=context)
        except k8s_config.ConfigException as e:
            raise ControlAPIError(f"Could not load kubeconfig: {e}") from e
        return cls(api_client, **kwargs)

    @classmethod
    def from_kubeconfig_dict(cls, kubeconfig: Dict, context: Optional[str] = None,
                             **kwargs) -> "KubernetesControlAPI":
        """Build from an in-memory kubeconfig, e.g. one rendered by build_eks_kubeconfig"""
        try:
            api_client = k8s_config.new_client_from_config_dict(kubeconfig, context=context)
        except k8s_config.ConfigException as e:
            raise ControlAPIError(f"Could not load kubeconfig: {e}") from e
        return cls(api_client, **kwargs)

    @classmethod
    def in_cluster(cls, **kwargs) -> "KubernetesControlAPI":
        """Build from the pod's service account"""
        try:
            k8s_config.load_incluster_config()
        except k8s_config.ConfigException as e:
            raise ControlAPIError(f"Could not load in-cluster config: {e}") from e
        return cls(client.ApiClient(), **kwargs)

    def _split(self, identifier: str) -> Tuple[str, str]:
        namespace, _, name = identifier.rpartition("/")
        return name, namespace or self.namespace

    def get_service_address(self, service_id: str) -> Optional[str]:
        name, namespace = self._split(service_id)
        try:
            service = self.core_v1.read_namespaced_service(name, namespace)
        except TRANSPORT_ERRORS as e:
            if isinstance(e, ApiException) and e.status == 404:
                # Service not created yet
                return None
            raise _api_error(f"Reading service {namespace}/{name}", e) from e

        load_balancer = service.status.load_balancer if service.status else None
        for ingress in (load_balancer.ingress if load_balancer else None) or []:
            if ingress.ip:
                return ingress.ip
            if ingress.hostname:
                return ingress.hostname
        return None

    def _target_containers(self, deployment, name: str) -> List:
        containers = deployment.spec.template.spec.containers or []
        if self.container is None:
            return containers
        selected = [c for c in containers if c.name == self.container]
        if not selected:
            raise ControlAPIError(f"Deployment {name} has no container named {self.container}")
        return selected

    def update_deployment_config(self, deployment_id: str, key: str, value: str) -> bool:
        name, namespace = self._split(deployment_id)
        try:
            deployment = self.apps_v1.read_namespaced_deployment(name, namespace)
        except TRANSPORT_ERRORS as e:
            raise _api_error(f"Reading deployment {namespace}/{name}", e) from e

        containers = self._target_containers(deployment, name)
        if not containers:
            raise ControlAPIError(f"Deployment {namespace}/{name} has no containers")

        def has_value(container) -> bool:
            return any(env.name == key and env.value == value and env.value_from is None
                       for env in container.env or [])

        if all(has_value(c) for c in containers):
            return False

        # Strategic merge: containers and env entries merge by name.
        # valueFrom=None drops a secret/configmap reference on the same key.
        body = {
            "spec": {
                "template": {
                    "spec": {
                        "containers": [
                            {"name": c.name, "env": [{"name": key, "value": value, "valueFrom": None}]}
                            for c in containers
                        ]
                    }
                }
            }
        }
        try:
            self.apps_v1.patch_namespaced_deployment(name, namespace, body)
        except TRANSPORT_ERRORS as e:
            raise _api_error(f"Patching deployment {namespace}/{name}", e) from e

        pulumi.log.debug(f"Patched {key} on {len(containers)} container(s) of {namespace}/{name}")
        return True

    def restart_deployment(self, deployment_id: str) -> None:
        name, namespace = self._split(deployment_id)
        restarted_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        body = {
            "spec": {
                "template": {
                    "metadata": {
                        "annotations": {RESTARTED_AT_ANNOTATION: restarted_at}
                    }
                }
            }
        }
        try:
            self.apps_v1.patch_namespaced_deployment(name, namespace, body)
        except TRANSPORT_ERRORS as e:
            raise _api_error(f"Restarting deployment {namespace}/{name}", e) from e

    def get_rollout_status(self, deployment_id: str) -> Tuple[bool, str]:
        """Rollout completion, evaluated the way ``kubectl rollout status`` does"""
        name, namespace = self._split(deployment_id)
        try:
            deployment = self.apps_v1.read_namespaced_deployment(name, namespace)
        except TRANSPORT_ERRORS as e:
            raise _api_error(f"Reading deployment {namespace}/{name}", e) from e

        status = deployment.status
        if deployment.metadata.generation > (status.observed_generation or 0):
            return False, "waiting for deployment spec update to be observed"

        for condition in status.conditions or []:
            if condition.type == "Progressing" and condition.reason == "ProgressDeadlineExceeded":
                raise ControlAPIError(f"Deployment {namespace}/{name} exceeded its progress deadline")

        desired = deployment.spec.replicas if deployment.spec.replicas is not None else 1
        updated = status.updated_replicas or 0
        current = status.replicas or 0
        available = status.available_replicas or 0

        if updated < desired:
            return False, f"{updated} out of {desired} new replicas have been updated"
        if current > updated:
            return False, f"{current - updated} old replicas are pending termination"
        if available < updated:
            return False, f"{available} of {updated} updated replicas are available"
        return True, f"deployment {namespace}/{name} successfully rolled out"
