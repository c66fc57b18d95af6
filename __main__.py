"""
Origin Sync Stack
Points the application's ORIGIN at its load balancer once the address is assigned
"""
import pulumi
import pulumi_aws as aws
from config import get_config
from origin_sync import SyncState, sync_origin
from origin_sync.kubeconfig import build_eks_kubeconfig
from origin_sync.kubernetes_api import KubernetesControlAPI

config = get_config()

# 1. Cluster access
cluster = aws.eks.get_cluster(name=config.cluster_name)
kubeconfig = build_eks_kubeconfig(
    cluster.name,
    cluster.endpoint,
    cluster.certificate_authorities[0].data,
    region=config.aws_region,
)
api = KubernetesControlAPI.from_kubeconfig_dict(
    kubeconfig,
    namespace=config.namespace,
    container=config.container,
)

# 2. Resolve and patch (mutates live workloads, so only on `pulumi up`)
if pulumi.runtime.is_dry_run():
    pulumi.log.info(
        f"Preview: {config.origin_key} of {config.deployment_name} will follow "
        f"the address of {config.service_name}"
    )
else:
    result = sync_origin(api, config.service_name, config.deployment_name, **config.sync_args)
    if result.state is not SyncState.DONE:
        raise pulumi.RunError(f"{result.failure}: {result.error}")

    # Exports
    pulumi.export("origin", result.patch.value)
    pulumi.export("origin_sync_state", result.state.value)
    pulumi.export("origin_changed", result.changed)
