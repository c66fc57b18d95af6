"""
EKS Kubeconfig
Kubeconfig for an EKS cluster authenticated through `aws eks get-token`
"""
from typing import Any, Dict, Optional


def build_eks_kubeconfig(cluster_name: str, endpoint: str, ca_data: str,
                         region: Optional[str] = None) -> Dict[str, Any]:
    """
    Render a kubeconfig for an EKS cluster

    Args:
        cluster_name: EKS cluster name, also used as context and user name
        endpoint: API server URL
        ca_data: Base64 encoded cluster CA certificate
        region: AWS region passed to the token command

    Returns:
        Kubeconfig as a dictionary
    """
    token_args = ["eks", "get-token", "--cluster-name", cluster_name]
    if region:
        token_args += ["--region", region]

    return {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [{
            "name": cluster_name,
            "cluster": {
                "server": endpoint,
                "certificate-authority-data": ca_data,
            },
        }],
        "contexts": [{
            "name": cluster_name,
            "context": {
                "cluster": cluster_name,
                "user": cluster_name,
            },
        }],
        "current-context": cluster_name,
        "users": [{
            "name": cluster_name,
            "user": {
                "exec": {
                    "apiVersion": "client.authentication.k8s.io/v1beta1",
                    "command": "aws",
                    "args": token_args,
                },
            },
        }],
    }
