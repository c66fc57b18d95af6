"""CLI entry point for origin sync."""

import argparse
import sys

from .endpoint import DEFAULT_ORIGIN_KEY
from .errors import ControlAPIError
from .kubernetes_api import KubernetesControlAPI
from .sync import SyncState, sync_origin


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="origin-sync",
        description="Wait for a load balancer address and set it as a deployment's origin",
    )

    parser.add_argument("service", help="Load balancer service, NAME or NAMESPACE/NAME")
    parser.add_argument("deployment", help="Deployment to reconfigure, NAME or NAMESPACE/NAME")

    parser.add_argument(
        "--poll-interval",
        type=float,
        default=10.0,
        help="Seconds between address queries (default: 10)",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=30,
        help="Maximum address queries before giving up (default: 30)",
    )
    parser.add_argument(
        "--backoff",
        type=float,
        default=1.0,
        help="Multiplier applied to the poll interval after each query (default: 1.0)",
    )
    parser.add_argument(
        "--max-interval",
        type=float,
        help="Upper bound for the poll interval when backing off",
    )
    parser.add_argument(
        "--namespace",
        default="default",
        help="Namespace for names given without one (default: default)",
    )
    parser.add_argument(
        "--key",
        default=DEFAULT_ORIGIN_KEY,
        help=f"Environment variable to set (default: {DEFAULT_ORIGIN_KEY})",
    )
    parser.add_argument(
        "--scheme",
        default="http",
        help="Origin URL scheme, empty for the bare address (default: http)",
    )
    parser.add_argument("--port", type=int, help="Port appended to the origin")
    parser.add_argument("--container", help="Only patch this container")
    parser.add_argument(
        "--rollout-timeout",
        type=float,
        default=0,
        help="Seconds to wait for the restarted rollout, 0 to skip (default: 0)",
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--kubeconfig", help="Path to kubeconfig (default: ~/.kube/config)")
    source.add_argument(
        "--in-cluster",
        action="store_true",
        help="Use the pod's service account",
    )
    parser.add_argument("--context", help="Kubeconfig context to use")

    return parser


def main(argv=None) -> int:
    """Main CLI entry point for origin sync."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.max_attempts < 1:
        parser.error("--max-attempts must be at least 1")
    if args.poll_interval < 0:
        parser.error("--poll-interval must not be negative")
    if args.backoff < 1.0:
        parser.error("--backoff must be at least 1.0")
    if args.max_interval is not None and args.max_interval < 0:
        parser.error("--max-interval must not be negative")
    if args.in_cluster and args.context:
        parser.error("--context cannot be combined with --in-cluster")

    try:
        if args.in_cluster:
            api = KubernetesControlAPI.in_cluster(namespace=args.namespace, container=args.container)
        else:
            api = KubernetesControlAPI.from_kubeconfig(
                config_file=args.kubeconfig,
                context=args.context,
                namespace=args.namespace,
                container=args.container,
            )
    except ControlAPIError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    result = sync_origin(
        api,
        args.service,
        args.deployment,
        key=args.key,
        scheme=args.scheme or None,
        port=args.port,
        poll_interval=args.poll_interval,
        max_attempts=args.max_attempts,
        backoff=args.backoff,
        max_interval=args.max_interval,
        rollout_timeout=args.rollout_timeout,
    )

    if result.state is SyncState.DONE:
        print(f"{result.patch.key}={result.patch.value}")
    else:
        print(f"❌ {result.failure}: {result.error}", file=sys.stderr)
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
