"""
Unit tests for the origin-sync command line
"""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import Mock, patch
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fakes import InMemoryControlAPI
from origin_sync import cli
from origin_sync.errors import ControlAPIError
from origin_sync.sync import sync_origin


class TestCli(unittest.TestCase):
    """Exit codes per final state"""

    def run_cli(self, api, *argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with patch.object(cli.KubernetesControlAPI, "from_kubeconfig", return_value=api) as factory, \
                redirect_stdout(stdout), redirect_stderr(stderr):
            code = cli.main(["frontend-lb", "frontend", "--poll-interval", "0", *argv])
        return code, stdout.getvalue(), stderr.getvalue(), factory

    def test_done_exits_zero(self):
        """Success prints the applied setting"""
        api = InMemoryControlAPI(addresses=["34.1.2.3"])

        code, out, _, factory = self.run_cli(api, "--namespace", "shop", "--context", "prod")

        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "ORIGIN=http://34.1.2.3")
        factory.assert_called_once_with(config_file=None, context="prod", namespace="shop",
                                        container=None)

    def test_timeout_exit_code(self):
        """ResolutionTimeout -> 3"""
        api = InMemoryControlAPI()

        code, _, err, _ = self.run_cli(api, "--max-attempts", "2")

        self.assertEqual(code, 3)
        self.assertEqual(api.count("get_service_address"), 2)
        self.assertIn("ResolutionTimeout", err)

    def test_rejected_exit_code(self):
        """PatchRejected -> 4"""
        api = InMemoryControlAPI(addresses=["10.0.0.5"], update_error="403 Forbidden")

        code, _, _, _ = self.run_cli(api)

        self.assertEqual(code, 4)

    def test_restart_failed_exit_code(self):
        """RestartFailed -> 5"""
        api = InMemoryControlAPI(addresses=["10.0.0.5"], restart_error="500 Internal Server Error")

        code, _, err, _ = self.run_cli(api)

        self.assertEqual(code, 5)
        self.assertIn("RestartFailed", err)

    def test_bare_address(self):
        """Empty scheme writes the address alone"""
        api = InMemoryControlAPI(addresses=["10.0.0.5"])

        code, out, _, _ = self.run_cli(api, "--scheme", "", "--key", "ALLOWED_HOST")

        self.assertEqual(code, 0)
        self.assertEqual(api.env["frontend"], {"ALLOWED_HOST": "10.0.0.5"})

    def test_config_load_failure(self):
        """Unloadable kubeconfig -> 1"""
        stderr = io.StringIO()
        with patch.object(cli.KubernetesControlAPI, "from_kubeconfig",
                          side_effect=ControlAPIError("Could not load kubeconfig")), \
                redirect_stderr(stderr):
            code = cli.main(["frontend-lb", "frontend"])

        self.assertEqual(code, 1)
        self.assertIn("Could not load kubeconfig", stderr.getvalue())

    def test_max_interval_caps_backoff(self):
        """--max-interval reaches the resolver"""
        api = InMemoryControlAPI()
        sleep = Mock()

        def run_sync(*args, **kwargs):
            return sync_origin(*args, sleep=sleep, **kwargs)

        with patch.object(cli, "sync_origin", side_effect=run_sync) as sync:
            code, _, _, _ = self.run_cli(api, "--poll-interval", "1", "--max-attempts", "4",
                                         "--backoff", "3", "--max-interval", "2")

        self.assertEqual(code, 3)
        self.assertEqual(sync.call_args.kwargs["max_interval"], 2.0)
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [1, 2, 2])

    def test_context_with_in_cluster_is_usage_error(self):
        """--context has no meaning for in-cluster config"""
        with patch.object(cli.KubernetesControlAPI, "in_cluster") as in_cluster, \
                redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["frontend-lb", "frontend", "--in-cluster", "--context", "prod"])

        self.assertEqual(ctx.exception.code, 2)
        in_cluster.assert_not_called()

    def test_invalid_attempts_is_usage_error(self):
        """argparse usage errors exit 2"""
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["frontend-lb", "frontend", "--max-attempts", "0"])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == '__main__':
    unittest.main()
