import contextlib
import io
import unittest
from unittest.mock import MagicMock

from botocore.exceptions import ClientError, EndpointConnectionError
from botocore.stub import Stubber

from sgingress.aws_client import AWSClient
from sgingress.errors import RemoteMutationError
from sgingress.models import IngressRule, RuleOutcome
from sgingress.reconciler import IngressReconciler
from tests.helpers import authorize_params, make_console, make_ec2_client


def client_error(code, message="error"):
    return ClientError({"Error": {"Code": code, "Message": message}}, "AuthorizeSecurityGroupIngress")


RULES = [
    IngressRule("10.0.0.1/32", 22, "tcp", "office"),
    IngressRule("10.0.0.2/32", 22, "tcp", "vpn"),
    IngressRule("10.0.0.3/32", 443, "tcp", "home"),
]


class TestIngressReconciler(unittest.TestCase):
    def setUp(self):
        self.aws = MagicMock(spec=AWSClient)
        self.console, self.err = make_console()
        self.out = io.StringIO()

    def apply(self, rules, group_id="sg-111", dry_run=False):
        reconciler = IngressReconciler(self.aws, console=self.console, dry_run=dry_run)
        with contextlib.redirect_stdout(self.out):
            return reconciler.apply(group_id, rules)

    def test_one_call_per_rule(self):
        report = self.apply(RULES)

        self.assertEqual(self.aws.authorize_ingress.call_count, len(RULES))
        for call, rule in zip(self.aws.authorize_ingress.call_args_list, RULES):
            self.assertEqual(call.args, ("sg-111", rule))
        self.assertEqual(report.added, 3)
        self.assertIn("Added Ingress Rule:  10.0.0.3/32 443", self.err.getvalue())
        self.assertEqual(self.out.getvalue(), "Successfully set security group ingress: sg-111\n")

    def test_duplicates_are_ignored(self):
        self.aws.authorize_ingress.side_effect = client_error("InvalidPermission.Duplicate")

        report = self.apply(RULES)

        self.assertEqual(self.aws.authorize_ingress.call_count, 3)
        self.assertEqual(report.duplicates, 3)
        self.assertEqual(report.added, 0)
        self.assertEqual(self.err.getvalue().count("Ignore Duplicated Ingress Rule:"), 3)
        self.assertIn("Successfully set security group ingress", self.out.getvalue())

    def test_first_fatal_error_aborts(self):
        self.aws.authorize_ingress.side_effect = [None, client_error("Throttling", "Rate exceeded"), None]

        with self.assertRaises(RemoteMutationError) as ctx:
            self.apply(RULES)

        self.assertEqual(self.aws.authorize_ingress.call_count, 2)
        self.assertEqual(ctx.exception.code, "Throttling")
        self.assertIn('Unable to set security group "vpn" ingress, (Throttling)', str(ctx.exception))
        self.assertIn("Added Ingress Rule:  10.0.0.1/32 22", self.err.getvalue())
        self.assertEqual(self.out.getvalue(), "")

    def test_connection_error_is_fatal(self):
        self.aws.authorize_ingress.side_effect = EndpointConnectionError(endpoint_url="https://ec2.example")

        with self.assertRaises(RemoteMutationError):
            self.apply(RULES)
        self.assertEqual(self.aws.authorize_ingress.call_count, 1)

    def test_dry_run(self):
        self.aws.authorize_ingress.side_effect = client_error("DryRunOperation", "Request would have succeeded")

        report = self.apply(RULES[:1], dry_run=True)

        self.aws.authorize_ingress.assert_called_once_with("sg-111", RULES[0], dry_run=True)
        self.assertEqual(report.results[0].outcome, RuleOutcome.DRY_RUN)
        self.assertIn("Dry run, would add Ingress Rule:  10.0.0.1/32 22", self.err.getvalue())

    def test_dry_run_code_without_dry_run_is_fatal(self):
        self.aws.authorize_ingress.side_effect = client_error("DryRunOperation")

        with self.assertRaises(RemoteMutationError):
            self.apply(RULES[:1])

    def test_apply_all_in_order(self):
        reconciler = IngressReconciler(self.aws, console=self.console)
        with contextlib.redirect_stdout(self.out):
            reports = reconciler.apply_all(["sg-111", "sg-222"], RULES[:2])

        self.assertEqual([r.group_id for r in reports], ["sg-111", "sg-222"])
        groups = [c.args[0] for c in self.aws.authorize_ingress.call_args_list]
        self.assertEqual(groups, ["sg-111", "sg-111", "sg-222", "sg-222"])
        self.assertEqual(self.out.getvalue().count("Successfully set security group ingress"), 2)


class TestIngressReconcilerWithStubber(unittest.TestCase):
    def test_rerun_is_idempotent(self):
        ec2 = make_ec2_client()
        console, err = make_console()
        with Stubber(ec2) as stubber:
            stubber.add_response(
                "authorize_security_group_ingress", {},
                authorize_params("sg-111", "10.0.0.1/32", 22, "tcp", "office"),
            )
            for _ in range(2):
                stubber.add_client_error(
                    "authorize_security_group_ingress",
                    service_error_code="InvalidPermission.Duplicate",
                    service_message="the specified rule already exists",
                    expected_params=authorize_params("sg-111", "10.0.0.1/32", 22, "tcp", "office"),
                )

            reconciler = IngressReconciler(AWSClient("us-west-2", client=ec2), console=console)
            with contextlib.redirect_stdout(io.StringIO()):
                first = reconciler.apply("sg-111", RULES[:1])
                second = reconciler.apply("sg-111", RULES[:1] * 2)

            stubber.assert_no_pending_responses()

        self.assertEqual(first.added, 1)
        self.assertEqual(second.duplicates, 2)


if __name__ == "__main__":
    unittest.main()
