import logging
from typing import List

from botocore.exceptions import BotoCoreError, ClientError

from sgingress.aws_client import AWSClient, DRY_RUN_OPERATION, DUPLICATE_PERMISSION, error_code
from sgingress.errors import RemoteMutationError
from sgingress.models import GroupReport, IngressRule, RuleOutcome, RuleResult
from sgingress.utils.output import short_print

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Successfully set security group ingress"


class IngressReconciler:
    """Applies ingress rules to security groups, one authorize call per rule."""

    def __init__(self, aws: AWSClient, console=None, dry_run: bool = False):
        self.aws = aws
        self.console = console
        self.dry_run = dry_run

    def apply(self, group_id: str, rules: List[IngressRule]) -> GroupReport:
        """
        Authorize every rule on ``group_id`` in order.

        Duplicates are skipped. Any other failure raises RemoteMutationError
        and leaves the remaining rules untouched; rules already added in
        this run are not rolled back.
        """
        report = GroupReport(group_id=group_id)

        for rule in rules:
            outcome = self._apply_rule(group_id, rule)
            report.results.append(RuleResult(rule=rule, group_id=group_id, outcome=outcome))

        logger.debug("%s: %d added, %d duplicates", group_id, report.added, report.duplicates)
        print(f"{SUCCESS_MESSAGE}: {group_id}")
        return report

    def apply_all(self, group_ids: List[str], rules: List[IngressRule]) -> List[GroupReport]:
        return [self.apply(group_id, rules) for group_id in group_ids]

    def _apply_rule(self, group_id: str, rule: IngressRule) -> RuleOutcome:
        try:
            self.aws.authorize_ingress(group_id, rule, dry_run=self.dry_run)
        except ClientError as e:
            code = error_code(e)
            if code == DUPLICATE_PERMISSION:
                short_print(f"Ignore Duplicated Ingress Rule:  {rule.ip}", "yellow", out=self.console)
                return RuleOutcome.DUPLICATE
            if code == DRY_RUN_OPERATION and self.dry_run:
                short_print(f"Dry run, would add Ingress Rule:  {rule.ip} {rule.port}", "cyan", out=self.console)
                return RuleOutcome.DRY_RUN
            raise RemoteMutationError(
                f'Unable to set security group "{rule.description}" ingress, ({code}) {e}', code=code
            ) from e
        except BotoCoreError as e:
            raise RemoteMutationError(f'Unable to set security group "{rule.description}" ingress, {e}') from e

        short_print(f"Added Ingress Rule:  {rule.ip} {rule.port}", "green", out=self.console)
        return RuleOutcome.ADDED
