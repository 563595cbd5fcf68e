import logging
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sgingress.errors import RemoteLookupError
from sgingress.models import IngressRule

logger = logging.getLogger(__name__)

DUPLICATE_PERMISSION = "InvalidPermission.Duplicate"
MALFORMED_GROUP_ID = "InvalidGroupId.Malformed"
GROUP_NOT_FOUND = "InvalidGroup.NotFound"
DRY_RUN_OPERATION = "DryRunOperation"


def error_code(err: ClientError) -> str:
    return err.response.get("Error", {}).get("Code", "")


def error_message(err: ClientError) -> str:
    return err.response.get("Error", {}).get("Message", "") or str(err)


class AWSClient:
    def __init__(self, region_name: str = "us-west-2", profile: Optional[str] = None, client=None):
        self.region = region_name
        if client is None:
            if not region_name:
                raise RemoteLookupError("Unable to create EC2 client, no region code configured")
            try:
                session = boto3.Session(profile_name=profile, region_name=region_name)
                client = session.client("ec2")
            except BotoCoreError as e:
                raise RemoteLookupError(f"Unable to create EC2 client for region {region_name!r}, {e}") from e
        self.ec2 = client

    def describe_security_groups(self, group_ids: List[str]) -> Dict:
        logger.debug("Describing security groups %s in %s", group_ids, self.region)
        try:
            return self.ec2.describe_security_groups(GroupIds=group_ids)
        except ClientError as e:
            code = error_code(e)
            if code in (MALFORMED_GROUP_ID, GROUP_NOT_FOUND):
                raise RemoteLookupError(f"{error_message(e)}.", code=code) from e
            raise RemoteLookupError(f"Unable to get descriptions for security groups, {e}", code=code) from e
        except BotoCoreError as e:
            raise RemoteLookupError(f"Unable to get descriptions for security groups, {e}") from e

    def authorize_ingress(self, group_id: str, rule: IngressRule, dry_run: bool = False) -> Dict:
        """
        Authorize a single rule on ``group_id``.

        The request carries exactly one permission with one CIDR range.
        ClientError is left to the caller, which decides whether the code
        is benign (duplicate, dry run) or fatal.
        """
        params = {
            "GroupId": group_id,
            "IpPermissions": [
                {
                    "IpProtocol": rule.protocol,
                    "FromPort": rule.port,
                    "ToPort": rule.port,
                    "IpRanges": [
                        {
                            "CidrIp": rule.ip,
                            "Description": rule.description,
                        }
                    ],
                }
            ],
        }
        if dry_run:
            params["DryRun"] = True
        logger.debug("authorize_security_group_ingress %s %s/%s %s", group_id, rule.protocol, rule.port, rule.ip)
        return self.ec2.authorize_security_group_ingress(**params)
