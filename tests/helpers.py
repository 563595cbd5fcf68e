import io
import json
import os
import tempfile

import boto3
from rich.console import Console


def make_ec2_client(region="us-west-2"):
    return boto3.client(
        "ec2",
        region_name=region,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def make_console():
    buf = io.StringIO()
    return Console(file=buf, markup=False, emoji=False, highlight=False, width=200), buf


def authorize_params(group_id, ip, port, protocol="tcp", description=""):
    return {
        "GroupId": group_id,
        "IpPermissions": [
            {
                "IpProtocol": protocol,
                "FromPort": port,
                "ToPort": port,
                "IpRanges": [{"CidrIp": ip, "Description": description}],
            }
        ],
    }


def describe_response(*group_ids):
    return {
        "SecurityGroups": [
            {
                "GroupId": group_id,
                "GroupName": f"name-{group_id}",
                "Description": "managed by sgingress",
                "VpcId": "vpc-1",
                "OwnerId": "123456789012",
                "IpPermissions": [],
            }
            for group_id in group_ids
        ]
    }


class TempDirMixin:
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def write_file(self, name, content):
        path = os.path.join(self.tmpdir, name)
        with open(path, "w") as f:
            if isinstance(content, str):
                f.write(content)
            else:
                json.dump(content, f)
        return path

    def write_bytes(self, name, content):
        path = os.path.join(self.tmpdir, name)
        with open(path, "wb") as f:
            f.write(content)
        return path
