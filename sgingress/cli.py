#!/usr/bin/env python3
"""
List or add EC2 security group ingress rules.

Examples:
  # Print the raw description of the region's default group
  sgingress --action list --region pdx

  # Open port 22 and 443 to every address in ips.txt
  sgingress --action add --region pdx --file ips.txt --ports 22,443

  # Apply explicit {ip, port, protocol, description} records to two groups
  sgingress --action add --sg sg-111,sg-222 --file rules.json
"""

import argparse
import json
import logging
import sys

from sgingress.aws_client import AWSClient
from sgingress.errors import SGIngressError
from sgingress.reconciler import IngressReconciler
from sgingress.rules import FORMATS, load_rules, parse_ports
from sgingress.utils import config
from sgingress.utils.output import setup_logging, short_print

logger = logging.getLogger(__name__)


def ports_arg(s):
    try:
        ports = parse_ports(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid ports {s!r}: {e}")
    if not ports:
        raise argparse.ArgumentTypeError("at least one port is required")
    return ports


def parse_group_ids(s):
    return [g.strip() for g in (s or "").split(",") if g.strip()]


def build_parser():
    parser = argparse.ArgumentParser(prog="sgingress", description="List or add EC2 security group ingress rules")
    parser.add_argument("--action", choices=["list", "add"], default="list", help="actions: list, add")
    parser.add_argument("--region", default=config.DEFAULT_REGION_KEY,
                        help="AWS region airport code. ex, pdx, iad, dub, sfo")
    parser.add_argument("--sg", default="", help="Comma-separated security group ids (default: the region's group)")
    parser.add_argument("--file", default=config.RULES_FILE, help="Rules file: 'ip,description' lines or JSON")
    parser.add_argument("--format", choices=FORMATS, default="auto",
                        help="Rules file format. auto picks json for *.json, csv otherwise")
    parser.add_argument("--ports", type=ports_arg, default=config.DEFAULT_PORTS,
                        help='Ports applied to every address of a csv rules file, e.g. "22,443"')
    parser.add_argument("--protocol", default=config.DEFAULT_PROTOCOL, help="Protocol for a csv rules file")
    parser.add_argument("--conf", default=config.AWS_CONFIG_FILE, help="AWS configuration in json format")
    parser.add_argument("--profile", default=config.AWS_PROFILE, help="AWS credentials profile")
    parser.add_argument("--dry-run", action="store_true", help="Ask EC2 to validate the changes without applying them")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def list_groups(result):
    print(json.dumps(result, indent=2, default=str))


def run(args):
    conf = config.load_region_config(args.conf)
    if args.region not in conf:
        short_print(f"Region {args.region!r} not found in {args.conf}", "yellow")
    profile = conf.lookup(args.region)

    rules = []
    if args.action == "add":
        rules = load_rules(args.file, args.format, args.ports, args.protocol)

    group_ids = parse_group_ids(args.sg) or parse_group_ids(profile.sg)
    if not group_ids:
        raise SGIngressError(f"No security group ids given and region {args.region!r} has no default group")
    logger.debug("Using groups %s in region %s (%s)", group_ids, args.region, profile.region)

    aws = AWSClient(profile.region, profile=args.profile)
    result = aws.describe_security_groups(group_ids)

    if args.action == "list":
        list_groups(result)
    elif args.action == "add":
        reconciler = IngressReconciler(aws, dry_run=args.dry_run)
        reconciler.apply_all([g["GroupId"] for g in result.get("SecurityGroups", [])], rules)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        run(args)
    except SGIngressError as e:
        short_print(str(e), "bold red")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
