"""
Rules file loaders.

Two shapes are supported:
  - delimited text, one ``address,description`` per line; every line is
    applied to each port given on the command line
  - JSON, ``{"rules": [{"ip": ..., "port": ..., "protocol": ..., "description": ...}]}``
"""

import csv
import json
import logging
import os
from typing import List

from sgingress.errors import RulesParseError, RulesReadError
from sgingress.models import IngressRule

logger = logging.getLogger(__name__)

FORMATS = ("auto", "csv", "json")


def parse_ports(s):
    """Parse "22,443" into [22, 443]. Raises ValueError on a bad port."""
    ports = []
    for item in s.split(","):
        item = item.strip()
        if not item:
            continue
        port = int(item)
        if not 1 <= port <= 65535:
            raise ValueError(f"port out of range: {port}")
        ports.append(port)
    return ports


def parse_ip_file(filename, ports, protocol="tcp") -> List[IngressRule]:
    entries = []
    try:
        with open(filename, "r", newline="", encoding="utf-8") as fh:
            for lineno, row in enumerate(csv.reader(fh), start=1):
                if not row or not "".join(row).strip():
                    continue
                if len(row) < 2:
                    raise RulesParseError(f"expected 'address,description' in {filename}", line=lineno)
                entries.append((row[0].strip(), row[1].strip()))
    except OSError as e:
        raise RulesReadError(f"unable to read file: {filename} ({e.strerror})") from e
    except csv.Error as e:
        raise RulesParseError(f"unable to parse {filename}: {e}") from e
    except UnicodeDecodeError as e:
        raise RulesParseError(f"unable to decode file: {filename} ({e})") from e

    rules = [
        IngressRule(ip=ip, port=port, protocol=protocol, description=desc)
        for port in ports
        for ip, desc in entries
    ]
    logger.debug("Parsed %d addresses x %d ports from %s", len(entries), len(ports), filename)
    return rules


def _rule_from_record(record, index, filename):
    if not isinstance(record, dict):
        raise RulesParseError(f"rule {index} in {filename} is not an object")
    for name in ("ip", "port"):
        if name not in record:
            raise RulesParseError(f"rule {index} in {filename} has no {name!r}")
    port = record["port"]
    # bool is an int subclass, reject it explicitly
    if isinstance(port, bool) or not isinstance(port, int):
        raise RulesParseError(f"rule {index} in {filename} has a non-integer port: {port!r}")
    if not 1 <= port <= 65535:
        raise RulesParseError(f"rule {index} in {filename} has a port out of range: {port}")
    return IngressRule(
        ip=str(record["ip"]),
        port=port,
        protocol=str(record.get("protocol") or "tcp"),
        description=str(record.get("description") or ""),
    )


def parse_rules_json(filename) -> List[IngressRule]:
    try:
        with open(filename, "r", encoding="utf-8") as fh:
            content = fh.read()
    except OSError as e:
        raise RulesReadError(f"unable to read file: {filename} ({e.strerror})") from e
    except UnicodeDecodeError as e:
        raise RulesParseError(f"unable to decode file: {filename} ({e})") from e

    try:
        data = json.loads(content)
    except ValueError as e:
        raise RulesParseError(f"unable to parse json: {filename} ({e})") from e

    records = data.get("rules") if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise RulesParseError(f"unable to parse json: {filename} (expected a 'rules' list)")

    rules = [_rule_from_record(r, i, filename) for i, r in enumerate(records)]
    logger.debug("Parsed %d rules from %s", len(rules), filename)
    return rules


def load_rules(filename, fmt="auto", ports=None, protocol="tcp") -> List[IngressRule]:
    if fmt not in FORMATS:
        raise ValueError(f"unknown rules format: {fmt}")
    if fmt == "auto":
        fmt = "json" if os.path.splitext(filename)[1].lower() == ".json" else "csv"
    if fmt == "json":
        return parse_rules_json(filename)
    return parse_ip_file(filename, ports or [], protocol)
