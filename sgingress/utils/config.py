# sgingress/utils/config.py

import json
import logging
import os
from dataclasses import dataclass
from typing import Dict

from sgingress.errors import ConfigParseError, ConfigReadError
from sgingress.models import RegionProfile

logger = logging.getLogger(__name__)

AWS_CONFIG_FILE = os.getenv("SGINGRESS_CONF", "awsconfig.json")
DEFAULT_REGION_KEY = os.getenv("SGINGRESS_REGION", "pdx")
RULES_FILE = os.getenv("SGINGRESS_FILE", "ips.txt")
DEFAULT_PORTS = os.getenv("SGINGRESS_PORTS", "22")
DEFAULT_PROTOCOL = os.getenv("SGINGRESS_PROTOCOL", "tcp")
AWS_PROFILE = os.getenv("AWS_PROFILE", None)


@dataclass(frozen=True)
class RegionConfig:
    profiles: Dict[str, RegionProfile]

    def __contains__(self, key: str) -> bool:
        return key in self.profiles

    def lookup(self, key: str) -> RegionProfile:
        """Return the profile for ``key``; unknown keys give an empty profile."""
        return self.profiles.get(key, RegionProfile(name=key))


def load_region_config(filename: str) -> RegionConfig:
    """
    Parse the region map, e.g.::

        {"pdx": {"region": "us-west-2", "sg": "sg-111", "vpc": "vpc-1"}}

    Field contents are not validated: an empty region code is accepted
    and only fails once the EC2 client is used.
    """
    try:
        with open(filename, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigReadError(f"unable to read file: {filename} ({e.strerror})") from e
    except UnicodeDecodeError as e:
        raise ConfigParseError(f"unable to decode file: {filename} ({e})") from e

    try:
        data = json.loads(content)
    except ValueError as e:
        raise ConfigParseError(f"unable to parse json: {filename} ({e})") from e

    if not isinstance(data, dict):
        raise ConfigParseError(f"unable to parse json: {filename} (expected an object of regions)")

    profiles = {}
    for key, entry in data.items():
        if not isinstance(entry, dict):
            raise ConfigParseError(f"unable to parse json: {filename} (region {key!r} is not an object)")
        profiles[key] = RegionProfile(
            name=key,
            region=str(entry.get("region") or ""),
            sg=str(entry.get("sg") or ""),
            vpc=str(entry.get("vpc") or ""),
        )

    logger.debug("Loaded %d region profiles from %s", len(profiles), filename)
    return RegionConfig(profiles)
