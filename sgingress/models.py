from dataclasses import dataclass, field
from enum import Enum
from typing import List

@dataclass(frozen=True)
class RegionProfile:
    name: str
    region: str = ""
    sg: str = ""
    vpc: str = ""

@dataclass(frozen=True)
class IngressRule:
    ip: str
    port: int
    protocol: str = "tcp"
    description: str = ""

class RuleOutcome(Enum):
    ADDED = "added"
    DUPLICATE = "duplicate"
    DRY_RUN = "dry_run"

@dataclass
class RuleResult:
    rule: IngressRule
    group_id: str
    outcome: RuleOutcome

@dataclass
class GroupReport:
    group_id: str
    results: List[RuleResult] = field(default_factory=list)

    @property
    def added(self) -> int:
        return len([r for r in self.results if r.outcome == RuleOutcome.ADDED])

    @property
    def duplicates(self) -> int:
        return len([r for r in self.results if r.outcome == RuleOutcome.DUPLICATE])
