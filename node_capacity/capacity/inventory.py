"""Plain input records consumed by the aggregation builder."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List
from .metrics import ResourceType
from .quantity import Quantity

TERMINAL_PHASES = frozenset({'Succeeded', 'Failed'})


@dataclass(frozen=True)
class NodeRecord:
    name: str
    allocatable: Dict[ResourceType, Quantity] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SubUnitSpec:
    name: str
    requests: Dict[ResourceType, Quantity] = field(default_factory=dict)
    limits: Dict[ResourceType, Quantity] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkloadRecord:
    name: str
    namespace: str
    node_name: str
    phase: str = 'Running'
    labels: Dict[str, str] = field(default_factory=dict)
    sub_units: List[SubUnitSpec] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES


@dataclass(frozen=True)
class NodeUsageSample:
    node_name: str
    usage: Dict[ResourceType, Quantity] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkloadUsageSample:
    namespace: str
    name: str
    sub_unit: str
    usage: Dict[ResourceType, Quantity] = field(default_factory=dict)
