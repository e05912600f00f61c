from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
from .quantity import Quantity, UnitFamily, add_optional


class ResourceType(Enum):
    CPU = 'cpu'
    MEMORY = 'memory'
    GPU = 'gpu'
    LABELS = 'labels'

    @property
    def unit(self) -> UnitFamily:
        return _UNITS[self]


_UNITS = {
    ResourceType.CPU: UnitFamily.CPU,
    ResourceType.MEMORY: UnitFamily.BYTES,
    ResourceType.GPU: UnitFamily.COUNT,
    ResourceType.LABELS: UnitFamily.COUNT,
}

# Resource types carrying quantities, in display order.
QUANTITY_TYPES = (ResourceType.CPU, ResourceType.MEMORY, ResourceType.GPU)


@dataclass
class ResourceMetric:
    """Accumulator for one resource type at one level of the tree.

    ``utilization`` is ``None`` when no usage sample covers this level, which
    is not the same thing as a zero sample.
    """
    resource_type: ResourceType
    allocatable: Optional[Quantity] = None
    request: Optional[Quantity] = None
    limit: Optional[Quantity] = None
    utilization: Optional[Quantity] = None
    labels: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        zero = Quantity.zero(self.resource_type.unit)
        if self.allocatable is None:
            self.allocatable = zero
        if self.request is None:
            self.request = zero
        if self.limit is None:
            self.limit = zero

    def add_declared(self, other: 'ResourceMetric') -> None:
        self.request = self.request + other.request
        self.limit = self.limit + other.limit

    def add_metric(self, other: 'ResourceMetric') -> None:
        self.allocatable = self.allocatable + other.allocatable
        self.add_declared(other)
        self.utilization = add_optional(self.utilization, other.utilization)


def new_resources(allocatable: Optional[Dict[ResourceType, Quantity]] = None,
                  labels: Optional[Dict[str, str]] = None) -> Dict[ResourceType, ResourceMetric]:
    allocatable = allocatable or {}
    resources = {rt: ResourceMetric(rt, allocatable=allocatable.get(rt)) for rt in QUANTITY_TYPES}
    resources[ResourceType.LABELS] = ResourceMetric(ResourceType.LABELS, labels=dict(labels or {}))
    return resources


class ResourceHolder:
    resources: Dict[ResourceType, ResourceMetric]

    @property
    def cpu(self) -> ResourceMetric:
        return self.resources[ResourceType.CPU]

    @property
    def memory(self) -> ResourceMetric:
        return self.resources[ResourceType.MEMORY]

    @property
    def gpu(self) -> ResourceMetric:
        return self.resources[ResourceType.GPU]

    @property
    def labels(self) -> ResourceMetric:
        return self.resources[ResourceType.LABELS]


@dataclass
class SubUnitMetric(ResourceHolder):
    name: str
    resources: Dict[ResourceType, ResourceMetric] = field(default_factory=new_resources)


@dataclass
class WorkloadMetric(ResourceHolder):
    name: str
    namespace: str
    resources: Dict[ResourceType, ResourceMetric] = field(default_factory=new_resources)
    sub_units: Dict[str, SubUnitMetric] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return workload_key(self.namespace, self.name)


@dataclass
class NodeMetric(ResourceHolder):
    name: str
    resources: Dict[ResourceType, ResourceMetric] = field(default_factory=new_resources)
    workloads: Dict[str, WorkloadMetric] = field(default_factory=dict)


@dataclass
class ClusterMetric(ResourceHolder):
    resources: Dict[ResourceType, ResourceMetric] = field(default_factory=new_resources)
    nodes: Dict[str, NodeMetric] = field(default_factory=dict)

    def sorted_nodes(self) -> List[NodeMetric]:
        return [self.nodes[name] for name in sorted(self.nodes)]

    def has_utilization(self) -> bool:
        return any(self.resources[rt].utilization is not None for rt in QUANTITY_TYPES)


def workload_key(namespace: str, name: str) -> str:
    return f'{namespace}/{name}'
