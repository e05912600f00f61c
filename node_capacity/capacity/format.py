"""Render ResourceMetric columns as display strings.

Two modes, selected by ``available``:

* utilization: ``"500m (25%)"``; the percentage is truncated toward zero
  and is 0 when nothing is allocatable.
* available: ``"1500m/2000m"``; remaining capacity over allocatable, left
  negative when the node is overcommitted.
"""
from __future__ import annotations
from typing import Optional
from .metrics import ResourceMetric, ResourceType
from .quantity import Quantity
from ..util.canonical import canonical_json

ABSENT = '-'


def display_value(resource_type: ResourceType, q: Quantity) -> int:
    if resource_type is ResourceType.CPU:
        return q.milli_value()
    if resource_type is ResourceType.MEMORY:
        return q.mebibytes()
    return q.count()


def unit_suffix(resource_type: ResourceType) -> str:
    if resource_type is ResourceType.CPU:
        return 'm'
    if resource_type is ResourceType.MEMORY:
        return 'Mi'
    return ''


def percent(actual: Quantity, allocatable: Quantity) -> int:
    return int(100 * actual.ratio(allocatable))


def remaining(resource_type: ResourceType, actual: Quantity, allocatable: Quantity) -> int:
    return display_value(resource_type, allocatable) - display_value(resource_type, actual)


def resource_string(resource_type: ResourceType, actual: Quantity, allocatable: Quantity, available: bool) -> str:
    suffix = unit_suffix(resource_type)
    if available:
        alloc = display_value(resource_type, allocatable)
        return f'{remaining(resource_type, actual, allocatable)}{suffix}/{alloc}{suffix}'
    return f'{display_value(resource_type, actual)}{suffix} ({percent(actual, allocatable)}%)'


def is_overcommitted(actual: Optional[Quantity], allocatable: Quantity) -> bool:
    if actual is None or allocatable.is_zero():
        return False
    return actual.value > allocatable.value


def request_string(rm: ResourceMetric, available: bool) -> str:
    return resource_string(rm.resource_type, rm.request, rm.allocatable, available)


def limit_string(rm: ResourceMetric, available: bool) -> str:
    return resource_string(rm.resource_type, rm.limit, rm.allocatable, available)


def usage_string(rm: ResourceMetric, available: bool) -> str:
    if rm.utilization is None:
        return ABSENT
    return resource_string(rm.resource_type, rm.utilization, rm.allocatable, available)


def labels_string(rm: ResourceMetric) -> str:
    return canonical_json(rm.labels)
