"""Build the cluster → node → workload → sub-unit aggregation tree.

The builder is a pure in-memory transform over already-fetched records. Partial
data never raises: orphaned workloads are dropped, missing requests and limits
count as zero, and missing usage samples leave utilization absent.
"""
from __future__ import annotations
from typing import Dict, Iterable, Optional, Tuple
from .inventory import NodeRecord, WorkloadRecord, NodeUsageSample, WorkloadUsageSample
from .metrics import (
    ClusterMetric, NodeMetric, WorkloadMetric, SubUnitMetric,
    QUANTITY_TYPES, new_resources,
)
from .quantity import Quantity, sum_quantities
from ..util import logging as log

_UsageKey = Tuple[str, str, str]


def _index_workload_usage(samples: Iterable[WorkloadUsageSample]) -> Dict[_UsageKey, WorkloadUsageSample]:
    return {(s.namespace, s.name, s.sub_unit): s for s in samples}


def _build_sub_unit(spec, node: NodeMetric, sample: Optional[WorkloadUsageSample]) -> SubUnitMetric:
    sub = SubUnitMetric(name=spec.name)
    for rt in QUANTITY_TYPES:
        rm = sub.resources[rt]
        zero = Quantity.zero(rt.unit)
        rm.allocatable = node.resources[rt].allocatable
        rm.request = spec.requests.get(rt, zero)
        rm.limit = spec.limits.get(rt, zero)
        if sample is not None:
            rm.utilization = sample.usage.get(rt, zero)
    return sub


def _build_workload(record: WorkloadRecord, node: NodeMetric,
                    usage: Optional[Dict[_UsageKey, WorkloadUsageSample]]) -> WorkloadMetric:
    wm = WorkloadMetric(name=record.name, namespace=record.namespace,
                        resources=new_resources(labels=record.labels))
    for spec in record.sub_units:
        sample = usage.get((record.namespace, record.name, spec.name)) if usage is not None else None
        wm.sub_units[spec.name] = _build_sub_unit(spec, node, sample)
    subs = list(wm.sub_units.values())
    for rt in QUANTITY_TYPES:
        rm = wm.resources[rt]
        rm.allocatable = node.resources[rt].allocatable
        rm.request = sum_quantities((s.resources[rt].request for s in subs), rt.unit)
        rm.limit = sum_quantities((s.resources[rt].limit for s in subs), rt.unit)
        if usage is not None:
            # Samples were collected; sub-units without one add nothing.
            rm.utilization = sum_quantities((s.resources[rt].utilization for s in subs
                                             if s.resources[rt].utilization is not None), rt.unit)
    return wm


def _sum_node(node: NodeMetric, node_sample: Optional[NodeUsageSample], workload_usage_supplied: bool) -> None:
    workloads = list(node.workloads.values())
    for rt in QUANTITY_TYPES:
        rm = node.resources[rt]
        rm.request = sum_quantities((w.resources[rt].request for w in workloads), rt.unit)
        rm.limit = sum_quantities((w.resources[rt].limit for w in workloads), rt.unit)
        if node_sample is not None:
            rm.utilization = node_sample.usage.get(rt, Quantity.zero(rt.unit))
        elif workload_usage_supplied:
            rm.utilization = sum_quantities((w.resources[rt].utilization for w in workloads), rt.unit)


def build_cluster_metric(nodes: Iterable[NodeRecord],
                         workloads: Iterable[WorkloadRecord],
                         node_usage: Optional[Iterable[NodeUsageSample]] = None,
                         workload_usage: Optional[Iterable[WorkloadUsageSample]] = None) -> ClusterMetric:
    """Aggregate inventory records into a populated ClusterMetric.

    ``node_usage`` and ``workload_usage`` are optional: ``None`` means the
    collection was not gathered, an empty iterable means it was gathered but
    held no samples. A node-level sample takes precedence over the sum of the
    node's workload samples.
    """
    cm = ClusterMetric()
    for record in nodes:
        cm.nodes[record.name] = NodeMetric(
            name=record.name,
            resources=new_resources(allocatable=record.allocatable, labels=record.labels),
        )

    node_samples = {s.node_name: s for s in node_usage} if node_usage is not None else None
    usage_index = _index_workload_usage(workload_usage) if workload_usage is not None else None

    dropped_orphans = dropped_terminal = 0
    for record in workloads:
        node = cm.nodes.get(record.node_name)
        if node is None:
            dropped_orphans += 1
            log.debug('dropping workload on unknown node', namespace=record.namespace,
                      workload=record.name, node=record.node_name)
            continue
        if record.is_terminal:
            dropped_terminal += 1
            continue
        wm = _build_workload(record, node, usage_index)
        node.workloads[wm.key] = wm

    for name, node in cm.nodes.items():
        sample = node_samples.get(name) if node_samples is not None else None
        _sum_node(node, sample, usage_index is not None)
        for rt in QUANTITY_TYPES:
            cm.resources[rt].add_metric(node.resources[rt])

    log.debug('built cluster metric', nodes=len(cm.nodes),
              workloads=sum(len(n.workloads) for n in cm.nodes.values()),
              dropped_orphans=dropped_orphans, dropped_terminal=dropped_terminal)
    return cm
