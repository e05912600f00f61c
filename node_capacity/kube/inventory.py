"""Fetch cluster inventory and convert raw manifests into builder records."""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from ..capacity.inventory import (
    NodeRecord, WorkloadRecord, SubUnitSpec, NodeUsageSample, WorkloadUsageSample,
)
from ..capacity.metrics import ResourceType
from ..capacity.quantity import Quantity
from ..config import ClusterConfig, DEFAULT_GPU_RESOURCE
from ..errors import NodeListError, WorkloadListError, ResourceListError
from ..util import logging as log
from .client import list_resources, NODES, PODS, NODE_METRICS, POD_METRICS


def resource_names(gpu_resource: str = DEFAULT_GPU_RESOURCE) -> Dict[ResourceType, str]:
    return {ResourceType.CPU: 'cpu', ResourceType.MEMORY: 'memory', ResourceType.GPU: gpu_resource}


def parse_resource_list(raw: Optional[Dict[str, Any]], gpu_resource: str = DEFAULT_GPU_RESOURCE) -> Dict[ResourceType, Quantity]:
    raw = raw or {}
    out: Dict[ResourceType, Quantity] = {}
    for rt, key in resource_names(gpu_resource).items():
        if key in raw:
            out[rt] = Quantity.parse(raw[key], rt.unit)
    return out


def node_record_from_manifest(item: Dict[str, Any], gpu_resource: str = DEFAULT_GPU_RESOURCE) -> NodeRecord:
    meta = item.get('metadata', {})
    status = item.get('status') or {}
    return NodeRecord(
        name=meta['name'],
        allocatable=parse_resource_list(status.get('allocatable'), gpu_resource),
        labels=dict(meta.get('labels') or {}),
    )


def _sub_unit_from_container(container: Dict[str, Any], gpu_resource: str) -> SubUnitSpec:
    resources = container.get('resources') or {}
    return SubUnitSpec(
        name=container['name'],
        requests=parse_resource_list(resources.get('requests'), gpu_resource),
        limits=parse_resource_list(resources.get('limits'), gpu_resource),
    )


def workload_record_from_manifest(item: Dict[str, Any], gpu_resource: str = DEFAULT_GPU_RESOURCE) -> WorkloadRecord:
    meta = item.get('metadata', {})
    spec = item.get('spec') or {}
    status = item.get('status') or {}
    sub_units: List[SubUnitSpec] = [_sub_unit_from_container(c, gpu_resource) for c in spec.get('containers') or []]
    # Sidecar init containers keep running alongside the app containers.
    for c in spec.get('initContainers') or []:
        if c.get('restartPolicy') == 'Always':
            sub_units.append(_sub_unit_from_container(c, gpu_resource))
    return WorkloadRecord(
        name=meta['name'],
        namespace=meta.get('namespace', 'default'),
        node_name=spec.get('nodeName') or '',
        phase=status.get('phase') or 'Unknown',
        labels=dict(meta.get('labels') or {}),
        sub_units=sub_units,
    )


def node_usage_from_manifest(item: Dict[str, Any], gpu_resource: str = DEFAULT_GPU_RESOURCE) -> NodeUsageSample:
    return NodeUsageSample(
        node_name=item['metadata']['name'],
        usage=parse_resource_list(item.get('usage'), gpu_resource),
    )


def workload_usage_from_manifest(item: Dict[str, Any], gpu_resource: str = DEFAULT_GPU_RESOURCE) -> List[WorkloadUsageSample]:
    meta = item.get('metadata', {})
    return [
        WorkloadUsageSample(
            namespace=meta.get('namespace', 'default'),
            name=meta['name'],
            sub_unit=c['name'],
            usage=parse_resource_list(c.get('usage'), gpu_resource),
        )
        for c in item.get('containers') or []
    ]


@dataclass
class Inventory:
    nodes: List[NodeRecord]
    workloads: List[WorkloadRecord]
    node_usage: Optional[List[NodeUsageSample]] = None
    workload_usage: Optional[List[WorkloadUsageSample]] = None


def _fetch_items(api_client, api_version: str, plural: str, timeout: float) -> List[Dict[str, Any]]:
    log.info('listing collection', api_version=api_version, plural=plural)
    return list(list_resources(api_client, api_version, plural, request_timeout=timeout))


def _fetch_optional(future, api_version: str, plural: str) -> Optional[List[Dict[str, Any]]]:
    try:
        return future.result()
    except ResourceListError as e:
        log.warn('usage metrics unavailable, continuing without them', api_version=api_version,
                 plural=plural, error=str(e))
        return None


def fetch_inventory(api_client, target: ClusterConfig, use_metrics: bool = True,
                    gpu_resource: str = DEFAULT_GPU_RESOURCE) -> Inventory:
    """List nodes, pods and (optionally) metrics concurrently.

    Node and pod listing failures are fatal and raised as NodeListError and
    WorkloadListError. Metrics failures degrade to "no samples".
    """
    timeout = target.request_timeout
    jobs = {'nodes': NODES, 'pods': PODS}
    if use_metrics:
        jobs['node_metrics'] = NODE_METRICS
        jobs['pod_metrics'] = POD_METRICS
    max_workers = min(target.parallelism, len(jobs))
    log.info('starting parallel fetch', cluster=target.name, max_workers=max_workers, total_collections=len(jobs))
    executor = ThreadPoolExecutor(max_workers=max_workers)
    try:
        futures = {
            key: executor.submit(_fetch_items, api_client, api_version, plural, timeout)
            for key, (api_version, plural) in jobs.items()
        }
        try:
            node_items = futures['nodes'].result()
        except ResourceListError as e:
            raise NodeListError(f'Error listing Nodes: {e}', cause=e) from e
        try:
            pod_items = futures['pods'].result()
        except ResourceListError as e:
            raise WorkloadListError(f'Error listing Pods: {e}', cause=e) from e
        node_metric_items = _fetch_optional(futures['node_metrics'], *NODE_METRICS) if use_metrics else None
        pod_metric_items = _fetch_optional(futures['pod_metrics'], *POD_METRICS) if use_metrics else None
    finally:
        # A fatal listing error must not wait on the remaining collections.
        executor.shutdown(wait=False, cancel_futures=True)

    inventory = Inventory(
        nodes=[node_record_from_manifest(i, gpu_resource) for i in node_items],
        workloads=[workload_record_from_manifest(i, gpu_resource) for i in pod_items],
    )
    if node_metric_items is not None:
        inventory.node_usage = [node_usage_from_manifest(i, gpu_resource) for i in node_metric_items]
    if pod_metric_items is not None:
        inventory.workload_usage = [s for i in pod_metric_items for s in workload_usage_from_manifest(i, gpu_resource)]
    log.info('fetched inventory', cluster=target.name, nodes=len(inventory.nodes), pods=len(inventory.workloads),
             node_samples=len(inventory.node_usage) if inventory.node_usage is not None else None,
             pod_samples=len(inventory.workload_usage) if inventory.workload_usage is not None else None)
    return inventory
