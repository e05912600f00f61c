"""
Aggregation tree tests.

These verify that:
1. Request/limit sums are strictly bottom-up (sub-unit -> workload -> node -> cluster)
2. Terminal and orphaned workloads contribute nothing
3. Node usage samples take precedence over summed workload samples
4. Missing usage stays absent (None) rather than becoming zero
"""
import pytest
from node_capacity.capacity.builder import build_cluster_metric
from node_capacity.capacity.inventory import (
    NodeRecord, WorkloadRecord, SubUnitSpec, NodeUsageSample, WorkloadUsageSample,
)
from node_capacity.capacity.metrics import ResourceMetric, ResourceType, QUANTITY_TYPES
from node_capacity.capacity.quantity import Quantity, sum_quantities

CPU, MEM, GPU = ResourceType.CPU, ResourceType.MEMORY, ResourceType.GPU


def res(cpu=None, mem=None, gpu=None):
    out = {}
    if cpu is not None:
        out[CPU] = Quantity.parse(cpu, CPU.unit)
    if mem is not None:
        out[MEM] = Quantity.parse(mem, MEM.unit)
    if gpu is not None:
        out[GPU] = Quantity.parse(gpu, GPU.unit)
    return out


def node(name, cpu='4', mem='8Gi', gpu=None, labels=None):
    return NodeRecord(name=name, allocatable=res(cpu, mem, gpu), labels=labels or {})


def pod(name, node_name, containers, namespace='default', phase='Running'):
    return WorkloadRecord(name=name, namespace=namespace, node_name=node_name, phase=phase,
                          sub_units=containers)


def container(name, req_cpu=None, req_mem=None, lim_cpu=None, lim_mem=None):
    return SubUnitSpec(name=name, requests=res(req_cpu, req_mem), limits=res(lim_cpu, lim_mem))


@pytest.fixture
def inventory():
    nodes = [node('worker-b', labels={'role': 'worker'}), node('worker-a', cpu='2', mem='4Gi', gpu='1')]
    workloads = [
        pod('web', 'worker-a', [container('app', '250m', '256Mi', '500m', '512Mi'),
                                container('proxy', '100m', '64Mi')]),
        pod('db', 'worker-a', [container('pg', '500m', '1Gi', '1', '2Gi')], namespace='data'),
        pod('batch', 'worker-b', [container('job', '1', '1Gi', '2', '2Gi')]),
        pod('done', 'worker-b', [container('job', '3', '3Gi', '3', '3Gi')], phase='Succeeded'),
        pod('crashed', 'worker-a', [container('job', '3', '3Gi')], phase='Failed'),
        pod('ghost', 'worker-gone', [container('job', '3', '3Gi', '3', '3Gi')]),
        pod('pending', '', [container('job', '3', '3Gi')], phase='Pending'),
    ]
    return nodes, workloads


def test_additivity_across_levels(inventory):
    nodes, workloads = inventory
    cm = build_cluster_metric(nodes, workloads)
    for nm in cm.nodes.values():
        for rt in QUANTITY_TYPES:
            for wm in nm.workloads.values():
                assert wm.resources[rt].request == sum_quantities(
                    (s.resources[rt].request for s in wm.sub_units.values()), rt.unit)
                assert wm.resources[rt].limit == sum_quantities(
                    (s.resources[rt].limit for s in wm.sub_units.values()), rt.unit)
            assert nm.resources[rt].request == sum_quantities(
                (w.resources[rt].request for w in nm.workloads.values()), rt.unit)
            assert nm.resources[rt].limit == sum_quantities(
                (w.resources[rt].limit for w in nm.workloads.values()), rt.unit)


def test_node_values(inventory):
    nodes, workloads = inventory
    cm = build_cluster_metric(nodes, workloads)
    a = cm.nodes['worker-a']
    assert set(a.workloads) == {'default/web', 'data/db'}
    assert a.cpu.request.milli_value() == 850
    assert a.cpu.limit.milli_value() == 1500
    assert a.memory.request.mebibytes() == 256 + 64 + 1024
    assert a.memory.limit.mebibytes() == 512 + 2048
    assert a.gpu.allocatable.count() == 1
    assert a.gpu.request.is_zero()


def test_cluster_totals(inventory):
    nodes, workloads = inventory
    cm = build_cluster_metric(nodes, workloads)
    for rt in QUANTITY_TYPES:
        for field in ('allocatable', 'request', 'limit'):
            expected = sum_quantities((getattr(n.resources[rt], field) for n in cm.nodes.values()), rt.unit)
            assert getattr(cm.resources[rt], field) == expected
    assert cm.cpu.allocatable.milli_value() == 6000
    assert cm.memory.allocatable.mebibytes() == 12 * 1024


def test_terminal_workloads_excluded(inventory):
    nodes, workloads = inventory
    cm = build_cluster_metric(nodes, workloads)
    assert 'default/done' not in cm.nodes['worker-b'].workloads
    assert 'default/crashed' not in cm.nodes['worker-a'].workloads
    assert cm.nodes['worker-b'].cpu.request.milli_value() == 1000
    assert cm.nodes['worker-b'].cpu.limit.milli_value() == 2000


def test_orphaned_and_unscheduled_workloads_excluded(inventory):
    nodes, workloads = inventory
    cm = build_cluster_metric(nodes, workloads)
    assert set(cm.nodes) == {'worker-a', 'worker-b'}
    all_keys = {k for n in cm.nodes.values() for k in n.workloads}
    assert 'default/ghost' not in all_keys
    assert 'default/pending' not in all_keys
    assert cm.cpu.request.milli_value() == 850 + 1000


def test_sub_unit_mirrors_node_allocatable(inventory):
    nodes, workloads = inventory
    cm = build_cluster_metric(nodes, workloads)
    a = cm.nodes['worker-a']
    web = a.workloads['default/web']
    assert web.cpu.allocatable == a.cpu.allocatable
    assert web.sub_units['app'].memory.allocatable == a.memory.allocatable
    # proxy declares no limits
    assert web.sub_units['proxy'].cpu.limit.is_zero()


def test_node_without_workloads_keeps_allocatable():
    cm = build_cluster_metric([node('idle', cpu='8', mem='16Gi')], [])
    idle = cm.nodes['idle']
    assert idle.workloads == {}
    assert idle.cpu.allocatable.milli_value() == 8000
    assert idle.cpu.request.is_zero() and idle.memory.limit.is_zero()
    assert idle.cpu.utilization is None


def test_labels_are_carried(inventory):
    nodes, workloads = inventory
    cm = build_cluster_metric(nodes, workloads)
    assert cm.nodes['worker-b'].labels.labels == {'role': 'worker'}
    assert cm.labels.labels == {}


def test_no_usage_samples_leaves_utilization_absent(inventory):
    nodes, workloads = inventory
    cm = build_cluster_metric(nodes, workloads)
    assert cm.cpu.utilization is None
    assert cm.nodes['worker-a'].cpu.utilization is None
    assert cm.nodes['worker-a'].workloads['default/web'].cpu.utilization is None
    assert not cm.has_utilization()


def test_empty_usage_collections_mean_zero_not_absent(inventory):
    nodes, workloads = inventory
    cm = build_cluster_metric(nodes, workloads, node_usage=[], workload_usage=[])
    assert cm.has_utilization()
    assert cm.cpu.utilization is not None and cm.cpu.utilization.is_zero()
    web = cm.nodes['worker-a'].workloads['default/web']
    assert web.cpu.utilization.is_zero()
    # no matching sample for the sub-unit itself
    assert web.sub_units['app'].cpu.utilization is None


def test_workload_usage_sums_to_node_when_no_node_samples(inventory):
    nodes, workloads = inventory
    usage = [
        WorkloadUsageSample('default', 'web', 'app', res('120m', '200Mi')),
        WorkloadUsageSample('default', 'web', 'proxy', res('30m', '20Mi')),
        WorkloadUsageSample('data', 'db', 'pg', res('400m', '900Mi')),
        WorkloadUsageSample('default', 'web', 'not-a-container', res('5', '5Gi')),
    ]
    cm = build_cluster_metric(nodes, workloads, workload_usage=usage)
    a = cm.nodes['worker-a']
    assert a.workloads['default/web'].cpu.utilization.milli_value() == 150
    assert a.cpu.utilization.milli_value() == 550
    assert a.memory.utilization.mebibytes() == 1120
    # worker-b's pod has no sample: supplied collection, so zero rather than absent
    assert cm.nodes['worker-b'].cpu.utilization.is_zero()
    assert cm.cpu.utilization.milli_value() == 550


def test_node_usage_takes_precedence_over_workload_sum(inventory):
    nodes, workloads = inventory
    node_usage = [NodeUsageSample('worker-a', res('1700m', '3Gi'))]
    workload_usage = [WorkloadUsageSample('default', 'web', 'app', res('100m', '100Mi'))]
    cm = build_cluster_metric(nodes, workloads, node_usage=node_usage, workload_usage=workload_usage)
    a = cm.nodes['worker-a']
    assert a.workloads['default/web'].cpu.utilization.milli_value() == 100
    assert a.cpu.utilization.milli_value() == 1700
    assert a.memory.utilization.mebibytes() == 3072
    # worker-b has no node sample and falls back to its workload sum
    assert cm.nodes['worker-b'].cpu.utilization.is_zero()
    assert cm.cpu.utilization.milli_value() == 1700


def test_node_usage_only():
    nodes = [node('n1'), node('n2')]
    cm = build_cluster_metric(nodes, [], node_usage=[NodeUsageSample('n1', res('1', '1Gi'))])
    assert cm.nodes['n1'].cpu.utilization.milli_value() == 1000
    assert cm.nodes['n2'].cpu.utilization is None
    assert cm.cpu.utilization.milli_value() == 1000


def test_build_does_not_mutate_inputs(inventory):
    nodes, workloads = inventory
    before = [dict(n.allocatable) for n in nodes]
    build_cluster_metric(nodes, workloads)
    assert [dict(n.allocatable) for n in nodes] == before


def test_workloads_keyed_by_namespace_and_name(inventory):
    nodes, workloads = inventory
    cm = build_cluster_metric(nodes, workloads)
    assert sorted(cm.nodes['worker-a'].workloads) == ['data/db', 'default/web']
    for key, wm in cm.nodes['worker-a'].workloads.items():
        assert key == wm.key


def test_repeated_sub_unit_name_counted_once():
    cm = build_cluster_metric([node('n1')], [pod('dup', 'n1', [container('c', '1'), container('c', '1')])])
    wm = cm.nodes['n1'].workloads['default/dup']
    assert list(wm.sub_units) == ['c']
    assert wm.cpu.request.milli_value() == 1000
    assert cm.nodes['n1'].cpu.request == wm.cpu.request


def test_resource_metric_unset_quantities_default_to_zero():
    rm = ResourceMetric(CPU, request=Quantity.parse('250m', CPU.unit))
    assert rm.allocatable == Quantity.zero(CPU.unit)
    assert rm.limit == Quantity.zero(CPU.unit)
    assert rm.request.milli_value() == 250
    assert rm.utilization is None
