"""Lay out a ClusterMetric as rows of display strings.

One header, an optional ``*`` cluster-total row (only when there is more than
one node) and one row per node in name order. The layout only reads the tree.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple
from tabulate import tabulate
from ..capacity import format as fmt
from ..capacity.metrics import ClusterMetric, ResourceMetric, ResourceType, ResourceHolder

CLUSTER_ROW_NAME = '*'

Column = Tuple[str, ResourceType, str]

REQUEST, LIMIT, USAGE = 'request', 'limit', 'usage'

_CELL_FORMATTERS = {
    REQUEST: fmt.request_string,
    LIMIT: fmt.limit_string,
    USAGE: fmt.usage_string,
}


def _actual(rm: ResourceMetric, kind: str):
    if kind == REQUEST:
        return rm.request
    if kind == LIMIT:
        return rm.limit
    return rm.utilization


@dataclass
class TableLine:
    node: str
    cells: List[str]
    # Column indexes (into cells) whose value exceeds allocatable.
    overcommitted: Set[int] = field(default_factory=set)
    is_total: bool = False

    @property
    def items(self) -> List[str]:
        return [self.node] + self.cells


@dataclass
class CapacityTable:
    headers: List[str]
    lines: List[TableLine]
    available: bool


def columns_for(show_gpu: bool, show_usage: bool) -> List[Column]:
    cols: List[Column] = [
        ('CPU REQUESTS', ResourceType.CPU, REQUEST),
        ('CPU LIMITS', ResourceType.CPU, LIMIT),
        ('MEMORY REQUESTS', ResourceType.MEMORY, REQUEST),
        ('MEMORY LIMITS', ResourceType.MEMORY, LIMIT),
    ]
    if show_gpu:
        cols += [('GPU REQUESTS', ResourceType.GPU, REQUEST), ('GPU LIMITS', ResourceType.GPU, LIMIT)]
    if show_usage:
        cols += [('CPU USAGE', ResourceType.CPU, USAGE), ('MEMORY USAGE', ResourceType.MEMORY, USAGE)]
    return cols


def _line(name: str, metric: ResourceHolder, cols: List[Column], available: bool, is_total: bool = False) -> TableLine:
    cells: List[str] = []
    over: Set[int] = set()
    for idx, (_, rt, kind) in enumerate(cols):
        rm = metric.resources[rt]
        cells.append(_CELL_FORMATTERS[kind](rm, available))
        if fmt.is_overcommitted(_actual(rm, kind), rm.allocatable):
            over.add(idx)
    cells.append(fmt.labels_string(metric.labels))
    return TableLine(node=name, cells=cells, overcommitted=over, is_total=is_total)


def build_table(cm: ClusterMetric, available: bool, show_gpu: bool = True,
                show_usage: Optional[bool] = None) -> CapacityTable:
    """``show_usage`` defaults to whether any usage data was collected."""
    if show_usage is None:
        show_usage = cm.has_utilization()
    cols = columns_for(show_gpu, show_usage)
    headers = ['NODE'] + [c[0] for c in cols] + ['LABELS']
    lines: List[TableLine] = []
    nodes = cm.sorted_nodes()
    if len(nodes) > 1:
        lines.append(_line(CLUSTER_ROW_NAME, cm, cols, available, is_total=True))
    for nm in nodes:
        lines.append(_line(nm.name, nm, cols, available))
    return CapacityTable(headers=headers, lines=lines, available=available)


def render_text(table: CapacityTable) -> str:
    """Left-aligned columns separated by two spaces, with the header on the first line."""
    text = tabulate([line.items for line in table.lines], headers=table.headers, tablefmt='plain',
                    disable_numparse=True, stralign='left')
    return '\n'.join(row.rstrip() for row in text.splitlines()) + '\n'
