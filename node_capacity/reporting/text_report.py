from __future__ import annotations
from .base import ReportGenerator, register
from .table import CapacityTable, render_text


@register
class TextTableReport(ReportGenerator):
    type_name = 'table'
    file_extension = '.txt'

    def generate(self, table: CapacityTable, cluster: str, out_path: str) -> None:
        with open(out_path, 'w', encoding='utf-8') as f:
            f.write(render_text(table))
