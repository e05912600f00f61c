from __future__ import annotations
import html
from typing import List
from .base import ReportGenerator, register
from .common import build_legend_html, get_legend_sections, wrap_html_document
from .table import CapacityTable, TableLine


def _row_html(line: TableLine) -> str:
    cells = [f'<td>{html.escape(line.node)}</td>']
    for idx, value in enumerate(line.cells):
        css = ' class="error-cell"' if idx in line.overcommitted else ''
        cells.append(f'<td{css}>{html.escape(value)}</td>')
    row_class = ' class="total-row"' if line.is_total else ''
    return f'<tr{row_class}>' + ''.join(cells) + '</tr>'


@register
class HtmlReport(ReportGenerator):
    type_name = 'html'
    file_extension = '.html'

    def generate(self, table: CapacityTable, cluster: str, out_path: str) -> None:
        title = f"Node capacity report: {cluster}"
        parts: List[str] = [f"<h1>{html.escape(title)}</h1>"]
        parts.append(build_legend_html(get_legend_sections(table.available)))
        if not table.lines:
            parts.append("<p>No nodes found in this cluster.</p>")
        else:
            parts.append("<table>")
            parts.append("<tr>" + "".join(f"<th>{html.escape(h)}</th>" for h in table.headers) + "</tr>")
            parts.extend(_row_html(line) for line in table.lines)
            parts.append("</table>")
        with open(out_path, 'w', encoding='utf-8') as f:
            f.write(wrap_html_document(title, parts))
