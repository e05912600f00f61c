from __future__ import annotations
from .base import ReportGenerator, register
from .table import CapacityTable


@register
class ExcelReport(ReportGenerator):
    type_name = 'excel'
    file_extension = '.xlsx'

    def generate(self, table: CapacityTable, cluster: str, out_path: str) -> None:
        """Write the table to a workbook with a styled header and overcommit highlighting."""
        from openpyxl import Workbook
        from openpyxl.styles import Font, PatternFill, Border, Side, Alignment
        from openpyxl.utils import get_column_letter

        wb = Workbook()
        ws = wb.active
        ws.title = "Node Capacity"

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        total_fill = PatternFill(start_color="F5F5F5", end_color="F5F5F5", fill_type="solid")
        error_fill = PatternFill(start_color="F8D7DA", end_color="F8D7DA", fill_type="solid")
        error_font = Font(color="721C24", bold=True)
        border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        mode = 'available' if table.available else 'utilization'
        title_cell = ws.cell(row=1, column=1, value=f"Node capacity report: {cluster} ({mode})")
        title_cell.font = Font(bold=True, size=16)

        for col, header in enumerate(table.headers, 1):
            cell = ws.cell(row=3, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.border = border
            cell.alignment = Alignment(horizontal="center", vertical="center")

        for row_idx, line in enumerate(table.lines, 4):
            for col_idx, value in enumerate(line.items, 1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = border
                if line.is_total:
                    cell.fill = total_fill
                    cell.font = Font(bold=True)
                # items[0] is the node name, cells start at column 2
                if col_idx >= 2 and (col_idx - 2) in line.overcommitted:
                    cell.fill = error_fill
                    cell.font = error_font
                if 1 < col_idx < len(table.headers):
                    cell.alignment = Alignment(horizontal="right")

        for col in range(1, len(table.headers) + 1):
            column_letter = get_column_letter(col)
            longest = max([len(table.headers[col - 1])] + [len(line.items[col - 1]) for line in table.lines])
            ws.column_dimensions[column_letter].width = min(longest + 2, 60)
        ws.freeze_panes = 'B4'
        wb.save(out_path)
