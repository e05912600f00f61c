"""HTML helpers shared by the document-style reports."""
from __future__ import annotations
import html
from typing import Any, Dict, List


def build_legend_html(sections: List[Dict[str, Any]]) -> str:
    parts = ['<div class="legend">', '<h3>Legend</h3>']
    for section in sections:
        parts.append('<div class="legend-section">')
        parts.append(f'<h4>{html.escape(section["title"])}</h4>')
        parts.append('<ul>')
        for item in section["items"]:
            parts.append(f'<li>{item}</li>')
        parts.append('</ul>')
        parts.append('</div>')
    parts.append('</div>')
    return '\n'.join(parts)


def get_legend_sections(available: bool) -> List[Dict[str, Any]]:
    if available:
        mode = "<strong>Available mode</strong>: remaining/allocatable; a negative remainder means the node is overcommitted"
    else:
        mode = "<strong>Utilization mode</strong>: amount (percent of allocatable, truncated)"
    return [
        {"title": "Values", "items": [mode, "<strong>*</strong>: cluster total (shown when there is more than one node)",
                                      "<strong>-</strong>: no usage sample collected"]},
        {"title": "Units", "items": ["<strong>CPU</strong>: millicores (1000m = 1 core)",
                                     "<strong>Memory</strong>: MiB, rounded up (1024 MiB = 1 GiB)",
                                     "<strong>GPU</strong>: devices"]},
    ]


def get_base_css_styles() -> str:
    return """
body { font-family: system-ui, -apple-system, 'Segoe UI', Roboto, sans-serif; margin: 20px; color: #212529; line-height: 1.5; }
h1, h2, h3, h4 { color: #343a40; margin-top: 0; margin-bottom: 1rem; }
table { border-collapse: collapse; margin-bottom: 16px; width: 100%; font-size: 13px; }
th { background: #343a40; color: #ffffff; font-weight: 600; text-align: left; border: 1px solid #dee2e6; padding: 8px; }
td { border: 1px solid #dee2e6; padding: 8px; color: #343a40; font-family: ui-monospace, monospace; }
table tr:nth-child(even) { background-color: #f8f9fa; }
tr.total-row td { font-weight: 600; background-color: #e9ecef; }
.legend { background: #f8f9fa; border: 1px solid #dee2e6; padding: 15px; margin: 15px 0; border-radius: 6px; font-size: 11px; }
.legend h3 { margin: 0 0 10px 0; font-size: 12px; }
.legend h4 { margin: 10px 0 5px 0; color: #495057; font-size: 11px; }
.legend li { margin: 5px 0; color: #6c757d; }
.error-cell { background-color: #f8d7da !important; border-color: #f5c6cb !important; }
""".strip()


def wrap_html_document(title: str, content_parts: List[str], additional_css: str = "") -> str:
    base_css = get_base_css_styles()
    full_css = base_css + ("\n" + additional_css if additional_css else "")
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{html.escape(title)}</title>
  <style>
{full_css}
  </style>
</head>
<body>
{chr(10).join(content_parts)}
</body>
</html>"""
