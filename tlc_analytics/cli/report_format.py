"""
Text rendering of report tables.
"""

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Any, List

from tlc_analytics.core.models import ReportTable

# Display precision per column; the aggregates themselves stay exact
DISPLAY_QUANTUM = {
    "total_revenue": Decimal("0.01"),
    "avg_fare": Decimal("0.0001"),
    "avg_tip": Decimal("0.0001"),
    "tip_rate": Decimal("0.000001"),
}

BANNER_WIDTH = 60


def format_value(header: str, value: Any) -> str:
    """Format one cell for display."""
    if value is None:
        return "null"
    if isinstance(value, Decimal):
        quantum = DISPLAY_QUANTUM.get(header)
        if quantum is not None:
            value = value.quantize(quantum, rounding=ROUND_HALF_EVEN)
        return f"{value:f}"
    return str(value)


def render_table(table: ReportTable) -> str:
    """
    Render a report table as a bordered text grid.

    Args:
        table: Table to render

    Returns:
        Multi-line string with a title banner and the grid
    """
    lines = ["=" * BANNER_WIDTH, table.title, "=" * BANNER_WIDTH]

    if table.skipped:
        lines.append("(skipped)")
        return "\n".join(lines)

    cells: List[List[str]] = [
        [format_value(h, v) for h, v in zip(table.headers, row)]
        for row in table.values()
    ]
    widths = [
        max([len(h)] + [len(row[i]) for row in cells])
        for i, h in enumerate(table.headers)
    ]
    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    lines.append(border)
    lines.append("| " + " | ".join(h.ljust(w) for h, w in zip(table.headers, widths)) + " |")
    lines.append(border)
    for row in cells:
        lines.append("| " + " | ".join(c.rjust(w) for c, w in zip(row, widths)) + " |")
    if cells:
        lines.append(border)
    else:
        lines.append("(no rows)")

    return "\n".join(lines)


def render_report(tables: List[ReportTable]) -> str:
    """Render all tables, separated by a blank line."""
    return "\n\n".join(render_table(table) for table in tables)
