from typing import List, Literal, Optional

from utils.config import settings


def format_money(amount: int, symbol: Optional[str] = None) -> str:
    """
    Render an amount in minor units as a readable string, e.g. 179700 -> "₹1797.00".

    Integer arithmetic only, money never goes through a float.
    """
    if symbol is None:
        symbol = settings.currency_symbol
    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(int(amount)), 100)
    return f"{sign}{symbol}{major}.{minor:02d}"


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Build a Markdown table for the MarkdownViewer panes.

    Args:
        headers: column headers, or None to promote the first row.
        rows: table body, cells are stringified.
        aligns: 'l', 'c' or 'r' per column, centered when omitted.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    rows = [[str(cell) for cell in row] for row in rows]

    aligns = aligns or ["c"] * len(headers)
    if len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    return "\n".join(lines)
