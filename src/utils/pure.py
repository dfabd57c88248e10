from typing import List, Literal, Optional

_ALIGN_MAP = {
    "l": ":---",
    "c": ":---:",
    "r": "---:",
}


def _cell(value) -> str:
    # product names and descriptions are free text
    return str(value).replace("\n", " ").replace("|", "\\|")


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of cell values.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all left ('l').

    Returns:
        str: Markdown formatted table, empty string when there are no rows.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [_cell(h) for h in headers]
    num_cols = len(headers)
    if aligns is None:
        aligns = ["l"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(_ALIGN_MAP[a] for a in aligns) + " |",
    ]
    lines.extend("| " + " | ".join(_cell(c) for c in row) + " |" for row in rows)
    return "\n".join(lines)


def format_money(amount: float, currency: str) -> str:
    """500 -> '500 AFN', 12.5 -> '12.50 AFN'."""
    if float(amount).is_integer():
        return f"{int(amount):,} {currency}"
    return f"{amount:,.2f} {currency}"
