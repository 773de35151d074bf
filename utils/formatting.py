"""Output formatting utilities for the preset browser.

Provides reusable functions for:
- Joining display lists with a distinct final conjunction ("A, B and C")
- Rendering hierarchical values (category / bank paths)
- Counts and truncation for terminal output
- Tabular output for the command-line browser
"""

from typing import Any, Iterable, List, Optional

LIST_SEPARATOR = ", "
FINAL_SEPARATOR = " and "
LEVEL_SEPARATOR = " / "


def join_list(items: Iterable[str], sep: str = LIST_SEPARATOR,
              final: Optional[str] = FINAL_SEPARATOR) -> str:
    """Join display strings, using *final* between the last two items.

    Args:
        items: Strings to join (order is preserved)
        sep: Separator between items (default: ", ")
        final: Separator before the last item; None means use *sep*

    Returns:
        Joined string, or "" for no items

    Examples:
        join_list(["A"]) -> "A"
        join_list(["A", "B"]) -> "A and B"
        join_list(["A", "B", "C"]) -> "A, B and C"
    """
    items = list(items)
    if final is None:
        final = sep
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    return sep.join(items[:-1]) + final + items[-1]


def join_levels(levels: Iterable[Optional[str]], sep: str = LEVEL_SEPARATOR) -> str:
    """Join the non-empty levels of a hierarchical value.

    Examples:
        join_levels(["Synth", "Pad", ""]) -> "Synth / Pad"
        join_levels(["", "", ""]) -> ""
    """
    return sep.join(level for level in levels if level)


def format_count(value: Optional[int]) -> str:
    """Format a count with thousands separator.

    Examples:
        format_count(1234567) -> "1,234,567"
        format_count(None) -> "-"
    """
    if value is None:
        return "-"
    return f"{value:,d}"


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to maximum length with ellipsis.

    Examples:
        truncate_text("Long text here", 10) -> "Long te..."
        truncate_text("Short", 10) -> "Short"
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix


class TableFormatter:
    """Formats rows as aligned tabular output."""

    def __init__(self, columns: List[str], max_width: int = 48):
        """Initialize table formatter.

        Args:
            columns: List of column headers
            max_width: Cells longer than this are truncated
        """
        self.columns = columns
        self.max_width = max_width
        self.column_widths = [len(col) for col in columns]
        self.rows: List[List[str]] = []

    def add_row(self, values: List[Any]) -> None:
        """Add a row to the table.

        Raises:
            ValueError: If value count doesn't match column count
        """
        if len(values) != len(self.columns):
            raise ValueError(f"Expected {len(self.columns)} values, got {len(values)}")

        str_values = []
        for i, val in enumerate(values):
            str_val = str(val) if val not in (None, "") else "-"
            str_val = truncate_text(str_val, self.max_width)
            str_values.append(str_val)
            if len(str_val) > self.column_widths[i]:
                self.column_widths[i] = len(str_val)

        self.rows.append(str_values)

    def _format_row(self, values: List[str], is_header: bool = False) -> str:
        cells = []
        for i, val in enumerate(values):
            width = self.column_widths[i]
            if not is_header and val.isdigit():
                cells.append(val.rjust(width))
            else:
                cells.append(val.ljust(width))
        return "  ".join(cells).rstrip()

    def to_string(self, show_header: bool = True) -> str:
        """Format table as multi-line string."""
        lines = []
        if show_header:
            lines.append(self._format_row(self.columns, is_header=True))
            lines.append("  ".join("-" * w for w in self.column_widths))
        for row in self.rows:
            lines.append(self._format_row(row))
        return "\n".join(lines)

    def print_table(self, show_header: bool = True) -> None:
        """Print table to stdout."""
        print(self.to_string(show_header))
