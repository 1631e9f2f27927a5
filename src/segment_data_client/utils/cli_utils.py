from rich.console import Console
from rich.table import Table
from typing import Iterable


def get_rich_console() -> Console: return Console(stderr=True)


def segments_table(user_id: int, segments: Iterable[str]) -> Table:
    """Таблица сегментов пользователя для вывода в консоль."""
    table = Table(title=f"Segments of user {user_id}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Segment", style="cyan")
    for i, name in enumerate(sorted(segments), start=1):
        table.add_row(str(i), name)
    return table
