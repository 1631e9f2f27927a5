import asyncio
import typer
import logging
import sys
from typing import List, Optional
if sys.platform == "win32":
    # asyncpg не работает с ProactorEventLoop, который в Windows по умолчанию
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
from sqlalchemy.ext.asyncio import create_async_engine

from segment_data_client.config import get_settings
from segment_data_client import create_segment_client
from segment_data_client.db.base import Base
from segment_data_client.exceptions import SegmentClientError, NotFoundError
from segment_data_client.logging import configure
from segment_data_client.utils.cli_utils import get_rich_console, segments_table


app = typer.Typer(help="CLI for segment-data-client management.")
logger = logging.getLogger(__name__)
console = get_rich_console()


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL.")):
    configure(log_level)


@app.command()
def init():
    """
    Creates all database tables (users, segments, user_segments).
    """
    console.rule("[bold cyan]Service Initialization[/bold cyan]")

    async def _create_tables():
        engine = create_async_engine(get_settings().postgres.get_pg_dsn())
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        finally:
            await engine.dispose()

    with console.status("Creating PostgreSQL tables...", spinner="dots"):
        try:
            asyncio.run(_create_tables())
        except Exception as e:
            console.log(f"[bold red]✖[/bold red] Database initialization FAILED: {e}")
            raise typer.Exit(code=1)

    console.print("[bold green]✔[/bold green] Database tables created successfully.")


@app.command()
def check():
    """Checks connectivity to PostgreSQL."""
    console.rule("[bold cyan]Connection Check[/bold cyan]")

    async def _check() -> dict[str, str]:
        client = create_segment_client()
        try:
            return await client.check_connections()
        finally:
            await client.aclose()

    statuses = asyncio.run(_check())
    pg_status = statuses.get("postgres", "unknown error")
    if pg_status == "ok":
        console.print("[bold green]✔[/bold green] PostgreSQL connection: OK")
    else:
        console.print(f"[bold red]✖[/bold red] PostgreSQL connection: FAILED ({pg_status})")
        raise typer.Exit(code=1)


@app.command("user-segments")
def user_segments(user_id: int = typer.Argument(..., help="User id.")):
    """Prints the segments a user belongs to."""
    async def _get():
        client = create_segment_client()
        try:
            return await client.get_user_segments(user_id)
        finally:
            await client.aclose()

    try:
        segments = asyncio.run(_get())
    except NotFoundError as e:
        console.print(f"[bold red]✖[/bold red] {e}")
        raise typer.Exit(code=2)
    except SegmentClientError as e:
        console.print(f"[bold red]✖[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(segments_table(user_id, segments))


@app.command("update-segments")
def update_segments(
    user_id: int = typer.Argument(..., help="User id."),
    add: List[str] = typer.Option([], "--add", "-a", help="Segment to add (repeatable)."),
    remove: List[str] = typer.Option([], "--remove", "-r", help="Segment to remove (repeatable)."),
):
    """Adds and removes segments of a user in one transaction."""
    async def _update():
        client = create_segment_client()
        try:
            return await client.update_user_segments(user_id, add, remove)
        finally:
            await client.aclose()

    try:
        delta = asyncio.run(_update())
    except NotFoundError as e:
        console.print(f"[bold red]✖[/bold red] {e}")
        raise typer.Exit(code=2)
    except SegmentClientError as e:
        console.print(f"[bold red]✖[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]✔[/bold green] User {user_id}: "
        f"added {delta.sorted_add()}, removed {delta.sorted_remove()}"
    )
    if delta.cancelled:
        console.print(f"[yellow]Ignored (requested both ways): {sorted(delta.cancelled)}[/yellow]")
