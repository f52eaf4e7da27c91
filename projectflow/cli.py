"""
Command-line interface for the ProjectFlow task store.
"""
import json
import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import click

from projectflow.config import get_settings
from projectflow.database import TaskDatabase
from projectflow.exceptions import ServiceError
from projectflow.logging_setup import setup_logging
from projectflow.models.task_models import Priority, TaskStatus
from projectflow.storage.snapshot import JsonFileSnapshotStorage
from projectflow.sync import ProjectFlowSync

PRIORITY_CHOICE = click.Choice([p.value for p in Priority])
STATUS_CHOICE = click.Choice([s.value for s in TaskStatus])


@contextmanager
def _open_db(ctx: click.Context) -> Iterator[TaskDatabase]:
    """Connect to the configured store; ServiceErrors become CLI errors."""
    try:
        with TaskDatabase(ctx.obj["db_path"]) as db:
            yield db
    except ServiceError as e:
        raise click.ClickException(e.message)


@contextmanager
def _open_sync(ctx: click.Context) -> Iterator[ProjectFlowSync]:
    storage = JsonFileSnapshotStorage(ctx.obj["snapshot_path"])
    try:
        with ProjectFlowSync(TaskDatabase(ctx.obj["db_path"]), storage) as sync:
            yield sync
    except ServiceError as e:
        raise click.ClickException(e.message)


def _print_tasks(tasks: List[Dict[str, Any]]) -> None:
    if not tasks:
        click.echo("No tasks found.")
        return
    click.echo(f"{'ID':>4}  {'STATUS':<9} {'PRIORITY':<8}  {'DUE':<10}  TITLE")
    click.echo("-" * 60)
    for t in tasks:
        click.echo(
            f"{t['task_id']:>4}  {t['status']:<9} {t['priority']:<8}  {t['due_date'] or '':<10}  {t['title']}"
        )


def _print_task(task: Dict[str, Any]) -> None:
    for key in ("task_id", "title", "description", "due_date", "priority", "status", "created_at", "updated_at"):
        click.echo(f"{key:>12}: {task.get(key) if task.get(key) is not None else ''}")


@click.group()
@click.option("--db", "db_path", help="Path to SQLite DB (default: PROJECTFLOW_DB_PATH or ./database/tasks.db)")
@click.option("--snapshot", "snapshot_path", help="Path to the JSON snapshot file (default: PROJECTFLOW_SNAPSHOT_PATH)")
@click.option("--log-level", help="Enable logging at this level (DEBUG, INFO, WARNING, ...)")
@click.pass_context
def cli(ctx: click.Context, db_path: Optional[str], snapshot_path: Optional[str], log_level: Optional[str]):
    """ProjectFlow task store."""
    settings = get_settings()
    if log_level:
        setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path or settings.db_path
    ctx.obj["snapshot_path"] = snapshot_path or settings.snapshot_path


@cli.command()
@click.pass_context
def init(ctx: click.Context):
    """Initialize the database."""
    with _open_db(ctx):
        pass
    click.echo(f"Initialized database at: {ctx.obj['db_path']}")


@cli.command()
@click.argument("title")
@click.option("-d", "--description", help="Longer description.")
@click.option("--due", "due_date", help="Due date in YYYY-MM-DD.")
@click.option("-p", "--priority", type=PRIORITY_CHOICE, help="Priority (default medium).")
@click.option("-s", "--status", type=STATUS_CHOICE, help="Status (default pending).")
@click.pass_context
def add(ctx, title, description, due_date, priority, status):
    """Add a new task."""
    payload = {"title": title, "description": description, "due_date": due_date,
               "priority": priority, "status": status}
    with _open_db(ctx) as db:
        task = db.create_task(payload)
    click.echo(f"Added task #{task['task_id']}: {task['title']}")


@cli.command(name="list")
@click.option("--status", type=STATUS_CHOICE, help="Only tasks with this status.")
@click.option("--priority", type=PRIORITY_CHOICE, help="Only tasks with this priority.")
@click.option("--from", "due_date_from", help="Due on or after this date.")
@click.option("--to", "due_date_to", help="Due on or before this date.")
@click.option("--limit", type=click.IntRange(min=1), help="Maximum number of tasks.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table.")
@click.pass_context
def list_tasks(ctx, status, priority, due_date_from, due_date_to, limit, as_json):
    """List tasks, newest first."""
    filters = {"status": status, "priority": priority, "due_date_from": due_date_from,
               "due_date_to": due_date_to, "limit": limit}
    with _open_db(ctx) as db:
        tasks = db.query_tasks(filters)
    if as_json:
        click.echo(json.dumps(tasks, indent=2))
    else:
        _print_tasks(tasks)


@cli.command()
@click.argument("task_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
@click.pass_context
def show(ctx, task_id, as_json):
    """Show a single task."""
    with _open_db(ctx) as db:
        task = db.get_task(task_id)
    if as_json:
        click.echo(json.dumps(task, indent=2))
    else:
        _print_task(task)


@cli.command()
@click.argument("task_id", type=int)
@click.option("--title", help="New title.")
@click.option("-d", "--description", help="New description.")
@click.option("--due", "due_date", help="New due date (YYYY-MM-DD); empty string clears it.")
@click.option("-p", "--priority", type=PRIORITY_CHOICE, help="New priority.")
@click.option("-s", "--status", type=STATUS_CHOICE, help="New status.")
@click.pass_context
def update(ctx, task_id, title, description, due_date, priority, status):
    """Update fields of a task."""
    supplied = {"title": title, "description": description, "due_date": due_date,
                "priority": priority, "status": status}
    updates = {key: value for key, value in supplied.items() if value is not None}
    with _open_db(ctx) as db:
        task = db.update_task(task_id, updates)
    click.echo(f"Updated task #{task['task_id']}: {task['title']}")


@cli.command()
@click.argument("task_id", type=int)
@click.pass_context
def delete(ctx, task_id):
    """Delete a task."""
    with _open_db(ctx) as db:
        db.delete_task(task_id)
    click.echo(f"Deleted task #{task_id}")


@cli.command()
@click.argument("term")
@click.pass_context
def search(ctx, term):
    """Search tasks by title or description."""
    with _open_db(ctx) as db:
        tasks = db.search_tasks(term)
    _print_tasks(tasks)


@cli.command()
@click.pass_context
def stats(ctx):
    """Show task statistics."""
    with _open_db(ctx) as db:
        counts = db.get_task_stats()
    for key, value in counts.items():
        click.echo(f"{key}: {value}")


@cli.group(name="sync")
def sync_group():
    """Copy tasks between the store and the UI snapshot."""


@sync_group.command(name="pull")
@click.pass_context
def sync_pull(ctx):
    """Overwrite the snapshot with every task in the store."""
    with _open_sync(ctx) as sync:
        tasks = sync.pull_all()
    click.echo(f"Synced {len(tasks)} tasks to {ctx.obj['snapshot_path']}")


@sync_group.command(name="push")
@click.pass_context
def sync_push(ctx):
    """Import every snapshot entry into the store."""
    with _open_sync(ctx) as sync:
        report = sync.push_all()
    click.echo(f"Imported {report.imported} tasks ({report.failed} failed)")
    for error in report.errors:
        click.echo(f"  skipped {error}", err=True)


@cli.command()
@click.option("--host", help="Bind address (default PROJECTFLOW_HOST).")
@click.option("--port", type=int, help="Port (default PROJECTFLOW_PORT).")
@click.pass_context
def serve(ctx, host, port):
    """Run the HTTP API."""
    from projectflow.main import run

    os.environ["PROJECTFLOW_DB_PATH"] = ctx.obj["db_path"]
    os.environ["PROJECTFLOW_SNAPSHOT_PATH"] = ctx.obj["snapshot_path"]
    run(host=host, port=port)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
