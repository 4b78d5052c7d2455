"""
Command line interface for the notification store.

Examples:
    camnotify cameras add "Front Door" --room Entrance
    camnotify create-camera --camera "Front Door" --trigger motion --type Video
    camnotify create-system --title "Update" --message "Firmware updated"
    camnotify list --cameras "Front Door,Garage" --from 2024-01-01
    camnotify remove abc123def0
    camnotify clear
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, Optional, TypeVar

import click
import structlog

from camnotify.notifications.factory import NotificationRuntime, create_runtime
from camnotify.notifications.store import NotificationError
from camnotify.observability.logging import configure_logging
from camnotify.storage.base import CAMERA_SETTINGS, CAMERAS, NOTIFICATIONS

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def run_with_runtime(ctx: click.Context, action: Callable[[NotificationRuntime], Awaitable[T]]) -> T:
    """Open the store, run one async action and close the store again."""

    async def runner() -> T:
        runtime = await create_runtime(database_url=ctx.obj["database_url"], start_timers=False)
        try:
            return await action(runtime)
        finally:
            await runtime.close()

    try:
        return asyncio.run(runner())
    except NotificationError as e:
        raise click.ClickException(str(e)) from e


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.option(
    "--database-url",
    envvar="CAMNOTIFY_DATABASE_URL",
    default=None,
    help="SQLAlchemy async URL of the document store (default: from settings)",
)
@click.option("--log-level", default=None, help="Minimum log level (default: from settings)")
@click.pass_context
def cli(ctx, database_url, log_level):
    """Camera notification store CLI."""
    configure_logging(level=log_level)
    ctx.ensure_object(dict)
    ctx.obj["database_url"] = database_url


@cli.command("list")
@click.option("--from", "from_date", default=None, help="Start date (YYYY-MM-DD, exclusive)")
@click.option("--to", "to_date", default=None, help="End date (YYYY-MM-DD, inclusive, default: today)")
@click.option("--cameras", default=None, help="Comma-separated camera names")
@click.option("--labels", default=None, help="Comma-separated labels")
@click.option("--rooms", default=None, help="Comma-separated rooms")
@click.option("--types", default=None, help="Comma-separated record types (Video, Snapshot)")
@click.pass_context
def list_command(ctx, from_date, to_date, cameras, labels, rooms, types):
    """List notifications, most recent first."""
    filters = {
        "from": from_date,
        "to": to_date,
        "cameras": cameras,
        "labels": labels,
        "rooms": rooms,
        "types": types,
    }

    async def action(runtime: NotificationRuntime) -> list[dict[str, Any]]:
        notifications = await runtime.store.list(filters)
        return [n.to_document() for n in notifications]

    echo_json(run_with_runtime(ctx, action))


@cli.command()
@click.argument("notification_id")
@click.pass_context
def show(ctx, notification_id):
    """Show one notification."""

    async def action(runtime: NotificationRuntime) -> Optional[dict[str, Any]]:
        notification = await runtime.store.find_by_id(notification_id)
        return notification.to_document() if notification else None

    document = run_with_runtime(ctx, action)
    if document is None:
        raise click.ClickException(f"Notification {notification_id} not found")
    echo_json(document)


@cli.command("create-camera")
@click.option("--camera", required=True, help="Camera name")
@click.option("--trigger", default="motion", show_default=True, help="motion, doorbell or other trigger")
@click.option("--type", "record_type", default="Snapshot", show_default=True, help="Record type (Video, Snapshot, ...)")
@click.option("--label", default=None, help="Detection label")
@click.option("--timestamp", type=int, default=None, help="Epoch seconds (default: now)")
@click.option("--id", "notification_id", default=None, help="Explicit notification id")
@click.pass_context
def create_camera(ctx, camera, trigger, record_type, label, timestamp, notification_id):
    """Create a camera notification."""
    event = {
        "id": notification_id,
        "camera": camera,
        "trigger": trigger,
        "type": record_type,
        "label": label,
        "timestamp": timestamp,
    }

    async def action(runtime: NotificationRuntime) -> dict[str, Any]:
        return (await runtime.store.create(event)).to_document()

    echo_json(run_with_runtime(ctx, action))


@cli.command("create-system")
@click.option("--title", required=True, help="Notification title")
@click.option("--message", required=True, help="Notification message")
@click.option("--subtxt", default=None, help="Secondary text shown with the alert")
@click.option("--label", default=None, help="Label")
@click.pass_context
def create_system(ctx, title, message, subtxt, label):
    """Create a system notification."""
    event = {"system": True, "title": title, "message": message, "subtxt": subtxt, "label": label}

    async def action(runtime: NotificationRuntime) -> dict[str, Any]:
        return (await runtime.store.create(event)).to_document()

    echo_json(run_with_runtime(ctx, action))


@cli.command()
@click.argument("notification_id")
@click.pass_context
def remove(ctx, notification_id):
    """Remove one notification (no error if it does not exist)."""

    async def action(runtime: NotificationRuntime) -> bool:
        return await runtime.store.remove_by_id(notification_id)

    echo_json({"id": notification_id, "removed": run_with_runtime(ctx, action)})


@cli.command()
@click.confirmation_option(prompt="Remove all notifications?")
@click.pass_context
def clear(ctx):
    """Remove all notifications."""

    async def action(runtime: NotificationRuntime) -> int:
        return await runtime.store.remove_all()

    echo_json({"removed": run_with_runtime(ctx, action)})


@cli.command()
@click.pass_context
def expire(ctx):
    """Remove notifications older than the configured lifetime."""

    async def action(runtime: NotificationRuntime) -> int:
        stored = await runtime.documents.all(NOTIFICATIONS)
        return await runtime.scheduler.restore((d["id"], d["timestamp"]) for d in stored)

    echo_json({"expired": run_with_runtime(ctx, action)})


@cli.group()
def cameras():
    """Manage the cameras known to the store."""
    pass


@cameras.command("add")
@click.argument("name")
@click.option("--room", default=None, help="Room of the camera (default room if omitted)")
@click.pass_context
def add_camera(ctx, name, room):
    """Register a camera and, optionally, its room."""

    async def action(runtime: NotificationRuntime) -> dict[str, Any]:
        documents = runtime.documents
        if await documents.find(CAMERAS, name=name) is None:
            await documents.append(CAMERAS, {"name": name})
        if room:
            await documents.remove(CAMERA_SETTINGS, name=name)
            await documents.append(CAMERA_SETTINGS, {"name": name, "room": room})
        logger.info("camera_registered", camera=name, room=room)
        return {"name": name, "room": room or runtime.store.default_room}

    echo_json(run_with_runtime(ctx, action))


@cameras.command("list")
@click.pass_context
def list_cameras(ctx):
    """List registered cameras."""

    async def action(runtime: NotificationRuntime) -> list[dict[str, Any]]:
        return await runtime.documents.all(CAMERAS)

    echo_json(run_with_runtime(ctx, action))


if __name__ == "__main__":
    cli()
