"""CLI entry point: reporadar.

Subcommands:
    reporadar add torvalds/linux          # Start tracking a repository
    reporadar remove 3                    # Stop tracking by id
    reporadar list                        # Show tracked repositories
    reporadar sync                        # Run one sync cycle now
    reporadar watch                       # Poll until interrupted
    reporadar import github               # Track the token owner's repositories
    reporadar verify-token gitlab         # Check a configured token
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click
import httpx

from reporadar.core.config import Settings
from reporadar.core.database import create_engine, create_session_factory, init_db
from reporadar.core.logging import setup_logging
from reporadar.dao.analytics_dao import AnalyticsDAO
from reporadar.dao.milestone_dao import MilestoneDAO
from reporadar.dao.repository_dao import RepositoryDAO
from reporadar.engines.analytics.runner import AnalyticsRunner
from reporadar.engines.sync.engine import SyncEngine
from reporadar.engines.sync.models import SyncResult
from reporadar.platforms.errors import PlatformError, UnsupportedPlatform
from reporadar.platforms.factory import ClientRegistry
from reporadar.platforms.models import Platform
from reporadar.scheduler import create_scheduler
from reporadar.services import ServiceError
from reporadar.services.repository_service import RepositoryService

T = TypeVar("T")

_PLATFORM_CHOICE = click.Choice([p.value for p in Platform], case_sensitive=False)


class Runtime:
    """Database, clients and services for one CLI invocation."""

    def __init__(
        self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self.settings = settings
        self.engine = create_engine(settings.database_url)
        self.session_factory = create_session_factory(self.engine)
        self.clients = ClientRegistry(
            settings.tokens, timeout=settings.http_timeout, transport=transport
        )
        self.repositories = RepositoryService(
            RepositoryDAO(),
            self.clients,
            is_entitled=settings.is_entitled,
            free_limit=settings.free_repository_limit,
        )

    def sync_engine(self) -> SyncEngine:
        return SyncEngine(
            self.session_factory,
            self.clients,
            self.settings,
            analytics=AnalyticsRunner(AnalyticsDAO(), MilestoneDAO()),
        )

    async def __aenter__(self) -> Runtime:
        await init_db(self.engine)
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.clients.aclose()
        await self.engine.dispose()


def _run(ctx: click.Context, fn: Callable[[Runtime], Awaitable[T]]) -> T:
    """Run *fn* inside a Runtime; platform and service errors exit with status 1."""

    async def _main() -> T:
        async with Runtime(ctx.obj["settings"], ctx.obj.get("transport")) as runtime:
            return await fn(runtime)

    try:
        return asyncio.run(_main())
    except UnsupportedPlatform as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    except (PlatformError, ServiceError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _format_count(value: int) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}k"
    return str(value)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Repo Radar: watch repositories for releases, stars and issues."""
    setup_logging("DEBUG" if verbose else None)
    ctx.ensure_object(dict)
    ctx.obj.setdefault("settings", Settings.from_env())


@main.command("add")
@click.argument("repository")
@click.pass_context
def add(ctx: click.Context, repository: str) -> None:
    """Track REPOSITORY (owner/name, URL or SSH remote)."""

    async def _add(rt: Runtime) -> Any:
        async with rt.session_factory() as session, session.begin():
            return await rt.repositories.add_repository(session, repository)

    record = _run(ctx, _add)
    click.echo(
        f"Tracking {record.full_name} on {record.platform_type.display_name} "
        f"(id {record.id}, {_format_count(record.star_count)} stars)"
    )


@main.command("remove")
@click.argument("repository_id", type=int)
@click.pass_context
def remove(ctx: click.Context, repository_id: int) -> None:
    """Stop tracking the repository with REPOSITORY_ID."""

    async def _remove(rt: Runtime) -> None:
        async with rt.session_factory() as session, session.begin():
            await rt.repositories.remove_repository(session, repository_id)

    _run(ctx, _remove)
    click.echo(f"Removed repository {repository_id}")


@main.command("list")
@click.pass_context
def list_(ctx: click.Context) -> None:
    """Show tracked repositories."""

    async def _list(rt: Runtime) -> list:
        async with rt.session_factory() as session:
            return await rt.repositories.list_repositories(session)

    records = _run(ctx, _list)
    if not records:
        click.echo("No repositories tracked. Add one with: reporadar add owner/name")
        return

    limit = ctx.obj["settings"].free_repository_limit
    for record in records:
        delta = f" (+{record.star_delta})" if record.star_delta > 0 else ""
        release = f"  {record.latest_release_tag}" if record.latest_release_tag else ""
        click.echo(
            f"{record.id:>4}  {record.platform:<11}  {record.full_name:<40}  "
            f"{_format_count(record.star_count):>7}{delta}{release}"
        )
    if not ctx.obj["settings"].is_entitled():
        click.echo(f"\n{len(records)}/{limit} repositories (free plan)")


def _echo_result(result: SyncResult) -> None:
    if result.skipped:
        click.echo("A sync is already in progress")
        return
    click.echo(f"Updated {result.updated_count} repositories")
    if result.failed_count:
        click.echo(f"  {result.failed_count} failed (see log)")
    for notification in result.notifications:
        click.echo(f"  [{notification.kind.value}] {notification.title}: {notification.body}")
    if result.rate_limited:
        click.echo(
            "Rate limit exceeded; add a personal access token to continue syncing.", err=True
        )


@main.command("sync")
@click.pass_context
def sync(ctx: click.Context) -> None:
    """Run one sync cycle now."""

    async def _sync(rt: Runtime) -> SyncResult:
        return await rt.sync_engine().run_cycle()

    result = _run(ctx, _sync)
    _echo_result(result)
    if result.rate_limited:
        sys.exit(2)


@main.command("watch")
@click.option(
    "--interval", type=float, default=None, help="Seconds between cycles (default: settings)"
)
@click.pass_context
def watch(ctx: click.Context, interval: float | None) -> None:
    """Poll on a timer until interrupted."""
    settings: Settings = ctx.obj["settings"]
    if interval is not None:
        if interval <= 0:
            raise click.BadParameter("must be positive", param_hint="--interval")
        settings.refresh_interval = interval

    async def _watch(rt: Runtime) -> None:
        scheduler = create_scheduler(rt.sync_engine(), rt.settings)
        await scheduler.start()
        try:
            await asyncio.Event().wait()
        finally:
            await scheduler.stop()

    click.echo(f"Watching every {settings.refresh_interval:g}s, Ctrl-C to stop")
    try:
        _run(ctx, _watch)
    except KeyboardInterrupt:
        click.echo("Stopped")


@main.command("import")
@click.argument("platform", type=_PLATFORM_CHOICE)
@click.option("--max-pages", type=int, default=10, show_default=True, help="Pages to fetch")
@click.pass_context
def import_(ctx: click.Context, platform: str, max_pages: int) -> None:
    """Track the repositories of the token's user on PLATFORM."""

    async def _import(rt: Runtime) -> Any:
        async with rt.session_factory() as session, session.begin():
            return await rt.repositories.import_repositories(
                session, Platform(platform.lower()), max_pages
            )

    result = _run(ctx, _import)
    for record in result.added:
        click.echo(f"Tracking {record.full_name}")
    click.echo(
        f"Imported {len(result.added)}, already tracked {result.already_tracked}, "
        f"over limit {result.over_capacity}, failed {result.failed}"
    )


@main.command("verify-token")
@click.argument("platform", type=_PLATFORM_CHOICE)
@click.pass_context
def verify_token(ctx: click.Context, platform: str) -> None:
    """Check the configured token for PLATFORM."""

    async def _verify(rt: Runtime) -> str:
        return await rt.repositories.verify_token(Platform(platform.lower()))

    username = _run(ctx, _verify)
    click.echo(f"Token OK, authenticated as {username}")
