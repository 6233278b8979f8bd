"""CLI commands for the hotel site back-office."""

import asyncio
import base64
import json
import logging
import os
import re
import secrets
import sys
from pathlib import Path

import click

from hotelsite.config import get_settings
from hotelsite.lib import observability


def _configure_logging(log_level: str) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(package_name="hotelsite")
def cli():
    """Hotel website back-office."""
    pass


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8080, type=int, help="Port to bind to")
@click.option("--create-tables", is_flag=True, help="Create missing tables on startup")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
def serve(host, port, create_tables, log_level):
    """Run the web server."""
    import signal

    from hypercorn.asyncio import serve as hypercorn_serve
    from hypercorn.config import Config

    from hotelsite.asgi import create_app

    _configure_logging(log_level)

    config = Config()
    config.bind = [f"{host}:{port}"]
    config.loglevel = log_level.upper()
    config.include_server_header = False

    app = create_app(create_all=create_tables)

    shutdown_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    loop.add_signal_handler(signal.SIGINT, shutdown_event.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_event.set)
    try:
        loop.run_until_complete(
            hypercorn_serve(app, config, shutdown_trigger=shutdown_event.wait)
        )
    finally:
        loop.close()


@cli.command()
@click.option(
    "--write",
    type=click.Path(),
    default=None,
    help="Write SECRET_KEY to a .env file",
)
@click.option(
    "--format",
    "fmt",
    default="urlsafe",
    type=click.Choice(["urlsafe", "hex", "base64"]),
    help="Output format for the secret key",
)
@click.option("--length", default=32, type=int, help="Number of random bytes")
@click.option("--name", default="SECRET_KEY", help="Variable name to write (e.g. ADMIN_TOKEN)")
def secret(write, fmt, length, name):
    """Generate a secure secret key or admin token."""
    if fmt == "urlsafe":
        key = secrets.token_urlsafe(length)
    elif fmt == "hex":
        key = secrets.token_hex(length)
    else:  # base64
        key = base64.b64encode(secrets.token_bytes(length)).decode("ascii")

    if not write:
        click.echo(key)
        return

    env_path = Path(write)
    env_content = env_path.read_text() if env_path.exists() else ""

    pattern = re.compile(rf"^{re.escape(name)}=.*$", re.MULTILINE)
    new_line = f"{name}={key}"

    if pattern.search(env_content):
        env_content = pattern.sub(new_line, env_content)
    else:
        if env_content and not env_content.endswith("\n"):
            env_content += "\n"
        env_content += new_line + "\n"

    env_path.write_text(env_content)
    click.echo(f"{name} written to {env_path}")


def _run_alembic(args: list[str]) -> None:
    """Build an Alembic Config programmatically and run the given command."""
    from alembic.config import CommandLine, Config

    package_dir = Path(__file__).parent
    alembic_ini = package_dir / "alembic.ini"
    if not alembic_ini.exists():
        click.echo("Error: Could not find alembic.ini", err=True)
        sys.exit(1)

    cfg = Config(str(alembic_ini))
    cfg.set_main_option("script_location", str(package_dir / "alembic"))

    cmd = CommandLine()
    options = cmd.parser.parse_args(args)
    if not hasattr(options, "cmd"):
        cmd.parser.error("too few arguments")
    else:
        cfg.cmd_opts = options
        fn, positional, kwarg = options.cmd
        fn(
            cfg,
            *[getattr(options, k, None) for k in positional],
            **{k: getattr(options, k, None) for k in kwarg},
        )


@cli.command(
    context_settings=dict(
        ignore_unknown_options=True,
        allow_extra_args=True,
    )
)
@click.pass_context
def db(ctx):
    """Run database migrations via Alembic.

    \b
    Examples:
        hotelsite db upgrade head   # Apply all migrations
        hotelsite db downgrade -1   # Rollback one migration
        hotelsite db current        # Show current revision
    """
    if not ctx.args:
        click.echo(ctx.get_help())
        return
    os.environ.setdefault("HOTELSITE_CONFIG", str(Path.cwd() / "app.yaml"))
    _run_alembic(ctx.args)


@cli.group()
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
def media(log_level):
    """Media library maintenance."""
    _configure_logging(log_level)
    observability.configure(get_settings())


def _run(coro):
    return asyncio.run(coro)


async def _plan():
    from hotelsite.db.services.dedup_service import load_media_records, plan_duplicates
    from hotelsite.db.session import session_scope

    async with session_scope(get_settings()) as session:
        return plan_duplicates(await load_media_records(session))


async def _dedupe():
    from hotelsite.db.services.dedup_service import merge_duplicates
    from hotelsite.db.session import session_scope

    async with session_scope(get_settings()) as session:
        return await merge_duplicates(session)


@media.command()
def duplicates():
    """List duplicate groups and the record each would keep."""
    groups = _run(_plan())
    if not groups:
        click.echo("No duplicate media found.")
        return

    for group in groups:
        click.echo(f"{group.content_hash[:12]}  keep {group.canonical.url}")
        for record in group.to_delete:
            click.echo(f"    remove {record.url} ({record.byte_size or 0} bytes)")
        for record in group.retained:
            click.echo(f"    keep (protected) {record.url}")
    total = sum(group.reclaimable_bytes for group in groups)
    click.echo(f"{len(groups)} groups, {total} bytes reclaimable")


@media.command()
@click.option("--dry-run", is_flag=True, help="Only show what would be merged")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def dedupe(ctx, dry_run, as_json):
    """Merge duplicate media and repoint every content reference."""
    if dry_run:
        ctx.invoke(duplicates)
        return

    report = _run(_dedupe())
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.echo(report.summary())
        for group_id in report.failed_groups:
            click.echo(f"  failed: {group_id}", err=True)

    if report.failed_groups:
        sys.exit(1)


async def _backfill(batch_size, run_all=False):
    from hotelsite.db.services.backfill_service import (
        backfill_all_media_hashes,
        backfill_media_hashes,
    )
    from hotelsite.db.session import session_scope
    from hotelsite.lib.http import create_download_client

    settings = get_settings()
    observability.instrument_httpx()
    async with session_scope(settings) as session, create_download_client(settings) as client:
        run = backfill_all_media_hashes if run_all else backfill_media_hashes
        return await run(session, client, batch_size=batch_size or settings.media.backfill_batch_size)


@media.command("backfill-hashes")
@click.option("--batch-size", type=int, default=None, help="Records to process (default from config)")
@click.option("--all", "run_all", is_flag=True, help="Keep running batches until nothing is left")
def backfill_hashes(batch_size, run_all):
    """Download unhashed media and record content hash and size."""
    result = _run(_backfill(batch_size, run_all))
    click.echo(result.message)
    for error in result.errors:
        click.echo(f"  {error.id} {error.url}: {error.error}", err=True)


async def _stats():
    from hotelsite.db.services.usage_service import media_stats
    from hotelsite.db.session import session_scope

    async with session_scope(get_settings()) as session:
        return await media_stats(session)


@media.command()
def stats():
    """Show library totals and where media is used."""
    click.echo(json.dumps(_run(_stats()).to_dict(), indent=2))


async def _usage(url):
    from hotelsite.db.services.usage_service import find_media_usage
    from hotelsite.db.session import session_scope

    async with session_scope(get_settings()) as session:
        return await find_media_usage(session, url)


@media.command()
@click.argument("url")
def usage(url):
    """Show every content row that embeds URL."""
    locations = _run(_usage(url))
    if not locations:
        click.echo("Not used anywhere.")
        return
    for location in locations:
        click.echo(f"{location.type:<9} {location.field:<15} {location.title} ({location.id})")


if __name__ == "__main__":
    cli()
