"""Click CLI with commands: pledge, filter, feed, topic."""

from __future__ import annotations

import json
from typing import NoReturn

import click

from vestry.config import load_config
from vestry.content_types import CollectionKind
from vestry.errors import MissingCollectionError, PatreonAuthError, UpstreamError
from vestry.feeds import resolve_parent_collection
from vestry.gateway import Gateway
from vestry.topics import notification_topic
from vestry.utils.logging import setup_logging

_TOKEN_OPTION = click.option("--token", envvar="VESTRY_PATREON_TOKEN", default=None, help="Patreon access token of the viewer.")


def _echo_json(data: object) -> None:
    click.echo(json.dumps(data, indent=2, sort_keys=True, default=str))


def _parse_params(pairs: tuple[str, ...]) -> dict[str, str]:
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--param")
        params[key] = value
    return params


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config YAML file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """Vestry: patron-gated content gateway."""
    ctx.ensure_object(dict)
    cfg = load_config(config_path)
    log = setup_logging(cfg.settings.log_dir, "vestry")
    ctx.obj["config"] = cfg
    ctx.obj["log"] = log
    gateway = Gateway.from_config(cfg, log)
    ctx.call_on_close(gateway.close)
    ctx.obj["gateway"] = gateway


def _fail(exc: UpstreamError) -> NoReturn:
    if isinstance(exc, PatreonAuthError):
        click.echo("Error verifying Patreon status. Re-connect Patreon and try again.", err=True)
    else:
        click.echo(f"Upstream error: {exc}", err=True)
    raise SystemExit(2)


@cli.command()
@_TOKEN_OPTION
@click.pass_context
def pledge(ctx: click.Context, token: str | None) -> None:
    """Show the pledge summary for a Patreon token."""
    gateway: Gateway = ctx.obj["gateway"]
    try:
        resolved = gateway.resolve_pledge(token)
    except UpstreamError as exc:
        _fail(exc)
    _echo_json(resolved.summary())


@cli.command("filter")
@click.argument("path")
@click.option("--param", "params", multiple=True, help="Query parameter as key=value (repeatable).")
@_TOKEN_OPTION
@click.pass_context
def filter_cmd(ctx: click.Context, path: str, params: tuple[str, ...], token: str | None) -> None:
    """Fetch a Contentful CDN path and print it as the viewer may see it."""
    gateway: Gateway = ctx.obj["gateway"]
    query = _parse_params(params)
    try:
        result = gateway.filter_content(path, query, token)
    except UpstreamError as exc:
        _fail(exc)
    if not result.found:
        click.echo("Entry not found.", err=True)
        raise SystemExit(1)
    _echo_json(result.data)


@cli.command()
@click.argument("collection_id")
@click.option(
    "--kind",
    type=click.Choice([kind.value for kind in CollectionKind]),
    default=CollectionKind.PODCAST.value,
    show_default=True,
    help="Kind of collection the feed is built from.",
)
@_TOKEN_OPTION
@click.pass_context
def feed(ctx: click.Context, collection_id: str, kind: str, token: str | None) -> None:
    """List a collection's entries with their patrons-only flag."""
    gateway: Gateway = ctx.obj["gateway"]
    try:
        result = gateway.feed(collection_id, CollectionKind(kind), token)
    except UpstreamError as exc:
        _fail(exc)

    if not result.found:
        click.echo(f"No {kind} collection {collection_id}.", err=True)
        raise SystemExit(1)
    if not result.accessible:
        click.echo(f"Feed {collection_id} requires a pledge.", err=True)
        raise SystemExit(1)

    click.echo(f"=== {result.collection.title or collection_id} ===")
    for entry in result.entries:
        marker = "patrons only" if entry.patrons_only else "open"
        click.echo(f"  {entry.id}  {entry.title or '(untitled)'}  [{marker}]")
    if not result.entries:
        click.echo("  No entries.")


@cli.command()
@click.argument("entry_id")
@click.pass_context
def topic(ctx: click.Context, entry_id: str) -> None:
    """Print the push-notification topic for a published entry."""
    cfg = ctx.obj["config"]
    gateway: Gateway = ctx.obj["gateway"]
    try:
        entry = gateway.contentful.fetch_entry(entry_id)
        if entry is None:
            click.echo(f"Entry {entry_id} not found.", err=True)
            raise SystemExit(1)
        link = entry.parent_link
        collection = resolve_parent_collection(entry, gateway.fetch_collections([link.id]) if link else {})
    except UpstreamError as exc:
        _fail(exc)

    try:
        selected = notification_topic(
            entry,
            collection,
            namespace=cfg.notifications.namespace,
            stage=cfg.notifications.stage,
        )
    except MissingCollectionError as exc:
        ctx.obj["log"].warning("topic.missing_collection", entry_id=exc.entry_id, collection_id=exc.collection_id)
        click.echo(f"Entry {entry_id} not found.", err=True)
        raise SystemExit(1)
    click.echo(selected)
