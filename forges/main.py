"""CLI entry point for the forges client."""

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import click
import httpx
import structlog
from pydantic import SecretStr, ValidationError

from forges.client import Client
from forges.config.settings import ForgesSettings
from forges.detection import ForgeDetector
from forges.enums import ArchivedFilter, ForkFilter
from forges.exceptions import ConfigurationError, ForgesError
from forges.git.parser import parse_repo_url
from forges.models.domain import ListOptions
from forges.utils.connection_pool import HTTPTransport
from forges.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)

T = TypeVar("T")

FILTER_CHOICES = click.Choice(["include", "exclude", "only"], case_sensitive=False)


def _parse_tokens(values: tuple[str, ...]) -> dict[str, str]:
    tokens: dict[str, str] = {}
    for value in values:
        domain, sep, token = value.partition("=")
        if not sep or not domain.strip():
            raise click.BadParameter(f"expected DOMAIN=TOKEN, got {value!r}", param_hint="--token")
        tokens[domain.strip().lower()] = token
    return tokens


@click.group()
@click.option(
    "--config",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to YAML configuration file (FORGES_* environment variables otherwise)",
)
@click.option("--log-level", default="WARNING", help="Logging level")
@click.option("--token", "tokens", multiple=True, metavar="DOMAIN=TOKEN", help="API token for a domain")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, log_level: str, tokens: tuple[str, ...]) -> None:
    """forges: repository metadata from GitHub, GitLab, Gitea, Forgejo and Bitbucket."""
    configure_logging(log_level)

    token_overrides = _parse_tokens(tokens)

    if ctx.invoked_subcommand == "parse":
        ctx.obj = {"settings": None}
        return

    try:
        settings = ForgesSettings.from_yaml(config) if config is not None else ForgesSettings()
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)
    except ValidationError as e:
        click.echo(f"Error: Invalid configuration from environment: {e}", err=True)
        sys.exit(1)

    if token_overrides:
        merged = {**settings.tokens, **{domain: SecretStr(token) for domain, token in token_overrides.items()}}
        settings = settings.model_copy(update={"tokens": merged})

    ctx.obj = {"settings": settings}


def _run(event: str, func: Callable[[], Awaitable[T]]) -> T:
    """Run a coroutine, reporting failures the way every command does."""
    try:
        return asyncio.run(func())
    except ForgesError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug(f"{event}_error", exc_info=True)
        sys.exit(1)
    except httpx.HTTPError as e:
        click.echo(f"Error: request failed: {e}", err=True)
        log.debug(f"{event}_http_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)


def _emit(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


async def _with_client(
    settings: ForgesSettings,
    detect_domain: str | None,
    action: Callable[[Client], Awaitable[T]],
) -> T:
    async with Client.from_settings(settings) as client:
        if detect_domain is not None and detect_domain not in client.registry:
            await client.register_domain(detect_domain)
        return await action(client)


@cli.command()
@click.argument("url")
@click.option("--detect", is_flag=True, help="Probe the domain first if it is not registered")
@click.pass_context
def repo(ctx: click.Context, url: str, detect: bool) -> None:
    """Show metadata of the repository at URL."""
    settings = ctx.obj["settings"]

    async def run() -> dict[str, Any]:
        domain = parse_repo_url(url).domain if detect else None
        result = await _with_client(settings, domain, lambda client: client.fetch_repository(url))
        return result.to_dict()

    _emit(_run("repo", run))


@cli.command()
@click.argument("url")
@click.option("--detect", is_flag=True, help="Probe the domain first if it is not registered")
@click.pass_context
def tags(ctx: click.Context, url: str, detect: bool) -> None:
    """List tags of the repository at URL."""
    settings = ctx.obj["settings"]

    async def run() -> list[dict[str, str]]:
        domain = parse_repo_url(url).domain if detect else None
        result = await _with_client(settings, domain, lambda client: client.fetch_tags(url))
        return [tag.to_dict() for tag in result]

    _emit(_run("tags", run))


@cli.command(name="list")
@click.argument("domain")
@click.argument("owner")
@click.option("--archived", type=FILTER_CHOICES, default="include", help="Archived repositories")
@click.option("--forks", type=FILTER_CHOICES, default="include", help="Forked repositories")
@click.option("--per-page", type=click.IntRange(min=0), default=0, help="Page size (0 = forge default)")
@click.option("--detect", is_flag=True, help="Probe the domain first if it is not registered")
@click.pass_context
def list_repos(
    ctx: click.Context, domain: str, owner: str, archived: str, forks: str, per_page: int, detect: bool
) -> None:
    """List repositories of OWNER on DOMAIN."""
    settings = ctx.obj["settings"]
    options = ListOptions(
        archived=ArchivedFilter(archived.lower()),
        forks=ForkFilter(forks.lower()),
        per_page=per_page,
    )

    async def run() -> list[dict[str, Any]]:
        result = await _with_client(
            settings,
            domain.lower() if detect else None,
            lambda client: client.list_repositories(domain, owner, options),
        )
        return [r.to_dict() for r in result]

    _emit(_run("list", run))


@cli.command()
@click.argument("domain")
@click.pass_context
def detect(ctx: click.Context, domain: str) -> None:
    """Detect which forge software DOMAIN runs."""
    settings = ctx.obj["settings"]

    async def run() -> dict[str, str]:
        async with HTTPTransport(timeout=settings.timeout, user_agent=settings.user_agent) as transport:
            forge_type = await ForgeDetector(transport).detect(domain.lower())
        return {"domain": domain.lower(), "forge_type": str(forge_type)}

    _emit(_run("detect", run))


@cli.command()
@click.argument("url")
def parse(url: str) -> None:
    """Split a repository URL into domain, owner and repo (no network access)."""
    try:
        parsed = parse_repo_url(url)
    except ForgesError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    _emit(
        {
            "domain": parsed.domain,
            "owner": parsed.owner,
            "repo": parsed.repo,
            "full_name": parsed.full_name,
        }
    )


if __name__ == "__main__":
    cli()
