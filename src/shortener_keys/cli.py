"""CLI module for managing API keys via Typer.

Provides commands for the API key lifecycle using the service layer.
Uses Rich for terminal output.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Coroutine, List, Optional

from shortener_keys._types import ServiceFactory
from shortener_keys.config import Settings, get_settings
from shortener_keys.domain.entities import ApiKey
from shortener_keys.domain.errors import ApiKeyError
from shortener_keys.domain.models import ApiKeyMeta, Renaming
from shortener_keys.domain.roles import RoleDefinition
from shortener_keys.log import setup_logging
from shortener_keys.services.base import ApiKeyService
from shortener_keys.utils import datetime_factory

# Errors that should result in exit code 1
DomainErrors = (ApiKeyError, ValueError)


def create_api_keys_cli(
    service_factory: ServiceFactory,
    app: Optional[Any] = None,
    initial_api_key: Optional[str] = None,
) -> Any:
    """Build a Typer CLI bound to an ApiKeyService.

    Args:
        service_factory: Async context manager factory returning the service.
        app: Optional pre-configured Typer instance to extend.
        initial_api_key: Key used by ``initial`` when none is passed.

    Returns:
        A configured Typer application with API key management commands.
    """
    typer = _import_typer()
    console = _import_console()

    cli = app or typer.Typer(
        help="Manage API keys.",
        no_args_is_help=True,
        pretty_exceptions_enable=False,
    )

    # --- Helpers ---

    def handle_errors(func: Callable[[], Coroutine[Any, Any, Any]]) -> None:
        """Execute async function with domain error handling."""
        try:
            asyncio.run(func())
        except DomainErrors as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise typer.Exit(1) from exc

    # --- Commands ---

    @cli.command("generate")
    def generate_key(
        name: Optional[str] = typer.Option(None, "--name", "-n", help="Unique display name."),
        expiration_date: Optional[str] = typer.Option(None, "--expiration-date", "-e", help="ISO datetime."),
        author_only: bool = typer.Option(False, "--author-only", "-a", help="Restrict to authored short URLs."),
        domain_id: Optional[str] = typer.Option(None, "--domain-id", help="Restrict to one domain."),
        domain_authority: Optional[str] = typer.Option(None, "--domain-authority", help="Domain host, for display."),
        no_orphan_visits: bool = typer.Option(False, "--no-orphan-visits", help="Hide orphan visits."),
    ) -> None:
        """Generate a new API key."""
        roles: List[RoleDefinition] = []
        if author_only:
            roles.append(RoleDefinition.for_authored_short_urls())
        if domain_id:
            roles.append(RoleDefinition.for_domain(domain_id, domain_authority))
        if no_orphan_visits:
            roles.append(RoleDefinition.for_no_orphan_visits())

        async def _run() -> None:
            async with service_factory() as service:
                meta = ApiKeyMeta.from_params(
                    name=name,
                    expiration_date=parse_datetime(expiration_date) if expiration_date else None,
                    role_definitions=roles,
                )
                entity = await service.create(meta)

                console.print("[green]API key generated successfully.[/green]\n")
                print_entity_detail(console, entity)
                console.print("\n[yellow]Plain key (store securely, shown only once):[/yellow]")
                console.print(f"[bold cyan]{entity.plain_key}[/bold cyan]")

        handle_errors(_run)

    @cli.command("initial")
    def initial_key(
        api_key: Optional[str] = typer.Argument(None, help="Raw key to store."),
    ) -> None:
        """Create the first API key, only if there are none yet."""
        raw_key = api_key or initial_api_key
        if not raw_key:
            console.print("[red]Error:[/red] No initial API key provided.")
            raise typer.Exit(1)

        async def _run() -> None:
            async with service_factory() as service:
                entity = await service.create_initial(raw_key)
                if entity is None:
                    console.print("[yellow]API keys already exist, nothing was created.[/yellow]")
                    return
                console.print("[green]Initial API key created.[/green]\n")
                print_entity_detail(console, entity)

        handle_errors(_run)

    @cli.command("list")
    def list_keys(
        enabled_only: bool = typer.Option(False, "--enabled-only", "-e", help="Only list enabled keys."),
    ) -> None:
        """List API keys."""

        async def _run() -> None:
            async with service_factory() as service:
                items = await service.list_keys(enabled_only=enabled_only)
                if not items:
                    console.print("[yellow]No API keys found.[/yellow]")
                    return
                print_keys_table(console, items, f"API Keys ({len(items)})")

        handle_errors(_run)

    @cli.command("disable")
    def disable_key(
        value: str = typer.Argument(..., help="Raw key, or name with --by-name."),
        by_name: bool = typer.Option(False, "--by-name", help="Treat VALUE as the key name."),
    ) -> None:
        """Disable an API key."""

        async def _run() -> None:
            async with service_factory() as service:
                if by_name:
                    entity = await service.disable_by_name(value)
                else:
                    entity = await service.disable_by_key(value)
                console.print(f"[green]API key '{entity.name}' disabled.[/green]")

        handle_errors(_run)

    @cli.command("rename")
    def rename_key(
        old_name: str = typer.Argument(..., help="Current name."),
        new_name: str = typer.Argument(..., help="New name."),
    ) -> None:
        """Rename an API key."""

        async def _run() -> None:
            async with service_factory() as service:
                entity = await service.rename_api_key(Renaming.from_names(old_name=old_name, new_name=new_name))
                console.print(f"[green]API key renamed to '{entity.name}'.[/green]")

        handle_errors(_run)

    @cli.command("check")
    def check_key(
        api_key: str = typer.Argument(..., help="Raw key to check."),
    ) -> None:
        """Check whether an API key can be used."""

        async def _run() -> bool:
            async with service_factory() as service:
                result = await service.check(api_key)
                if not result.is_valid():
                    console.print("[red]API key is not valid.[/red]")
                    return False
                console.print("[green]API key is valid.[/green]\n")
                print_entity_detail(console, result.api_key)
                return True

        if not asyncio.run(_run()):
            raise typer.Exit(1)

    return cli


def sql_service_factory(settings: Settings) -> ServiceFactory:
    """Build a service factory backed by the configured SQLAlchemy database.

    The factory can be entered any number of times. Connections are not pooled:
    each command runs under its own ``asyncio.run`` loop and a connection
    cannot outlive the loop that opened it.
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import NullPool

    from shortener_keys.repositories.sql import SqlAlchemyApiKeyRepository, SqlAlchemyUnitOfWork

    async_engine = create_async_engine(settings.database_url, poolclass=NullPool)
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    hasher = settings.build_hasher()

    @asynccontextmanager
    async def service_factory() -> AsyncIterator[ApiKeyService]:
        async with async_session_maker() as async_session:
            repo = SqlAlchemyApiKeyRepository(async_session=async_session, hasher=hasher)
            await repo.ensure_table()
            try:
                yield ApiKeyService(uow=SqlAlchemyUnitOfWork(async_session), repo=repo, hasher=hasher)
            except Exception:
                await async_session.rollback()
                raise

    return service_factory


def main() -> None:  # pragma: no cover
    """Entry point of the ``shortener-keys`` script."""
    settings = get_settings()
    setup_logging(settings.log_level)
    cli = create_api_keys_cli(sql_service_factory(settings), initial_api_key=settings.initial_api_key)
    cli()


# --- Utility Functions ---


def parse_datetime(value: str) -> datetime:
    """Parse ISO datetime string to UTC datetime."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_status(entity: ApiKey) -> str:
    """Format enabled status with color."""
    if not entity.is_enabled():
        return "[red]Disabled[/red]"
    if entity.is_expired():
        return "[yellow]Expired[/yellow]"
    return "[green]Enabled[/green]"


def format_expires(expiration_date: Optional[datetime]) -> str:
    """Format expiration with days remaining."""
    if expiration_date is None:
        return "[dim]Never[/dim]"

    delta = expiration_date - datetime_factory()

    if delta.total_seconds() < 0:
        return "[red]Expired[/red]"

    days = delta.days
    if days == 0:
        hours = int(delta.total_seconds() // 3600)
        return f"[yellow]{hours}h[/yellow]"
    if days <= 7:
        return f"[yellow]{days}d[/yellow]"
    return f"[green]{days}d[/green]"


def format_roles(entity: ApiKey) -> str:
    if entity.is_admin():
        return "Admin"
    return ", ".join(definition.describe() for definition in entity.roles)


def print_keys_table(console: Any, entities: List[ApiKey], title: str) -> None:
    """Print a table of API keys."""
    Table = _import_table()
    table = Table(title=title, show_header=True, header_style="bold")

    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Expires", justify="center")
    table.add_column("Roles", style="dim")

    for entity in entities:
        table.add_row(
            entity.name or "[dim]-[/dim]",
            format_status(entity),
            format_expires(entity.expiration_date),
            format_roles(entity),
        )

    console.print(table)


def print_entity_detail(console: Any, entity: ApiKey) -> None:
    """Print detailed view of an API key."""
    Panel = _import_panel()

    lines = [
        f"[bold]Name:[/bold]     {entity.name or '[dim]-[/dim]'}",
        f"[bold]Status:[/bold]   {format_status(entity)}",
        f"[bold]Roles:[/bold]    {format_roles(entity)}",
        f"[bold]Created:[/bold]  {entity.created_at.strftime('%Y-%m-%d %H:%M')}",
        f"[bold]Expires:[/bold]  {format_expires(entity.expiration_date)}",
    ]

    panel = Panel("\n".join(lines), title="API Key Details", border_style="blue")
    console.print(panel)


def _import_typer() -> Any:
    """Import typer with helpful error message."""
    try:
        import typer
    except ImportError as exc:
        raise RuntimeError("Typer is required. Install with: pip install shortener-api-keys[cli]") from exc
    return typer


def _import_console() -> Any:
    """Import Rich Console."""
    try:
        from rich.console import Console
    except ImportError as exc:
        raise RuntimeError("Rich is required. Install with: pip install shortener-api-keys[cli]") from exc
    return Console()


def _import_table() -> Any:
    """Import Rich Table."""
    from rich.table import Table

    return Table


def _import_panel() -> Any:
    """Import Rich Panel."""
    from rich.panel import Panel

    return Panel
