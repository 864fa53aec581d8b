from __future__ import annotations

import logging
from typing import Optional

import typer
import uvicorn

from apphub import __version__
from apphub.config import get_settings
from apphub.context import RequestContextFilter

app = typer.Typer(add_completion=False, help="AppHub CLI")


def _configure_logging() -> None:
    settings = get_settings()
    handler = logging.StreamHandler()
    handler.addFilter(RequestContextFilter())
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s [req=%(request_id)s user=%(user_id)s]: %(message)s",
        handlers=[handler],
    )


@app.command()
def start(
    host: Optional[str] = typer.Option(None, help="Bind host"),
    port: Optional[int] = typer.Option(None, help="Bind port"),
    reload: bool = typer.Option(False, help="Auto-reload on changes (dev)"),
) -> None:
    _configure_logging()
    settings = get_settings()
    uvicorn.run(
        "apphub.api.app:app",
        host=host or settings.HOST,
        port=port or settings.PORT,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


@app.command()
def version() -> None:
    typer.echo(__version__)


@app.command("init-db")
def init_db_command() -> None:
    """Create (or, with SCHEMA_MODE=external, verify) the database tables."""
    from apphub.database import init_db

    _configure_logging()
    try:
        init_db(create_tables=True)
    except RuntimeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo("Database ready.")


@app.command("create-super-admin")
def create_super_admin(
    email: str = typer.Option(..., help="Login email"),
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"
    ),
    display_name: Optional[str] = typer.Option(None, help="Display name"),
) -> None:
    """Create the first super admin account."""
    from apphub.database import get_db_session, init_db
    from apphub.exceptions import AppHubException
    from apphub.security.auth.service import AuthService

    _configure_logging()
    init_db(create_tables=True)
    try:
        with get_db_session() as session:
            user = AuthService(session).create_super_admin(
                email=email, password=password, display_name=display_name
            )
            user_id = user.id
    except AppHubException as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Created super admin {email} (id={user_id}).")


@app.command("seed-demo")
def seed_demo(
    demo: bool = typer.Option(True, help="Include demo catalog, plans and users"),
    seed: Optional[int] = typer.Option(None, help="Faker seed for repeatable data"),
) -> None:
    """Seed default settings and, optionally, demo data."""
    from apphub.database import get_db_session, init_db
    from apphub.seeder import SeederRegistry

    _configure_logging()
    init_db(create_tables=True)
    with get_db_session() as session:
        report = SeederRegistry.run_all(session, include_demo=demo, seed=seed)
    typer.echo(f"Seeding complete: {len(report.ran)} ran, {len(report.skipped)} skipped.")


def main() -> None:
    app()
