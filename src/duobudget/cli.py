"""Command line entry points for DuoBudget."""

from __future__ import annotations

import json
from pathlib import Path

import click
from sqlalchemy.exc import IntegrityError

from .config import BaseConfig
from .constants.categories import seed_expense_categories
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelExpenseCategoryRepository
from .logging_config import setup_logging
from .models import User
from .services.importers import (
    CsvImporter,
    HeaderDialect,
    ImportKind,
    ImportRequest,
    IngestionError,
)


def _bootstrap(ctx: click.Context):
    config: BaseConfig = ctx.obj["config"]
    return bootstrap_database(config)


@click.group()
@click.pass_context
def main(ctx: click.Context) -> None:
    """DuoBudget household budget tools."""

    config = BaseConfig()
    setup_logging(config)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database schema."""

    _bootstrap(ctx)
    click.echo(f"Database ready: {ctx.obj['config'].DATABASE_URL}")


@main.command("create-user")
@click.argument("username")
@click.pass_context
def create_user(ctx: click.Context, username: str) -> None:
    """Create a user and print its id."""

    _engine, session_factory = _bootstrap(ctx)
    user = User(username=username.strip())
    try:
        with session_factory() as session:
            session.add(user)
            session.commit()
            session.refresh(user)
    except IntegrityError:
        raise click.ClickException(f"User '{username}' already exists") from None
    click.echo(f"Created user {user.username} (id={user.id})")


@main.command("seed-categories")
@click.pass_context
def seed_categories(ctx: click.Context) -> None:
    """Add the default expense categories that are missing."""

    _engine, session_factory = _bootstrap(ctx)
    created = seed_expense_categories(SQLModelExpenseCategoryRepository(session_factory))
    click.echo(f"Seeded {created} categories")


@main.command("import-csv")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--user-id", required=True, type=int, help="Owner of the imported rows")
@click.option(
    "--kind",
    type=click.Choice(["expense", "revenue", "auto"]),
    default="expense",
    show_default=True,
    help="Ledger to import into; auto imports the file as both",
)
@click.option(
    "--dialect",
    type=click.Choice([dialect.value for dialect in HeaderDialect]),
    default=HeaderDialect.BANK_EXPORT.value,
    show_default=True,
)
@click.pass_context
def import_csv(ctx: click.Context, path: Path, user_id: int, kind: str, dialect: str) -> None:
    """Import a CSV file and print the report as JSON."""

    _engine, session_factory = _bootstrap(ctx)
    importer = CsvImporter(session_factory, ctx.obj["config"])
    raw_bytes = path.read_bytes()
    header_dialect = HeaderDialect(dialect)

    try:
        if kind == "auto":
            reports = importer.run_statement(raw_bytes, owner_id=user_id, dialect=header_dialect)
            payload = {name: report.to_dict() for name, report in reports.items()}
        else:
            request = ImportRequest(user_id, ImportKind(kind), raw_bytes, header_dialect)
            payload = importer.run(request).to_dict()
    except IngestionError as exc:
        click.echo(f"Import failed: {exc}", err=True)
        ctx.exit(1)
        return

    click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
