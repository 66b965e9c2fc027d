import json
import os
import click
from flask import current_app
from flask.cli import with_appcontext
from flask_migrate import upgrade as alembic_upgrade, stamp as alembic_stamp, migrate as alembic_migrate


def _assert_safe_for_upgrade():
    # Prevent accidental prod upgrades unless explicitly allowed
    env = (current_app.config.get("ENV") or "").lower()
    app_env = (os.getenv("APP_ENV") or "").lower()
    if app_env == "production" or env == "production":
        if (os.getenv("ALLOW_DB_MIGRATIONS") or "").lower() not in ("1", "true", "yes"):
            raise click.ClickException("Refusing to run DB migration in production without ALLOW_DB_MIGRATIONS=true")


@click.command("db-migrate-safe")
@click.option("-m", "--message", default="auto migration", help="Migration message")
@with_appcontext
def db_migrate_safe(message):
    """Generate a new migration script from current models."""
    alembic_migrate(message=message)
    click.echo("Migration script generated.")


@click.command("db-upgrade-safe")
@with_appcontext
def db_upgrade_safe():
    """Apply migrations to the configured database."""
    _assert_safe_for_upgrade()
    alembic_upgrade()
    click.echo("Database upgraded.")


@click.command("db-stamp-safe")
@click.option("--revision", default="head", help="Revision to stamp, default 'head'")
@with_appcontext
def db_stamp_safe(revision):
    """Mark the database at a given revision without running migrations."""
    _assert_safe_for_upgrade()
    alembic_stamp(revision)
    click.echo(f"Database stamped at {revision}.")


@click.command("sync-full")
@click.option("--dry-run", is_flag=True, help="Report what would change without writing")
@with_appcontext
def sync_full(dry_run):
    """Run a full ERPNext -> storefront sync now."""
    from app.services.sync_runner import handle_manual_sync

    body, status = handle_manual_sync(dry_run=dry_run)
    click.echo(json.dumps(body, indent=2, default=str))
    if status != 200:
        raise click.ClickException(body.get("error", "sync failed"))


@click.command("sync-stats")
@with_appcontext
def sync_stats():
    """Print storefront row counts and last sync times."""
    from app.services.storefront_sync import StorefrontSyncManager

    click.echo(json.dumps(StorefrontSyncManager().get_sync_stats(), indent=2))


def register_cli(app):
    app.cli.add_command(db_migrate_safe)
    app.cli.add_command(db_upgrade_safe)
    app.cli.add_command(db_stamp_safe)
    app.cli.add_command(sync_full)
    app.cli.add_command(sync_stats)
