"""Custom management commands exposed through Flask's CLI."""
from __future__ import annotations

import json
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path

import click
from flask.cli import with_appcontext

from kumbam_auth import otp_service
from kumbam_ext.db import db
from kumbam_models.user import User
from kumbam_models.venue import BanquetHall


@click.group(help="KUMBAM management commands")
def manage_cli() -> None:
    """Root Click group registered under `flask manage`."""


@manage_cli.command("init-db", help="Create any missing tables")
@with_appcontext
def init_db() -> None:
    db.create_all()
    click.echo("Database tables created.")


@manage_cli.command("list-users", help="List registered users")
@with_appcontext
def list_users() -> None:
    """Display user accounts, newest first."""
    users = User.query.order_by(User.created_at.desc()).all()
    if not users:
        click.echo("No users found.")
        return
    for user in users:
        click.echo(f"{user.id}: {user.email} - {user.full_name} ({user.phone or 'no phone'})")


@manage_cli.command("purge-otps", help="Delete expired one-time passcodes")
@click.option("--grace-minutes", type=int, default=None, help="Keep codes that expired within this window")
@with_appcontext
def purge_otps(grace_minutes: int | None) -> None:
    """Garbage-collect the OTP log."""
    grace = timedelta(minutes=grace_minutes) if grace_minutes is not None else None
    removed = otp_service.purge_expired_otps(grace=grace)
    click.secho(f"Removed {removed} expired OTP records.", fg="green")


@manage_cli.command("seed-halls", help="Load banquet halls from a JSON file")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@with_appcontext
def seed_halls(path: Path) -> None:
    """Insert halls from a JSON list, skipping names that already exist."""
    try:
        rows = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        click.secho(f"Invalid JSON: {exc}", fg="red")
        return
    if not isinstance(rows, list):
        click.secho("Expected a JSON list of halls.", fg="red")
        return
    created = 0
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            click.secho(f"Skipping entry {index}: expected an object.", fg="yellow")
            continue
        name = (row.get("name") or "").strip()
        if not name or BanquetHall.query.filter_by(name=name).first():
            continue
        try:
            price = Decimal(str(row.get("price") or 0))
        except InvalidOperation:
            click.secho(f"Skipping {name}: price is not a number.", fg="yellow")
            continue
        db.session.add(
            BanquetHall(
                name=name,
                category=row.get("category") or "general",
                location=row.get("location"),
                capacity=row.get("capacity"),
                price=price,
                description=row.get("description"),
                image=row.get("image"),
            )
        )
        created += 1
    db.session.commit()
    click.secho(f"Seeded {created} halls.", fg="green")
