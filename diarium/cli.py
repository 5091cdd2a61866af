#!/usr/bin/env python3
"""
cli.py
-------------------
Command-line interface for the Diarium journal store.

Command Groups:
    Setup:
        - init: Create the database schema (or migrate an existing one)

    Entries:
        - entry-create: Create an entry, optionally with terms
        - entry-delete: Delete an entry with its links and attachments

    Associations:
        - terms-set: Replace an entry's tags, symptoms or medications
        - terms-cloud: Usage counts of an owner's terms
        - terms-category: Set the category of a symptom or medication

    Attachments:
        - attach: Upload a file to an entry
        - detach: Delete one attachment
        - attachments: List an entry's attachments

    Accounts:
        - purge-owner: Remove everything an owner has

    Monitoring:
        - health: Integrity check (optionally repairing dangling links)

Usage:
    diarium init
    diarium entry-create alice 2024-01-15 --content "Long day #work" --hashtags
    diarium terms-set alice 42 symptom Headache Nausea
    diarium attach alice 42 ./photo.jpg
    diarium purge-owner alice --yes
"""
import json
import logging
import mimetypes
from pathlib import Path

import click

from diarium.core.exceptions import (
    DatabaseError,
    NotFoundError,
    OwnershipError,
    StorageError,
    ValidationError,
)
from diarium.core.logging_manager import handle_cli_error
from diarium.core.paths import ALEMBIC_DIR, BLOB_DIR, DB_PATH, LOG_DIR
from diarium.database.manager import DiariumDB
from diarium.database.models import Kind

# Failures reported to the user with a clean message and exit code 1
CLI_ERRORS = (DatabaseError, StorageError, ValidationError, NotFoundError, OwnershipError)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    default=str(DB_PATH),
    help="Path to database file",
)
@click.option(
    "--alembic-dir",
    type=click.Path(),
    default=str(ALEMBIC_DIR),
    help="Path to Alembic migrations directory",
)
@click.option(
    "--blob-dir",
    type=click.Path(),
    default=str(BLOB_DIR),
    help="Root directory of the attachment store",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=str(LOG_DIR),
    help="Path to log directory",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, db_path, alembic_dir, blob_dir, log_dir, verbose):
    """Diarium journal store CLI"""

    # Suppress Alembic INFO logging by default
    logging.getLogger("alembic").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path)
    ctx.obj["alembic_dir"] = Path(alembic_dir)
    ctx.obj["blob_dir"] = Path(blob_dir)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["verbose"] = verbose


def get_db(ctx) -> DiariumDB:
    """Get or create database instance."""
    if "db" not in ctx.obj:
        ctx.obj["db"] = DiariumDB(
            db_path=ctx.obj["db_path"],
            alembic_dir=ctx.obj["alembic_dir"],
            blob_dir=ctx.obj["blob_dir"],
            log_dir=ctx.obj["log_dir"],
        )
        ctx.obj["logger"] = ctx.obj["db"].logger
        ctx.call_on_close(ctx.obj["db"].close)
    return ctx.obj["db"]


kind_option = click.Choice(Kind.choices())


# ===== Setup =====
@cli.command()
@click.pass_context
def init(ctx):
    """Create the database schema, or migrate an existing database."""
    try:
        click.echo("🚀 Initializing Diarium database...")
        db = get_db(ctx)
        db.initialize_schema()
        click.echo(f"✅ Database ready: {db.db_path}")
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "init")


# ===== Entries =====
@cli.command("entry-create")
@click.argument("owner")
@click.argument("entry_date")
@click.option("--content", default="", help="Entry text")
@click.option("--mood", type=int, help="Mood rating (1-5)")
@click.option("--wellbeing", type=int, help="Wellbeing rating (1-5)")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--symptom", "symptoms", multiple=True, help="Symptom (repeatable)")
@click.option("--medication", "medications", multiple=True, help="Medication (repeatable)")
@click.option("--hashtags", is_flag=True, help="Also tag the entry with #hashtags in its text")
@click.pass_context
def entry_create(ctx, owner, entry_date, content, mood, wellbeing,
                 tags, symptoms, medications, hashtags):
    """Create an entry for OWNER on ENTRY_DATE (YYYY-MM-DD)."""
    try:
        db = get_db(ctx)
        ratings = {"mood": mood, "wellbeing": wellbeing}
        with db.session_scope():
            entry = db.entries.create(owner, entry_date, content, ratings)

            tag_names = list(tags)
            if hashtags:
                tag_names += db.associations.extract_hashtags(entry.content)
            if tag_names:
                db.associations.sync(owner, entry.id, Kind.TAG, tag_names)
            if symptoms:
                db.associations.sync(owner, entry.id, Kind.SYMPTOM, symptoms)
            if medications:
                db.associations.sync(owner, entry.id, Kind.MEDICATION, medications)

            entry_id = entry.id

        click.echo(f"✅ Entry created: {entry_id}")
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "entry_create", {"owner": owner})


@cli.command("entry-delete")
@click.argument("owner")
@click.argument("entry_id", type=int)
@click.pass_context
def entry_delete(ctx, owner, entry_id):
    """Delete an entry with its terms and attachments."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            db.cascade.delete_entry(owner, entry_id)
        click.echo(f"🗑️  Entry deleted: {entry_id}")
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "entry_delete", {"owner": owner, "entry_id": entry_id})


# ===== Associations =====
@cli.command("terms-set")
@click.argument("owner")
@click.argument("entry_id", type=int)
@click.argument("kind", type=kind_option)
@click.argument("names", nargs=-1)
@click.pass_context
def terms_set(ctx, owner, entry_id, kind, names):
    """Replace the KIND terms of an entry with NAMES (none clears them)."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            db.entries.get_for_owner(owner, entry_id)
            terms = db.associations.sync(owner, entry_id, kind, names)

        if terms:
            click.echo(", ".join(term.name for term in terms))
        else:
            click.echo(f"No {kind}s attached")
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "terms_set", {"owner": owner, "entry_id": entry_id})


@cli.command("terms-cloud")
@click.argument("owner")
@click.argument("kind", type=kind_option)
@click.option("--as-json", is_flag=True, help="Print JSON instead of a table")
@click.pass_context
def terms_cloud(ctx, owner, kind, as_json):
    """Show how often each of an owner's terms is used."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            cloud = db.associations.term_cloud(owner, kind)

        if as_json:
            click.echo(json.dumps([item.to_dict() for item in cloud], indent=2))
            return

        if not cloud:
            click.echo(f"No {kind}s in use")
            return
        for item in cloud:
            label = f"{item.name} [{item.category}]" if item.category else item.name
            click.echo(f"  {item.count:>4}  {label}")
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "terms_cloud", {"owner": owner})


@cli.command("terms-category")
@click.argument("owner")
@click.argument("kind", type=click.Choice([Kind.SYMPTOM.value, Kind.MEDICATION.value]))
@click.argument("name")
@click.argument("category", required=False)
@click.pass_context
def terms_category(ctx, owner, kind, name, category):
    """Set (or, without CATEGORY, clear) the category of a term."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            term = db.associations.set_category(owner, kind, name, category)
        click.echo(f"✅ {term.name}: {term.category or '(no category)'}")
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "terms_category", {"owner": owner})


# ===== Attachments =====
@cli.command()
@click.argument("owner")
@click.argument("entry_id", type=int)
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mime-type", help="Override the guessed MIME type")
@click.pass_context
def attach(ctx, owner, entry_id, file, mime_type):
    """Upload FILE as an attachment of an entry."""
    try:
        db = get_db(ctx)
        mime = mime_type or mimetypes.guess_type(file.name)[0]
        with db.session_scope():
            entry = db.entries.get_for_owner(owner, entry_id)
            record = db.attachments.upload(
                owner, entry.id, entry.entry_date, file.name, file.read_bytes(), mime
            )
        click.echo(f"📎 Stored as {record.stored_path} (id {record.id})")
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "attach", {"owner": owner, "entry_id": entry_id})


@cli.command()
@click.argument("owner")
@click.argument("attachment_id", type=int)
@click.pass_context
def detach(ctx, owner, attachment_id):
    """Delete one attachment and its file."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            db.attachments.delete(owner, attachment_id)
        click.echo(f"🗑️  Attachment deleted: {attachment_id}")
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "detach", {"owner": owner, "attachment_id": attachment_id})


@cli.command()
@click.argument("owner")
@click.argument("entry_id", type=int)
@click.pass_context
def attachments(ctx, owner, entry_id):
    """List the attachments of an entry."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            db.entries.get_for_owner(owner, entry_id)
            records = db.attachments.list_for_entry(entry_id)

        if not records:
            click.echo("No attachments")
            return
        for record in records:
            click.echo(
                f"  {record.id:>4}  {record.original_name} "
                f"({record.size_bytes} bytes, {record.mime_type})"
            )
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "attachments", {"owner": owner, "entry_id": entry_id})


# ===== Accounts =====
@cli.command("purge-owner")
@click.argument("owner")
@click.confirmation_option(prompt="⚠️  This will DELETE everything the owner has! Are you sure?")
@click.pass_context
def purge_owner(ctx, owner):
    """Remove every entry, term and attachment of OWNER."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            report = db.cascade.handle_owner_removed(owner)
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "purge_owner", {"owner": owner})
        return

    click.echo(f"\n🧹 Account removal: {owner}")
    click.echo("=" * 50)
    for kind, count in (report.get("links") or {}).items():
        click.echo(f"  {kind} links: {count}")
    files = report.get("attachments") or {}
    click.echo(f"  files deleted: {files.get('blobs_deleted', 0)}")
    click.echo(f"  attachment rows: {files.get('rows_deleted', 0)}")
    click.echo(f"  terms: {report.get('terms') or 0}")
    click.echo(f"  entries: {report.get('entries') or 0}")

    if report["errors"]:
        click.echo(f"\n⚠️  Incomplete steps: {', '.join(report['errors'])}", err=True)
        ctx.exit(1)
    click.echo("\n✅ Done")


# ===== Monitoring =====
@cli.command()
@click.option("--fix", is_flag=True, help="Delete dangling links")
@click.pass_context
def health(ctx, fix):
    """Run the integrity checks."""
    try:
        db = get_db(ctx)
        health_data = db.health_report()

        click.echo("\n🏥 Diarium Health Check")
        click.echo("=" * 50)
        click.echo(f"Status: {health_data['status'].upper()}")

        if health_data["issues"]:
            click.echo(f"\n⚠️  Issues Found ({len(health_data['issues'])}):")
            for issue in health_data["issues"]:
                click.echo(f"  • {issue}")
        else:
            click.echo("\n✅ No issues found!")

        if health_data["recommendations"]:
            click.echo(f"\n💡 Recommendations ({len(health_data['recommendations'])}):")
            for rec in health_data["recommendations"]:
                click.echo(f"  • {rec}")

        if fix and health_data["issues"]:
            click.echo("\n🔧 Removing dangling links...")
            with db.session_scope() as session:
                results = db.health_monitor.cleanup_dangling_links(session, dry_run=False)
            total_cleaned = 0
            for key, value in results.items():
                if isinstance(value, int) and not isinstance(value, bool) and value > 0:
                    click.echo(f"  • {key}: {value}")
                    total_cleaned += value
            if total_cleaned == 0:
                click.echo("  No dangling links found")
    except CLI_ERRORS as e:
        handle_cli_error(ctx, e, "health")


if __name__ == "__main__":
    cli(obj={})
