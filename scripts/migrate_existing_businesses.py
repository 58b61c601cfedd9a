#!/usr/bin/env python3
"""Provision tenant schemas for businesses onboarded before schemas existed.

This script:
- Loads config from env/api.env
- Reads every business from the shared "Business" table
- Provisions one schema per business, continuing past individual failures
- Prints a summary table of provisioned and failed businesses

Usage:
    uv run python scripts/migrate_existing_businesses.py
    uv run python scripts/migrate_existing_businesses.py --dry-run
    uv run python scripts/migrate_existing_businesses.py --tenant-id <ID>

Environment Variables:
    SHIFTBOARD_DB_HOST: Database host (default: localhost)
    SHIFTBOARD_DB_PORT: Database port (default: 5432)
    SHIFTBOARD_DB_DATABASE: Database name (default: shiftboard)
    SHIFTBOARD_DB_USERNAME: Database user
    SHIFTBOARD_DB_PASSWORD: Database password
    SHIFTBOARD_TENANCY_SCHEMA_PREFIX: Schema prefix (default: business_)
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
from psycopg2.extras import RealDictCursor
from rich.console import Console
from rich.table import Table

from infrastructure.database.connection_pool import ConnectionPool
from infrastructure.database.exceptions import DatabaseError
from infrastructure.logging import configure_logging
from infrastructure.settings import get_database_settings, get_tenancy_settings
from tenancy.application.backfill import (
    BackfillReport,
    ExistingTenant,
    backfill_tenant_schemas,
)
from tenancy.dependencies import build_tenant_database_service
from tenancy.domain.schema_names import SchemaNameTooLongError, resolve_schema_name

console = Console()

# Load environment from env/api.env
env_file = Path(__file__).parent.parent / "env" / "api.env"
load_dotenv(env_file)

LIST_BUSINESSES_SQL = 'SELECT id, name FROM "Business" ORDER BY name'


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Provision tenant schemas for existing businesses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --dry-run
  %(prog)s --tenant-id 3f1c77aa-...
        """,
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the schemas that would be provisioned without creating them",
    )
    parser.add_argument(
        "--tenant-id",
        action="append",
        default=[],
        help="Only provision this business (repeatable)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show debug log events",
    )
    return parser.parse_args()


def list_businesses(pool: ConnectionPool, only: list[str]) -> list[ExistingTenant]:
    """Read businesses from the shared catalog table."""
    with pool.connection() as conn:
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(LIST_BUSINESSES_SQL)
                rows = cursor.fetchall()
        finally:
            conn.rollback()

    tenants = [ExistingTenant(id=row["id"], name=row["name"]) for row in rows]
    if only:
        tenants = [tenant for tenant in tenants if tenant.id in only]
    return tenants


def print_plan(tenants: list[ExistingTenant], schema_prefix: str) -> None:
    """Print the schemas a real run would provision."""
    table = Table(title="Dry run: schemas to provision")
    table.add_column("Business", style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Schema", style="cyan")
    for tenant in tenants:
        try:
            schema_name = resolve_schema_name(tenant.id, schema_prefix)
        except SchemaNameTooLongError as e:
            schema_name = f"[red]skipped: {e}[/red]"
        table.add_row(tenant.name, tenant.id, schema_name)
    console.print(table)


def print_report(report: BackfillReport) -> None:
    """Print the outcome of a backfill run."""
    table = Table(title="Backfill results")
    table.add_column("Business", style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Result")
    for tenant in report.provisioned:
        table.add_row(tenant.name, tenant.id, "[green]✓ provisioned[/green]")
    for tenant, error in report.failed:
        table.add_row(tenant.name, tenant.id, f"[red]✗ {error}[/red]")
    console.print(table)

    console.print(
        f"\n[bold]Total:[/bold] {report.total}  "
        f"[green]Provisioned:[/green] {len(report.provisioned)}  "
        f"[red]Failed:[/red] {len(report.failed)}"
    )


def main():
    """Main entry point."""
    args = parse_args()
    configure_logging(debug=args.debug)

    database_settings = get_database_settings()
    tenancy_settings = get_tenancy_settings()

    console.print("[bold cyan]Shiftboard Tenant Schema Backfill[/bold cyan]")
    console.print(
        f"[dim]Database: {database_settings.host}:{database_settings.port}"
        f"/{database_settings.database}[/dim]\n"
    )

    try:
        pool = ConnectionPool(database_settings)
    except DatabaseError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    try:
        try:
            tenants = list_businesses(pool, args.tenant_id)
        except Exception as e:
            console.print(f"[bold red]Failed to list businesses:[/bold red] {e}")
            sys.exit(1)

        if not tenants:
            console.print("[yellow]No businesses found[/yellow]")
            return

        if args.dry_run:
            print_plan(tenants, tenancy_settings.schema_prefix)
            return

        service, _ = build_tenant_database_service(
            pool, database_settings, tenancy_settings
        )
        report = backfill_tenant_schemas(tenants, service)
        print_report(report)
    finally:
        pool.close_all()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)  # Standard exit code for Ctrl+C
