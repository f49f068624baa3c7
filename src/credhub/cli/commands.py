"""CLI commands for credhub.

Commands:
- init-db: Create the database schema
- serve: Run the Web API
- create-user: Create a student or faculty account
- pending: Show the review queue
- stats: Show review counters
- approve / reject: Review certificates by id prefix
- audit: Show audit history
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from credhub.config.app_config import load_app_config
from credhub.core.audit import list_audit_logs
from credhub.core.auth import (
    ROLE_FACULTY,
    USER_ROLES,
    DuplicateUserError,
    RegistrationError,
    register_user,
)
from credhub.core.certificates import (
    ReviewError,
    approve_certificates,
    reject_certificates,
)
from credhub.core.review import (
    ReviewFilters,
    compute_faculty_stats,
    filter_certificates,
    paginate,
)
from credhub.db.certificates_repository import (
    get_all_certificate_ids,
    get_all_certificates,
)
from credhub.db.database import init_db
from credhub.db.users_repository import UserRecord, get_user_by_email
from credhub.utils.validators import (
    AmbiguousCertificateIdError,
    CertificateNotFoundError,
    resolve_certificate_id,
)

app = typer.Typer(
    name="credhub",
    help="Certificate submission and faculty review service.",
    no_args_is_help=True,
)

console = Console()

DbOption = typer.Option(None, "--db", help="Database file (default from config)")


def _init(db: Path | None) -> None:
    init_db(db or load_app_config().db_path)


def _resolve_certificate_ids_or_exit(prefixes: list[str]) -> list[str]:
    """Resolve id prefixes to full ids, or exit with helpful error."""
    candidates = get_all_certificate_ids()
    resolved = []
    for prefix in prefixes:
        try:
            resolved.append(resolve_certificate_id(prefix, candidates))
        except (CertificateNotFoundError, AmbiguousCertificateIdError) as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=1)
    return resolved


def _faculty_or_exit(email: str) -> UserRecord:
    user = get_user_by_email(email)
    if user is None or user.role != ROLE_FACULTY:
        console.print(f"[red]✗ No faculty account with email '{email}'[/red]")
        raise typer.Exit(code=1)
    return user


def _short(certificate_id: str) -> str:
    return certificate_id[:8]


@app.command(name="init-db")
def init_db_command(db: Path | None = DbOption) -> None:
    """Create the database schema."""
    _init(db)
    console.print("[green]✓ Database initialized[/green]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    uvicorn.run("credhub.web.api:app", host=host, port=port, reload=reload)


@app.command(name="create-user")
def create_user(
    email: str = typer.Argument(..., help="Account email"),
    role: str = typer.Option(..., "--role", "-r", help="student or faculty"),
    full_name: str | None = typer.Option(None, "--name", "-n", help="Full name"),
    password: str = typer.Option(
        ..., prompt=True, confirmation_prompt=True, hide_input=True
    ),
    db: Path | None = DbOption,
) -> None:
    """Create a student or faculty account."""
    _init(db)
    try:
        user = register_user(email, password, password, role, full_name)
    except RegistrationError as e:
        for field_name, message in e.errors.items():
            console.print(f"[red]✗ {field_name}: {message}[/red]")
        if "role" in e.errors:
            console.print(f"  Roles: {', '.join(USER_ROLES)}")
        raise typer.Exit(code=1)
    except DuplicateUserError as e:
        console.print(f"[yellow]⚠ {e}[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Created {user.role} account[/green]")
    console.print(f"  [dim]id:[/dim]    {user.id}")
    console.print(f"  [dim]email:[/dim] {user.email}")


@app.command()
def pending(
    search: str = typer.Option("", "--search", "-s", help="Search title/student/category/issuer"),
    category: str = typer.Option("all", "--category", "-c", help="Category value"),
    date_range: str = typer.Option("all", "--date", help="all, today, week, month"),
    status: str = typer.Option("pending", "--status", help="pending, approved, rejected, all"),
    page: int = typer.Option(1, "--page", help="Page number"),
    db: Path | None = DbOption,
) -> None:
    """Show the review queue."""
    _init(db)
    filters = ReviewFilters(search=search, category=category, date_range=date_range, status=status)
    filtered = filter_certificates(get_all_certificates(), filters)
    result = paginate(filtered, page, load_app_config().review.items_per_page)

    if not result.items:
        console.print("[dim]No certificates match these filters.[/dim]")
        return

    table = Table(title=f"Certificates ({result.total}) - page {result.page}/{result.total_pages}")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Student")
    table.add_column("Category")
    table.add_column("Issuer")
    table.add_column("Submitted")
    table.add_column("Status")

    for cert in result.items:
        table.add_row(
            _short(cert.id),
            cert.title,
            cert.student_name,
            cert.category or "",
            cert.issuer or "",
            cert.submitted_at[:10],
            cert.status,
        )

    console.print(table)


@app.command()
def stats(db: Path | None = DbOption) -> None:
    """Show review counters."""
    _init(db)
    result = compute_faculty_stats(get_all_certificates())
    console.print(f"  [dim]pending:[/dim]         {result.pending_count}")
    console.print(f"  [dim]approved today:[/dim]  {result.approved_today}")
    console.print(f"  [dim]total processed:[/dim] {result.total_processed}")


@app.command()
def approve(
    certificate_ids: list[str] = typer.Argument(..., help="Certificate ids or prefixes"),
    actor: str = typer.Option(..., "--actor", "-a", help="Faculty email"),
    db: Path | None = DbOption,
) -> None:
    """Approve certificates."""
    _init(db)
    user = _faculty_or_exit(actor)
    ids = _resolve_certificate_ids_or_exit(certificate_ids)

    try:
        result = approve_certificates(ids, approver_id=user.id)
    except ReviewError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {result.count} certificate(s) approved successfully[/green]")
    if not result.audit_logged:
        console.print(f"[yellow]⚠ Audit log not written: {result.audit_error}[/yellow]")


@app.command()
def reject(
    certificate_ids: list[str] = typer.Argument(..., help="Certificate ids or prefixes"),
    reason: str = typer.Option(..., "--reason", "-r", help="Rejection reason"),
    actor: str = typer.Option(..., "--actor", "-a", help="Faculty email"),
    db: Path | None = DbOption,
) -> None:
    """Reject certificates with a reason."""
    _init(db)
    user = _faculty_or_exit(actor)
    ids = _resolve_certificate_ids_or_exit(certificate_ids)

    try:
        result = reject_certificates(ids, reason, approver_id=user.id)
    except ReviewError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {result.count} certificate(s) rejected[/green]")
    if not result.audit_logged:
        console.print(f"[yellow]⚠ Audit log not written: {result.audit_error}[/yellow]")


@app.command()
def audit(
    certificate: str | None = typer.Option(None, "--certificate", "-c", help="Certificate id or prefix"),
    limit: int = typer.Option(20, "--limit", "-n", help="Max rows"),
    db: Path | None = DbOption,
) -> None:
    """Show audit history."""
    _init(db)
    resource_id = None
    if certificate:
        resource_id = _resolve_certificate_ids_or_exit([certificate])[0]

    logs = list_audit_logs(resource_id=resource_id, limit=limit)
    if not logs:
        console.print("[dim]No audit entries.[/dim]")
        return

    table = Table(title="Audit log")
    table.add_column("When")
    table.add_column("Action")
    table.add_column("Certificate", style="cyan")
    table.add_column("Title")
    table.add_column("Reason")

    for log in logs:
        table.add_row(
            log.created_at[:19],
            log.action_type or "",
            _short(log.resource_id or ""),
            str(log.details.get("certificate_title", "")),
            str(log.details.get("rejection_reason", "") or ""),
        )

    console.print(table)


if __name__ == "__main__":
    app()
