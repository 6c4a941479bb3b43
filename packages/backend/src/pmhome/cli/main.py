"""pmhome CLI — seed the database, log in, and administer users.

Usage:
    pmhome seed-admin                          # Create/refresh admin@demo.com
    pmhome serve                               # Run the API with uvicorn
    pmhome login admin@demo.com                # Prompts for the password
    pmhome whoami                              # Current user (GET /auth/me)
    pmhome logout
    pmhome forgot-password someone@demo.com
    pmhome reset-password <token>              # Prompts for the new password
    pmhome users list --department DEV
    pmhome users create "Jane Doe" jane@demo.com --role EMPLOYEE
    pmhome users update <id> --inactive
    pmhome users reset-password <id>
    pmhome users delete <id>
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import os
import sys
from typing import Optional

import click

from pmhome import __version__
from pmhome.client import ApiClient, ApiError, Redirect, SessionStore, require_auth, require_role
from pmhome.db.models import Department, Role

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("PMHOME_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(store: SessionStore, location: str) -> ApiClient:
    client = ApiClient(_api_url(), store)
    client.location = location
    return client


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. CliRunner
    inside an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _guard(result) -> None:
    """Stop the command when a guard asks for a redirect."""
    if isinstance(result, Redirect):
        if result.to == "/login":
            click.secho("Not logged in. Run: pmhome login <email>", fg="red", err=True)
        else:
            click.secho(
                f"Not allowed here. Your area is {result.to}", fg="red", err=True
            )
        sys.exit(1)


def _fail(err: ApiError, client: Optional[ApiClient] = None) -> None:
    click.secho(f"Error {err.status_code}: {err.detail}", fg="red", err=True)
    if client is not None and client.pending_redirect:
        click.secho("Session expired. Run: pmhome login <email>", fg="yellow", err=True)
    sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "-"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _print_password(password: str) -> None:
    click.secho("Generated password (shown once):", bold=True)
    click.echo(f"  {password}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="pmhome")
@click.pass_context
def main(ctx: click.Context):
    """pmhome — authentication and user administration."""
    ctx.obj = SessionStore()


# ---------------------------------------------------------------------------
# Server-side commands
# ---------------------------------------------------------------------------


@main.command("seed-admin")
@click.option("--email", help="Admin email (default: PMHOME_SEED_ADMIN_EMAIL)")
@click.option("--password", help="Admin password (default: PMHOME_SEED_ADMIN_PASSWORD)")
def seed_admin_cmd(email: Optional[str], password: Optional[str]):
    """Create the admin user, or refresh its password if it exists."""
    _run(_seed_admin_impl(email, password))


async def _seed_admin_impl(email: Optional[str], password: Optional[str]):
    from pmhome.db.engine import async_session_factory, engine
    from pmhome.db.seed import seed_admin

    try:
        async with async_session_factory() as db:
            user, created = await seed_admin(db, email=email, password=password)
    finally:
        await engine.dispose()
    verb = "Inserted" if created else "Updated"
    click.secho(f"{verb} admin user: {user.email}", fg="green")


@main.command()
@click.option("--host", default=None, help="Bind address (default: PMHOME_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: PMHOME_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from pmhome.config import settings

    uvicorn.run(
        "pmhome.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Session commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
@click.pass_obj
def login(store: SessionStore, email: str, password: str):
    """Log in and store the session token."""
    _run(_login_impl(store, email, password))


async def _login_impl(store: SessionStore, email: str, password: str):
    async with _client(store, "/login") as c:
        try:
            data = await c.login(email, password)
        except ApiError as e:
            _fail(e)
    user = data["user"]
    click.secho(f"Logged in as {user['name']} ({user['role']})", fg="green")


@main.command()
@click.pass_obj
def logout(store: SessionStore):
    """Forget the stored session."""
    store.clear()
    click.echo("Logged out.")


@main.command()
@click.pass_obj
def whoami(store: SessionStore):
    """Show the current user as the server sees it."""
    _guard(require_auth(store, "/profile"))
    _run(_whoami_impl(store))


async def _whoami_impl(store: SessionStore):
    async with _client(store, "/profile") as c:
        try:
            user = await c.get_current_user()
        except ApiError as e:
            _fail(e, c)
    click.echo(f"{user['name']} <{user['email']}>")
    click.echo(f"  Role:       {user['role']}")
    click.echo(f"  Department: {user['department']}")


@main.command("forgot-password")
@click.argument("email")
@click.pass_obj
def forgot_password(store: SessionStore, email: str):
    """Request a password reset link."""
    _run(_forgot_impl(store, email))


async def _forgot_impl(store: SessionStore, email: str):
    async with _client(store, "/forgot-password") as c:
        await c.request_forgot_password(email)
    click.echo("If an account exists, a reset link has been sent.")


@main.command("reset-password")
@click.argument("token")
@click.password_option("--new-password", prompt="New password")
@click.pass_obj
def reset_password(store: SessionStore, token: str, new_password: str):
    """Set a new password using a reset token."""
    _run(_reset_impl(store, token, new_password))


async def _reset_impl(store: SessionStore, token: str, new_password: str):
    async with _client(store, "/reset-password") as c:
        result = await c.request_reset_password(token, new_password)
    if result["ok"]:
        click.secho("Password updated. You can log in now.", fg="green")
    else:
        click.secho("Could not reset the password. The link may have expired.", fg="red", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# pmhome users ...
# ---------------------------------------------------------------------------


@main.group()
def users():
    """Administer users (ADMIN only)."""


def _admin_only(f):
    """Run the admin guard when the command runs, after --help is handled."""

    @functools.wraps(f)
    def wrapper(store: SessionStore, *args, **kwargs):
        _guard(require_role(store, Role.ADMIN, "/admin/users"))
        return f(store, *args, **kwargs)

    return wrapper


@users.command("list")
@click.option("--role", type=click.Choice([r.value for r in Role]))
@click.option("--department", type=click.Choice([d.value for d in Department]))
@click.option("--active/--inactive", "is_active", default=None)
@click.option("--search", "-s", help="Substring of name or email")
@click.pass_obj
@_admin_only
def users_list(store, role, department, is_active, search):
    """List users."""
    _run(_users_list_impl(store, role, department, is_active, search))


async def _users_list_impl(store, role, department, is_active, search):
    async with _client(store, "/admin/users") as c:
        try:
            rows = await c.list_users(
                role=role, department=department, isActive=is_active, search=search
            )
        except ApiError as e:
            _fail(e, c)
    if not rows:
        click.echo("No users found.")
        return
    _print_table(rows, [
        ("ID", "id", 36),
        ("NAME", "name", 20),
        ("EMAIL", "email", 28),
        ("ROLE", "role", 8),
        ("DEPT", "department", 8),
        ("ACTIVE", "isActive", 6),
    ])


@users.command("create")
@click.argument("name")
@click.argument("email")
@click.option("--department", type=click.Choice([d.value for d in Department]))
@click.option("--role", type=click.Choice([r.value for r in Role]))
@click.option("--employee-id")
@click.option("--contact-number")
@click.pass_obj
@_admin_only
def users_create(store, name, email, department, role, employee_id, contact_number):
    """Create a user with a generated password."""
    body = {
        "name": name,
        "email": email,
        "department": department,
        "role": role,
        "employeeId": employee_id,
        "contactNumber": contact_number,
    }
    _run(_users_create_impl(store, {k: v for k, v in body.items() if v is not None}))


async def _users_create_impl(store, body: dict):
    async with _client(store, "/admin/users") as c:
        try:
            data = await c.create_user(**body)
        except ApiError as e:
            _fail(e, c)
    click.secho(f"Created {data['user']['email']} ({data['user']['id']})", fg="green")
    _print_password(data["generatedPassword"])


@users.command("update")
@click.argument("user_id")
@click.option("--name")
@click.option("--department", type=click.Choice([d.value for d in Department]))
@click.option("--contact-number")
@click.option("--active/--inactive", "is_active", default=None)
@click.pass_obj
@_admin_only
def users_update(store, user_id, name, department, contact_number, is_active):
    """Update name, department, contact number, or active flag."""
    body = {
        "name": name,
        "department": department,
        "contactNumber": contact_number,
        "is_active": is_active,
    }
    body = {k: v for k, v in body.items() if v is not None}
    if not body:
        raise click.UsageError("Nothing to update")
    _run(_users_update_impl(store, user_id, body))


async def _users_update_impl(store, user_id: str, body: dict):
    async with _client(store, "/admin/users") as c:
        try:
            user = await c.update_user(user_id, **body)
        except ApiError as e:
            _fail(e, c)
    click.secho(f"Updated {user['email']}", fg="green")


@users.command("reset-password")
@click.argument("user_id")
@click.pass_obj
@_admin_only
def users_reset_password(store, user_id):
    """Give a user a fresh generated password."""
    _run(_users_reset_impl(store, user_id))


async def _users_reset_impl(store, user_id: str):
    async with _client(store, "/admin/users") as c:
        try:
            password = await c.reset_user_password(user_id)
        except ApiError as e:
            _fail(e, c)
    _print_password(password)


@users.command("delete")
@click.argument("user_id")
@click.confirmation_option(prompt="Delete this user?")
@click.pass_obj
@_admin_only
def users_delete(store, user_id):
    """Soft-delete a user."""
    _run(_users_delete_impl(store, user_id))


async def _users_delete_impl(store, user_id: str):
    async with _client(store, "/admin/users") as c:
        try:
            await c.delete_user(user_id)
        except ApiError as e:
            _fail(e, c)
    click.secho(f"Deleted {user_id}", fg="green")


if __name__ == "__main__":
    main()
