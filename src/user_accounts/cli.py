"""CLI entry point for the user accounts store."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable

import click

from .core.config import Settings, load_settings
from .core.errors import UserAccountsError
from .domain.users import User
from .observability.logger import new_request_id, setup_logging


def _user_payload(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "nickname": user.nickname,
        "email": user.email,
        "country": user.country,
        "created_at": user.meta.created_at.isoformat(),
        "updated_at": user.meta.updated_at.isoformat(),
        "active": not user.meta.disabled,
        "version": user.version,
    }


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, sort_keys=True))


def _parse_filters(pairs: tuple[str, ...]) -> dict[str, str]:
    filters: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--filter")
        filters[key] = value
    return filters


def _run(settings: Settings, action: Callable[[Any], Awaitable[Any]], *, create_tables: bool = False) -> Any:
    """Open a runtime, run *action* with it, and map domain errors to exit code 1."""
    from .bootstrap import open_runtime

    async def _main() -> Any:
        new_request_id()
        async with open_runtime(settings, create_tables=create_tables, use_null_pool=True) as runtime:
            return await action(runtime)

    try:
        return asyncio.run(_main())
    except UserAccountsError as exc:
        raise click.ClickException(f"{type(exc).__name__}: {exc}") from exc


@click.group()
@click.option("--config", default=None, help="TOML config file path")
@click.pass_context
def main(ctx: click.Context, config: str | None) -> None:
    """User accounts store."""
    try:
        settings = load_settings(config_path=config)
        settings.validate_filterable_fields()
    except UserAccountsError as exc:
        raise click.ClickException(f"{type(exc).__name__}: {exc}") from exc
    setup_logging(settings.observability.log_level, settings.observability.log_format.value)
    ctx.obj = settings


@main.command("init-db")
@click.pass_obj
def init_db(settings: Settings) -> None:
    """Create the users table if it does not exist."""

    async def action(runtime: Any) -> None:
        return None

    _run(settings, action, create_tables=True)
    click.echo("users table ready")


@main.command("get")
@click.argument("user_id", type=int)
@click.pass_obj
def get_user(settings: Settings, user_id: int) -> None:
    """Show one active user."""

    async def action(runtime: Any) -> User:
        return await runtime.service.get_user(user_id)

    _echo_json(_user_payload(_run(settings, action)))


@main.command("list")
@click.option("--filter", "filters", multiple=True, help="Equality filter key=value (repeatable)")
@click.pass_obj
def list_users(settings: Settings, filters: tuple[str, ...]) -> None:
    """List active users matching all filters."""
    terms = _parse_filters(filters)

    async def action(runtime: Any) -> list[User]:
        return await runtime.service.list_users(terms)

    _echo_json({"users": [_user_payload(u) for u in _run(settings, action)]})


def _field_options(func: Callable[..., Any]) -> Callable[..., Any]:
    for name in ("country", "email", "password", "nickname", "last-name", "first-name"):
        func = click.option(f"--{name}", default="", help=f"User {name.replace('-', ' ')}")(func)
    return func


@main.command("create")
@_field_options
@click.pass_obj
def create_user(settings: Settings, **fields: str) -> None:
    """Create a user at version 1."""
    from .services.users import CreateUserParams

    params = CreateUserParams(**fields)

    async def action(runtime: Any) -> User:
        return await runtime.service.create_user(params)

    _echo_json(_user_payload(_run(settings, action)))


@main.command("update")
@click.argument("user_id", type=int)
@click.option("--version", "expected_version", type=int, required=True, help="Expected current version")
@_field_options
@click.pass_obj
def update_user(settings: Settings, user_id: int, expected_version: int, **fields: str) -> None:
    """Update the supplied fields if the stored version matches."""
    from .services.users import UpdateUserParams

    params = UpdateUserParams(id=user_id, version=expected_version, **fields)

    async def action(runtime: Any) -> User:
        return await runtime.service.update_user(params)

    _echo_json(_user_payload(_run(settings, action)))


@main.command("delete")
@click.argument("user_id", type=int)
@click.pass_obj
def delete_user(settings: Settings, user_id: int) -> None:
    """Soft-delete a user."""
    from .services.users import DeleteUserParams

    async def action(runtime: Any) -> None:
        await runtime.service.delete_user(DeleteUserParams(id=user_id))

    _run(settings, action)
    click.echo(f"user {user_id} deleted")


if __name__ == "__main__":
    main()
