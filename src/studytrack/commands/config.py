"""Config commands -- view and modify global configuration.

Provides the ``studytrack config`` sub-command group for reading and
updating the user's global configuration file
(:class:`~studytrack.models.GlobalConfig`): default profile, output
format, fetch-cache settings and the refresh rate window.
"""

from __future__ import annotations

from typing import Any

import typer

from studytrack.commands._runtime import resolve_from_context
from studytrack.output import error, format_response, info, print_table, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the global configuration and the profile it resolves to.

    Example::

        studytrack config show
        studytrack --json config show
    """
    from studytrack.config import get_config_dir

    global_cfg, profile = resolve_from_context(ctx)
    info(f"Config directory: {get_config_dir()}")
    format_response(
        {
            "config": global_cfg.model_dump(mode="json"),
            "profile": profile.model_dump(mode="json", exclude_none=True),
        }
    )


def _coerce(current: Any, value: str, key: str) -> Any:
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            error(f"Expected number for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'cache.ttl_seconds')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to the type of
    the existing field and the result validated before saving.

    Example::

        studytrack config set default_profile work
        studytrack config set cache.ttl_seconds 600
        studytrack config set refresh.min_interval_seconds 5
    """
    from pydantic import ValidationError

    from studytrack.config import load_global_config, save_global_config
    from studytrack.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    coerced = _coerce(target[final_key], value, key)
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("set-base-url")
def config_set_base_url(
    ctx: typer.Context,
    url: str = typer.Argument(help="API base URL, e.g. https://study.example.com"),
) -> None:
    """Point the active profile at another API deployment, saving the profile."""
    from studytrack.config import save_profile

    _, profile = resolve_from_context(ctx)
    if not url.startswith(("http://", "https://")):
        error(f"Base URL must start with http:// or https://, got: {url}")
        raise typer.Exit(code=2)
    profile.base_url = url.rstrip("/")
    save_profile(profile)
    success(f"Profile '{profile.name}' now uses {profile.base_url}")


@config_app.command("profiles")
def config_profiles(ctx: typer.Context) -> None:
    """List saved profiles, marking the one this invocation resolves to.

    Example::

        studytrack config profiles
        STUDYTRACK_PROFILE=work studytrack config profiles
    """
    from studytrack.config import list_profiles, load_profile

    _, active = resolve_from_context(ctx)
    names = list_profiles()
    if active.name not in names:
        info(f"Active profile '{active.name}' is not saved; it targets {active.base_url}.")
    if not names:
        info("No saved profiles. 'studytrack config set-base-url URL' saves one.")
        return
    rows = []
    for name in names:
        profile = active if name == active.name else load_profile(name)
        rows.append(["*" if name == active.name else "", name, profile.base_url])
    print_table(["Active", "Name", "Base URL"], rows, title="Profiles")
