"""Config commands -- view and modify the user configuration.

Provides the ``cacheworker config`` sub-command group for reading,
updating, and resetting the user's configuration file
(:class:`~cacheworker.models.WorkerConfig`).  Settings control the cache
version tag, the URL reference lists, the network origin and the store
location.
"""

from __future__ import annotations

import json

import typer

from cacheworker.exit_codes import EXIT_INVALID_USAGE
from cacheworker.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration.

    Prints the config directory on stderr and the configuration, after
    project overrides, environment variables and CLI flags, on stdout.

    Example::

        cacheworker config show
        cacheworker --json config show
    """
    from cacheworker.commands.context import load_config
    from cacheworker.config import get_config_dir

    config = load_config(ctx)
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


def _coerce(key: str, current: object, value: str) -> object:
    """Convert *value* to the type of the field's *current* value."""
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            error(f"Expected number for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    if isinstance(current, list):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            parsed = [item.strip() for item in value.split(",") if item.strip()]
        if not isinstance(parsed, list):
            error(f"Expected a list for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        return parsed
    if current is None and value.lower() in ("none", "null", ""):
        return None
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'network.origin')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value in the user config file.

    Uses dot notation for nested keys.  The value is coerced to the
    existing field's type (bool, int, float, list, or str); lists accept
    JSON or a comma-separated string.  The result is validated against
    :class:`~cacheworker.models.WorkerConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        cacheworker config set version radio-co-v2.1
        cacheworker config set network.origin https://radio.example
        cacheworker config set routes.streaming_domains live.example.com,cdn.example.com
    """
    from pydantic import ValidationError

    from cacheworker.config import load_worker_config, save_worker_config
    from cacheworker.models import WorkerConfig

    config = load_worker_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    coerced = _coerce(key, target[final_key], value)
    target[final_key] = coerced

    try:
        new_config = WorkerConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_worker_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset the user configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        cacheworker config reset
        cacheworker --force config reset
    """
    from cacheworker.config import save_worker_config
    from cacheworker.models import WorkerConfig

    force = ctx.obj.get("force", False) if isinstance(ctx.obj, dict) else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_worker_config(WorkerConfig())
    success("Configuration reset to defaults.")
