"""Config commands -- view and modify the global configuration.

Provides the ``tiercache config`` sub-command group for reading, updating,
and resetting the user's configuration file
(:class:`~tiercache.models.GlobalConfig`). Settings control the CLI tier
(lookup timeout, error tolerance, event name), the store directory, and
origin request behaviour.
"""

from __future__ import annotations

import typer

from tiercache.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)

_NONE_VALUES = ("none", "null", "")


@config_app.command("show")
def config_show() -> None:
    """Show the stored configuration.

    Example::

        tiercache config show
        tiercache --json config show
    """
    from tiercache.config import global_config_path, load_global_config

    config = load_global_config()
    info(f"Config file: {global_config_path()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'cache.timeout')."
    ),
    value: str = typer.Argument(help="Value to set ('none' clears optional keys)."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type and the result is validated against
    :class:`~tiercache.models.GlobalConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        tiercache config set cache.timeout 50
        tiercache config set cache.ignore_cache_errors true
        tiercache config set cache.name none
    """
    from tiercache.config import load_global_config, save_global_config
    from tiercache.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = target[final_key]
    coerced: object
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif value.lower() in _NONE_VALUES:
        coerced = None
    elif isinstance(current, (int, float)):
        try:
            coerced = type(current)(value)
        except ValueError:
            error(f"Expected a number for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    else:
        coerced = value

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset configuration to defaults.

    Example::

        tiercache config reset --force
    """
    from tiercache.config import save_global_config
    from tiercache.models import GlobalConfig

    if not force and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
