"""Config commands -- view and modify global configuration.

Provides the ``apimodel config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~apimodel.models.GlobalConfig`). Settings are persisted in the
apimodel config directory and supply the generator defaults (bounded
integers, documentation output and fetching, the docs cache) and the
default output format.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from apimodel.commands import fail
from apimodel.exceptions import ConfigError
from apimodel.output import error, info, print_json, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Loads the global config from disk and prints the config directory
    path (to stderr) followed by the configuration as JSON.

    Example::

        apimodel config show
    """
    from apimodel.config import get_config_dir, load_global_config

    try:
        config = load_global_config()
    except ConfigError as exc:
        raise fail(exc) from None
    info(f"Config directory: {get_config_dir()}")
    print_json(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'generator.emit_docs')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (bool, int, or str). The updated config is
    validated against :class:`~apimodel.models.GlobalConfig` before saving.

    Args:
        key: Dot-separated config key path (e.g. ``output.format``).
        value: String value to set; coerced to the target field type.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or Pydantic validation fails.

    Example::

        apimodel config set generator.bounded_integers false
        apimodel config set generator.docs_cache.ttl_seconds 600
        apimodel config set output.format plain
    """
    from apimodel.config import load_global_config, save_global_config
    from apimodel.models import GlobalConfig

    try:
        config = load_global_config()
    except ConfigError as exc:
        raise fail(exc) from None
    data = config.model_dump(mode="json")

    # Navigate the dot-separated key path.
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

    # Type coerce the value to match the current field type.
    current = target[final_key]
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes", "on")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    else:
        coerced = value  # type: ignore[assignment]

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip the confirmation prompt."
    ),
) -> None:
    """Reset configuration to defaults.

    Replaces the persisted global config with a fresh
    :class:`~apimodel.models.GlobalConfig` containing all default values.
    Asks for confirmation unless ``--force`` is given.

    Raises:
        typer.Exit: If the user declines confirmation.

    Example::

        apimodel config reset
        apimodel config reset --force
    """
    from apimodel.config import save_global_config
    from apimodel.models import GlobalConfig

    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
