"""CLI entry point for api-param-resolver."""

import asyncio
import importlib
import json
import logging
import sys
from pathlib import Path

import click
import yaml

from api_param_resolver.binding.base import ResolvedOperation
from api_param_resolver.binding.resolver import OperationParameterResolver
from api_param_resolver.binding.routing import iter_placeholders
from api_param_resolver.errors import ConfigurationError
from api_param_resolver.introspect.signature import describe_operation
from api_param_resolver.settings import GenerationSettings, load_settings


def _load_target(target: str, app_dir: Path = Path(".")):
    """Import ``module:function`` (``module:Class.method`` also works) from app_dir."""
    app_root = str(app_dir.resolve())
    if app_root not in sys.path:
        sys.path.insert(0, app_root)

    module_name, _, attr_path = target.partition(":")
    if not module_name or not attr_path:
        raise click.BadParameter("expected 'module:function'", param_hint="TARGET")
    try:
        obj = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import '{module_name}': {e}", param_hint="TARGET") from e
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise click.BadParameter(f"'{target}' not found", param_hint="TARGET") from e
    return obj


def _build_settings(settings_path: Path | None, overrides: dict) -> GenerationSettings:
    settings = load_settings(settings_path) if settings_path else GenerationSettings()
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return settings.model_copy(update=overrides)


def _render(resolved: ResolvedOperation, fmt: str) -> str:
    data = resolved.model_dump(mode="json", exclude_none=True)
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False)
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log binding decisions.")
def main(verbose: bool):
    """API Param Resolver — decide where each operation parameter is read from."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("target")
@click.option("--path", "route", required=True, help="Route template, e.g. /users/{id}.")
@click.option("--method", default="GET", help="HTTP method.")
@click.option("--operation-id", default=None, help="Operation id (default: function name).")
@click.option("--app-dir", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Directory to import TARGET from (default: current directory).")
@click.option("--settings", "settings_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML settings file.")
@click.option("--complex-query-binding/--no-complex-query-binding", default=None, help="Bind unmarked complex parameters from the query string.")
@click.option("--add-missing-path-parameters/--no-add-missing-path-parameters", default=None, help="Synthesize parameters for unbound placeholders.")
@click.option("--format", "fmt", default="yaml", type=click.Choice(["yaml", "json"]), help="Output format.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file (default: stdout).")
def resolve(
    target: str,
    route: str,
    method: str,
    operation_id: str | None,
    app_dir: Path,
    settings_path: Path | None,
    complex_query_binding: bool | None,
    add_missing_path_parameters: bool | None,
    fmt: str,
    output: Path | None,
):
    """Resolve the parameters of TARGET (module:function) served at --path."""
    func = _load_target(target, app_dir)

    try:
        settings = _build_settings(
            settings_path,
            {
                "complex_query_binding": complex_query_binding,
                "add_missing_path_parameters": add_missing_path_parameters,
            },
        )
        operation = describe_operation(func, route, method=method, operation_id=operation_id)
        resolved = asyncio.run(OperationParameterResolver(settings).resolve(operation))
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    text = _render(resolved, fmt)
    if output is None:
        click.echo(text)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Resolved {len(resolved.parameters)} parameters, saved to {output}")


@main.command()
@click.argument("template")
def placeholders(template: str):
    """List the placeholders of a route TEMPLATE."""
    found = list(iter_placeholders(template))
    if not found:
        click.echo("No placeholders.")
        return
    for placeholder in found:
        if placeholder.constraint:
            click.echo(f"{placeholder.name} ({placeholder.constraint})")
        else:
            click.echo(placeholder.name)
