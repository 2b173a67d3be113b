"""Describe Python callables as operations.

Markers are read from ``typing.Annotated`` metadata::

    async def get_order(order_id: Annotated[int, FromRoute(name="id")]): ...

and from FastAPI-style defaults::

    def list_orders(page: int = Query(1, alias="p")): ...
"""

import inspect
import logging
import typing
from collections.abc import Callable
from typing import Annotated, Any, get_args, get_origin

from api_param_resolver.binding.adapters import MarkerAdapter, default_adapter
from api_param_resolver.binding.base import FormalParameter, Operation
from api_param_resolver.errors import ConfigurationError

logger = logging.getLogger(__name__)

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)

# Sentinels used by host frameworks for "no default" on marker objects.
_NO_DEFAULT_NAMES = {"PydanticUndefinedType", "_Unset", "ellipsis"}


def _marker_default(marker_like: Any) -> tuple[bool, Any]:
    """Return (has_default, default) declared on a FastAPI-style marker object."""
    if not hasattr(marker_like, "default"):
        return False, None
    default = marker_like.default
    if default is Ellipsis or type(default).__name__ in _NO_DEFAULT_NAMES:
        return False, None
    return True, default


def describe_callable(func: Callable, adapter: MarkerAdapter | None = None) -> list[FormalParameter]:
    """Return the formal parameters of ``func`` with their binding markers."""
    adapter = adapter or default_adapter
    sig = inspect.signature(func)
    try:
        hints = typing.get_type_hints(func, include_extras=True)
    except (NameError, TypeError) as e:
        raise ConfigurationError(f"Cannot resolve type hints of {func!r}: {e}") from e

    parameters = []
    for name, param in sig.parameters.items():
        if name in ("self", "cls") or param.kind in _SKIPPED_KINDS:
            continue

        annotation = hints.get(name, Any)
        metadata: list[Any] = []
        if get_origin(annotation) is Annotated:
            metadata.extend(get_args(annotation)[1:])

        has_default = param.default is not inspect.Parameter.empty
        default = param.default if has_default else None
        if has_default and adapter.is_recognized(default):
            metadata.append(default)
            has_default, default = _marker_default(default)

        parameters.append(
            FormalParameter(
                name=name,
                annotation=annotation,
                markers=tuple(adapter.to_markers(metadata)),
                has_default=has_default,
                default=default,
                source=name,
            )
        )
    return parameters


def describe_operation(
    func: Callable,
    path: str,
    method: str = "GET",
    operation_id: str | None = None,
    adapter: MarkerAdapter | None = None,
) -> Operation:
    """Describe ``func`` served at ``path`` as an Operation."""
    operation = Operation(
        operation_id=operation_id or func.__qualname__,
        method=method.upper(),
        path=path,
        parameters=describe_callable(func, adapter),
    )
    logger.debug("Described %s %s with %d parameters", operation.method, path, len(operation.parameters))
    return operation
