"""Route template placeholder matching and rewriting.

Placeholders look like ``{id}`` or ``{id:int}``; a trailing ``?`` marks an
optional segment (``{page?}``). Names compare case-insensitively.
"""

import re
from collections.abc import Callable, Iterator
from typing import NamedTuple

# Braces inside a constraint only appear escaped as {{ or }}.
_PLACEHOLDER_PATTERN = re.compile(r"\{([^{}:/]*)(?::((?:[^{}/]|\{\{|\}\})*))?\}")


class Placeholder(NamedTuple):
    name: str
    constraint: str | None = None


def _to_placeholder(match: re.Match) -> Placeholder:
    return Placeholder(match.group(1).rstrip("?"), match.group(2) or None)


def iter_placeholders(template: str) -> Iterator[Placeholder]:
    """Yield every placeholder in template order.

    Unbalanced braces produce no placeholder for the malformed region.
    """
    for match in _PLACEHOLDER_PATTERN.finditer(template):
        yield _to_placeholder(match)


def has_placeholder(template: str, name: str) -> bool:
    """Return True if the template contains ``{name}`` or ``{name:...}``."""
    lowered = template.lower()
    name = name.lower()
    return "{" + name + "}" in lowered or "{" + name + ":" in lowered


def rewrite_template(template: str, keep: Callable[[str], bool]) -> str:
    """Keep placeholders accepted by ``keep`` as ``{name}``, drop the others.

    A trailing ``/`` left behind is trimmed.
    """

    def _replace(match: re.Match) -> str:
        name = _to_placeholder(match).name
        return "{" + name + "}" if keep(name) else ""

    return _PLACEHOLDER_PATTERN.sub(_replace, template).rstrip("/")
