"""Typed accessor code for a pulled bundle.

The generated module exposes a ``UnitName`` literal of every qualified
name, an ``INTERFACES`` table and a ``get_interface()`` accessor, and
records the release it was generated from. Output depends only on the
bundle content, so regenerating from the same tag is a no-op.
"""

from __future__ import annotations

import logging
import pprint
from pathlib import Path

from buildvault.core.resolver import DeploymentResolver

logger = logging.getLogger(__name__)

_HEADER = '''"""Typed accessors for {project}@{tag}.

Generated by buildvault from bundle {fingerprint}. Do not edit.
"""

from __future__ import annotations

from typing import Any, Literal

PROJECT = {project!r}
TAG = {tag!r}
FINGERPRINT = {fingerprint!r}
'''

_ACCESSOR = '''

def get_interface(name: UnitName) -> Any:
    """Return the interface descriptor of *name*."""
    return INTERFACES[name]
'''


def _indent(text: str, prefix: str = "    ") -> str:
    return "\n".join(prefix + line if line else line for line in text.splitlines())


def generate_bindings(resolver: DeploymentResolver) -> str:
    """Render the accessor module source for *resolver*'s bundle."""
    names = sorted(resolver.qualified_names())
    parts = [
        _HEADER.format(
            project=resolver.project,
            tag=resolver.tag,
            fingerprint=resolver.fingerprint,
        )
    ]

    if names:
        literal_body = "\n".join(f"    {name!r}," for name in names)
        parts.append(f"\nUnitName = Literal[\n{literal_body}\n]\n")
    else:
        parts.append("\nUnitName = str\n")

    entries = []
    for name in names:
        interface = resolver.resolve_unit(name).interface
        rendered = pprint.pformat(interface, indent=1, width=88, sort_dicts=True)
        entries.append(f"    {name!r}: (\n{_indent(rendered, '        ')}\n    ),")
    table = "\n".join(entries)
    parts.append(
        "\nINTERFACES: dict[str, Any] = {\n" + (table + "\n" if table else "") + "}\n"
    )
    parts.append(_ACCESSOR)
    return "".join(parts)


def write_bindings(resolver: DeploymentResolver, output: Path) -> Path:
    """Generate bindings and write them to *output*, replacing any old file."""
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    staged = output.with_name(f".{output.name}.tmp")
    staged.write_text(generate_bindings(resolver), encoding="utf-8")
    staged.replace(output)
    logger.info(
        "Wrote bindings for %s@%s (%d units) to %s",
        resolver.project,
        resolver.tag,
        len(resolver.qualified_names()),
        output,
    )
    return output
