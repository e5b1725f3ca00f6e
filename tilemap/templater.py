from __future__ import annotations

import re
from typing import Any, List, Mapping


_PLACEHOLDER = re.compile(r"\{(\w+?)\}")


def expand(template: str, values: Mapping[str, Any]) -> str:
    """
    Replace every `{name}` with str(values[name]).

    Names missing from `values` are left in place, so a template can be
    expanded in stages: dataset-level values once at setup, then
    tileMatrix/tileRow/tileCol per tile.
    """
    def _sub(m: re.Match) -> str:
        key = m.group(1)
        if key in values:
            return str(values[key])
        return m.group(0)

    return _PLACEHOLDER.sub(_sub, template)


def placeholders(template: str) -> List[str]:
    """Names of the `{name}` placeholders still present in `template`, in order."""
    return _PLACEHOLDER.findall(template)
