"""Build switch for all instrumentation.

``ENABLED`` is resolved once, when the package is imported, from the
``PERFSCOPE_ENABLE`` environment variable. Set ``PERFSCOPE_ENABLE=0`` before
importing to turn every timer and scope into a no-op.
"""

import os
from collections.abc import Mapping

from beartype import beartype

ENV_VAR = "PERFSCOPE_ENABLE"

_FALSY = frozenset({"0", "false", "no", "off"})


@beartype
def resolve_enabled(environ: Mapping[str, str] | None = None) -> bool:
    """Parse the build switch from an environment mapping (default: os.environ).

    Unset or empty means enabled. Only an explicit 0/false/no/off disables.
    """
    env = os.environ if environ is None else environ
    raw = env.get(ENV_VAR, "")
    return raw.strip().lower() not in _FALSY


ENABLED: bool = resolve_enabled()
