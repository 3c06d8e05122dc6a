"""
Resolution of the environment used to configure the EuPlatesc client.

Values come from the process environment, an optional ``.env`` file and
explicit overrides, in increasing order of precedence. The result is a plain
mapping consumed by :meth:`euplatesc.core.config.ClientConfig.from_mapping`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional

ENV_PREFIX = "EUPLATESC_"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def _parse_env_file(path: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return values

    for raw_line in data.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, value = line.split("=", 1)
        values[key.strip()] = _unquote(value.strip())
    return values


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Copy the ``EUPLATESC_*`` entries of ``path`` into ``environ``.

    Keys already present in ``environ`` win. The merged mapping is returned.
    """
    target: MutableMapping[str, str] = environ if environ is not None else os.environ
    for key, value in _parse_env_file(Path(path)).items():
        if key.startswith(ENV_PREFIX):
            target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class ClientEnvironment:
    """The ``EUPLATESC_*`` variables visible to the client."""

    variables: Mapping[str, str]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> ClientEnvironment:
    """
    Merge ``base`` (default :data:`os.environ`), ``env_file`` and ``overrides``.

    Only ``EUPLATESC_*`` keys are kept. Pass ``env_file=None`` to skip the file.
    """
    source = os.environ if base is None else base
    merged: Dict[str, str] = {
        key: value for key, value in source.items() if key.startswith(ENV_PREFIX)
    }

    if env_file is not None:
        for key, value in _parse_env_file(Path(env_file)).items():
            if key.startswith(ENV_PREFIX):
                merged.setdefault(key, value)

    if overrides:
        merged.update(overrides)

    return ClientEnvironment(variables=merged)
