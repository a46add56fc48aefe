"""
resolve provides config variable interpolation and type normalization.
"""
from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import cast

import yaml


# Maps shorthand component names to canonical class names
TYPE_ALIASES: dict[str, str] = {
    "affine": "AffineComponent",
    "relu": "RectifiedLinearComponent",
    "rectified_linear": "RectifiedLinearComponent",
    "sigmoid": "SigmoidComponent",
    "tanh": "TanhComponent",
    "log_softmax": "LogSoftmaxComponent",
    "softmax": "SoftmaxComponent",
}


def normalize_type_names(payload: object) -> object:
    """
    Recursively normalize shorthand type names to canonical class names.

    This allows configs to use names like 'relu' or 'log_softmax' while
    internally converting them to 'RectifiedLinearComponent' or
    'LogSoftmaxComponent'.
    """
    if isinstance(payload, Mapping):
        result: dict[str, object] = {}
        for k, v in payload.items():
            if k == "type" and isinstance(v, str):
                result[k] = TYPE_ALIASES.get(v, v)
            else:
                result[k] = normalize_type_names(v)
        return result
    if isinstance(payload, list):
        return [normalize_type_names(v) for v in payload]
    return payload


class Resolver:
    """
    Resolver expands ${var} references in config payloads.
    """
    def __init__(self, vars: Mapping[str, object]) -> None:
        """
        __init__ initializes the variable resolver.
        """
        super().__init__()
        self._vars: dict[str, object] = dict(vars)
        self._cache: dict[str, object] = {}
        self._resolving: set[str] = set()
        self._pattern = re.compile(r"\$\{([A-Za-z0-9_]+)\}")

    def resolve(self, value: object) -> object:
        """
        resolve applies variable interpolation to a payload node.
        """
        if isinstance(value, Mapping):
            return {k: self.resolve(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self.resolve(v) for v in value]
        if isinstance(value, str):
            return self._resolve_str(value)
        return value

    def _resolve_str(self, value: str) -> object:
        """
        _resolve_str resolves ${var} placeholders inside strings.

        A string that is exactly one placeholder keeps the variable's type,
        so `dim: ${hidden}` stays an integer.
        """
        matches = list(self._pattern.finditer(value))
        if not matches:
            return value
        if len(matches) == 1 and matches[0].span() == (0, len(value)):
            return self._resolve_var(matches[0].group(1))

        def _replace(match: re.Match[str]) -> str:
            return str(self._resolve_var(match.group(1)))

        return self._pattern.sub(_replace, value)

    def _resolve_var(self, name: str) -> object:
        """
        _resolve_var resolves a single variable by name.
        """
        if name in self._cache:
            return self._cache[name]
        if name in self._resolving:
            raise ValueError(f"Cycle detected in config vars: {name}")
        if name not in self._vars:
            raise ValueError(f"Unknown config variable: {name}")

        self._resolving.add(name)
        resolved = self.resolve(self._vars[name])
        self._resolving.remove(name)
        self._cache[name] = resolved
        return resolved


def load_payload(path_suffix: str, text: str) -> dict[str, object]:
    """Parse a JSON/YAML config document and apply vars + type aliases."""
    match path_suffix.lower():
        case ".json":
            payload = json.loads(text)
        case ".yml" | ".yaml":
            payload = yaml.safe_load(text)
        case s:
            raise ValueError(f"Unsupported format '{s}'")

    if payload is None:
        raise ValueError("Config payload is empty.")
    if not isinstance(payload, dict):
        raise ValueError(f"Config payload must be a dict, got {type(payload)!r}")

    vars_payload = payload.pop("vars", None)
    if vars_payload is not None:
        if not isinstance(vars_payload, dict):
            raise ValueError(f"Config vars must be a dict, got {type(vars_payload)!r}")
        payload = Resolver(vars_payload).resolve(payload)

    return cast(dict[str, object], normalize_type_names(payload))
