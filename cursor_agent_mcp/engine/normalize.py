"""Call normalization for hosts that double-wrap tool parameters.

Some MCP hosts send ``{"arguments": {...real params...}}`` instead of
the flat parameter object. Each tool resolves the shape once, at its
boundary, keyed on the field it cannot work without.
"""
from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

WRAPPER_KEY = "arguments"


class CallShape(str, Enum):
    FLAT = "flat"
    WRAPPED = "wrapped"


def _has(params: Mapping[str, Any], field: str) -> bool:
    return params.get(field) is not None


def detect_call_shape(
    params: Mapping[str, Any] | None,
    primary_field: str,
    wrapper_key: str = WRAPPER_KEY,
) -> CallShape:
    """WRAPPED when only the nested object carries the primary field."""
    if not isinstance(params, Mapping) or _has(params, primary_field):
        return CallShape.FLAT
    nested = params.get(wrapper_key)
    if isinstance(nested, Mapping) and _has(nested, primary_field):
        return CallShape.WRAPPED
    return CallShape.FLAT


def normalize_call(
    params: Mapping[str, Any] | None,
    primary_field: str,
    wrapper_key: str = WRAPPER_KEY,
) -> dict[str, Any]:
    """Return the canonical flat parameter dict."""
    if not isinstance(params, Mapping):
        return {}
    if detect_call_shape(params, primary_field, wrapper_key) is CallShape.WRAPPED:
        return dict(params[wrapper_key])
    return {k: v for k, v in params.items() if k != wrapper_key}
