"""
Reduce the provider's loosely typed output into an ordered list of image URLs.

Replicate models return whatever their predictor yields: a single URL, a list of
URLs, a dict of named outputs, or (through the Python client) a ``FileOutput``
handle exposing ``url``. Each shape is captured by one variant below and each
variant knows how to extract its own locators. Exactly one variant applies to a
given output.
"""
from __future__ import annotations

import inspect
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Union

logger = logging.getLogger(__name__)

_MISSING = object()


def is_http_locator(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("http")


def _http_items(items: Any) -> list[str]:
    return [item for item in items if is_http_locator(item)]


@dataclass(frozen=True, slots=True)
class AccessorHandle:
    """Object exposing a ``url`` accessor (callable or plain attribute)."""

    handle: Any

    def locators(self) -> list[str]:
        # Accessor failures yield no locators; they are logged, never raised.
        try:
            accessor = getattr(self.handle, "url")
            value = accessor() if callable(accessor) else accessor
            text = getattr(value, "href", None) or str(value)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Provider output url accessor failed: %s", exc)
            return []
        return [text] if is_http_locator(text) else []


@dataclass(frozen=True, slots=True)
class LocatorSequence:
    items: tuple[Any, ...]

    def locators(self) -> list[str]:
        return _http_items(self.items)


@dataclass(frozen=True, slots=True)
class ScalarLocator:
    value: str

    def locators(self) -> list[str]:
        return [self.value] if is_http_locator(self.value) else []


@dataclass(frozen=True, slots=True)
class KeyedStructure:
    """Mapping whose top-level values are scanned; nested mappings are not entered."""

    mapping: Mapping[Any, Any]

    def locators(self) -> list[str]:
        found: list[str] = []
        for value in self.mapping.values():
            if is_http_locator(value):
                found.append(value)
            elif isinstance(value, (list, tuple)):
                found.extend(_http_items(value))
        return found


@dataclass(frozen=True, slots=True)
class Unrecognized:
    value: Any

    def locators(self) -> list[str]:
        return []


ProviderOutput = Union[AccessorHandle, LocatorSequence, ScalarLocator, KeyedStructure, Unrecognized]


def _has_url_accessor(result: Any) -> bool:
    if isinstance(result, (str, bytes, Mapping, list, tuple)):
        return False
    return inspect.getattr_static(result, "url", _MISSING) is not _MISSING


def classify_output(result: Any) -> ProviderOutput:
    """Tag a raw provider output with the shape it takes."""
    if result is None:
        return Unrecognized(result)
    if _has_url_accessor(result):
        return AccessorHandle(result)
    if isinstance(result, (list, tuple)):
        return LocatorSequence(tuple(result))
    if isinstance(result, Iterator):
        return LocatorSequence(tuple(result))
    if isinstance(result, str):
        return ScalarLocator(result)
    if isinstance(result, Mapping):
        return KeyedStructure(result)
    return Unrecognized(result)


def normalize(result: Any) -> list[str]:
    """Return the image URLs contained in ``result``, in provider order, duplicates kept."""
    shape = classify_output(result)
    locators = shape.locators()
    logger.debug("Provider output shape %s yielded %d locator(s)", type(shape).__name__, len(locators))
    return locators
