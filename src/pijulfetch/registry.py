"""Explicit registry of input schemes, populated by the embedding application."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from pijulfetch.attrs import Attr
from pijulfetch.errors import ValidationError
from pijulfetch.input import Input, PijulInputScheme
from pijulfetch.tool import ToolRunner
from pijulfetch.url import ParsedURL, parse_url


class InputScheme(Protocol):
    type: str

    def input_from_url(self, url: str | ParsedURL) -> Input | None:
        """Return an input when *url* belongs to this scheme, otherwise None."""

    def input_from_attrs(self, attrs: Mapping[str, Attr]) -> Input | None:
        """Return an input when *attrs* belong to this scheme, otherwise None."""


class InputSchemeRegistry:
    def __init__(self) -> None:
        self._schemes: list[InputScheme] = []

    @property
    def schemes(self) -> tuple[InputScheme, ...]:
        return tuple(self._schemes)

    def register(self, scheme: InputScheme) -> None:
        if any(existing.type == scheme.type for existing in self._schemes):
            raise ValidationError(
                f"Input scheme '{scheme.type}' is already registered.",
                context={"operation": "register_input_scheme", "type": scheme.type},
            )
        self._schemes.append(scheme)

    def get(self, type_name: str) -> InputScheme | None:
        for scheme in self._schemes:
            if scheme.type == type_name:
                return scheme
        return None

    def input_from_url(self, url: str) -> Input:
        parsed = parse_url(url)
        for scheme in self._schemes:
            found = scheme.input_from_url(parsed)
            if found is not None:
                return found
        raise ValidationError(
            f"URL '{url}' is not supported by any registered input scheme.",
            hint="Register the matching scheme during application startup.",
            context={"operation": "input_from_url", "url": url, "scheme": parsed.scheme},
        )

    def input_from_attrs(self, attrs: Mapping[str, Attr]) -> Input:
        for scheme in self._schemes:
            found = scheme.input_from_attrs(attrs)
            if found is not None:
                return found
        raise ValidationError(
            "Input attributes are not supported by any registered input scheme.",
            context={"operation": "input_from_attrs", "type": str(attrs.get("type", ""))},
        )


def register_pijul(
    registry: InputSchemeRegistry,
    *,
    runner: ToolRunner | None = None,
) -> PijulInputScheme:
    scheme = PijulInputScheme(runner=runner)
    registry.register(scheme)
    return scheme


__all__ = ["InputScheme", "InputSchemeRegistry", "register_pijul"]
