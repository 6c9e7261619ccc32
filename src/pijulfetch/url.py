"""Minimal URL model used by input schemes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from urllib.parse import parse_qsl, quote, urlencode, urlsplit

from pijulfetch.errors import MalformedURLError

SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")


@dataclass(frozen=True, slots=True)
class ParsedURL:
    scheme: str
    authority: str | None
    path: str
    query: dict[str, str] = field(default_factory=dict)
    fragment: str = ""

    @property
    def base(self) -> str:
        """URL without query string or fragment."""
        if self.authority is None:
            return f"{self.scheme}:{self.path}"
        return f"{self.scheme}://{self.authority}{self.path}"

    def with_scheme(self, scheme: str) -> ParsedURL:
        return replace(self, scheme=scheme)

    def with_query(self, query: dict[str, str]) -> ParsedURL:
        return replace(self, query=dict(query))

    def to_string(self) -> str:
        text = self.base
        if self.query:
            text += "?" + urlencode(sorted(self.query.items()), quote_via=quote, safe="/:")
        if self.fragment:
            text += "#" + self.fragment
        return text

    def __str__(self) -> str:
        return self.to_string()


def parse_url(url: str) -> ParsedURL:
    """Parse an absolute URL, raising :class:`MalformedURLError` on bad input."""
    scheme, sep, rest = url.partition(":")
    if not sep or not SCHEME_PATTERN.fullmatch(scheme) or any(ch.isspace() for ch in url):
        raise MalformedURLError(
            f"'{url}' is not a valid URL.",
            hint="Use an absolute URL such as `https://host/path`.",
            context={"operation": "parse_url", "url": url},
        )
    try:
        parts = urlsplit(url)
        if parts.netloc:
            # accessing the port validates it
            _ = parts.port
    except ValueError as exc:
        raise MalformedURLError(
            f"'{url}' is not a valid URL.",
            hint=str(exc),
            context={"operation": "parse_url", "url": url},
        ) from exc

    authority = parts.netloc if rest.startswith("//") else None
    return ParsedURL(
        scheme=scheme.lower(),
        authority=authority,
        path=parts.path,
        query=dict(parse_qsl(parts.query, keep_blank_values=True)),
        fragment=parts.fragment,
    )


__all__ = ["ParsedURL", "parse_url"]
