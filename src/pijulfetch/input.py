"""Pijul source descriptors and their URL/attribute normalization."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from pijulfetch.attrs import (
    ATTR_SCHEMA,
    Attr,
    AttrName,
    Attrs,
    get_str_attr,
    maybe_get_int_attr,
    maybe_get_str_attr,
    merge_attrs,
)
from pijulfetch.errors import UnsupportedAttributeError, ValidationError
from pijulfetch.tool import SubprocessToolRunner, ToolRunner
from pijulfetch.url import ParsedURL, parse_url

INPUT_TYPE = "pijul"
SCHEME_PREFIX = "pijul+"
URL_SCHEMES = frozenset({"pijul+http", "pijul+https", "pijul+ssh", "pijul+file"})
PIN_ATTRS = (AttrName.CHANNEL, AttrName.STATE)
DEFAULT_NAME = "source"
KNOWN_ATTRS = frozenset(item.value for item in AttrName)


@dataclass(frozen=True, slots=True)
class Input:
    """A validated source descriptor.

    Only :class:`PijulInputScheme` should construct inputs; the attribute
    mapping is treated as immutable and enrichment returns a new descriptor.
    """

    attrs: Attrs = field(default_factory=dict)

    @property
    def type(self) -> str:
        return get_str_attr(self.attrs, AttrName.TYPE)

    @property
    def url(self) -> str:
        return get_str_attr(self.attrs, AttrName.URL)

    @property
    def channel(self) -> str | None:
        return maybe_get_str_attr(self.attrs, AttrName.CHANNEL)

    @property
    def state(self) -> str | None:
        return maybe_get_str_attr(self.attrs, AttrName.STATE)

    @property
    def nar_hash(self) -> str | None:
        return maybe_get_str_attr(self.attrs, AttrName.NAR_HASH)

    @property
    def last_modified(self) -> int | None:
        return maybe_get_int_attr(self.attrs, AttrName.LAST_MODIFIED)

    @property
    def locked(self) -> bool:
        return bool(self.channel) and bool(self.state)

    @property
    def name(self) -> str:
        return DEFAULT_NAME

    def with_attrs(self, extra: Mapping[str, Attr]) -> Input:
        return Input(attrs=merge_attrs(dict(self.attrs), extra))

    def to_attrs(self) -> Attrs:
        return dict(self.attrs)


class PijulInputScheme:
    """Converts between ``pijul+*`` URLs, attribute sets, and :class:`Input`."""

    type = INPUT_TYPE

    def __init__(self, runner: ToolRunner | None = None) -> None:
        self.runner = runner or SubprocessToolRunner()

    def input_from_url(self, url: str | ParsedURL) -> Input | None:
        parsed = parse_url(url) if isinstance(url, str) else url
        if parsed.scheme not in URL_SCHEMES:
            return None

        attrs: Attrs = {AttrName.TYPE.value: INPUT_TYPE}
        query: dict[str, str] = {}
        for name, value in parsed.query.items():
            if name in PIN_ATTRS:
                attrs[name] = value
            else:
                query[name] = value

        embedded = parsed.with_scheme(parsed.scheme[len(SCHEME_PREFIX) :]).with_query(query)
        attrs[AttrName.URL.value] = embedded.to_string()
        return self.input_from_attrs(attrs)

    def input_from_attrs(self, attrs: Mapping[str, Attr]) -> Input | None:
        if attrs.get(AttrName.TYPE) != INPUT_TYPE:
            return None

        for name, value in attrs.items():
            if name not in KNOWN_ATTRS:
                raise UnsupportedAttributeError(
                    f"Unsupported Pijul input attribute '{name}'.",
                    hint="Supported attributes: " + ", ".join(sorted(ATTR_SCHEMA)),
                    context={"operation": "input_from_attrs", "attribute": name},
                )
            _check_attr_type(AttrName(name), value)

        normalized = dict(attrs)
        url = parse_url(get_str_attr(attrs, AttrName.URL))
        normalized[AttrName.URL.value] = url.to_string()
        return Input(attrs=normalized)

    def to_url(self, descriptor: Input) -> ParsedURL:
        url = parse_url(descriptor.url)
        if url.scheme != INPUT_TYPE:
            url = url.with_scheme(SCHEME_PREFIX + url.scheme)

        query = dict(url.query)
        if descriptor.channel is not None:
            query[AttrName.CHANNEL.value] = descriptor.channel
        if descriptor.state is not None:
            query[AttrName.STATE.value] = descriptor.state
        return url.with_query(query)

    def is_locked(self, descriptor: Input) -> bool:
        return descriptor.locked

    def has_all_info(self, descriptor: Input) -> bool:
        return descriptor.last_modified is not None

    def get_source_path(self, descriptor: Input) -> Path | None:
        """Return the local checkout path of an unpinned ``file`` descriptor."""
        url = parse_url(descriptor.url)
        if url.scheme == "file" and descriptor.channel is None and descriptor.state is None:
            return Path(url.path)
        return None

    def mark_changed_file(
        self,
        descriptor: Input,
        file: str,
        commit_msg: str | None = None,
    ) -> None:
        source_path = self.get_source_path(descriptor)
        if source_path is None:
            raise ValidationError(
                "Input has no mutable local source path.",
                hint="Only unpinned `file` URLs can be modified in place.",
                context={"operation": "mark_changed_file", "url": descriptor.url},
            )

        self.runner.run(["add", "--", file], cwd=source_path)
        if commit_msg:
            self.runner.run(
                ["record", file, "-m", commit_msg],
                cwd=source_path,
                interactive=True,
            )


def _check_attr_type(name: AttrName, value: Attr) -> None:
    expected = ATTR_SCHEMA[name]
    if isinstance(value, bool) or not isinstance(value, expected):
        raise ValidationError(
            f"Attribute `{name}` must be of type {expected.__name__}.",
            context={
                "operation": "input_from_attrs",
                "attribute": str(name),
                "value": repr(value),
            },
        )


__all__ = ["DEFAULT_NAME", "INPUT_TYPE", "Input", "PijulInputScheme"]
