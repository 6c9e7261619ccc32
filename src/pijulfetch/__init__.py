"""Public package entrypoint for the Pijul fetcher."""

from .attrs import Attr, AttrName, Attrs, merge_attrs
from .cache import FetchCache, FileFetchCache, impure_key, locked_key
from .errors import (
    AttributeConflictError,
    CacheError,
    ChannelMismatchError,
    ErrorCode,
    FetchError,
    MalformedOutputError,
    MalformedTimestampError,
    MalformedURLError,
    PolicyError,
    StateMismatchError,
    ToolInvocationError,
    UnsupportedAttributeError,
    ValidationError,
)
from .fetcher import FetchResult, PijulFetcher
from .input import Input, PijulInputScheme
from .policy import Policy
from .registry import InputSchemeRegistry, register_pijul
from .status import RepoStatus, get_repo_status
from .store import ArtifactId, ContentStore, LocalContentStore
from .tool import SubprocessToolRunner, ToolRunner

__all__ = [
    "ArtifactId",
    "Attr",
    "AttrName",
    "Attrs",
    "AttributeConflictError",
    "CacheError",
    "ChannelMismatchError",
    "ContentStore",
    "ErrorCode",
    "FetchCache",
    "FetchError",
    "FetchResult",
    "FileFetchCache",
    "Input",
    "InputSchemeRegistry",
    "LocalContentStore",
    "MalformedOutputError",
    "MalformedTimestampError",
    "MalformedURLError",
    "PijulFetcher",
    "PijulInputScheme",
    "Policy",
    "PolicyError",
    "RepoStatus",
    "StateMismatchError",
    "SubprocessToolRunner",
    "ToolInvocationError",
    "ToolRunner",
    "UnsupportedAttributeError",
    "ValidationError",
    "get_repo_status",
    "impure_key",
    "locked_key",
    "merge_attrs",
    "register_pijul",
]
