# value objects shared by the transport and the service
# everything here is immutable and compares structurally, so tests can assert with ==

from __future__ import annotations
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple, Union
from urllib.parse import urlencode, urlunsplit

from .errors import InvalidRequestError, PayloadError

DEFAULT_SCHEME = "https"
DEFAULT_HOST = "httpbin.org"
DEFAULT_PATH = "/json"


def iso8601(instant: datetime) -> str:
    # UTC, whole seconds, trailing Z: 2024-01-02T03:04:05Z
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _labels_ok(host: str) -> bool:
    # dns labels are 1..63 chars; an optional :port and one trailing dot are allowed
    if host.startswith("["):
        # ip-v6 literal, left to the http layer
        return True
    name, _, port = host.partition(":")
    if port and not port.isdigit():
        return False
    labels = name[:-1].split(".") if name.endswith(".") else name.split(".")
    return all(0 < len(label) <= 63 for label in labels)


@dataclass(frozen=True)
class RequestDescriptor:
    scheme: str = DEFAULT_SCHEME
    host: str = DEFAULT_HOST
    path: str = DEFAULT_PATH
    query: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        if not self.scheme or not self.scheme.isascii() or not self.scheme.isalpha():
            raise InvalidRequestError(f"invalid scheme {self.scheme!r}")
        if not self.host or any(ch in self.host for ch in "/?#@ "):
            raise InvalidRequestError(f"invalid host {self.host!r}")
        if not _labels_ok(self.host):
            raise InvalidRequestError(f"host label empty or too long in {self.host!r}")
        if self.path and not self.path.startswith("/"):
            # a relative path cannot follow an authority
            raise InvalidRequestError(f"path must start with '/' (got {self.path!r})")

    @classmethod
    def for_date(cls, instant: datetime, **endpoint) -> "RequestDescriptor":
        return cls(query=(("date", iso8601(instant)),), **endpoint)

    @property
    def url(self) -> str:
        # ':' stays literal so the timestamp reads the same as iso8601() output
        return urlunsplit((self.scheme, self.host, self.path, urlencode(self.query, safe=":"), ""))


@dataclass(frozen=True)
class HttpError:
    status_code: int


@dataclass(frozen=True)
class NoNetwork:
    pass


@dataclass(frozen=True)
class NoData:
    pass


@dataclass(frozen=True)
class InvalidResponseType:
    pass


@dataclass(frozen=True)
class InvalidUrl:
    pass


@dataclass(frozen=True)
class Other:
    # code is the qualified class name of the underlying exception and is the only compared field
    code: str
    message: str = field(default="", compare=False)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Other":
        kind = type(exc)
        return cls(code=f"{kind.__module__}.{kind.__qualname__}", message=str(exc))


TransportError = Union[HttpError, NoNetwork, NoData, InvalidResponseType, InvalidUrl, Other]


@dataclass(frozen=True)
class Success:
    payload: bytes


@dataclass(frozen=True)
class Failure:
    error: TransportError


Outcome = Union[Success, Failure]


def describe(outcome: Outcome) -> str:
    # short human-readable label, used in logs and cli messages
    if isinstance(outcome, Success):
        return f"success ({len(outcome.payload)} bytes)"
    err = outcome.error
    if isinstance(err, HttpError):
        return f"http error {err.status_code}"
    if isinstance(err, Other):
        return f"transport error {err.code}: {err.message}"
    return {
        NoNetwork: "no network",
        NoData: "no data",
        InvalidResponseType: "invalid response type",
        InvalidUrl: "invalid url",
    }[type(err)]


@dataclass(frozen=True)
class Slide:
    title: str


@dataclass(frozen=True)
class Slideshow:
    author: str
    title: str
    slides: Tuple[Slide, ...]


def parse_slideshow(payload: bytes) -> Slideshow:
    # httpbin shape: {"slideshow": {"author": ..., "title": ..., "slides": [{"title": ...}, ...]}}
    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise PayloadError(f"Invalid JSON: {exc}") from exc

    try:
        show = data["slideshow"]
        slides = tuple(Slide(title=str(s["title"])) for s in show["slides"])
        return Slideshow(author=str(show["author"]), title=str(show["title"]), slides=slides)
    except (KeyError, TypeError) as exc:
        raise PayloadError(f"Unexpected payload shape: {exc!r}") from exc
