# OOP boundary for external i/o
# performs one GET and turns whatever happened into an Outcome value, nothing is raised past here
# a thread-local session per ThreadPoolExecutor worker, same as any requests code shared across threads

from __future__ import annotations
import errno
import logging
import socket
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from http.client import BadStatusLine
from typing import Callable, Iterator, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.exceptions import NameResolutionError
from urllib3.util.retry import Retry

from .config import Settings
from .models import (
    Failure,
    HttpError,
    InvalidResponseType,
    NoData,
    NoNetwork,
    Other,
    Outcome,
    RequestDescriptor,
    Success,
    describe,
)

logger = logging.getLogger(__name__)

Callback = Callable[[Outcome], None]

# errno values meaning the host has no usable network at all, as opposed to a refusing peer
_OFFLINE_ERRNOS = frozenset({errno.ENETUNREACH, errno.ENETDOWN})


class Transport(Protocol):
    def perform_request(self, request: RequestDescriptor, callback: Callback) -> None:
        ...


def _causes(exc: BaseException) -> Iterator[BaseException]:
    # requests wraps urllib3 wraps socket errors, through args, .reason and __cause__
    stack = [exc]
    seen = set()
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur
        linked = [getattr(cur, "reason", None), cur.__cause__, cur.__context__, *cur.args]
        stack.extend(e for e in linked if isinstance(e, BaseException))


def _is_offline(exc: BaseException) -> bool:
    if isinstance(exc, (NameResolutionError, socket.gaierror)):
        return True
    return isinstance(exc, OSError) and exc.errno in _OFFLINE_ERRNOS


def classify_exception(exc: BaseException) -> Failure:
    chain = list(_causes(exc))
    if any(_is_offline(e) for e in chain):
        return Failure(NoNetwork())
    if any(isinstance(e, BadStatusLine) for e in chain):
        # peer answered with something that has no http status line
        return Failure(InvalidResponseType())
    return Failure(Other.from_exception(exc))


def classify_response(resp) -> Outcome:
    status = getattr(resp, "status_code", None)
    if not isinstance(status, int) or isinstance(status, bool):
        return Failure(InvalidResponseType())
    if 200 <= status <= 299:
        body = resp.content
        return Success(bytes(body)) if body else Failure(NoData())
    return Failure(HttpError(status_code=status))


class RequestsTransport:
    # encapsulates session setup, the worker pool and outcome classification

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str | None = None,
        max_workers: int | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or Settings()
        self.timeout = timeout if timeout is not None else settings.timeout
        self.user_agent = user_agent or settings.user_agent
        self.max_workers = max_workers or settings.max_workers

        self._local = threading.local()
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

        # failures are reported once, exactly as seen; retrying is the caller's business
        self._retry = Retry(total=0, raise_on_status=False)

    def _build_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update({"User-Agent": self.user_agent, "Accept": "application/json"})
        adapter = HTTPAdapter(max_retries=self._retry)
        s.mount("http://", adapter)
        s.mount("https://", adapter)
        return s

    def _session(self) -> requests.Session:
        sess = getattr(self._local, "session", None)
        if sess is None:
            sess = self._build_session()
            self._local.session = sess
        return sess

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="jsonfetch"
                )
            return self._executor

    def send(self, request: RequestDescriptor) -> Outcome:
        url = request.url
        try:
            resp = self._session().get(url, timeout=self.timeout)
        except (requests.RequestException, OSError) as exc:
            logger.warning("GET %s failed: %s", url, exc)
            return classify_exception(exc)
        except Exception as exc:
            # requests lets some urllib3 errors through unwrapped (LocationParseError is a ValueError)
            logger.warning("GET %s failed outside requests: %r", url, exc)
            return Failure(Other.from_exception(exc))

        outcome = classify_response(resp)
        logger.info("GET %s -> %s", url, describe(outcome))
        return outcome

    def perform_request(self, request: RequestDescriptor, callback: Callback) -> None:
        logger.debug("dispatching GET %s", request.url)
        fut = self._pool().submit(self._complete, request, callback)
        fut.add_done_callback(_log_callback_crash)

    def _complete(self, request: RequestDescriptor, callback: Callback) -> None:
        callback(self.send(request))

    def close(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def __enter__(self) -> "RequestsTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _log_callback_crash(fut: Future) -> None:
    # send() never raises, so anything here came from the caller's callback
    exc = fut.exception()
    if exc is not None:
        logger.error("completion callback raised", exc_info=exc)
