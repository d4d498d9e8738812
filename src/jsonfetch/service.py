# orchestration: build the one request this package knows about and hand it to a transport
# the transport and the clock are both injected, so tests never need the network or the wall clock

from __future__ import annotations
import logging
import threading
from concurrent.futures import Future
from datetime import datetime, timezone
from typing import Callable, Optional

from .errors import CallbackError, InvalidRequestError
from .models import (
    DEFAULT_HOST,
    DEFAULT_PATH,
    DEFAULT_SCHEME,
    Failure,
    InvalidUrl,
    Outcome,
    RequestDescriptor,
    describe,
)
from .transport import Callback, Transport

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def single_shot(callback: Callback) -> Callback:
    # wraps a callback so a second delivery fails loudly instead of firing twice
    lock = threading.Lock()
    fired = False

    def deliver(outcome: Outcome) -> None:
        nonlocal fired
        with lock:
            if fired:
                raise CallbackError(f"callback already fired, refusing {describe(outcome)}")
            fired = True
        callback(outcome)

    return deliver


class Service:
    def __init__(
        self,
        transport: Transport,
        clock: Clock = utc_now,
        scheme: str = DEFAULT_SCHEME,
        host: str = DEFAULT_HOST,
        path: str = DEFAULT_PATH,
    ):
        self.transport = transport
        self.clock = clock
        # endpoint parts are only validated when a request is built, see fetch_data
        self.scheme = scheme
        self.host = host
        self.path = path

    def build_request(self, now: Optional[datetime] = None) -> RequestDescriptor:
        instant = now if now is not None else self.clock()
        return RequestDescriptor.for_date(instant, scheme=self.scheme, host=self.host, path=self.path)

    def fetch_data(self, callback: Callback, now: Optional[datetime] = None) -> None:
        deliver = single_shot(callback)
        try:
            request = self.build_request(now)
        except InvalidRequestError as exc:
            # decided here, the transport is never involved
            logger.warning("could not build request: %s", exc)
            deliver(Failure(InvalidUrl()))
            return

        logger.debug("fetching %s", request.url)
        # outcome is forwarded untouched
        self.transport.perform_request(request, deliver)

    def fetch(self, now: Optional[datetime] = None) -> "Future[Outcome]":
        # same as fetch_data, delivered through a Future for callers that prefer to wait
        result: "Future[Outcome]" = Future()
        result.set_running_or_notify_cancel()
        self.fetch_data(result.set_result, now=now)
        return result
