# connects the real transport to the service, fetches once and prints the slideshow it got back

from __future__ import annotations
import logging
import sys
from concurrent.futures import TimeoutError as FetchTimeout

from .config import Settings
from .errors import JsonFetchError
from .models import Success, describe, parse_slideshow
from .service import Service
from .transport import RequestsTransport


def _run() -> int:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with RequestsTransport(settings=settings) as transport:
        # blocks on the Future, the request itself runs on the transport's pool
        try:
            outcome = Service(transport).fetch().result(timeout=settings.timeout * 2)
        except FetchTimeout as exc:
            raise JsonFetchError(f"no outcome within {settings.timeout * 2:g}s") from exc

    if not isinstance(outcome, Success):
        print(f"fetch failed: {describe(outcome)}", file=sys.stderr)
        return 1

    show = parse_slideshow(outcome.payload)
    print(f"{show.title} by {show.author}")
    for slide in show.slides:
        print(f"  - {slide.title}")
    return 0


def main() -> int:
    # config, timeout and payload errors end as one stderr line, never a traceback
    try:
        return _run()
    except JsonFetchError as exc:
        print(f"fetch failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
