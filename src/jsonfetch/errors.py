# exception types for programming and configuration mistakes
# network outcomes are never raised, they travel as values (see models.Failure)

from __future__ import annotations


class JsonFetchError(RuntimeError):
    # root of every error this package raises
    pass


class InvalidRequestError(JsonFetchError):
    # scheme/host/path cannot form a url
    pass


class CallbackError(JsonFetchError):
    # a completion callback was fired more than once
    pass


class ConfigError(JsonFetchError):
    pass


class PayloadError(JsonFetchError):
    # body does not match the slideshow document shape
    pass
