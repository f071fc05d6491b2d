"""
Custom exceptions used by the live-cache runtime.

Keeping library-specific errors in one module gives users a predictable
import surface for catching and handling programming-contract violations.
Expected data conditions (no match, no persisted snapshot, storage offline)
are not represented here: they surface as ``None`` or empty results.
"""


class LiveCacheError(Exception):
    """Base error type for all library-level exceptions."""


class ControllerNotRegisteredError(LiveCacheError, LookupError):
    """
    Raised when an object store lookup names an unknown controller.

    Controllers must be registered up front; a missing registration is a
    wiring mistake rather than a recoverable runtime condition.
    """


class OperationNotImplementedError(LiveCacheError, NotImplementedError):
    """
    Raised when an abstract operation was not provided by a subclass.

    Typical examples are ``Controller.fetch`` without a ``fetcher`` strategy
    and ``Controller.invalidate`` on the base class.
    """


class InvalidatorNotBoundError(LiveCacheError, RuntimeError):
    """
    Raised when an invalidator fires before a controller bound its callback.
    """


class ReservedFieldError(LiveCacheError, ValueError):
    """
    Raised when a document payload uses the reserved identifier field name.
    """


class FetchAbortedError(LiveCacheError):
    """
    Raised by :meth:`live_cache.controller.AbortSignal.raise_if_aborted`.

    Fetch implementations call it at their own suspension points to stop
    cooperatively once the owning controller aborted in-flight work.
    """


class TransactionNotFoundError(LiveCacheError, LookupError):
    """Raised when a saved transaction snapshot does not exist."""


class BackendConfigurationError(LiveCacheError):
    """
    Raised when storage backend selection or options are invalid.

    This covers unknown backend names and unsupported backend options.
    """


class BackendNotAvailableError(LiveCacheError):
    """
    Raised when a selected storage backend cannot be loaded.

    The most common case is choosing the Redis backend without installing the
    optional ``live-cache[redis]`` dependencies.
    """
