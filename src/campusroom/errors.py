"""Error hierarchy for the timetable engine and its data-service collaborators.

Two families live here. ``EngineError`` covers problems found while computing
over already-fetched data; most of them are recovered inside the engine and
only surface as structured log events. ``DataServiceError`` classifies
failures of the remote portal API so that tenacity retry decorators can tell
transient failures (should retry) from permanent ones (should not retry).

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def get_bookings():
        ...
"""


class EngineError(Exception):
    """Base exception for all engine errors."""

    pass


class MalformedTimeError(EngineError):
    """A time value could not be parsed into canonical HH:MM.

    Recovered inside the time normalizer by substituting "00:00".
    """

    pass


class UnrecognizedDayError(EngineError):
    """A schedule entry names a day outside the Monday-Friday week.

    Recovered inside the schedule index by excluding the entry.
    """

    pass


class ValidationError(EngineError):
    """A room-search query failed its preconditions.

    Surfaced to the caller, who must show it to the user and must not run
    the match.
    """

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class InvalidTransitionError(EngineError):
    """A reservation status change is not allowed by the lifecycle."""

    pass


class DataServiceError(Exception):
    """Base exception for all portal API errors."""

    pass


class TransientError(DataServiceError):
    """Temporary failure that may succeed on retry.

    Examples: network timeouts, 503 Service Unavailable, dropped connections.
    """

    pass


class RateLimitError(TransientError):
    """Rate limit exceeded - needs longer backoff.

    Inherits from TransientError so tenacity will retry it.
    """

    pass


class PermanentError(DataServiceError):
    """Failure that won't succeed on retry.

    Examples: 404 on an endpoint, malformed JSON payload.
    """

    pass


class AuthenticationError(PermanentError):
    """Token expired or rejected - the user has to log in again."""

    pass


class CacheWriteError(Exception):
    """A fallback snapshot could not be written to disk."""

    pass
