"""Errors raised by the answer, hint and run flows."""


class HuntError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingIdentifiers(HuntError):
    status_code = 400

    def __init__(self, message: str = "runId/stopId required"):
        super().__init__(message)


class NotFound(HuntError):
    status_code = 404


class Throttled(HuntError):
    """Attempt ceiling reached for a run/stop pair; distinct from a wrong answer."""

    status_code = 429

    def __init__(self, retry_after: int, message: str = "Too many attempts"):
        super().__init__(message)
        self.retry_after = retry_after
