"""Exception types raised by the check engine.

Probe problems (refused connections, timeouts, wrong status codes) are not
errors here: they come back as failure outcomes and end up as ``Failure``
rows. Only persistence problems are raised.
"""
from typing import Optional


class StatusPulseError(Exception):
    """Base class for engine errors."""


class RecordError(StatusPulseError):
    """A hit or failure could not be written to the history store.

    ``service`` carries the updated service snapshot when the error happens
    during a check, so callers can still use the observed status.
    """

    def __init__(self, message: str, service_id: Optional[int] = None, service=None):
        super().__init__(message)
        self.service_id = service_id
        self.service = service
