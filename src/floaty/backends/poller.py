"""Polling of on-demand provisioning requests."""

import logging
import time
from typing import Any, Callable, Dict, Literal, Optional, Union

from floaty.backends.http import HttpResponse
from floaty.errors import RequestNotFoundError
from floaty.models.host import PollState, ProvisioningRequest


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300
DEFAULT_INTERVAL = 5

PollResult = Union[Dict[str, Any], Literal[False]]


class RequestPoller:
    """Blocks until an on-demand request is fulfilled or the timeout passes.

    ``probe`` is called with the request id and returns the raw status
    response. HTTP 200 means fulfilled, 404 means the request is unknown and
    is raised immediately, anything else is treated as still provisioning.
    ``interval`` is either a fixed number of seconds or a callable taking the
    attempt number (starting at 1) and returning the seconds to sleep.
    """

    def __init__(
        self,
        probe: Callable[[str], HttpResponse],
        timeout: float = DEFAULT_TIMEOUT,
        interval: Union[float, Callable[[int], float]] = DEFAULT_INTERVAL,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize the poller."""
        self.probe = probe
        self.timeout = timeout
        self.interval = interval
        self.sleep = sleep or time.sleep
        self.clock = clock or time.monotonic
        self.state: Optional[PollState] = None

    def _interval_for(self, attempt: int) -> float:
        if callable(self.interval):
            return self.interval(attempt)
        return self.interval

    def wait(self, request: ProvisioningRequest) -> PollResult:
        """Poll until fulfilled, returning the body, or ``False`` on timeout."""
        self.state = PollState.PENDING
        start = self.clock()
        attempt = 0

        while True:
            attempt += 1
            response = self.probe(request.request_id)

            if response.status == 200:
                self.state = PollState.FULFILLED
                logger.info("The request has been fulfilled")
                return response.json()

            if response.status == 404:
                raise RequestNotFoundError(
                    f"HTTP {response.status}: The request {request.request_id} cannot be found, "
                    "or an unknown error occurred"
                )

            if self.clock() - start > self.timeout:
                self.state = PollState.TIMED_OUT
                logger.error(f"Request {request.request_id} was not fulfilled within {self.timeout}s")
                return False

            logger.info(f"waiting for request {request.request_id} to be fulfilled")
            self.sleep(self._interval_for(attempt))

    def resume(self, request_id: str) -> PollResult:
        """Resume polling a request issued by an earlier invocation."""
        return self.wait(ProvisioningRequest(request_id=request_id))
