"""Tests for RequestPoller."""

from unittest.mock import MagicMock

import pytest

from floaty.backends.http import HttpResponse
from floaty.backends.poller import RequestPoller
from floaty.errors import RequestNotFoundError
from floaty.models.host import PollState, ProvisioningRequest


class FakeClock:
    """Clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def probe_returning(*statuses):
    responses = [HttpResponse(status, '{"ok": true, "centos-7": {"hostname": "h1"}}') for status in statuses]
    return MagicMock(side_effect=responses)


class TestRequestPoller:
    """Test polling outcomes."""

    def test_fulfilled_after_pending(self):
        clock = FakeClock()
        probe = probe_returning(202, 202, 200)
        poller = RequestPoller(probe, timeout=60, interval=5, sleep=clock.sleep, clock=clock)

        result = poller.wait(ProvisioningRequest(request_id="r1"))

        assert result == {"ok": True, "centos-7": {"hostname": "h1"}}
        assert poller.state is PollState.FULFILLED
        assert probe.call_count == 3
        probe.assert_called_with("r1")
        assert clock.now == 10

    def test_timeout_returns_false(self):
        clock = FakeClock()
        probe = MagicMock(return_value=HttpResponse(202, ""))
        poller = RequestPoller(probe, timeout=12, interval=5, sleep=clock.sleep, clock=clock)

        assert poller.wait(ProvisioningRequest(request_id="r1")) is False
        assert poller.state is PollState.TIMED_OUT
        # probed at 0, 5, 10 and 15 seconds
        assert probe.call_count == 4

    def test_unknown_request_is_not_retried(self):
        clock = FakeClock()
        probe = probe_returning(404)
        poller = RequestPoller(probe, timeout=60, interval=5, sleep=clock.sleep, clock=clock)

        with pytest.raises(RequestNotFoundError):
            poller.wait(ProvisioningRequest(request_id="r1"))
        assert probe.call_count == 1
        assert clock.now == 0

    def test_interval_callable_gets_attempt_number(self):
        clock = FakeClock()
        interval = MagicMock(side_effect=lambda attempt: attempt * 2)
        poller = RequestPoller(probe_returning(202, 202, 200), timeout=60, interval=interval,
                               sleep=clock.sleep, clock=clock)

        poller.resume("r1")

        assert [c.args[0] for c in interval.call_args_list] == [1, 2]
        assert clock.now == 6
