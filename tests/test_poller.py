"""Tests for the remote status poller."""

import pytest

from spoof.core.errors import JobFailedError, PollingError, ServiceError
from spoof.pipeline.poller import clamp_percent, normalize_status, poll_until_done
from spoof.pipeline.token import RunToken

from conftest import FakeClient, status


def _poll(client, **kwargs):
    ticks = []
    kwargs.setdefault("interval", 0)
    outcome = poll_until_done("j1", client.fetch_status, on_tick=ticks.append, **kwargs)
    return outcome, ticks


class TestNormalize:
    def test_lowercases(self):
        assert normalize_status("RUNNING") == "running"
        assert normalize_status("Completed") == "completed"

    def test_non_string_is_empty(self):
        assert normalize_status(None) == ""
        assert normalize_status(42) == ""

    @pytest.mark.parametrize("raw,expected", [
        (None, 0.0),
        (float("nan"), 0.0),
        ("abc", 0.0),
        (True, 0.0),
        (-5, 0.0),
        (150, 100.0),
        (42.5, 42.5),
        ("60", 60.0),
    ])
    def test_clamp_percent(self, raw, expected):
        assert clamp_percent(raw) == expected


class TestCompletion:
    def test_completes_on_first_completed(self):
        """Without require_running, a completed status ends polling at once."""
        client = FakeClient([status("completed", 100)])
        outcome, ticks = _poll(client)
        assert outcome == "completed"
        assert len(client.status_calls) == 1
        assert ticks[0].status == "completed"
        assert ticks[0].percent == 100

    def test_require_running_ignores_early_completed(self):
        """A completed status before any running status is not terminal."""
        client = FakeClient([
            status("completed", 100),
            status("running", 50),
            status("completed", 100),
        ])
        outcome, ticks = _poll(client, require_running=True)
        assert outcome == "completed"
        assert len(client.status_calls) == 3
        assert [t.status for t in ticks] == ["completed", "running", "completed"]

    def test_uppercase_statuses(self):
        client = FakeClient([status("RUNNING", 10), status("COMPLETED", 100)])
        outcome, _ = _poll(client, require_running=True)
        assert outcome == "completed"

    def test_unknown_status_keeps_polling(self):
        """Unrecognized statuses are logged and polling continues."""
        messages = []
        client = FakeClient([status("warming_up"), status("completed", 100)])
        outcome, _ = _poll(client, debug=messages.append)
        assert outcome == "completed"
        assert any("unrecognized status 'warming_up'" in m for m in messages)

    def test_ticks_carry_clamped_percent(self):
        client = FakeClient([
            status("running", float("nan")),
            status("running", -3),
            status("running", 250),
            status("completed"),
        ])
        _, ticks = _poll(client)
        assert [t.percent for t in ticks] == [0.0, 0.0, 100.0, 0.0]

    def test_raw_payload_on_tick(self):
        payload = {"status": "completed", "percent": 100, "extra": "x"}
        client = FakeClient([payload])
        _, ticks = _poll(client)
        assert ticks[0].raw == payload


class TestFailures:
    def test_empty_job_id(self):
        client = FakeClient()
        with pytest.raises(ValueError):
            poll_until_done("", client.fetch_status, interval=0)
        assert client.status_calls == []

    @pytest.mark.parametrize("value", ["failed", "error", "FAILED"])
    def test_job_failed_raises(self, value):
        client = FakeClient([status("running", 30), status(value)])
        with pytest.raises(JobFailedError, match="Job failed on server"):
            _poll(client)
        assert len(client.status_calls) == 2

    def test_too_many_errors(self):
        """Five consecutive fetch errors raise PollingError."""
        err = ServiceError("HTTP 503: unavailable", status_code=503)
        client = FakeClient([err])
        with pytest.raises(PollingError, match="Too many polling errors"):
            _poll(client)
        assert len(client.status_calls) == 5

    def test_four_errors_then_success(self):
        """Error streak below the threshold does not stop polling."""
        err = ServiceError("timeout")
        client = FakeClient([err, err, err, err, status("completed", 100)])
        outcome, ticks = _poll(client)
        assert outcome == "completed"
        assert len(client.status_calls) == 5
        assert len(ticks) == 1

    def test_error_streak_resets_after_success(self):
        err = ServiceError("timeout")
        client = FakeClient([
            err, err, err, err,
            status("running", 10),
            err, err, err, err,
            status("completed", 100),
        ])
        outcome, _ = _poll(client)
        assert outcome == "completed"
        assert len(client.status_calls) == 10

    def test_non_dict_payload_counts_as_error(self):
        client = FakeClient([["not", "a", "dict"]])
        with pytest.raises(PollingError):
            _poll(client, max_consecutive_errors=2)
        assert len(client.status_calls) == 2

    def test_custom_error_threshold(self):
        client = FakeClient([ServiceError("down")])
        with pytest.raises(PollingError):
            _poll(client, max_consecutive_errors=3)
        assert len(client.status_calls) == 3


class TestCancellation:
    def test_aborted_before_first_fetch(self):
        """A cancelled token stops polling without calling the service."""
        token = RunToken(1)
        token.cancel()
        client = FakeClient()
        outcome, ticks = _poll(client, token=token)
        assert outcome == "aborted"
        assert client.status_calls == []
        assert ticks == []

    def test_aborted_mid_poll(self):
        """Cancelling from a tick callback stops the next iteration."""
        token = RunToken(1)
        client = FakeClient([status("running", 10)])

        def on_tick(tick):
            token.cancel()

        outcome = poll_until_done(
            "j1", client.fetch_status, on_tick=on_tick, interval=0, token=token,
        )
        assert outcome == "aborted"
        assert len(client.status_calls) == 1

    def test_superseded_token_aborts(self):
        """A token whose run is no longer live behaves as cancelled."""
        live = {"run": 1}
        token = RunToken(1, is_live=lambda run_id: run_id == live["run"])
        client = FakeClient([status("running", 10)])

        def on_tick(tick):
            live["run"] = 2

        outcome = poll_until_done(
            "j1", client.fetch_status, on_tick=on_tick, interval=0, token=token,
        )
        assert outcome == "aborted"
