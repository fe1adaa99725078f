"""Shared test fixtures."""

import pytest

from spoof.core.events import GenerationArtifact


def status(value: str, percent=None) -> dict:
    """Build a remote status payload."""
    payload = {"status": value}
    if percent is not None:
        payload["percent"] = percent
    return payload


class FakeClient:
    """In-memory stand-in for SpoofClient that records every call.

    ``statuses`` is consumed one entry per fetch_status call; the last entry
    repeats once the list is exhausted. Exceptions in the list are raised.
    """

    def __init__(
        self,
        statuses=None,
        *,
        job_id="j1",
        rows=None,
        train_error=None,
        generate_error=None,
    ):
        self.statuses = list(statuses or [status("completed", 100)])
        self.job_id = job_id
        self.rows = rows if rows is not None else [{"a": 1, "b": "x"}, {"a": 2, "b": "y"}]
        self.train_error = train_error
        self.generate_error = generate_error

        self.train_calls: list[tuple[str, str]] = []
        self.status_calls: list[str] = []
        self.generate_calls: list[tuple[str, int]] = []
        self.on_generate = None
        self.on_status = None

    def start_training(self, model_name, dataset_id):
        self.train_calls.append((model_name, dataset_id))
        if self.train_error is not None:
            raise self.train_error
        return self.job_id

    def fetch_status(self, job_id):
        self.status_calls.append(job_id)
        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if self.on_status is not None:
            self.on_status(job_id)
        if isinstance(item, Exception):
            raise item
        return item

    def generate(self, job_id, count):
        self.generate_calls.append((job_id, count))
        if self.on_generate is not None:
            self.on_generate(job_id, count)
        if self.generate_error is not None:
            raise self.generate_error
        return GenerationArtifact(job_id=job_id, synthetic_data=list(self.rows))


def make_config(**overrides) -> dict:
    """Config with all delays zeroed so runs finish instantly."""
    config = {
        "service": {"base_url": "http://svc.test", "timeout": 5},
        "polling": {"interval": 0, "max_consecutive_errors": 5},
        "pipeline": {"step_delay": 0, "phase_gap": 0, "max_samples": 100000, "debug_log_limit": 200},
        "generation": {"model_name": "adsgan", "poll_status": False, "grace_period": 0},
    }
    for section, values in overrides.items():
        config.setdefault(section, {}).update(values)
    return config


@pytest.fixture
def fast_config():
    return make_config()


@pytest.fixture
def fake_client():
    return FakeClient(
        [
            status("pending"),
            status("running", 40),
            status("running", 80),
            status("completed", 100),
        ]
    )

