"""Status poller: drive a remote job's status endpoint to a terminal outcome."""

import math
import time
from typing import Callable, Literal

from ..core.constants import (
    KNOWN_REMOTE_STATUSES,
    REMOTE_COMPLETED,
    REMOTE_FAILURE_STATUSES,
    REMOTE_RUNNING,
)
from ..core.errors import JobFailedError, PollingError
from ..core.events import Tick
from .token import RunToken

PollOutcome = Literal["completed", "aborted"]

FetchStatus = Callable[[str], dict]
TickCallback = Callable[[Tick], None]


def normalize_status(value) -> str:
    """Lower-case a status string; anything else becomes ''."""
    return value.lower() if isinstance(value, str) else ""


def clamp_percent(value) -> float:
    """Coerce a reported percent into 0–100. Missing or non-numeric -> 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        pct = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(pct):
        return 0.0
    return max(0.0, min(100.0, pct))


def poll_until_done(
    job_id: str,
    fetch_status: FetchStatus,
    *,
    on_tick: TickCallback | None = None,
    require_running: bool = False,
    interval: float = 3.0,
    max_consecutive_errors: int = 5,
    token: RunToken | None = None,
    debug: Callable[[str], None] | None = None,
) -> PollOutcome:
    """Poll ``fetch_status(job_id)`` until the job completes.

    Returns "completed" once the job reports completed (and, when
    ``require_running`` is set, only after a running status was observed
    first). Returns "aborted" if the token is cancelled before an iteration.

    Raises:
        ValueError: empty job id
        JobFailedError: the job reported failed/error
        PollingError: ``max_consecutive_errors`` fetches in a row failed
    """
    if not job_id:
        raise ValueError("job_id must be a non-empty string")

    log = debug or (lambda _msg: None)
    errors = 0
    seen_running = False
    tick_no = 0

    while True:
        if token is not None and token.cancelled:
            log("poll: aborted by caller")
            return "aborted"

        tick = None
        try:
            raw = fetch_status(job_id)
            if not isinstance(raw, dict):
                raise TypeError(f"status payload is {type(raw).__name__}, expected object")
            tick = Tick(
                percent=clamp_percent(raw.get("percent")),
                status=normalize_status(raw.get("status")),
                raw=raw,
            )
        except Exception as e:
            errors += 1
            log(f"[poll error {errors}/{max_consecutive_errors}] {e}")
            if errors >= max_consecutive_errors:
                raise PollingError("Too many polling errors") from e

        if tick is not None:
            errors = 0
            tick_no += 1
            if on_tick is not None:
                on_tick(tick)
            log(
                f"[poll {tick_no}] status={tick.status} percent={tick.percent:g} "
                f"seenRunning={seen_running}"
            )

            if tick.status in REMOTE_FAILURE_STATUSES:
                raise JobFailedError("Job failed on server")
            if tick.status not in KNOWN_REMOTE_STATUSES:
                log(f"poll: unrecognized status {tick.status!r}, still waiting")
            if tick.status == REMOTE_RUNNING:
                seen_running = True
            if tick.status == REMOTE_COMPLETED and (seen_running or not require_running):
                return "completed"

        if token is not None:
            token.sleep(interval)
        elif interval > 0:
            time.sleep(interval)
