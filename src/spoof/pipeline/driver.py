"""Pipeline driver: preprocessing -> training -> generation -> validation.

A run executes in a daemon thread (or synchronously via ``run()``). Readers
poll ``DriverSnapshot`` for state, so the web page or terminal that started
a run can go away without affecting it.

Each run gets a ``RunToken``. Starting a new run cancels the previous token
and bumps the live run id; every write to shared state goes through a
lock-guarded helper that refuses writes from dead tokens, so a superseded
run cannot clobber the state of the run that replaced it.
"""

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Protocol

from ..core.constants import (
    DEBUG_LOG_LIMIT,
    MAX_GENERATE_SAMPLES,
    PHASE_DESCRIPTIONS,
    PHASE_GENERATION,
    PHASE_LABELS,
    PHASE_ORDER,
    PHASE_PREPROCESSING,
    PHASE_TRAINING,
    PHASE_VALIDATION,
    PHASE_WEIGHTS,
    REMOTE_COMPLETED,
    REMOTE_RUNNING,
    RUN_CANCELLED,
    RUN_COMPLETED,
    RUN_FAILED,
    RUN_IDLE,
    RUN_RUNNING,
    SIMULATED_STEPS,
    STATUS_COMPLETED,
    STATUS_ERROR,
    STATUS_RUNNING,
)
from ..core.debug_log import DebugLog
from ..core.errors import SpoofError, SubmissionError
from ..core.events import GenerationArtifact, PhaseState, RemoteTrace, Tick
from ..core.progress import cumulative_weight, overall_progress, validate_weights
from .poller import normalize_status, poll_until_done
from .token import RunToken

logger = logging.getLogger(__name__)

REMOTE_PHASES = (PHASE_TRAINING, PHASE_GENERATION)


class JobClient(Protocol):
    """The subset of SpoofClient the driver needs."""

    def start_training(self, model_name: str, dataset_id: str) -> str: ...

    def fetch_status(self, job_id: str) -> dict: ...

    def generate(self, job_id: str, count: int) -> GenerationArtifact: ...


def initial_phases() -> tuple[PhaseState, ...]:
    return tuple(
        PhaseState(id=p, label=PHASE_LABELS[p], description=PHASE_DESCRIPTIONS[p])
        for p in PHASE_ORDER
    )


@dataclass(frozen=True)
class DriverSnapshot:
    """Immutable, thread-safe snapshot of driver state."""
    run_id: int
    status: str  # "idle" | "running" | "completed" | "failed" | "cancelled"
    phases: tuple[PhaseState, ...]
    overall: float  # 0.0–100.0
    job_id: str | None = None
    error: str | None = None
    log: tuple[str, ...] = ()
    remote: dict[str, RemoteTrace] = field(default_factory=dict)
    artifact: GenerationArtifact | None = None
    updated_at: float = 0.0

    def phase(self, phase_id: str) -> PhaseState:
        for p in self.phases:
            if p.id == phase_id:
                return p
        raise KeyError(phase_id)

    @property
    def current_phase(self) -> PhaseState | None:
        """The phase that is running or last failed, else None."""
        for p in self.phases:
            if p.status in (STATUS_RUNNING, STATUS_ERROR):
                return p
        return None

    @property
    def suspicious_fast_generation(self) -> bool:
        """Generation was polled to completion without ever reporting running."""
        trace = self.remote.get(PHASE_GENERATION, RemoteTrace())
        polled = trace.last != RemoteTrace().last
        return (
            self.phase(PHASE_GENERATION).status == STATUS_COMPLETED
            and polled
            and not trace.seen_running
        )

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "status": self.status,
            "overall": round(self.overall, 2),
            "phases": [
                {
                    "id": p.id,
                    "label": p.label,
                    "description": p.description,
                    "status": p.status,
                    "progress": p.progress,
                }
                for p in self.phases
            ],
            "job_id": self.job_id,
            "error": self.error,
            "log": list(self.log),
            "remote": {
                name: {"last": t.last, "seen_running": t.seen_running}
                for name, t in self.remote.items()
            },
            "suspicious_fast_generation": self.suspicious_fast_generation,
            "has_artifact": self.artifact is not None,
        }


class GenerationDriver:
    """Runs the four-phase generation pipeline for one wizard session."""

    def __init__(self, client: JobClient, config: dict | None = None):
        config = config or {}
        polling = config.get("polling", {})
        pipeline = config.get("pipeline", {})
        generation = config.get("generation", {})

        self._client = client
        self.poll_interval = float(polling.get("interval", 3.0))
        self.max_consecutive_errors = int(polling.get("max_consecutive_errors", 5))
        self.step_delay = float(pipeline.get("step_delay", 0.1))
        self.phase_gap = float(pipeline.get("phase_gap", 0.4))
        self.max_samples = int(pipeline.get("max_samples", MAX_GENERATE_SAMPLES))
        self.poll_generation = bool(generation.get("poll_status", False))
        self.grace_period = float(generation.get("grace_period", 0.8))
        self.weights = dict(PHASE_WEIGHTS)
        validate_weights(self.weights)

        self._lock = threading.Lock()
        self._run_id = 0
        self._token: RunToken | None = None
        self._thread: threading.Thread | None = None
        self._log = DebugLog(int(pipeline.get("debug_log_limit", DEBUG_LOG_LIMIT)))

        self._status = RUN_IDLE
        self._phases = list(initial_phases())
        self._overall = 0.0
        self._job_id: str | None = None
        self._error: str | None = None
        self._remote = {p: RemoteTrace() for p in REMOTE_PHASES}
        self._artifact: GenerationArtifact | None = None
        self._updated_at = time.monotonic()

    # ── Public API ────────────────────────────────────────────────

    @property
    def snapshot(self) -> DriverSnapshot:
        with self._lock:
            return DriverSnapshot(
                run_id=self._run_id,
                status=self._status,
                phases=tuple(self._phases),
                overall=self._overall,
                job_id=self._job_id,
                error=self._error,
                log=self._log.lines(),
                remote=dict(self._remote),
                artifact=self._artifact,
                updated_at=self._updated_at,
            )

    @property
    def run_id(self) -> int:
        with self._lock:
            return self._run_id

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(
        self,
        dataset_id: str,
        model_name: str,
        samples: int,
        on_complete: Callable[[GenerationArtifact], None] | None = None,
    ) -> int:
        """Start a new run in a background thread, superseding any live run."""
        _check_samples(samples)
        token = self._begin()
        thread = threading.Thread(
            target=self._execute,
            args=(token, dataset_id, model_name, samples, on_complete),
            daemon=True,
        )
        self._thread = thread
        thread.start()
        return token.run_id

    def run(
        self,
        dataset_id: str,
        model_name: str,
        samples: int,
        on_complete: Callable[[GenerationArtifact], None] | None = None,
    ) -> DriverSnapshot:
        """Run the pipeline in the calling thread and return the final snapshot."""
        _check_samples(samples)
        token = self._begin()
        self._execute(token, dataset_id, model_name, samples, on_complete)
        return self.snapshot

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the background run ends. Returns False on timeout."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def cancel(self) -> bool:
        """Stop the live run. Returns True if a run was running."""
        with self._lock:
            token = self._token
            if token is None or self._status != RUN_RUNNING:
                return False
            token.cancel()
            self._status = RUN_CANCELLED
            self._updated_at = time.monotonic()
        self._log_always(f"[run {token.run_id}] cancelled by user")
        return True

    def idle_since(self) -> float | None:
        """Monotonic time of the last state change, or None while a run is live."""
        with self._lock:
            if self._status == RUN_RUNNING:
                return None
            return self._updated_at

    # ── Run lifecycle ─────────────────────────────────────────────

    def _begin(self) -> RunToken:
        with self._lock:
            if self._token is not None:
                self._token.cancel()
            self._run_id += 1
            token = RunToken(self._run_id, is_live=self._is_live_run)
            self._token = token
            self._status = RUN_RUNNING
            self._phases = list(initial_phases())
            self._overall = 0.0
            self._job_id = None
            self._error = None
            self._remote = {p: RemoteTrace() for p in REMOTE_PHASES}
            self._artifact = None
            self._log.clear()
            self._updated_at = time.monotonic()
        return token

    def _is_live_run(self, run_id: int) -> bool:
        return run_id == self._run_id

    def _execute(self, token, dataset_id, model_name, samples, on_complete) -> None:
        try:
            artifact = self._run_phases(token, dataset_id, model_name, samples)
        except Exception as e:
            current = self.snapshot.current_phase
            phase = current.id if current else PHASE_PREPROCESSING
            self._fail(token, phase, f"unexpected error in {phase}: {e}")
            return

        if artifact is None or on_complete is None:
            return
        try:
            on_complete(artifact)
        except Exception as e:
            # The run is already completed; callback errors are only logged
            logger.exception("on_complete callback failed for run %d", token.run_id)
            self._log_line(token, f"on_complete callback failed: {e}")

    def _run_phases(self, token, dataset_id, model_name, samples) -> GenerationArtifact | None:
        """Run all four phases. Returns the artifact once the run has completed."""
        self._log_line(token, f"[run {token.run_id}] started; samples={samples} model={model_name}")

        if not self._simulate_phase(token, PHASE_PREPROCESSING):
            return None
        if not token.sleep(self.phase_gap):
            return None

        job_id = self._train(token, model_name, dataset_id)
        if job_id is None:
            return None

        artifact = self._generate(token, job_id, samples)
        if artifact is None:
            return None

        if not self._simulate_phase(token, PHASE_VALIDATION):
            return None
        with self._lock:
            if token.cancelled:
                return None
            self._artifact = artifact
            self._overall = 100.0
            self._status = RUN_COMPLETED
            self._updated_at = time.monotonic()
        self._log_line(token, "validation completed; run finished")

        if not token.sleep(self.phase_gap):
            return None
        return artifact

    # ── Phase executors ───────────────────────────────────────────

    def _simulate_phase(self, token: RunToken, phase: str) -> bool:
        """Advance a local-only phase through fixed increments."""
        if not self._set_phase(token, phase, status=STATUS_RUNNING, progress=0):
            return False
        for pct in SIMULATED_STEPS:
            if not token.sleep(self.step_delay):
                return False
            if not self._set_phase(token, phase, progress=pct):
                return False
        if not self._set_phase(token, phase, status=STATUS_COMPLETED):
            return False
        self._log_line(token, f"{phase} completed")
        return True

    def _train(self, token: RunToken, model_name: str, dataset_id: str) -> str | None:
        """Start training and poll it to completion. Returns the job id."""
        if not self._set_phase(token, PHASE_TRAINING, status=STATUS_RUNNING, progress=0):
            return None

        try:
            if not dataset_id:
                raise SubmissionError("No dataset_id; upload a dataset first")
            job_id = self._client.start_training(model_name, dataset_id)
        except SpoofError as e:
            self._fail(token, PHASE_TRAINING, f"training POST failed: {e}")
            return None

        with self._lock:
            if token.cancelled:
                return None
            self._job_id = job_id
        self._log_line(token, f"training started; job_id={job_id}")

        try:
            outcome = poll_until_done(
                job_id,
                self._client.fetch_status,
                on_tick=lambda tick: self._on_remote_tick(token, PHASE_TRAINING, tick),
                require_running=False,
                interval=self.poll_interval,
                max_consecutive_errors=self.max_consecutive_errors,
                token=token,
                debug=lambda msg: self._log_line(token, f"training {msg}"),
            )
        except SpoofError as e:
            self._fail(token, PHASE_TRAINING, f"training polling failed: {e}")
            return None
        if outcome == "aborted":
            return None

        if not self._set_phase(token, PHASE_TRAINING, status=STATUS_COMPLETED):
            return None
        self._log_line(token, "training completed")
        if not token.sleep(self.phase_gap):
            return None

        # The last "completed" the poller saw may predate the job; ask again.
        # A failed re-check fetch is fatal too, not just logged.
        try:
            raw = self._client.fetch_status(job_id)
        except SpoofError as e:
            self._fail(token, PHASE_TRAINING, f"sanity check error: {e}")
            return None
        if token.cancelled:
            return None
        status = normalize_status(raw.get("status")) if isinstance(raw, dict) else ""
        if status != REMOTE_COMPLETED:
            self._fail(
                token, PHASE_TRAINING,
                f"sanity check before generation FAILED: training status is {status or 'unknown'!r}",
            )
            return None
        self._log_line(token, "sanity check before generation PASSED")
        return job_id

    def _generate(self, token: RunToken, job_id: str, samples: int) -> GenerationArtifact | None:
        """Request synthetic records for a trained job."""
        if not self._set_phase(token, PHASE_GENERATION, status=STATUS_RUNNING, progress=0):
            return None

        count = min(self.max_samples, samples)
        try:
            artifact = self._client.generate(job_id, count)
        except SpoofError as e:
            self._fail(token, PHASE_GENERATION, f"generation POST failed: {e}")
            return None

        if token.cancelled:
            return None
        self._log_line(
            token, f"generation POST ok; count={count} rows={len(artifact.synthetic_data)}"
        )

        if self.poll_generation:
            if not token.sleep(self.grace_period):
                return None
            try:
                outcome = poll_until_done(
                    job_id,
                    self._client.fetch_status,
                    on_tick=lambda tick: self._on_remote_tick(token, PHASE_GENERATION, tick),
                    require_running=True,
                    interval=self.poll_interval,
                    max_consecutive_errors=self.max_consecutive_errors,
                    token=token,
                    debug=lambda msg: self._log_line(token, f"generation {msg}"),
                )
            except SpoofError as e:
                self._fail(token, PHASE_GENERATION, f"generation polling failed: {e}")
                return None
            if outcome == "aborted":
                return None

        if not self._set_phase(token, PHASE_GENERATION, status=STATUS_COMPLETED):
            return None
        self._log_line(token, "generation completed")
        if not token.sleep(self.phase_gap):
            return None
        return artifact

    # ── Guarded state writes ──────────────────────────────────────

    def _set_phase(
        self,
        token: RunToken,
        phase: str,
        *,
        status: str | None = None,
        progress: float | None = None,
    ) -> bool:
        """Update one phase and the overall value. False if the run is dead."""
        with self._lock:
            if token.cancelled:
                return False
            idx = PHASE_ORDER.index(phase)
            current = self._phases[idx]
            if status == STATUS_COMPLETED:
                progress = 100
            changes: dict = {}
            if status is not None:
                changes["status"] = status
            if progress is not None:
                changes["progress"] = int(round(progress))
            self._phases[idx] = replace(current, **changes)

            if status == STATUS_COMPLETED:
                target = float(cumulative_weight(phase, self.weights))
            elif progress is not None:
                target = overall_progress(phase, progress, self.weights)
            else:
                target = self._overall
            self._overall = max(self._overall, target)
            self._updated_at = time.monotonic()
        return True

    def _on_remote_tick(self, token: RunToken, phase: str, tick: Tick) -> None:
        with self._lock:
            if token.cancelled:
                return
            trace = self._remote[phase]
            self._remote[phase] = RemoteTrace(
                last=f"{tick.status} ({tick.percent:g}%)",
                seen_running=trace.seen_running or tick.status == REMOTE_RUNNING,
            )
        self._set_phase(token, phase, progress=tick.percent)

    def _fail(self, token: RunToken, phase: str, message: str) -> None:
        with self._lock:
            if token.cancelled:
                return
            idx = PHASE_ORDER.index(phase)
            self._phases[idx] = replace(self._phases[idx], status=STATUS_ERROR)
            self._status = RUN_FAILED
            self._error = message
            self._updated_at = time.monotonic()
        self._log_line(token, message)

    def _log_line(self, token: RunToken, line: str) -> None:
        with self._lock:
            if token.cancelled:
                return
            self._log.push(line)
            self._updated_at = time.monotonic()

    def _log_always(self, line: str) -> None:
        with self._lock:
            self._log.push(line)
            self._updated_at = time.monotonic()


def _check_samples(samples: int) -> None:
    if isinstance(samples, bool) or not isinstance(samples, int) or samples < 1:
        raise ValueError(f"samples must be a positive integer, got {samples!r}")


# ── Session registry ──────────────────────────────────────────────

_drivers: dict[str, GenerationDriver] = {}
_drivers_lock = threading.Lock()

# Finished sessions stay around this long so their results remain downloadable
SESSION_TTL_SECONDS = 30 * 60


def _evict_finished() -> None:
    """Forget drivers that stopped more than SESSION_TTL_SECONDS ago.

    Caller must hold _drivers_lock.
    """
    cutoff = time.monotonic() - SESSION_TTL_SECONDS
    for session_id, driver in list(_drivers.items()):
        stopped = driver.idle_since()
        if stopped is not None and stopped <= cutoff:
            del _drivers[session_id]


def get_driver(
    session_id: str,
    client: JobClient | None = None,
    config: dict | None = None,
) -> GenerationDriver | None:
    """Get the driver for a session, creating it when a client is supplied."""
    with _drivers_lock:
        driver = _drivers.get(session_id)
        if driver is None and client is not None:
            _evict_finished()
            driver = GenerationDriver(client, config)
            _drivers[session_id] = driver
        return driver


def start_session_run(
    session_id: str,
    client: JobClient,
    config: dict,
    *,
    dataset_id: str,
    model_name: str,
    samples: int,
) -> GenerationDriver:
    """Start a run for a session, superseding that session's previous run."""
    driver = get_driver(session_id, client, config)
    driver.start(dataset_id, model_name, samples)
    return driver


def cancel_session(session_id: str) -> bool:
    """Cancel a session's live run. Returns True if one was running."""
    with _drivers_lock:
        driver = _drivers.get(session_id)
    if driver is None:
        return False
    return driver.cancel()


def drop_session(session_id: str) -> bool:
    """Cancel and forget a session's driver."""
    with _drivers_lock:
        driver = _drivers.pop(session_id, None)
    if driver is None:
        return False
    driver.cancel()
    return True
