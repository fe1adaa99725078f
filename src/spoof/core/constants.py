"""Constants for the spoof generation pipeline."""


# Phase identifiers, in execution order
PHASE_PREPROCESSING = "preprocessing"
PHASE_TRAINING = "training"
PHASE_GENERATION = "generation"
PHASE_VALIDATION = "validation"

PHASE_ORDER = [
    PHASE_PREPROCESSING,
    PHASE_TRAINING,
    PHASE_GENERATION,
    PHASE_VALIDATION,
]

PHASE_LABELS = {
    PHASE_PREPROCESSING: "Data Preprocessing",
    PHASE_TRAINING: "Model Training",
    PHASE_GENERATION: "Synthetic Generation",
    PHASE_VALIDATION: "Quality Validation",
}

PHASE_DESCRIPTIONS = {
    PHASE_PREPROCESSING: "Analyzing and preparing your data for training",
    PHASE_TRAINING: "Training the AI model on your data patterns",
    PHASE_GENERATION: "Generating synthetic samples with your parameters",
    PHASE_VALIDATION: "Validating the quality and privacy of generated data",
}

# Share of the overall progress bar owned by each phase (sums to 100)
PHASE_WEIGHTS = {
    PHASE_PREPROCESSING: 25,
    PHASE_TRAINING: 35,
    PHASE_GENERATION: 30,
    PHASE_VALIDATION: 10,
}

# Phase-local status values
STATUS_PENDING = "pending"
STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"

# Run-level status values
RUN_IDLE = "idle"
RUN_RUNNING = "running"
RUN_COMPLETED = "completed"
RUN_FAILED = "failed"
RUN_CANCELLED = "cancelled"

# Status strings reported by the remote job service
REMOTE_PENDING = "pending"
REMOTE_QUEUED = "queued"
REMOTE_RUNNING = "running"
REMOTE_COMPLETED = "completed"
REMOTE_FAILED = "failed"
REMOTE_ERROR = "error"

REMOTE_FAILURE_STATUSES = {REMOTE_FAILED, REMOTE_ERROR}
KNOWN_REMOTE_STATUSES = {
    REMOTE_PENDING,
    REMOTE_QUEUED,
    REMOTE_RUNNING,
    REMOTE_COMPLETED,
    REMOTE_FAILED,
    REMOTE_ERROR,
}

# Simulated phases advance in these local-progress increments
SIMULATED_STEPS = [0, 20, 40, 60, 80, 100]

# Hard ceiling on samples requested from the generation endpoint
MAX_GENERATE_SAMPLES = 100_000

DEBUG_LOG_LIMIT = 200

EXPORT_FORMATS = ["csv", "json"]
