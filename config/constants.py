"""Load Simulator Constants

Single source of truth for all thresholds and configuration.
No magic numbers in module code.
"""

# =============================================================================
# DATASET LIMITS
# =============================================================================

MAX_SUBJECTS = 50000                # Hard ceiling on synthetic population
MAX_EVIDENCE_TOTAL = 5_000_000      # Hard ceiling on generated evidence items
MAX_PARALLEL_RUNS = 25              # parallel_runs must be in [1, 25]
MIN_PARALLEL_RUNS = 1

# Dataset size presets -> subject count ("custom" falls back to 1k)
DATASET_PRESETS = {
    "1k": 1000,
    "5k": 5000,
    "10k": 10000,
    "custom": 1000,
}

# Evidence density -> items per subject
EVIDENCE_DENSITY = {
    "low": 5,
    "medium": 25,
    "high": 100,
}

DETECTION_MODES = ("real", "simulated")

# =============================================================================
# PROVIDER DISTRIBUTION
# =============================================================================

PROVIDER_MAIL = "mail"
PROVIDER_DOCUMENT_STORE = "document-store"
PROVIDER_FILE_STORE = "file-store"
PROVIDER_OTHER = "other"

# Weights must sum to 1.0
PROVIDER_DISTRIBUTION = {
    PROVIDER_MAIL: 0.40,
    PROVIDER_DOCUMENT_STORE: 0.30,
    PROVIDER_FILE_STORE: 0.20,
    PROVIDER_OTHER: 0.10,
}

PROVIDER_ITEM_TYPES = {
    PROVIDER_MAIL: "EMAIL",
    PROVIDER_DOCUMENT_STORE: "FILE",
    PROVIDER_FILE_STORE: "FILE",
    PROVIDER_OTHER: "RECORD",
}

# Chance that a non-first item of a special-category subject is also special
SPECIAL_ITEM_CHANCE = 0.25
SENSITIVE_ITEM_CHANCE = 0.25

# =============================================================================
# PERFORMANCE DEFAULTS
# =============================================================================

DEFAULT_BATCH_SIZE = 500
DEFAULT_MAX_EVIDENCE_PER_RUN = 50000
DEFAULT_MAX_CONTENT_SCAN_BYTES = 104857600   # 100 MiB
DEFAULT_SEED = 42
DEFAULT_SUBJECT_COUNT = 1000
DEFAULT_SPECIAL_CATEGORY_RATIO = 0.10
DEFAULT_PARALLEL_RUNS = 5

# =============================================================================
# SCHEDULER MODEL (analytic, no real I/O)
# =============================================================================

CONNECTOR_LATENCY_MIN_MS = 100      # Per-run service time lower bound
CONNECTOR_LATENCY_MAX_MS = 300      # Per-run service time upper bound
QUEUE_STAGGER_MS = 10               # Admission offset between slot neighbours
PERF_MAX_CONCURRENT_RUNS = 25       # Slot cap used for performance simulations

MEMORY_BYTES_PER_ITEM = 200         # Estimated resident bytes per evidence item
DETECTION_COST_MS_PER_ITEM = 0.05   # Modeled detection cost
DB_WRITE_LATENCY_MS = (5, 50)       # Normal write latency range
DB_SLOW_WRITE_LATENCY_MS = (500, 2000)
EXPORT_LATENCY_MS = (50, 500)
DB_WRITES_PER_ITEM = 1              # One evidence row per item
DB_WRITES_PER_RUN = 3               # Run row + status update + audit row

# Probability of each failure when enabled in FailureSimulationConfig
INJECTED_FAILURE_PROBABILITY = {
    "external_service_failure": 0.30,
    "timeout": 0.20,
    "export_crash": 0.25,
}

# =============================================================================
# RUN STATUS
# =============================================================================

STATUS_COMPLETED = "COMPLETED"
STATUS_PARTIAL = "PARTIAL_COMPLETED"
STATUS_FAILED = "FAILED"
STATUS_UNKNOWN = "UNKNOWN"

# =============================================================================
# DETECTION
# =============================================================================

CONFIDENCE_HIGH = 0.85              # confidence >= 0.85 -> HIGH
CONFIDENCE_MEDIUM = 0.60            # confidence >= 0.60 -> MEDIUM, else LOW
SIMULATED_CONFIDENCE_RANGE = (0.5, 0.99)

SIMULATED_CATEGORIES = [
    "COMMUNICATION", "IDENTITY", "PAYMENT", "CONTRACT",
    "HEALTH", "HR_DATA", "LOCATION",
]

SPECIAL_CATEGORIES = ["HEALTH", "RELIGION", "UNION", "POLITICAL_OPINION"]

SIMULATED_ELEMENT_TYPES = [
    "EMAIL", "PHONE", "IBAN", "NAME", "ADDRESS",
    "EMPLOYEE_ID", "CUSTOMER_NUMBER", "IP_ADDRESS",
]

# =============================================================================
# GOVERNANCE
# =============================================================================

MIN_JUSTIFICATION_LENGTH = 10
GOVERNANCE_MAX_CONCURRENT_RUNS = 3
GOVERNANCE_MAX_RUNS_PER_DAY_TENANT = 100
GOVERNANCE_MAX_RUNS_PER_DAY_USER = 20
GOVERNANCE_MAX_EVIDENCE_PER_RUN = 10000
GOVERNANCE_MAX_CONTENT_SCAN_BYTES = 512000
GOVERNANCE_ALLOWED_PROVIDER_PHASES = (1,)
EXECUTION_MODE_METADATA_ONLY = "METADATA_ONLY"

# Anomaly thresholds (per hour)
ANOMALY_RUNS_PER_HOUR = 10
ANOMALY_DISTINCT_SUBJECTS_PER_HOUR = 5
ANOMALY_DENIED_PER_HOUR = 5

# Number of pre-checks logged per run: role, justification, rate limit
GOVERNANCE_CHECKS_PER_RUN = 3

# =============================================================================
# STRESS TESTS
# =============================================================================

CONCURRENCY_TEST_RUNS = 25
CONCURRENCY_TEST_EVIDENCE_CEILING = 500000
CONCURRENCY_TEST_USERS = 5
CONCURRENCY_TEST_MAX_CONCURRENT = 10
CONCURRENCY_TEST_TENANT_PER_DAY = 50
CONCURRENCY_TEST_USER_PER_DAY = 15
CONCURRENCY_RETRY_RELIEF_CONCURRENT = 5   # Slots freed before a retry
CONCURRENCY_RETRY_RELIEF_TENANT = 10      # Tenant budget freed before a retry

SECURITY_TEST_REQUESTS = 100
SECURITY_TEST_WINDOW_SECONDS = 60
SECURITY_TEST_USERS = 3
SECURITY_TEST_TENANTS = ("tenant-alpha", "tenant-beta")

# =============================================================================
# ENVIRONMENTS
# =============================================================================

PERFORMANCE_ALLOWED_ENVIRONMENTS = ("development", "test")
DEMO_TENANT_SLUG_PREFIX = "demo"

# =============================================================================
# RECEIPT TYPES
# =============================================================================

RECEIPT_TYPES = [
    "dataset",
    "detection_load",
    "governance_check",
    "audit",
    "break_glass",
    "run",
    "parallel_simulation",
    "failure_injection",
    "failure_suite",
    "concurrency_test",
    "security_test",
    "metrics_summary",
    "enterprise_summary",
    "performance_simulation",
    "anomaly",
    "export",
    "validation",
]
