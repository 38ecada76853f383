"""Constants and enumerations for KPI funnel analytics."""

from enum import StrEnum
from typing import Final


# Default Values
DEFAULT_MIN_PASSTHROUGHS: Final[int] = 10
DEFAULT_OUTPUT_DIR: Final[str] = "output"
DEFAULT_DATA_DIR: Final[str] = "data"
DEFAULT_RECORDS_FILE: Final[str] = "records.json"
DEFAULT_METRICS_OUTPUT: Final[str] = "metrics.csv"
DEFAULT_TIME_SERIES_OUTPUT: Final[str] = "time_series.json"
DEFAULT_QUARTILES_OUTPUT: Final[str] = "quartiles.json"
DEFAULT_R_SQUARED_THRESHOLD: Final[float] = 0.5

# Quartile analysis
QUARTILE_MIN_AGENTS: Final[int] = 4
QUARTILE_DIVISOR: Final[int] = 4

# Records
MAX_RECORD_RATE: Final[float] = 200.0

# Regression
MIN_REGRESSION_POINTS: Final[int] = 3
REGRESSION_EPSILON: Final[float] = 1e-10

# Insights
TOP_REASONS_LIMIT: Final[int] = 10
TOP_AGENT_REASONS_LIMIT: Final[int] = 3

# Excel serial dates (five digits; bare years are not dates)
EXCEL_SERIAL_MIN: Final[float] = 10000
EXCEL_SERIAL_MAX: Final[float] = 100000

# JSON Serialization
JSON_INDENT: Final[int] = 2

# Empty Values
EMPTY_STRING: Final[str] = ""
UNKNOWN_DATE: Final[str] = "unknown"
PERCENT: Final[float] = 100.0

# Numeric Constants
EXIT_CODE_ERROR: Final[int] = 1

# Synthetic header injected by grouped-report parsers
SYNTHETIC_AGENT_COLUMN: Final[str] = "_agent"


# Agent column detection, in priority order
AGENT_PRIORITY_PATTERNS: Final[tuple[str, ...]] = (
    "gtt owner",
    "owner name",
    "last gtt action by",
)
AGENT_EXACT_NAMES: Final[tuple[str, ...]] = (
    "agent",
    "agent name",
    "agentname",
    "agent_name",
    "name",
    "rep",
    "representative",
    "sales rep",
    "salesrep",
    "employee",
    "user",
    "username",
)
AGENT_GENERIC_TOKENS: Final[tuple[str, ...]] = ("agent", "owner", "rep")

# Date column detection per dataset
TRIPS_DATE_PATTERNS: Final[tuple[str, ...]] = (
    "trip created date",
    "created date",
    "date",
)
QUOTES_DATE_PATTERNS: Final[tuple[str, ...]] = (
    "quote first sent",
    "quote sent date",
    "quote date",
    "created date",
    "date",
)
PASSTHROUGHS_DATE_PATTERNS: Final[tuple[str, ...]] = (
    "passthrough to sales date",
    "passthrough date",
    "created date",
    "date",
)
HOT_PASS_DATE_PATTERNS: Final[tuple[str, ...]] = (
    "hot pass date",
    "passthrough to sales date",
    "passthrough date",
    "created date",
    "date",
)
BOOKINGS_DATE_PATTERNS: Final[tuple[str, ...]] = (
    "booking date",
    "booked date",
    "created date",
    "date",
)
NON_CONVERTED_DATE_PATTERNS: Final[tuple[str, ...]] = ("created date", "date")
QUOTES_STARTED_DATE_PATTERNS: Final[tuple[str, ...]] = ("date", "created")

# Classification columns
REPEAT_COLUMN_PATTERNS: Final[tuple[str, ...]] = (
    "repeat",
    "client type",
    "customer type",
)
B2B_COLUMN_PATTERNS: Final[tuple[str, ...]] = (
    "b2b",
    "lead channel",
    "business type",
    "client category",
)
PASSTHROUGH_DATE_COLUMN_PATTERNS: Final[tuple[str, ...]] = (
    "passthrough to sales date",
    "passthrough date",
)
NON_CONVERTED_OWNER_PATTERNS: Final[tuple[str, ...]] = (
    "lead owner",
    SYNTHETIC_AGENT_COLUMN,
    "owner",
    "agent",
)
NON_VALIDATED_REASON_PATTERNS: Final[tuple[str, ...]] = (
    "non validated reason",
    "non-validated reason",
    "reason",
)
TRIP_NAME_PATTERNS: Final[tuple[str, ...]] = (
    "trip name",
    "trip:",
    "opportunity",
    "lead name",
)
TRIP_NAME_EXACT_NAMES: Final[tuple[str, ...]] = ("trip", "name")
QUOTES_STARTED_AGENT_PATTERNS: Final[tuple[str, ...]] = (
    "gtt owner",
    "owner name",
    "agent",
    "last gtt action by",
)

# Classification values
REPEAT_VALUES: Final[frozenset[str]] = frozenset({"repeat", "returning", "existing"})
B2B_EXACT_VALUES: Final[frozenset[str]] = frozenset({"b2b", "business"})
B2B_SUBSTRING: Final[str] = "b2b"

# Input files, looked up by stem inside the data directory
SUPPORTED_EXTENSIONS: Final[tuple[str, ...]] = (".csv", ".xlsx", ".xls")

DAY_NAMES: Final[tuple[str, ...]] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# Passthrough time-of-day slots as (label, start hour, end hour); Night wraps midnight
TIME_SLOTS: Final[tuple[tuple[str, int, int], ...]] = (
    ("Early Morning (6-9am)", 6, 9),
    ("Morning (9am-12pm)", 9, 12),
    ("Afternoon (12-3pm)", 12, 15),
    ("Late Afternoon (3-6pm)", 15, 18),
    ("Evening (6-9pm)", 18, 21),
    ("Night (9pm-6am)", 21, 6),
)


class Dataset(StrEnum):
    """Uploaded dataset kinds; values double as file stems."""

    TRIPS = "trips"
    QUOTES = "quotes"
    PASSTHROUGHS = "passthroughs"
    HOT_PASS = "hot_pass"
    BOOKINGS = "bookings"
    NON_CONVERTED = "non_converted"
    QUOTES_STARTED = "quotes_started"


class Segment(StrEnum):
    """Classified trip segments with their own daily T>P series."""

    REPEAT = "repeat"
    B2B = "b2b"


class RatioKey(StrEnum):
    """Daily ratio series keys."""

    TQ = "tq"
    TP = "tp"
    PQ = "pq"
    HP = "hp"
    NC = "nc"


class VolumeMetric(StrEnum):
    """Volume metrics tracked as personal records."""

    TRIPS = "trips"
    QUOTES = "quotes"
    PASSTHROUGHS = "passthroughs"


class RateMetric(StrEnum):
    """Rate metrics tracked as personal records."""

    TQ = "tq"
    TP = "tp"
    PQ = "pq"


class TimePeriod(StrEnum):
    """Record-keeping windows."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"


class RegressionKind(StrEnum):
    """Fitted trend model types."""

    LINEAR = "linear"
    LOG_LINEAR = "log-linear"


class LogMessage(StrEnum):
    """Log message templates."""

    NO_AGENT_COLUMN = "No agent column detected in {} dataset, treating as empty"
    DETECTED_COLUMNS = "{}: agent column '{}', date column '{}'"
    COUNTED_ROWS = "{}: counted {} rows for {} agents"
    NO_CLASSIFICATION_COLUMN = "No {} column found in trips dataset"
    SYNTHESIZED_METRICS = "Synthesized metrics for {} agents"
    BUILT_TIME_SERIES = "Built time series for {} agents over {} dates"
    QUARTILE_INSUFFICIENT = (
        "Quartile analysis needs at least {} agents with {}+ passthroughs, found {}"
    )
    QUARTILE_SPLIT = "Quartile split: {} qualifying agents, {} per quartile"
    LOADING_DATASET = "Loading {} from {}"
    MISSING_DATASET = "No {} file found in {}, using empty dataset"
    LOADED_ROWS = "Loaded {} rows from {}"
    SAVED_METRICS = "Saved metrics for {} agents to {}"
    SAVED_JSON = "Saved {} to {}"
    RECORDS_UPDATED = "{} new personal records"
    ANALYSIS_HEADER = "=== KPI FUNNEL ANALYSIS ==="
    ERROR_OCCURRED = "Error occurred: {}"


class CliHelp(StrEnum):
    """CLI help messages."""

    APP = "KPI funnel analytics for sales and travel operations teams"
    DATA_DIR = "Directory containing trips, quotes, passthroughs, hot_pass, bookings, non_converted and quotes_started exports (.csv/.xlsx)."
    START_DATE = "Inclusive start date (YYYY-MM-DD). Empty means unbounded."
    END_DATE = "Inclusive end date (YYYY-MM-DD). Empty means unbounded."
    ROSTER = "JSON file listing senior agents and teams."
    MIN_PASSTHROUGHS = "Minimum passthroughs in the window for an agent to enter quartile analysis."
    OUTPUT_DIR = "Directory where metrics, time series and quartile results are written."
    RECORDS_FILE = "JSON file holding personal records."
    R_SQUARED = "Minimum R² for a fitted trend to be reported."
    AGENT = "Fit trends to one agent's daily ratios instead of the department's."
    ANALYZE_COMMAND = """Compute per-agent funnel metrics, time series and quartile analysis.

Reads the exported datasets, applies the optional date range and writes
metrics.csv, time_series.json and quartiles.json to the output directory."""
    QUARTILES_COMMAND = """Compare top and bottom hot-pass quartiles over a date window.

Agents qualify when their passthroughs inside the window reach the
minimum; at least four qualifying agents are needed."""
    RECORDS_COMMAND = """Update the personal records file and list new personal bests."""
    TRENDS_COMMAND = """Fit linear and log-linear trends to department (or one agent's) daily ratios."""
    INSIGHTS_COMMAND = """Summarize non-validated reasons and passthroughs by weekday and time of day."""
