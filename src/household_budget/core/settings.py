import os

from dotenv import find_dotenv, load_dotenv

from household_budget.logger import get_logger

logger = get_logger(__name__)


CONFIG_FILENAME = "config.yaml"

_CONFIG_FILE_PATH: str | None = None
_CONFIG_FILE_VALUES: dict[str, str] = {}

_CONFIG_KEYS = (
    "LOG_LEVEL",
    "LOG_DIR",
    "HOUSEHOLD_API_URL",
    "HOUSEHOLD_API_TOKEN",
    "HOUSEHOLD_FAMILY_TTL",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "NARRATIVE_TIMEOUT",
    "NARRATIVE_MAX_RETRIES",
    "BENCHMARK_LOCATION",
)


def _resolve_dotenv_path() -> str | None:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir:
        candidate = os.path.join(config_dir, ".env")
        if os.path.exists(candidate):
            return candidate
    return find_dotenv(usecwd=True) or None


def _resolve_config_path() -> str:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir:
        return os.path.join(config_dir, CONFIG_FILENAME)
    candidate = os.path.join(os.getcwd(), "config", CONFIG_FILENAME)
    if os.path.exists(candidate):
        return candidate
    return os.path.join(os.getcwd(), CONFIG_FILENAME)


def _clean_value(raw_value: str) -> str:
    value = raw_value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    # Unquoted values may carry a trailing comment.
    return value.split(" #", 1)[0].rstrip()


def read_config_file(path: str | None) -> dict[str, str]:
    """Read flat ``KEY: value`` lines; nesting and lists are not supported."""
    if not path or not os.path.exists(path):
        return {}

    values: dict[str, str] = {}
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            key = key.strip()
            value = _clean_value(raw_value)
            if key and value:
                values[key] = value
    return values


def load_environment() -> None:
    global _CONFIG_FILE_PATH
    global _CONFIG_FILE_VALUES

    dotenv_path = _resolve_dotenv_path()
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)

    _CONFIG_FILE_PATH = _resolve_config_path()
    _CONFIG_FILE_VALUES = read_config_file(_CONFIG_FILE_PATH)

    for key in _CONFIG_KEYS:
        if key not in os.environ and key in _CONFIG_FILE_VALUES:
            os.environ[key] = _CONFIG_FILE_VALUES[key]


def ensure_dir(path: str | None) -> None:
    if path and path not in {".", "./"}:
        os.makedirs(path, exist_ok=True)


def get_env_int(
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("[ENV] %s='%s' below minimum %s, using default %s.", name, raw, min_value, default)
        return default
    if max_value is not None and value > max_value:
        logger.warning("[ENV] %s='%s' above maximum %s, using default %s.", name, raw, max_value, default)
        return default
    return value


def get_env_float(name: str, default: float = 0.0, min_value: float | None = None) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %.2f.", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("[ENV] %s='%s' below minimum %s, using default %.2f.", name, raw, min_value, default)
        return default
    return value


_SENSITIVE_ENV_KEYS = ("KEY", "TOKEN", "SECRET", "PASSWORD", "AUTH", "PRIVATE")


def _mask_env_value(name: str, value: str) -> str:
    sanitized = value.replace("\r", "\\r").replace("\n", "\\n")
    sensitive = any(marker in name.upper() for marker in _SENSITIVE_ENV_KEYS)
    if not sensitive and not sanitized.startswith(("sk-", "Bearer ", "bearer ")):
        return sanitized
    if len(sanitized) <= 4:
        return "****"
    return f"{sanitized[:2]}...{sanitized[-2:]}"


def log_environment() -> None:
    logger.info("[ENV] Configured environment (masked where needed), config file: %s", _CONFIG_FILE_PATH)
    for key in _CONFIG_KEYS:
        raw_value = os.getenv(key)
        value = "<unset>" if raw_value is None else _mask_env_value(key, raw_value)
        logger.info("[ENV] %s=%s", key, value)


DEFAULT_FAMILY_TTL_SECONDS = 60.0
DEFAULT_NARRATIVE_TIMEOUT_SECONDS = 20.0
DEFAULT_NARRATIVE_MAX_RETRIES = 2
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_BENCHMARK_LOCATION = "United Kingdom"

# Window bounds for the POST endpoints, as (minimum, default, maximum).
FORECAST_MONTHS = (3, 6, 12)
BENCHMARK_MONTHS = (1, 3, 6)
SUMMARY_MONTHS = (1, 6, 18)
MAX_PROJECTION_HORIZON = 6

# Costed calendar events this many days ahead feed the forecast.
UPCOMING_EVENT_WINDOW_DAYS = 60

# Recommendations are requested once spending passes this share of income.
RECOMMENDATION_SPEND_RATIO = 0.9


load_environment()

LOG_DIR = os.getenv("LOG_DIR")
CONFIG_DIR = os.getenv("CONFIG_DIR")

ensure_dir(LOG_DIR)

NARRATIVE_TIMEOUT = get_env_float("NARRATIVE_TIMEOUT", DEFAULT_NARRATIVE_TIMEOUT_SECONDS, min_value=0.1)
NARRATIVE_MAX_RETRIES = get_env_int("NARRATIVE_MAX_RETRIES", DEFAULT_NARRATIVE_MAX_RETRIES, min_value=0)
BENCHMARK_LOCATION = os.getenv("BENCHMARK_LOCATION") or DEFAULT_BENCHMARK_LOCATION
