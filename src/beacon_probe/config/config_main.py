from dotenv import load_dotenv
from typing import List, Optional
import os

load_dotenv()

KNOWN_CATEGORIES = ["core", "mtr"]


class ConfigurationError(ValueError):
    """Raised when a required setting is missing or malformed."""


def env_required(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"Missing required environment variable: {name}")
    return value


def env_long(name: str) -> Optional[int]:
    """
    Read an optional numeric override.

    Returns:
        The integral value, or None when the variable is unset/empty
    """
    value = os.getenv(name)
    if not value:
        return None
    try:
        parsed = float(value.strip())
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be numeric")
    if parsed != parsed or parsed in (float("inf"), float("-inf")) or not parsed.is_integer():
        raise ConfigurationError(f"Environment variable {name} must be numeric")
    return int(parsed)


def env_int(name: str, default: int) -> int:
    value = env_long(name)
    return default if value is None else value


def env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        parsed = float(value.strip())
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be a number")
    if parsed != parsed or parsed in (float("inf"), float("-inf")):
        raise ConfigurationError(f"Environment variable {name} must be a number")
    return parsed


class BeaconConfig():
    """Connection settings. Numeric values are parsed by validate()."""

    def __init__(self):
        self.host: str = os.getenv("BEACON_HOST", "127.0.0.1")
        self.key: str = os.getenv("BEACON_KEY", "")
        self.port: Optional[int] = None
        self.ack_timeout: float = 10.0
        self.reconnection_attempts: int = 3

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def validate(self):
        env_required("BEACON_PORT")
        self.key = env_required("BEACON_KEY")
        self.port = env_long("BEACON_PORT")
        self.ack_timeout = env_float("BEACON_ACK_TIMEOUT", 10.0)
        self.reconnection_attempts = env_int("BEACON_RECONNECTION_ATTEMPTS", 3)
        if not (0 < self.port <= 65535):
            raise ConfigurationError("BEACON_PORT must be between 1 and 65535")
        if self.ack_timeout <= 0:
            raise ConfigurationError("BEACON_ACK_TIMEOUT must be positive")


class PlayerConfig():
    def __init__(self):
        self.uuid: Optional[str] = os.getenv("BEACON_PLAYER_UUID") or None
        self.name: Optional[str] = os.getenv("BEACON_PLAYER_NAME") or None

    @property
    def configured(self) -> bool:
        return bool(self.uuid or self.name)

    @property
    def label(self) -> str:
        return self.uuid or self.name or "unknown"


class MtrConfig():
    """Dimension scope, explicit target overrides and node walk limits."""

    def __init__(self):
        self.dimension: str = os.getenv("BEACON_MTR_DIMENSION", "minecraft:overworld")
        self.route_id: Optional[int] = None
        self.station_id: Optional[int] = None
        self.platform_id: Optional[int] = None
        self.depot_id: Optional[int] = None
        self.node_page_size: int = 500
        self.node_max_pages: int = 1000
        self.bulk_export: bool = os.getenv("BEACON_BULK_EXPORT", "true").lower() == "true"

    def validate(self):
        self.route_id = env_long("BEACON_MTR_ROUTE_ID")
        self.station_id = env_long("BEACON_MTR_STATION_ID")
        self.platform_id = env_long("BEACON_MTR_PLATFORM_ID")
        self.depot_id = env_long("BEACON_MTR_DEPOT_ID")
        self.node_page_size = env_int("BEACON_MTR_NODE_PAGE_SIZE", 500)
        self.node_max_pages = env_int("BEACON_MTR_NODE_MAX_PAGES", 1000)
        if self.node_page_size <= 0:
            raise ConfigurationError("BEACON_MTR_NODE_PAGE_SIZE must be positive")
        if self.node_max_pages <= 0:
            raise ConfigurationError("BEACON_MTR_NODE_MAX_PAGES must be positive")


class OutputConfig():
    def __init__(self):
        self.output_dir: str = os.getenv("OUTPUT_DIR") or os.path.join(os.getcwd(), "output")


class ProbeConfig():
    """
    All settings for one probe run, read from the environment.

    Strings are read on construction; numbers are parsed and checked by
    validate(), which the run calls before connecting.
    """

    def __init__(self):
        self.beacon = BeaconConfig()
        self.player = PlayerConfig()
        self.mtr = MtrConfig()
        self.output = OutputConfig()

    def validate(self) -> "ProbeConfig":
        self.beacon.validate()
        self.mtr.validate()
        return self


def parse_categories(argv: List[str]) -> List[str]:
    """
    Normalise requested categories.

    Args:
        argv: Raw category names from the command line

    Returns:
        Requested categories in first-mention order (all when none given)
    """
    if not argv:
        return list(KNOWN_CATEGORIES)

    normalized = []
    for raw in argv:
        value = raw.strip().lower()
        if value not in KNOWN_CATEGORIES:
            raise ConfigurationError(
                f'Unknown category "{raw}". Available: {", ".join(KNOWN_CATEGORIES)}'
            )
        if value not in normalized:
            normalized.append(value)
    return normalized
