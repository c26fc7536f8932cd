from functools import lru_cache
from typing import Annotated
import logging

from croniter import croniter
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


logger = logging.getLogger(__name__)

_ENABLED = "YES"


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    enigma2_ip: str
    enigma2_port: int = 80
    enigma2_stream_port: int = 8002
    enigma2_picons: bool = True
    prefix_catalog: str = "E2 - "
    ignore_bouquets: Annotated[list[str], NoDecode] = []
    ignore_empty_bouquets: bool = True

    addon_host: str = "0.0.0.0"
    addon_port: int = 7000
    log_level: str = "INFO"

    cache_ttl_sec: float = 300.0
    lineup_timeout_sec: float = 5.0
    picon_timeout_sec: float = 3.0
    picon_size: int = 300
    preload_batch_size: int = 15
    preload_batch_delay_ms: int = 200
    preload_cron: str = "0 4 * * *"  # Daily at 4 AM, empty disables
    preload_misfire_grace_sec: int = 3600  # Allow 1 hour to run a missed preload
    meta_cache_max_entries: int = 0  # 0 keeps every mapped channel

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("enigma2_ip")
    @classmethod
    def validate_enigma2_ip(cls, value: str) -> str:
        """Reject a blank receiver address."""
        value = value.strip()
        if not value:
            raise ValueError("ENIGMA2_IP must be set as environment variable")
        return value

    @field_validator("enigma2_picons", "ignore_empty_bouquets", mode="before")
    @classmethod
    def parse_yes_no(cls, value):
        """Parse YES/NO flags; only YES (any case) enables, anything else is NO."""
        if isinstance(value, str):
            return value.strip().upper() == _ENABLED
        return value

    @field_validator("ignore_bouquets", mode="before")
    @classmethod
    def parse_ignore_bouquets(cls, value):
        """Parse comma-separated reference patterns or list."""
        if value is None:
            return []
        if isinstance(value, str):
            return [pattern.strip() for pattern in value.split(",") if pattern.strip()]
        if isinstance(value, (list, tuple)):
            return [str(pattern).strip() for pattern in value if str(pattern).strip()]
        return []

    @field_validator("enigma2_port", "enigma2_stream_port", "addon_port")
    @classmethod
    def validate_ports(cls, value: int, info) -> int:
        """Validate TCP port numbers."""
        if not 0 < value < 65536:
            raise ValueError(f"{info.field_name} must be between 1 and 65535")
        return value

    @field_validator(
        "cache_ttl_sec",
        "lineup_timeout_sec",
        "picon_timeout_sec",
    )
    @classmethod
    def validate_positive_floats(cls, value: float, info) -> float:
        """Ensure timeouts and TTLs are positive."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("picon_size", "preload_batch_size", "preload_misfire_grace_sec")
    @classmethod
    def validate_positive_ints(cls, value: int, info) -> int:
        """Ensure sizes are positive integers."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("preload_batch_delay_ms", "meta_cache_max_entries")
    @classmethod
    def validate_non_negative_ints(cls, value: int, info) -> int:
        """Ensure delay and bound values are non-negative."""
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate logging level name."""
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @field_validator("preload_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid (empty disables the schedule)."""
        value = value.strip()
        if not value:
            return value
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    @model_validator(mode="after")
    def validate_picon_configuration(self):
        """Validate cross-field configuration."""
        if not self.enigma2_picons and self.preload_cron:
            logger.info("Picons disabled - scheduled picon refresh will be a no-op")
        return self

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Receiver: %s (port %s)", self.enigma2_ip, self.enigma2_port)
        logger.info("  Stream Port: %s", self.enigma2_stream_port)
        logger.info("  Picons: %s", "ENABLED" if self.enigma2_picons else "DISABLED")
        logger.info('  Catalog Prefix: "%s"', self.prefix_catalog)
        logger.info(
            "  Ignore Bouquets: %s",
            ", ".join(self.ignore_bouquets) if self.ignore_bouquets else "None",
        )
        logger.info(
            "  Ignore Empty Bouquets: %s", "YES" if self.ignore_empty_bouquets else "NO"
        )
        logger.info("  Cache TTL: %ss", self.cache_ttl_sec)
        logger.info(
            "  Preload Batches: %s picons, %sms apart",
            self.preload_batch_size,
            self.preload_batch_delay_ms,
        )
        logger.info("  Preload Schedule: %s", self.preload_cron or "disabled")
        logger.info("  Preload Misfire Grace: %ss", self.preload_misfire_grace_sec)

    @property
    def openwebif_url(self) -> str:
        return f"http://{self.enigma2_ip}:{self.enigma2_port}"

    @property
    def stream_base_url(self) -> str:
        return f"http://{self.enigma2_ip}:{self.enigma2_stream_port}"


@lru_cache(maxsize=1)
def get_settings() -> CustomSettings:
    """Load settings once per process."""
    return CustomSettings()


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
