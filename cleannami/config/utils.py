import logging
import os
from typing import Optional

import yaml

from cleannami.exceptions import ConfigurationError
from cleannami.pricing.calculate_price import PricingConfig
from cleannami.storage.gcs_store import GCSRowStore
from cleannami.storage.row_store import InMemoryRowStore, RowStore

CONFIG_ENV_VAR = "CLEANNAMI_CONFIG"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def load_config(path: Optional[str] = None) -> dict:
    """
    Loads YAML configuration file and returns a dictionary.

    Lookup order: explicit path, $CLEANNAMI_CONFIG, then the
    config.yaml shipped next to the package.
    """
    path = path or os.getenv(CONFIG_ENV_VAR)

    if not path:
        # Find directory containing THIS file (utils.py)
        base_dir = os.path.dirname(os.path.abspath(__file__))
        # Config file is one level above: cleannami/config.yaml
        path = os.path.abspath(os.path.join(base_dir, "..", "config.yaml"))

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Could not read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return config


def configure_logging(config: dict) -> None:
    level = (config.get("logging") or {}).get("level", "INFO")
    logging.basicConfig(level=level if isinstance(level, int) else str(level).upper(), format=LOG_FORMAT)


def ical_settings(config: dict) -> dict:
    """The `ical:` section with defaults filled in."""
    settings = {
        "user_agent": "CleanNami-iCal-Poller/1.0",
        "timeout_seconds": 10,
        "booking_statuses": ["active", "confirmed"],
        "payment_statuses": ["completed", "setup_complete"],
    }
    settings.update(config.get("ical") or {})
    return settings


def pricing_config(config: dict) -> PricingConfig:
    try:
        return PricingConfig.from_dict(config.get("pricing"))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid pricing settings: {e}") from e


def build_store(config: dict) -> RowStore:
    """Returns the row store named in the `storage:` section."""
    storage = config.get("storage") or {}
    backend = storage.get("backend")

    if backend == "memory":
        return InMemoryRowStore()

    if backend == "gcs":
        bucket = storage.get("bucket")
        if not bucket:
            raise ConfigurationError("storage.bucket is required for the gcs backend")
        return GCSRowStore(bucket, prefix=storage.get("prefix", ""))

    raise ConfigurationError(f"Unknown storage backend: {backend!r}")
