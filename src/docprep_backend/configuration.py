from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

load_dotenv()

_HERE = Path(__file__).resolve()
_CANDIDATE_CONFIG_PATHS = [parent / "config/config.yaml" for parent in _HERE.parents[:4]]

CONFIG_PATH = next((path for path in _CANDIDATE_CONFIG_PATHS if path.exists()), None)
if CONFIG_PATH is None:  # pragma: no cover - fail fast in misconfigured environments
    raise FileNotFoundError("Default config.yaml could not be located; ensure the package was installed with its config directory.")


@lru_cache(maxsize=1)
def _load_default_config() -> DictConfig:
    if not CONFIG_PATH.exists():
        raise FileNotFoundError(f"Default config not found at {CONFIG_PATH}")
    return OmegaConf.load(CONFIG_PATH)


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> DictConfig:
    """
    Build the runtime settings by merging overrides onto the defaults.

    Environment interpolations (``${oc.env:...}``) are kept unresolved in the
    merged config and evaluated when a value is read, so variables loaded from
    ``.env`` or set by the process are honored.

    Args:
        overrides: Nested mapping of values replacing the defaults

    Returns:
        Merged configuration in struct mode

    Raises:
        omegaconf.errors.ConfigKeyError: If an override names an unknown key
    """
    base_container = OmegaConf.to_container(_load_default_config(), resolve=False)
    base = OmegaConf.create(base_container)
    OmegaConf.set_struct(base, True)

    override_config = OmegaConf.create(overrides or {})
    merged = DictConfig(OmegaConf.merge(base, override_config))
    return merged


def parse_allowed_origins(value: Any) -> List[str]:
    """
    Split the comma separated origin allow-list.

    Example:
        >>> parse_allowed_origins(" https://a.com, ,b.org ")
        ['https://a.com', 'b.org']
    """
    if not value:
        return []
    return [origin.strip() for origin in str(value).split(",") if origin.strip()]
