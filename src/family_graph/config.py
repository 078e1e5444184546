import os
import yaml
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "family_graph.yml"
CONFIG_ENV_VAR = "FAMILY_GRAPH_CONFIG"

class FGConfig:
    def __init__(self, data):
        self.paths = data.get("paths", {}) or {}
        self.logging = data.get("logging", {}) or {}
        self.scoring = data.get("scoring", {}) or {}
        self.layout = data.get("layout", {}) or {}
        self.debug = data.get("debug", False)

def config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override) if override else CONFIG_PATH

def load_config(path: Path | None = None) -> 'FGConfig':
    path = path or config_path()
    if not path.exists():
        # Library use without a checkout: every section falls back to defaults.
        return FGConfig({})

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return FGConfig(data)

_config_cache = None

def get_config() -> 'FGConfig':
    global _config_cache
    if _config_cache is None:
        _config_cache = load_config()
    return _config_cache

def reset_config() -> None:
    global _config_cache
    _config_cache = None
