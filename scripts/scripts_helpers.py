"""
Shared helpers for pipeline scripts.
Keeps sys.path wiring and logging setup in one place.
"""

import importlib.util
import logging
import sys
from pathlib import Path

# Ensure src/ is importable when scripts are run directly
_scripts = Path(__file__).resolve().parent
_root = _scripts.parent
if str(_root / "src") not in sys.path:
    sys.path.insert(0, str(_root / "src"))

_config = None


def setup_logging(level=logging.INFO):
    """Configure root logger."""
    logging.basicConfig(
        level=level,
        format=get_config().LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def get_config():
    """Return the config module (00_config.py, which has a leading digit)."""
    global _config
    if _config is None:
        spec = importlib.util.spec_from_file_location("config", _scripts / "00_config.py")
        mod = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(mod)
        _config = mod
    return _config
