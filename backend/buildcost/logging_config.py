"""
Logging setup for the API process.
"""
import logging
import re
import sys
from typing import Dict, Optional

from buildcost.config import settings


class SensitiveDataFilter(logging.Filter):
    """Mask merchant API keys and auth headers in log messages."""

    SENSITIVE_PATTERNS = [
        (r'api[_-]?key["\']?\s*[:=]\s*["\']?([^"\'\s&,}]+)', 'api_key=***'),
        (r'Bearer\s+([^\s"]+)', 'Bearer ***'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            for pattern, replacement in self.SENSITIVE_PATTERNS:
                record.msg = re.sub(pattern, replacement, record.msg, flags=re.IGNORECASE)
        return True


_configured = False


def setup_logging(level: Optional[str] = None, module_levels: Optional[Dict[str, str]] = None) -> None:
    """Configure the root logger once; later calls are no-ops."""
    global _configured
    if _configured:
        return

    root_level = (level or settings.LOG_LEVEL).upper()
    levels = {
        "sqlalchemy.engine": "INFO" if settings.DEBUG else "WARNING",
        "uvicorn.access": "INFO",
        "buildcost": root_level,
    }
    if module_levels:
        levels.update(module_levels)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    handler.addFilter(SensitiveDataFilter())

    logging.basicConfig(level=getattr(logging, root_level), handlers=[handler], force=True)
    for module, module_level in levels.items():
        logging.getLogger(module).setLevel(getattr(logging, module_level.upper()))

    _configured = True
