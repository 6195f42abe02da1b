import logging
import os
import sys
from typing import Literal, Optional

# Data directories

# traverse one up as this is in src/config.py
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
DATA_DIR = os.path.join(ROOT, "data")
LOG_DIR = os.path.join(DATA_DIR, "logs")
SNAPSHOT_DATABASE_PATH = os.path.join(DATA_DIR, 'catalog_snapshot.duckdb')
REPORT_DIR = os.path.join(DATA_DIR, "reports")

Dialect = Literal['postgres', 'mysql', 'mariadb', 'mssql', 'sqlite']
DIALECTS = ('postgres', 'mysql', 'mariadb', 'mssql', 'sqlite')


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# config
# Emit a warning for every column whose type cannot be mapped
ALLOW_TYPE_WARNINGS = _env_flag('TYPEGEN_ALLOW_WARNINGS', True)

LOG_TO_FILE = _env_flag('TYPEGEN_LOG_TO_FILE', False)  # Whether to log to a file or not

# Logging configuration
# Set the default logging level - can be changed to DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_LEVEL = logging.getLevelName(os.environ.get('TYPEGEN_LOG_LEVEL', 'INFO').upper())
if not isinstance(LOG_LEVEL, int):
    LOG_LEVEL = logging.INFO
LOG_FILE = os.path.join(LOG_DIR, "typegen.log")


# Configure logging
def setup_logging():
    """Set up logging configuration."""
    logger = logging.getLogger()
    logger.setLevel(LOG_LEVEL)

    # Create console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)

    # Create formatter and add it to the handlers
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler.setFormatter(formatter)

    if LOG_TO_FILE:
        if not os.path.exists(LOG_DIR):
            os.makedirs(LOG_DIR)
        # Create file handler
        file_handler = logging.FileHandler(LOG_FILE)
        file_handler.setLevel(LOG_LEVEL)
        file_handler.setFormatter(formatter)
        # Add the handlers to the logger
        logger.addHandler(file_handler)

    logger.addHandler(console_handler)

    return logger


# Initialize logger
logger = setup_logging()


def resolve_default_dialect(value: Optional[str]) -> Dialect:
    """The dialect named by TYPEGEN_DIALECT; unknown names fall back to postgres."""
    if value is None:
        return 'postgres'
    dialect = value.strip().lower()
    if dialect not in DIALECTS:
        logger.warning(f"Unknown dialect in TYPEGEN_DIALECT: {value}. Falling back to postgres.")
        return 'postgres'
    return dialect  # type: ignore[return-value]


# The dialect assumed when the caller does not name one
DEFAULT_DIALECT: Dialect = resolve_default_dialect(os.environ.get('TYPEGEN_DIALECT'))
