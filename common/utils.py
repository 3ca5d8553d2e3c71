# -*- coding: utf-8 -*-
"""
================================================================================
Common Utility Functions
================================================================================
Purpose:
----------------
This script provides the configuration helpers shared by the shipping client,
the batch jobs and the command line. Credentials are read from a `secrets.txt`
file in the project root so they never need to be hardcoded.

Key Functions:
- `get_secret(key_name)`: Reads `secrets.txt` line by line and extracts the
  value for a given key.
- `get_mtapi_api_key()`: Returns the MTAPI key from `secrets.txt`, falling back
  to the `MTAPI_API_KEY` environment variable.
- `get_mtapi_url()`: Returns the MTAPI base URL (`MTAPI_URL`, default
  https://mtapi.net).
- `setup_logging(log_dir, name)`: Configures a dated log file plus stdout for
  the entry-point scripts.
----------------
"""

# =====================================================================================
# --- Imports and Configuration ---
# =====================================================================================
import logging
import os
import sys
from datetime import datetime

logger = logging.getLogger(__name__)

# `secrets.txt` is expected in the project root, one level above this directory.
SECRETS_FILE = os.path.join(os.path.dirname(__file__), '..', 'secrets.txt')
DEFAULT_MTAPI_URL = 'https://mtapi.net'
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


# =====================================================================================
# --- Core Functions ---
# =====================================================================================

def get_secret(key_name, secrets_file=None):
    """
    Reads a specific key from the `secrets.txt` file.

    The file is a simple key-value store, with each line formatted as
    `KEY_NAME=SECRET_VALUE`.

    Args:
        key_name (str): The name of the key to retrieve (e.g., "MTAPI_API_KEY").
        secrets_file (str): Optional path overriding the default `secrets.txt`.

    Returns:
        str or None: The secret value if the key is found, otherwise None.
    """
    secrets_file = secrets_file or SECRETS_FILE
    try:
        with open(secrets_file, 'r') as f:
            for line in f:
                if line.startswith(key_name + '='):
                    return line.strip().split('=', 1)[1]
        logger.warning(f"Key '{key_name}' not found in {secrets_file}")
        return None
    except FileNotFoundError:
        logger.warning(f"{secrets_file} not found.")
        return None


def get_mtapi_api_key(secrets_file=None):
    """Returns the MTAPI API key, or None if it is configured nowhere."""
    return get_secret('MTAPI_API_KEY', secrets_file) or os.getenv('MTAPI_API_KEY')


def get_mtapi_url():
    return os.getenv('MTAPI_URL', DEFAULT_MTAPI_URL)


def setup_logging(log_dir, name):
    """Sets up a dated log file in `log_dir` plus stdout, and returns the root logger."""
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, datetime.now().strftime(f"{name}_%Y-%m-%d.log"))

    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(sys.stdout)
        ]
    )
    return logging.getLogger()
