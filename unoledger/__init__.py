import os
from functools import cache
from importlib import metadata

from loguru import logger

PACKAGE_NAME = "unoledger"


@cache
def get_version() -> str:
    return os.getenv("UNOLEDGER_VERSION", metadata.version(PACKAGE_NAME))


logger.disable(PACKAGE_NAME)

try:
    __version__ = get_version()
except metadata.PackageNotFoundError:
    # Running from a source checkout.
    __version__ = "0.0.0"
