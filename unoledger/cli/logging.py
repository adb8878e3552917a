from datetime import datetime, timezone
from pathlib import Path

import loguru
from xdg_base_dirs import xdg_data_home

from unoledger import PACKAGE_NAME


def get_data_home() -> Path:
    return xdg_data_home() / PACKAGE_NAME


def configure_logger(debug: bool) -> None:
    if debug:
        now = datetime.now(tz=timezone.utc)
        sink = str(Path() / f"{PACKAGE_NAME}_{now:%Y-%m-%d_%H-%M-%S}.log")
        log_size = "10 MB"
        level = "DEBUG"
    else:
        sink = str(get_data_home() / f"{PACKAGE_NAME}.log")
        log_size = "5 MB"
        level = "INFO"

    loguru.logger.enable(PACKAGE_NAME)
    loguru.logger.remove()
    loguru.logger.add(sink, rotation=log_size, level=level)
