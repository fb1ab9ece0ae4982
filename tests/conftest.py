import logging
import pathlib

import pytest
import structlog

SCRIPTS_DIR = pathlib.Path(__file__).parent / "scripts"


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep parser debug logging out of captured output."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
    )


@pytest.fixture(scope="session")
def scripts_dir() -> pathlib.Path:
    return SCRIPTS_DIR
