import numpy as np
import pytest
from loguru import logger

from numhist.units import Unit


def pytest_configure() -> None:
    logger.disable("numhist")


@pytest.fixture()
def rng() -> np.random.Generator:
    """
    Seeded generator so reservoir sampling in tests is deterministic.
    """
    return np.random.default_rng(42)


@pytest.fixture()
def ms_unit() -> Unit:
    return Unit.from_token("ms_smallerIsBetter")
