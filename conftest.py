import pytest

import unit_engine
from rink_config import Config


@pytest.fixture
def config():
    return Config.model_validate({'colors': {'enabled': False}})


@pytest.fixture
def ctx():
    return unit_engine.load()
