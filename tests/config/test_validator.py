import copy

import pytest

from vapeur.config.loader import DEFAULT_CONFIG
from vapeur.config.validator import ValidationError, validate_config


@pytest.fixture
def valid_config():
    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.mark.unit
def test_default_config_is_valid(valid_config):
    validate_config(valid_config)


@pytest.mark.unit
def test_validation_collects_every_error(valid_config):
    valid_config["api"]["max_retries"] = 0
    valid_config["api"]["country"] = "usa"
    valid_config["media"]["validation_mode"] = "strict"
    valid_config["logging"]["level"] = "LOUD"

    with pytest.raises(ValidationError) as exc_info:
        validate_config(valid_config)

    message = str(exc_info.value)
    assert "api.max_retries" in message
    assert "api.country" in message
    assert "media.validation_mode" in message
    assert "logging.level" in message


@pytest.mark.unit
def test_paths_must_be_relative(valid_config):
    valid_config["paths"]["roms"] = "/mnt/roms"

    with pytest.raises(ValidationError, match="paths.roms"):
        validate_config(valid_config)


@pytest.mark.unit
@pytest.mark.parametrize("value", [0, -1, "30", True])
def test_request_timeout_must_be_positive_number(valid_config, value):
    valid_config["api"]["request_timeout"] = value

    with pytest.raises(ValidationError, match="api.request_timeout"):
        validate_config(valid_config)
