import json

import pytest

from cropscan.config import Settings
from cropscan.errors import ConfigError

from conftest import SERVICE_ACCOUNT, base_env


def test_defaults():
    s = Settings.from_env(base_env())
    assert s.PORT == 5000
    assert s.DISEASE_TOP_K == 4
    assert s.GEMINI_MODEL == "gemini-2.0-flash"
    assert s.SPEECH_LANGUAGE_CODE == "hi-IN"
    assert s.service_account_email == SERVICE_ACCOUNT["client_email"]


def test_port_override():
    assert Settings.from_env(base_env(PORT="8080")).PORT == 8080


@pytest.mark.parametrize("key", ["CROP_HEALTH_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY", "SERVICE_ACCOUNT_KEY_FILE"])
def test_missing_required_key(key):
    env = base_env()
    del env[key]
    with pytest.raises(ConfigError, match=key):
        Settings.from_env(env)


def test_malformed_service_account():
    with pytest.raises(ConfigError, match="not valid JSON"):
        Settings.from_env(base_env(SERVICE_ACCOUNT_KEY_FILE="{not json"))


def test_service_account_without_key():
    blob = json.dumps({"client_email": "x@y.z"})
    with pytest.raises(ConfigError, match="private_key"):
        Settings.from_env(base_env(SERVICE_ACCOUNT_KEY_FILE=blob))


@pytest.mark.parametrize("key,value", [
    ("PORT", "five-thousand"),
    ("SPEECH_SAMPLE_RATE_HZ", "16k"),
    ("DISEASE_TOP_K", "four"),
    ("DISEASE_TOP_K", "0"),
    ("DISEASE_TOP_K", "-1"),
])
def test_bad_integer_setting_is_config_error(key, value):
    with pytest.raises(ConfigError, match=key):
        Settings.from_env(base_env(**{key: value}))
