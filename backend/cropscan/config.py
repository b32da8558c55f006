# backend/cropscan/config.py
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from cropscan.errors import ConfigError

dotenv_path = Path(__file__).parents[2] / '.env'

REQUIRED_KEYS = (
    "CROP_HEALTH_API_KEY",
    "GEMINI_API_KEY",
    "SERVICE_ACCOUNT_KEY_FILE",
    "GOOGLE_API_KEY",
)


class Settings:
    """Runtime configuration, built once at startup and passed around explicitly."""

    def __init__(self, env: Dict[str, str]):
        # --- Secrets ---
        self.CROP_HEALTH_API_KEY: str = env.get("CROP_HEALTH_API_KEY", "")
        self.GEMINI_API_KEY: str = env.get("GEMINI_API_KEY", "")
        self.GOOGLE_API_KEY: str = env.get("GOOGLE_API_KEY", "")
        self.SERVICE_ACCOUNT: Dict[str, Any] = _parse_service_account(env.get("SERVICE_ACCOUNT_KEY_FILE", ""))

        # --- Identification (crop.health) ---
        self.CROP_HEALTH_API_URL: str = env.get("CROP_HEALTH_API_URL", "https://crop.kindwise.com/api/v1/identification")
        self.DISEASE_TOP_K: int = _positive_int(env, "DISEASE_TOP_K", "4")

        # --- Gemini ---
        self.GEMINI_MODEL: str = env.get("GEMINI_MODEL", "gemini-2.0-flash")

        # --- Speech / TTS ---
        self.SPEECH_LANGUAGE_CODE: str = env.get("SPEECH_LANGUAGE_CODE", "hi-IN")
        self.SPEECH_ENCODING: str = env.get("SPEECH_ENCODING", "MP3")
        self.SPEECH_SAMPLE_RATE_HZ: int = _positive_int(env, "SPEECH_SAMPLE_RATE_HZ", "16000")
        self.TTS_LANGUAGE_CODE: str = env.get("TTS_LANGUAGE_CODE", "hi-IN")

        # Staged uploads
        self.UPLOAD_DIR: str = env.get("UPLOAD_DIR", str(Path(tempfile.gettempdir()) / "cropscan-uploads"))

        # --- Server ---
        self.HOST: str = env.get("HOST", "0.0.0.0")
        self.PORT: int = _positive_int(env, "PORT", "5000")
        self.LOG_LEVEL: str = env.get("LOG_LEVEL", "INFO").upper()

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> "Settings":
        """
        Load `.env` (if present) and build settings from the process environment.
        Raises ConfigError when a required key is missing or the credential blob is malformed.
        """
        if env is None:
            load_dotenv(dotenv_path)
            env = dict(os.environ)

        missing = [k for k in REQUIRED_KEYS if not env.get(k)]
        if missing:
            raise ConfigError(f"Missing required environment variable(s): {', '.join(missing)}")
        return cls(env)

    @property
    def service_account_email(self) -> Optional[str]:
        return self.SERVICE_ACCOUNT.get("client_email")


def _parse_service_account(raw: str) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"SERVICE_ACCOUNT_KEY_FILE is not valid JSON: {e.msg}") from e
    if not isinstance(data, dict) or not data.get("client_email") or not data.get("private_key"):
        raise ConfigError("SERVICE_ACCOUNT_KEY_FILE must be a service-account JSON with client_email and private_key")
    return data


def _positive_int(env: Dict[str, str], key: str, default: str) -> int:
    raw = env.get(key, default)
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e
    if value < 1:
        raise ConfigError(f"{key} must be at least 1, got {value}")
    return value
