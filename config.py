import os
import yaml
import keyring

from settings_schema import SettingsSchema, validate_settings

APP_VERSION = "1.0.0"


class YamlConfig:
    """Load and save settings to a YAML file with optional encryption."""

    SENSITIVE_KEYS = {
        "db_url",
    }

    def __init__(self, path: str = "settings.yaml") -> None:
        self.path = path
        self.encrypt = os.environ.get("ENCRYPT_SETTINGS") == "1"
        self.service = "workout-store"

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if self.encrypt:
            for key in list(data.keys()):
                if key in self.SENSITIVE_KEYS:
                    secret = keyring.get_password(self.service, key)
                    if secret is not None:
                        data[key] = secret
                    else:
                        data.pop(key, None)
        return data

    def save(self, data: dict) -> None:
        out = dict(data)
        if self.encrypt:
            for key in self.SENSITIVE_KEYS:
                if key in out:
                    keyring.set_password(self.service, key, str(out[key]))
                    out[key] = True
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(out, f)


ENV_OVERRIDES = {
    "DB_PATH": "db_path",
    "DB_URL": "db_url",
    "PORT": "port",
    "LOG_LEVEL": "log_level",
}


def load_settings(path: str = "settings.yaml") -> SettingsSchema:
    """Return validated settings from ``path`` with environment overrides applied."""
    data = YamlConfig(path).load()
    for env_key, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_key)
        if value:
            data[key] = value
    validate_settings(data)
    return SettingsSchema(**data)
