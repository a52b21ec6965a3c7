import os
import sys
import unittest
import keyring
import pytest
import yaml
sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import YamlConfig, load_settings

class DummyKeyring(keyring.backend.KeyringBackend):
    priority = 1
    def __init__(self):
        self.store = {}
    def get_password(self, service, username):
        return self.store.get((service, username))
    def set_password(self, service, username, password):
        self.store[(service, username)] = password
    def delete_password(self, service, username):
        self.store.pop((service, username), None)

class SettingsEncryptionTest(unittest.TestCase):
    def setUp(self) -> None:
        keyring.set_keyring(DummyKeyring())
        os.environ['ENCRYPT_SETTINGS'] = '1'
        self.path = 'enc_settings.yaml'
        if os.path.exists(self.path):
            os.remove(self.path)

    def tearDown(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
        os.environ.pop('ENCRYPT_SETTINGS', None)

    def test_encrypt_and_load(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({'db_url': 'postgresql://user:secret@db/workouts', 'port': 9000})
        self.assertTrue(os.path.exists(self.path))
        with open(self.path, encoding='utf-8') as f:
            raw = yaml.safe_load(f)
        self.assertIs(raw['db_url'], True)
        data = cfg.load()
        self.assertEqual(data['db_url'], 'postgresql://user:secret@db/workouts')
        self.assertEqual(data['port'], 9000)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("DB_PATH", "DB_URL", "PORT", "LOG_LEVEL", "ENCRYPT_SETTINGS"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults_when_file_missing(tmp_path, clean_env):
    settings = load_settings(str(tmp_path / "missing.yaml"))
    assert settings.db_path == "workout.db"
    assert settings.db_url is None
    assert settings.port == 8080
    assert settings.log_level == "INFO"


def test_file_values_and_env_overrides(tmp_path, clean_env):
    path = tmp_path / "settings.yaml"
    path.write_text("db_path: gym.db\nport: 9000\nlog_level: DEBUG\n", encoding="utf-8")
    clean_env.setenv("PORT", "9100")
    settings = load_settings(str(path))
    assert settings.db_path == "gym.db"
    assert settings.port == 9100
    assert settings.log_level == "DEBUG"


def test_invalid_settings_raise_value_error(tmp_path, clean_env):
    path = tmp_path / "settings.yaml"
    path.write_text("port: not-a-number\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(str(path))
