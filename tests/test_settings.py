"""
Tests for settings loading and validation
"""

import yaml

from ghost.settings import load_settings, reload_conf, verify_settings


class TestLoadSettings:
    """Tests for the YAML configuration file"""

    def test_missing_file_writes_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv('BUNGIE_API_KEY', raising=False)
        config_file = tmp_path / 'config' / 'settings.yaml'

        settings = load_settings(str(config_file), force=True)

        assert config_file.exists()
        assert settings['content']['locale'] == 'en'
        assert settings['cache']['ttl'] is None
        assert yaml.safe_load(config_file.read_text()) == settings

    def test_file_merged_with_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv('BUNGIE_API_KEY', raising=False)
        config_file = tmp_path / 'settings.yaml'
        config_file.write_text(yaml.dump({'bungie': {'api_key': 'from-file'}, 'content': {'locale': 'fr'}}))

        settings = load_settings(str(config_file), force=True)

        assert settings['bungie']['api_key'] == 'from-file'
        assert settings['bungie']['base_url'] == 'https://www.bungie.net/Platform'
        assert settings['content']['locale'] == 'fr'
        assert settings['cache']['hit_delay'] == 0.01

    def test_environment_overrides_api_key(self, tmp_path, monkeypatch):
        monkeypatch.setenv('BUNGIE_API_KEY', 'from-env')
        config_file = tmp_path / 'settings.yaml'
        config_file.write_text(yaml.dump({'bungie': {'api_key': 'from-file'}}))

        settings = reload_conf(str(config_file))

        assert settings['bungie']['api_key'] == 'from-env'
        assert 'from-env' not in config_file.read_text()

    def test_settings_are_memoized(self, tmp_path, monkeypatch):
        monkeypatch.delenv('BUNGIE_API_KEY', raising=False)
        config_file = tmp_path / 'settings.yaml'
        first = load_settings(str(config_file), force=True)
        config_file.write_text(yaml.dump({'content': {'locale': 'de'}}))

        assert load_settings(str(config_file)) is first
        assert load_settings(str(config_file), force=True)['content']['locale'] == 'de'


class TestVerifySettings:
    """Tests for section validation"""

    def test_missing_api_key(self):
        success, errors = verify_settings('bungie', {'api_key': ''})
        assert not success
        assert errors == [{'path': 'bungie/api_key', 'error': 'The API key is missing.'}]

    def test_valid_api_key(self):
        assert verify_settings('bungie', {'api_key': 'abc'}) == (True, [])

    def test_content_requires_locale_and_directory(self):
        success, errors = verify_settings('content', {'locale': '', 'directory': None})
        assert not success
        assert {e['path'] for e in errors} == {'content/locale', 'content/directory'}

    def test_cache_ttl(self):
        assert verify_settings('cache', {'ttl': None})[0]
        assert verify_settings('cache', {'ttl': 3600})[0]
        assert not verify_settings('cache', {'ttl': 0})[0]
        assert not verify_settings('cache', {'ttl': 'daily'})[0]
