"""Tests for ConfigManager: defaults, migration and backups."""

import json
import logging

import pytest

from config_manager import ConfigManager


def test_defaults_when_file_is_missing(tmp_path):
    config = ConfigManager(str(tmp_path / "config.json"))

    assert config.get('config_version') == ConfigManager.CURRENT_VERSION
    assert config.is_preserve_date_time_enabled()
    assert config.is_confirm_delete_all_enabled()
    assert config.is_confirm_delete_directory_enabled()
    assert config.is_disk_space_check_enabled()
    assert '.txt' in config.get_companion_extensions()
    assert not (tmp_path / "config.json").exists()


def test_loaded_values_are_merged_over_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({'config_version': '3.0', 'preserve_date_time': False}))

    config = ConfigManager(str(path))

    assert not config.is_preserve_date_time_enabled()
    assert config.is_confirm_delete_all_enabled()


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    config = ConfigManager(str(path))
    assert config.config == config.default_config


def test_old_config_is_migrated(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        'config_version': '2.0',
        'copy_preserves_time': False,
        'companion_extensions': ['txt', '.json'],
    }))

    config = ConfigManager(str(path))

    assert config.get('config_version') == ConfigManager.CURRENT_VERSION
    assert not config.is_preserve_date_time_enabled()
    assert 'copy_preserves_time' not in config.config
    assert config.get_companion_extensions() == ['.txt', '.json']


def test_update_settings_saves_with_backup(tmp_path):
    path = tmp_path / "config.json"
    config = ConfigManager(str(path))

    config.update_settings(check_disk_space=False)
    config.update_settings(log_level='DEBUG')

    saved = json.loads(path.read_text())
    assert saved['check_disk_space'] is False
    assert saved['log_level'] == 'DEBUG'
    assert 'last_saved' in saved
    assert len(list((tmp_path / "backups").glob("config_backup_*.json"))) == 1
    assert not ConfigManager(str(path)).is_disk_space_check_enabled()


def test_update_settings_rejects_unknown_keys(tmp_path):
    config = ConfigManager(str(tmp_path / "config.json"))
    with pytest.raises(ValueError):
        config.update_settings(no_such_setting=True)
    assert not (tmp_path / "config.json").exists()


def test_log_level(tmp_path):
    config = ConfigManager(str(tmp_path / "config.json"))
    assert config.get_log_level() == logging.INFO

    config.config['log_level'] = 'debug'
    assert config.get_log_level() == logging.DEBUG

    config.config['log_level'] = 'chatty'
    assert config.get_log_level() == logging.INFO
