"""
Configuration Manager for the Image File Operation Engine

This module provides configuration management including:
- JSON-based configuration merged over built-in defaults
- Version migration of older configuration files
- Timestamped backups on every save (last 10 kept)

Settings:
- preserve_date_time: stamp moved/copied files with the source creation time
- confirm_delete_all / confirm_delete_directory: ask before bulk deletes
- check_disk_space: verify free space before copying all images
- companion_extensions: sidecar extensions that travel with their image
- log_level: level used by entry points when configuring logging

Version: 3.0
"""

import os
import json
import shutil
import glob
import logging
from datetime import datetime


class ConfigManager:
    """
    Configuration manager for the file operation engine.

    Configuration is stored in JSON format with automatic backup. Missing
    keys are filled in from the defaults; a missing or unreadable file means
    the defaults are used as-is.
    """

    CURRENT_VERSION = "3.0"

    def __init__(self, config_file='image_ops_config.json'):
        self.config_file = config_file
        self.logger = logging.getLogger(__name__)

        self.default_config = {
            'config_version': self.CURRENT_VERSION,
            'preserve_date_time': True,
            'confirm_delete_all': True,
            'confirm_delete_directory': True,
            'check_disk_space': True,
            'companion_extensions': ['.txt', '.json', '.yaml', '.yml', '.xmp'],
            'log_level': 'INFO',
        }

        self.config = self.load_config()

    def load_config(self):
        """Load configuration with version migration."""
        if os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r') as f:
                    loaded_config = json.load(f)

                config_version = loaded_config.get('config_version', '1.0')
                if config_version != self.CURRENT_VERSION:
                    loaded_config = self.migrate_config(loaded_config, config_version)

                # Merge with defaults to ensure all keys exist
                config = self._defaults()
                config.update(loaded_config)
                return config

            except (json.JSONDecodeError, OSError) as e:
                self.logger.error(f"Error loading JSON config: {e}")

        return self._defaults()

    def _defaults(self):
        config = self.default_config.copy()
        config['companion_extensions'] = list(self.default_config['companion_extensions'])
        return config

    def migrate_config(self, old_config, from_version):
        """Migrate configuration from older versions."""
        # Older files stored a single "copy_preserves_time" flag
        if 'copy_preserves_time' in old_config and 'preserve_date_time' not in old_config:
            old_config['preserve_date_time'] = bool(old_config.pop('copy_preserves_time'))

        # Bare extensions without the leading dot
        exts = old_config.get('companion_extensions')
        if isinstance(exts, list):
            old_config['companion_extensions'] = [
                e if e.startswith('.') else '.' + e for e in exts
            ]

        old_config['config_version'] = self.CURRENT_VERSION
        self.logger.info(f"Migrated config from version {from_version} to {self.CURRENT_VERSION}")
        return old_config

    def save_config(self):
        """Save configuration with automatic backup."""
        try:
            if os.path.exists(self.config_file):
                self.backup_config()

            self.config['config_version'] = self.CURRENT_VERSION
            self.config['last_saved'] = datetime.now().isoformat()

            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)

        except OSError as e:
            self.logger.error(f"Error saving config: {e}")
            raise

    def backup_config(self):
        """Create a backup of the current configuration."""
        try:
            backup_dir = os.path.join(os.path.dirname(os.path.abspath(self.config_file)), 'backups')
            os.makedirs(backup_dir, exist_ok=True)

            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
            backup_file = os.path.join(backup_dir, f'config_backup_{timestamp}.json')

            shutil.copy2(self.config_file, backup_file)

            # Clean old backups (keep last 10)
            backup_files = sorted(glob.glob(os.path.join(backup_dir, 'config_backup_*.json')))
            if len(backup_files) > 10:
                for old_backup in backup_files[:-10]:
                    os.remove(old_backup)

        except OSError as e:
            self.logger.error(f"Error creating config backup: {e}")

    def get(self, key, default=None):
        return self.config.get(key, default)

    def update_settings(self, **kwargs):
        """Update settings and save."""
        unknown = [k for k in kwargs if k not in self.default_config]
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")
        self.config.update(kwargs)
        self.save_config()

    def is_preserve_date_time_enabled(self):
        return bool(self.config.get('preserve_date_time', True))

    def is_confirm_delete_all_enabled(self):
        return bool(self.config.get('confirm_delete_all', True))

    def is_confirm_delete_directory_enabled(self):
        return bool(self.config.get('confirm_delete_directory', True))

    def is_disk_space_check_enabled(self):
        return bool(self.config.get('check_disk_space', True))

    def get_companion_extensions(self):
        return list(self.config.get('companion_extensions', []))

    def get_log_level(self):
        """Logging level from the config, falling back to INFO for unknown names."""
        level = logging.getLevelName(str(self.config.get('log_level', 'INFO')).upper())
        return level if isinstance(level, int) else logging.INFO
