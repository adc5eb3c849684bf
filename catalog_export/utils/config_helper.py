"""
Configuration helper for the catalog export tool.

Values come from process environment variables, optionally seeded from
.env files. Loading happens once, in the caller; the serializer never reads
configuration.
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

from catalog_export.utils.logger import setup_logger

ENVIRONMENTS = ('local', 'staging', 'production')
CATALOG_SOURCES = ('database', 'csv')


class ConfigHelper:
    """
    Helper class for managing configuration across different environments.
    Supports: local, staging, production
    """

    def __init__(self, env: Optional[str] = None):
        """
        Initialize configuration helper.

        Args:
            env: Environment name ('local', 'staging', 'production').
                 If None, read from the ENV variable, defaulting to 'local'
        """
        self.logger = setup_logger(name="config_helper")
        self.project_root = Path(__file__).parent.parent.parent

        self.env = (env or os.getenv('ENV', 'local')).lower()
        if self.env not in ENVIRONMENTS:
            self.logger.warning(f"Unknown environment '{self.env}', defaulting to 'local'")
            self.env = 'local'

        self._load_env_files()

        self.logger.debug(f"Configuration initialized for environment: {self.env}")

    def _load_env_files(self):
        """Load .env files so that .env.{env} beats .env.local beats .env."""
        if os.getenv('SKIP_ENV_LOAD'):
            self.logger.debug("Skipping .env file loading (SKIP_ENV_LOAD set)")
            return

        # First file to set a variable wins; process environment wins over all
        env_files = [
            self.project_root / f'.env.{self.env}',
            self.project_root / '.env.local',
            self.project_root / '.env',
        ]

        for env_file in env_files:
            if env_file.exists():
                self.logger.debug(f"Loading environment file: {env_file}")
                load_dotenv(env_file, override=False)
            else:
                self.logger.debug(f"Environment file not found: {env_file}")

    def get(self, key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
        """
        Get environment variable value.

        Args:
            key: Environment variable name
            default: Default value if not found
            required: If True, raise error if variable is not set

        Returns:
            Environment variable value or default

        Raises:
            ValueError: If required=True and variable is not set
        """
        value = os.getenv(key, default)

        if required and value is None:
            raise ValueError(f"Required environment variable '{key}' is not set")

        return value

    def _resolve_path(self, path_str: str) -> Path:
        path = Path(path_str)
        if path.is_absolute():
            return path
        return self.project_root / path

    def get_database_url(self) -> str:
        """
        Get the catalog database URL.

        DATABASE_URL wins; otherwise a PostgreSQL URL is composed from the
        POSTGRES_* variables.
        """
        database_url = self.get('DATABASE_URL')
        if database_url:
            return database_url

        host = self.get('POSTGRES_HOST', 'localhost')
        port = self.get('POSTGRES_PORT', '5432')
        user = self.get('POSTGRES_USER', 'northwind')
        password = self.get('POSTGRES_PASSWORD', 'northwind')
        database = self.get('POSTGRES_DB', 'northwind')

        return f"postgresql://{user}:{password}@{host}:{port}/{database}"

    def get_catalog_source(self) -> str:
        """Get which data source feeds the export ('database' or 'csv')."""
        source = self.get('CATALOG_SOURCE', 'database').lower()
        if source not in CATALOG_SOURCES:
            raise ValueError(
                f"CATALOG_SOURCE must be one of {', '.join(CATALOG_SOURCES)}, got '{source}'"
            )
        return source

    def get_categories_csv_path(self) -> Path:
        """Get path to the categories CSV file."""
        return self._resolve_path(self.get('CATEGORIES_CSV_PATH', 'data/categories.csv'))

    def get_products_csv_path(self) -> Path:
        """Get path to the products CSV file."""
        return self._resolve_path(self.get('PRODUCTS_CSV_PATH', 'data/products.csv'))

    def get_export_dir(self) -> Path:
        """Get directory that receives exported documents."""
        return self._resolve_path(self.get('EXPORT_DIR', 'data/exports'))

    def get_export_indent(self) -> Optional[int]:
        """Get indentation width for exported documents (None = compact)."""
        indent = int(self.get('EXPORT_INDENT', '2'))
        if indent < 0:
            raise ValueError(f"EXPORT_INDENT must not be negative, got {indent}")
        return indent or None

    def get_errors_csv_path(self) -> Path:
        """Get path to the export errors CSV file."""
        return self._resolve_path(self.get('ERRORS_CSV_PATH', 'data/export_errors.csv'))

    def get_log_level(self) -> str:
        """Get logging level."""
        return self.get('LOG_LEVEL', 'INFO').upper()

    def get_environment(self) -> str:
        """Get current environment name."""
        return self.env


# Global config instance
_config: Optional[ConfigHelper] = None
_config_env: Optional[str] = None


def get_config(env: Optional[str] = None, force_reload: bool = False) -> ConfigHelper:
    """
    Get global configuration instance (singleton).

    Args:
        env: Environment name (only used on first call or if force_reload=True)
        force_reload: Force reload of configuration even if already initialized

    Returns:
        ConfigHelper instance
    """
    global _config, _config_env

    if force_reload or _config is None or (env and _config_env != env):
        _config = ConfigHelper(env=env)
        _config_env = _config.get_environment()

    return _config
