"""
Utilities package
"""

from catalog_export.utils.logger import setup_logger
from catalog_export.utils.config_helper import ConfigHelper, get_config

__all__ = ['setup_logger', 'ConfigHelper', 'get_config']
