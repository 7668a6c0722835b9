"""
Run configuration for VEO Content Analysis

Settings come from environment variables (optionally loaded from a
``config.env`` file with python-dotenv); command line options override them.
"""

import os
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'config.env'
DEFAULT_OUTPUT_DIR = './output'
DEFAULT_HASH_CHUNK_SIZE = 64 * 1024
LTSF_FILE_NAME = 'validLTSF.txt'
SCHEMA_FILE_NAME = 'vers3-content.xsd'


class ConfigError(Exception):
    """Raised when the configuration does not allow a run to start"""
    pass


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, was '{value}'")


@dataclass
class AnalysisConfig:
    """Settings controlling a VEO analysis run"""
    support_dir: Optional[Path] = None
    output_dir: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_DIR))
    ltsf_file: Optional[Path] = None
    skip_recommended: bool = False
    restricted_mode: bool = False
    html_reports: bool = False
    keep_unpacked: bool = False
    verbose: bool = False
    workers: int = 1
    hash_chunk_size: int = DEFAULT_HASH_CHUNK_SIZE

    def __post_init__(self):
        if self.support_dir is not None:
            self.support_dir = Path(self.support_dir)
        self.output_dir = Path(self.output_dir)
        if self.ltsf_file is not None:
            self.ltsf_file = Path(self.ltsf_file)

    @classmethod
    def from_environment(cls, config_file: Optional[str] = None) -> 'AnalysisConfig':
        """
        Build a configuration from environment variables

        Args:
            config_file: dotenv file to load first (default: config.env)

        Returns:
            Configuration with environment values applied
        """
        load_dotenv(config_file or DEFAULT_CONFIG_FILE)

        support_dir = os.getenv('VEO_SUPPORT_DIR') or None
        ltsf_file = os.getenv('VEO_LTSF_FILE') or None

        return cls(
            support_dir=support_dir,
            output_dir=os.getenv('VEO_OUTPUT_DIR') or DEFAULT_OUTPUT_DIR,
            ltsf_file=ltsf_file,
            skip_recommended=_env_flag('VEO_NO_RECOMMENDED'),
            restricted_mode=_env_flag('VEO_RESTRICTED_MODE'),
            workers=_env_int('VEO_WORKERS', 1),
            hash_chunk_size=_env_int('VEO_HASH_CHUNK_SIZE', DEFAULT_HASH_CHUNK_SIZE)
        )

    def with_overrides(self, **overrides) -> 'AnalysisConfig':
        """Copy of this configuration with the given non-None values replaced"""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    @property
    def schema_file(self) -> Optional[Path]:
        if self.support_dir is None:
            return None
        return self.support_dir / SCHEMA_FILE_NAME

    @property
    def ltsf_path(self) -> Optional[Path]:
        """Registry file: explicit setting, else validLTSF.txt in the support directory"""
        if self.ltsf_file is not None:
            return self.ltsf_file
        if self.support_dir is not None:
            return self.support_dir / LTSF_FILE_NAME
        return None

    def validate(self):
        """
        Check that the run can start

        Raises:
            ConfigError: If a setting is unusable
        """
        if self.support_dir is not None and not self.support_dir.is_dir():
            raise ConfigError(f"Support directory '{self.support_dir}' does not exist")
        if self.ltsf_path is None:
            raise ConfigError("No LTSF registry: set a support directory or an LTSF file")
        if not self.ltsf_path.is_file():
            raise ConfigError(f"LTSF registry '{self.ltsf_path}' does not exist")
        if self.workers < 1:
            raise ConfigError(f"Workers must be at least 1, was {self.workers}")
        if self.hash_chunk_size < 1:
            raise ConfigError(f"Hash chunk size must be positive, was {self.hash_chunk_size}")
        logger.debug(f"Configuration accepted: {self}")
