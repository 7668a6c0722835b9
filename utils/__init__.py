"""
Utility modules for VEO Content Analysis
"""

from .logging_config import (
    setup_logging,
    get_contextual_logger,
    log_hash_check,
    log_veo_result,
    init_from_environment
)
from .config import AnalysisConfig, ConfigError

__all__ = [
    'setup_logging',
    'get_contextual_logger',
    'log_hash_check',
    'log_veo_result',
    'init_from_environment',
    'AnalysisConfig',
    'ConfigError'
]
