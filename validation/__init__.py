"""
Validation system for VEO Content Analysis

- Issue tracking shared by every VEO component
- VEOContent.xml manifest, information objects and content files
  (validation.manifest, validation.information_object, validation.content_file)
- Run reports and per-VEO HTML reports
"""

from .issues import (
    Issue,
    IssueCollector,
    ValidationItem,
    VEOError,
    VEOFatal,
    ManifestStructureError,
    ERROR,
    WARNING
)

from .reports import AnalysisReport, AnalysisMetrics

__all__ = [
    'Issue',
    'IssueCollector',
    'ValidationItem',
    'VEOError',
    'VEOFatal',
    'ManifestStructureError',
    'ERROR',
    'WARNING',
    'AnalysisReport',
    'AnalysisMetrics'
]
