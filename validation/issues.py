"""
Issue tracking for VEO validation

Every component of a VEO (manifest, information objects, content files,
scalar items, files on disk) collects its own errors and warnings. Reporting
folds over the owning tree to gather them, so nothing is pushed upwards.
"""

import logging
from typing import Dict, List, Any, Optional, Iterable
from dataclasses import dataclass
from datetime import datetime

from utils.logging_config import get_contextual_logger

logger = logging.getLogger(__name__)

ERROR = 'ERROR'
WARNING = 'WARNING'


class VEOError(Exception):
    """Raised when a VEO cannot be processed; other VEOs may still be"""
    pass


class VEOFatal(Exception):
    """Raised when the run itself cannot continue"""
    pass


class ManifestStructureError(VEOError):
    """Raised when the information object depths cannot form a tree"""
    pass


@dataclass
class Issue:
    """A single error or warning attached to a VEO component"""
    component: str
    code: int
    entity_id: str
    message: str
    severity: str = ERROR
    method: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now().isoformat()

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR

    @property
    def location(self) -> str:
        """Component, method and code that raised the issue"""
        if self.method:
            return f"{self.component}.{self.method}({self.code})"
        return f"{self.component}({self.code})"

    def get_message(self) -> str:
        """Message decorated with where it came from"""
        return f"{self.message} ({self.location} {self.entity_id})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'component': self.component,
            'code': self.code,
            'method': self.method,
            'entity_id': self.entity_id,
            'severity': self.severity,
            'message': self.message,
            'details': self.details,
            'timestamp': self.timestamp
        }


class IssueCollector:
    """
    Base class for anything that can carry errors and warnings

    Subclasses list the entities they own in ``owned_entities``; the
    aggregation methods fold over them. Each entity only ever stores its own
    issues.
    """

    component = 'IssueCollector'

    def __init__(self, entity_id: str):
        self.id = entity_id
        self.errors: List[Issue] = []
        self.warnings: List[Issue] = []
        self.logger = get_contextual_logger(f'validation.{self.__class__.__name__}',
                                            entity=entity_id)

    def owned_entities(self) -> Iterable['IssueCollector']:
        """Entities whose issues are reported as part of this one"""
        return ()

    def add_error(self, code: int, message: str, method: Optional[str] = None,
                  details: Optional[Dict] = None, component: Optional[str] = None) -> Issue:
        """Record an error against this entity"""
        issue = Issue(
            component=component or self.component,
            code=code,
            entity_id=self.id,
            message=message,
            severity=ERROR,
            method=method,
            details=details
        )
        self.errors.append(issue)
        self.logger.error(issue.get_message())
        return issue

    def add_warning(self, code: int, message: str, method: Optional[str] = None,
                    details: Optional[Dict] = None, component: Optional[str] = None) -> Issue:
        """Record a warning against this entity"""
        issue = Issue(
            component=component or self.component,
            code=code,
            entity_id=self.id,
            message=message,
            severity=WARNING,
            method=method,
            details=details
        )
        self.warnings.append(issue)
        self.logger.warning(issue.get_message())
        return issue

    def has_own_errors(self) -> bool:
        return bool(self.errors)

    def has_own_warnings(self) -> bool:
        return bool(self.warnings)

    def has_errors(self) -> bool:
        """True if this entity or anything it owns has an error"""
        return self.has_own_errors() or any(e.has_errors() for e in self.owned_entities())

    def has_warnings(self) -> bool:
        """True if this entity or anything it owns has a warning"""
        return self.has_own_warnings() or any(e.has_warnings() for e in self.owned_entities())

    def collect_problems(self, want_errors: bool, out: List[Issue]) -> List[Issue]:
        """
        Append this entity's issues, then those of everything it owns

        Args:
            want_errors: True for errors, False for warnings
            out: List to extend

        Returns:
            The same list, for convenience
        """
        out.extend(self.errors if want_errors else self.warnings)
        for entity in self.owned_entities():
            entity.collect_problems(want_errors, out)
        return out

    def own_issues(self) -> List[Issue]:
        """Errors followed by warnings recorded directly on this entity"""
        return self.errors + self.warnings

    def box_class(self) -> str:
        """CSS class used by the HTML reports for this entity"""
        if self.has_errors():
            return 'error'
        if self.has_warnings():
            return 'warning'
        return 'correct'


class ValidationItem(IssueCollector):
    """
    A named scalar value read from a VEO file, e.g. the version or the
    hash algorithm. Blank text is stored as None.
    """

    component = 'ValidationItem'

    def __init__(self, entity_id: str, label: str):
        super().__init__(entity_id)
        self.label = label
        self.value: Optional[str] = None

    def set_value(self, text: Optional[str]):
        if text is None or text.strip() == '':
            text = None
        self.value = text

    @property
    def value_or_empty(self) -> str:
        return self.value if self.value is not None else ''

    def report_context(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'value': self.value,
            'box_class': self.box_class(),
            'issues': self.own_issues()
        }

    def __str__(self) -> str:
        return f"{self.label}: {self.value}"
