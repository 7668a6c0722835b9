"""
XML reading for VEO files
"""

from .document import XMLDocument, qualified_name

__all__ = ['XMLDocument', 'qualified_name']
