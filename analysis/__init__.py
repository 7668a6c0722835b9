"""
VEO analysis: validating single VEOs and batches of them
"""

from .analyser import VEOAnalyser, VEOResult, VEOPackage, unpack_veo
from .batch import BatchAnalyser, expand_paths

__all__ = [
    'VEOAnalyser',
    'VEOResult',
    'VEOPackage',
    'unpack_veo',
    'BatchAnalyser',
    'expand_paths'
]
