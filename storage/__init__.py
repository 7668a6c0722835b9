"""
Local storage layer for VEO Content Analysis
Indexes the files of an unpacked VEO and loads the LTSF registry
"""

from .file_index import ContentFileIndex, FileEntry
from .ltsf import LTSFRegistry

__all__ = ['ContentFileIndex', 'FileEntry', 'LTSFRegistry']
