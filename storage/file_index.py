"""
Index of the content files physically present in an unpacked VEO

The index is built once, before the manifest is validated. Validation of the
manifest links each content file record to its entry here; anything left
unlinked afterwards is a file the manifest never mentions.
"""

import logging
from typing import Dict, List, Any, Optional, Iterator, Iterable
from datetime import datetime
from pathlib import Path

from validation.issues import IssueCollector, VEOError

logger = logging.getLogger(__name__)

# Files that belong to the VEO structure rather than its content
CONTROL_FILES = {'VEOContent.xml', 'VEOHistory.xml', 'VEOReadme.txt', 'index.html', 'Report.css'}
CONTROL_PREFIXES = ('VEOContentSignature', 'VEOHistorySignature', 'Report-')


def is_control_file(relative_path: Path) -> bool:
    """True for the VEO's own XML/signature files and generated reports"""
    if len(relative_path.parts) != 1:
        return False
    name = relative_path.name
    return name in CONTROL_FILES or name.startswith(CONTROL_PREFIXES)


class FileEntry(IssueCollector):
    """A regular file found in the VEO directory"""

    component = 'FileEntry'

    def __init__(self, absolute_path: Path, veo_dir: Path):
        self.relative_path = absolute_path.relative_to(veo_dir)
        super().__init__(self.relative_path.as_posix())
        self.absolute_path = absolute_path
        self.linked_content_file = None
        self.size: Optional[int] = None
        self.modified: Optional[str] = None
        self.is_symbolic_link = absolute_path.is_symlink()

        try:
            stat = absolute_path.stat()
            self.size = stat.st_size
            self.modified = datetime.fromtimestamp(stat.st_mtime).isoformat()
        except OSError as e:
            self.logger.warning(f"Failed reading attributes of '{absolute_path}': {e}")

    @property
    def anchor(self) -> str:
        return f"rf{self.id}"

    def link(self, content_file):
        """Mark this file as referenced by a manifest content file"""
        self.linked_content_file = content_file

    @property
    def is_referenced(self) -> bool:
        return self.linked_content_file is not None

    def validate(self):
        if not self.is_referenced:
            self.add_warning(1, "This file is not referenced in the VEOContent.xml file",
                             method='validate')

    def report_context(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'anchor': self.anchor,
            'path': self.relative_path.as_posix(),
            'size': self.size,
            'modified': self.modified,
            'is_symbolic_link': self.is_symbolic_link,
            'content_file': self.linked_content_file,
            'box_class': self.box_class(),
            'issues': self.own_issues()
        }


class ContentFileIndex(IssueCollector):
    """
    Mapping of VEO-relative path to FileEntry

    Each worker validating a VEO owns its own index; nothing here is shared
    between VEOs.
    """

    component = 'ContentFileIndex'

    def __init__(self, veo_dir: Path, entries: Optional[Iterable[FileEntry]] = None):
        super().__init__(Path(veo_dir).name)
        self.veo_dir = Path(veo_dir)
        self._entries: Dict[Path, FileEntry] = {}
        for entry in entries or []:
            self._entries[entry.relative_path] = entry

    @classmethod
    def scan(cls, veo_dir) -> 'ContentFileIndex':
        """
        Walk an unpacked VEO and index every content file in it

        Args:
            veo_dir: Directory holding the unpacked VEO

        Returns:
            The populated index

        Raises:
            VEOError: If the directory does not exist
        """
        veo_dir = Path(veo_dir)
        if not veo_dir.is_dir():
            raise VEOError(f"VEO directory '{veo_dir}' does not exist or is not a directory")

        index = cls(veo_dir)
        index._scan_directory(veo_dir)
        logger.info(f"Indexed {len(index)} content files in {veo_dir}")
        return index

    def _scan_directory(self, directory: Path):
        try:
            children = sorted(directory.iterdir())
        except OSError as e:
            logger.warning(f"Failed stepping through directory '{directory}': {e}")
            return

        for child in children:
            if child.is_dir() and not child.is_symlink():
                self._scan_directory(child)
                continue
            if not child.is_file():
                continue
            relative_path = child.relative_to(self.veo_dir)
            if is_control_file(relative_path):
                continue
            self._entries[relative_path] = FileEntry(child, self.veo_dir)

    def lookup(self, relative_path) -> Optional[FileEntry]:
        """Find the entry for a VEO-relative path, if it was indexed"""
        return self._entries.get(Path(relative_path))

    def entries(self) -> List[FileEntry]:
        return list(self._entries.values())

    def unreferenced(self) -> List[FileEntry]:
        return [e for e in self._entries.values() if not e.is_referenced]

    def owned_entities(self) -> Iterable[IssueCollector]:
        return self._entries.values()

    def validate(self):
        """Warn about every file the manifest did not reference"""
        for entry in self._entries.values():
            entry.validate()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(self._entries.values())

    def __contains__(self, relative_path) -> bool:
        return Path(relative_path) in self._entries
