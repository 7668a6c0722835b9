"""
Registry of long term sustainable formats (LTSF)

The registry is read from ``validLTSF.txt`` in the support directory. Each
useful line starts with a file extension; anything after the first
whitespace is a description and is ignored.
"""

import logging
from typing import Iterable, List, Optional, Set
from pathlib import Path

from validation.issues import VEOError

logger = logging.getLogger(__name__)

COMMENT_PREFIXES = ('!', '#')


def _normalise(extension: str) -> str:
    extension = extension.strip().lower()
    if extension and not extension.startswith('.'):
        extension = '.' + extension
    return extension


class LTSFRegistry:
    """Lookup of file extensions that are valid long term formats"""

    def __init__(self, extensions: Optional[Iterable[str]] = None, source: Optional[str] = None):
        self.source = source
        self._extensions: Set[str] = set()
        for extension in extensions or []:
            extension = _normalise(extension)
            if extension:
                self._extensions.add(extension)

    @classmethod
    def from_file(cls, path) -> 'LTSFRegistry':
        """
        Load the registry from a validLTSF.txt style file

        Args:
            path: Path to the registry file

        Returns:
            Populated registry

        Raises:
            VEOError: If the file cannot be read
        """
        path = Path(path)
        if not path.is_file():
            raise VEOError(f"Long term sustainable format file '{path}' does not exist")

        extensions = []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith(COMMENT_PREFIXES):
                        continue
                    extensions.append(line.split()[0])
        except (OSError, UnicodeDecodeError) as e:
            raise VEOError(f"Failed reading long term sustainable format file '{path}': {e}")

        registry = cls(extensions, source=str(path))
        logger.info(f"Loaded {len(registry)} long term sustainable formats from {path}")
        return registry

    def is_valid_format(self, extension: str) -> bool:
        """True if the extension (with or without the dot) is a valid LTSF"""
        if not extension:
            return False
        return _normalise(extension) in self._extensions

    def extensions(self) -> List[str]:
        return sorted(self._extensions)

    def __len__(self) -> int:
        return len(self._extensions)

    def __contains__(self, extension: str) -> bool:
        return self.is_valid_format(extension)
