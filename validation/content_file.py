"""
Content file declared in a VEOContent.xml information piece

Validating a content file checks that the named file exists in the VEO, that
its hash still matches the stored value, and whether its format is a long
term sustainable one.
"""

import base64
import binascii
import hashlib
import hmac
import re
from typing import Dict, Any, Optional, Iterable
from pathlib import Path

from .issues import IssueCollector, ValidationItem
from utils.logging_config import log_hash_check

DEFAULT_CHUNK_SIZE = 64 * 1024

# VERS algorithm name -> hashlib name
HASH_ALGORITHMS = {
    'SHA-1': 'sha1',
    'SHA-256': 'sha256',
    'SHA-384': 'sha384',
    'SHA-512': 'sha512',
}

# The MIME flavour of Base64 ignores anything outside the alphabet (line breaks etc.)
_NON_BASE64 = re.compile(r'[^A-Za-z0-9+/=]')


def digest_for(algorithm_name: str):
    """
    Create a hashlib digest for a VERS algorithm name such as 'SHA-256'

    Raises:
        ValueError: If the algorithm is unknown
    """
    if not algorithm_name:
        raise ValueError("No hash algorithm named")
    if algorithm_name not in HASH_ALGORITHMS:
        raise ValueError(f"'{algorithm_name}' is not one of {', '.join(HASH_ALGORITHMS)}")
    return hashlib.new(HASH_ALGORITHMS[algorithm_name])


def decode_mime_base64(encoded: str) -> bytes:
    """
    Decode a Base64 value that may be wrapped over several lines

    Raises:
        binascii.Error: If the value is not valid Base64
    """
    return base64.b64decode(_NON_BASE64.sub('', encoded), validate=True)


def file_extension(path_name: str) -> Optional[str]:
    """Lower case extension including the dot, or None if there isn't one"""
    i = path_name.rfind('.')
    if i == -1:
        return None
    return path_name[i:].lower()


class ContentFileRecord(IssueCollector):
    """One vers:ContentFile element: a path name and the stored hash"""

    component = 'ContentFileRecord'

    def __init__(self, parent_id: str, seq: int, path_name: Optional[str] = None,
                 hash_value: Optional[str] = None, piece_label: Optional[str] = None):
        super().__init__(f"{parent_id}:CF-{seq}")
        self.seq = seq
        self.piece_label = piece_label
        self.piece_seq: Optional[int] = None
        self.path_name = ValidationItem(f"{self.id}:pathName", "Path name of content file")
        self.path_name.set_value(path_name)
        self.hash_value = ValidationItem(f"{self.id}:hashValue", "Hash value of content file")
        self.hash_value.set_value(hash_value)
        self.is_long_term_format = False
        self.linked_file = None
        self.validated = False

    @classmethod
    def from_document(cls, document, parent_id: str, seq: int,
                      piece_label: Optional[str] = None) -> 'ContentFileRecord':
        """
        Read vers:PathName and vers:HashValue from a document whose cursor
        is positioned just inside a vers:ContentFile element
        """
        path_name = None
        hash_value = None
        if document.check_element('vers:PathName'):
            path_name = document.get_text_value()
            document.goto_next_element()
        if document.check_element('vers:HashValue'):
            hash_value = document.get_text_value()
            document.goto_next_element()
        return cls(parent_id, seq, path_name, hash_value, piece_label)

    def owned_entities(self) -> Iterable[IssueCollector]:
        return (self.path_name, self.hash_value)

    @property
    def anchor(self) -> str:
        return f"rcf{self.id}"

    def validate(self, veo_dir, hash_algorithm: str, content_files, ltsf_registry,
                 chunk_size: int = DEFAULT_CHUNK_SIZE) -> bool:
        """
        Check that the file exists, that its hash is unchanged, and classify
        its format

        Args:
            veo_dir: Directory holding the unpacked VEO
            hash_algorithm: Name of the hash algorithm, e.g. 'SHA-256'
            content_files: Index of the files found in the VEO
            ltsf_registry: Registry of long term sustainable formats
            chunk_size: Bytes read at a time while hashing

        Returns:
            True if this is a long term sustainable format and nothing
            stopped validation; False otherwise (errors are recorded)
        """
        method = 'validate'
        veo_dir = Path(veo_dir)
        self.validated = True

        if self.path_name.value is None:
            self.add_error(1, "vers:PathName element is not present or is empty", method)
            return False
        name = self.path_name.value.strip()

        # classify the format from the file extension
        extension = file_extension(name)
        self.is_long_term_format = extension is not None and ltsf_registry.is_valid_format(extension)

        # check that the file exists
        safe = name.replace('\\', '/')
        try:
            file_to_hash = veo_dir / safe
            if not file_to_hash.resolve().is_relative_to(veo_dir.resolve()):
                raise ValueError("path escapes the VEO directory")
            exists = file_to_hash.exists()
        except (ValueError, OSError) as e:
            self.add_error(3, f"Referenced file '{safe}' is not a valid file name: {e}", method)
            return False
        if not exists:
            self.add_error(4, f"Referenced file '{safe}' does not exist", method)
            return False

        # link to the file in the index (a miss is only worth logging)
        entry = content_files.lookup(Path(safe))
        if entry is not None:
            self.linked_file = entry
            entry.link(self)
        else:
            self.logger.warning(
                f"VEOContent.xml referenced content file ({self.path_name.value}), "
                f"but it could not be found in the index"
            )

        if self.hash_value.value is None:
            self.add_error(7, "vers:HashValue element is not present or is empty", method)
            return False

        try:
            digest = digest_for(hash_algorithm)
        except ValueError:
            self.add_error(9, f"Hash algorithm '{hash_algorithm}' not supported", method)
            return False

        try:
            with open(file_to_hash, 'rb') as f:
                for chunk in iter(lambda: f.read(chunk_size), b''):
                    digest.update(chunk)
        except OSError as e:
            self.add_error(11, f"Failed reading file to hash '{safe}': {e}", method,
                           details={'path': safe})
            return False
        computed = digest.digest()

        stored = None
        try:
            stored = decode_mime_base64(self.hash_value.value)
        except (binascii.Error, ValueError) as e:
            self.hash_value.add_error(13, f"Converting Base64 encoded hash failed: {e}", method,
                                      component=self.component)

        if stored is not None:
            matched = hmac.compare_digest(computed, stored)
            log_hash_check(self.logger, safe, hash_algorithm, matched)
            if not matched:
                self.add_error(
                    14,
                    f"Integrity check of file '{self.path_name.value}' failed as hash value has changed",
                    method,
                    details={'path': safe, 'algorithm': hash_algorithm}
                )
                return False

        return self.is_long_term_format

    def report_context(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'anchor': self.anchor,
            'path': self.path_name.value,
            'hash_value': self.hash_value.value,
            'piece_label': self.piece_label,
            'is_long_term_format': self.is_long_term_format,
            'linked_file': self.linked_file,
            'box_class': self.box_class(),
            'issues': self.own_issues(),
            'items': [self.path_name.report_context(), self.hash_value.report_context()]
        }

    def __str__(self) -> str:
        return f"Content File - Path Name:'{self.path_name.value}' Hash Value:{self.hash_value.value}"
