"""
Information objects declared in VEOContent.xml
"""

import logging
from typing import Dict, List, Any, Optional, Iterable

from .issues import IssueCollector, ValidationItem, ManifestStructureError
from .content_file import ContentFileRecord, DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)


class InformationObjectNode(IssueCollector):
    """
    One vers:InformationObject element and its place in the hierarchy

    The node owns its scalar items and its content files. Parent and children
    are plain references into the manifest's node list; the manifest owns the
    nodes themselves.
    """

    component = 'InformationObjectNode'

    def __init__(self, parent_id: str, seq: int, io_type: Optional[str] = None,
                 depth: Optional[str] = None):
        super().__init__(f"{parent_id}:IO-{seq}")
        self.seq = seq
        self.type = ValidationItem(self.id, "Information Object type")
        self.type.set_value(io_type)
        self.depth_item = ValidationItem(self.id, "Information Object depth")
        self.depth_item.set_value(depth)
        self.parent: Optional['InformationObjectNode'] = None
        self.children: List['InformationObjectNode'] = []
        self.content_files: List[ContentFileRecord] = []
        self.piece_labels: List[Optional[str]] = []
        self.metadata_package_count = 0
        self.has_long_term_format = False

        try:
            self.depth = int(self.depth_item.value_or_empty)
        except ValueError:
            raise ManifestStructureError(
                f"Information Object({seq}) has an invalid depth '{self.depth_item.value_or_empty}'"
            )

    @classmethod
    def from_document(cls, document, parent_id: str, seq: int) -> 'InformationObjectNode':
        """
        Read an information object from a document whose cursor sits just
        inside the vers:InformationObject element. The cursor is left on the
        element following the information object.
        """
        io_type = None
        depth = None
        if document.check_element('vers:InformationObjectType'):
            io_type = document.get_text_value()
            document.goto_next_element()
        if document.check_element('vers:InformationObjectDepth'):
            depth = document.get_text_value()
            document.goto_next_element()
        node = cls(parent_id, seq, io_type, depth)

        # metadata packages are counted, their contents are not interpreted
        while not document.at_end() and document.check_element('vers:MetadataPackage'):
            node.metadata_package_count += 1
            document.skip_subtree()

        piece = 0
        while not document.at_end() and document.check_element('vers:InformationPiece'):
            document.goto_next_element()
            piece += 1
            label = None
            if document.check_element('vers:Label'):
                label = document.get_text_value()
                document.goto_next_element()
            node.piece_labels.append(label)
            while not document.at_end() and document.check_element('vers:ContentFile'):
                document.goto_next_element()
                record = ContentFileRecord.from_document(
                    document, node.id, len(node.content_files) + 1, label
                )
                record.piece_seq = piece
                node.content_files.append(record)
        return node

    def add_child(self, node: 'InformationObjectNode'):
        self.children.append(node)
        node.parent = self

    def owned_entities(self) -> Iterable[IssueCollector]:
        return [self.type, self.depth_item] + self.content_files

    @property
    def is_first(self) -> bool:
        return self.seq == 1

    @property
    def link(self) -> str:
        return f"Report-IO{self.seq}.html"

    def validate(self, veo_dir, hash_algorithm: str, content_files, ltsf_registry,
                 one_level: bool, prev_depth: int, skip_recommended: bool = False,
                 restricted_mode: bool = False, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
        """
        Validate this information object and its content files

        Args:
            veo_dir: Directory holding the unpacked VEO
            hash_algorithm: Hash algorithm declared in the manifest
            content_files: Index of the files found in the VEO
            ltsf_registry: Registry of long term sustainable formats
            one_level: True if the first object had depth 0 (flat list)
            prev_depth: Depth of the previous information object
            skip_recommended: Don't warn about missing recommended metadata
            restricted_mode: Don't insist on a long term format per piece
            chunk_size: Bytes read at a time while hashing

        Returns:
            The depth of this information object
        """
        method = 'validate'

        # depths must either be all zero, or describe a depth first traversal
        if one_level:
            if self.depth != 0:
                self.depth_item.add_error(
                    1, "First information object had a depth of 0 (indicating a flat list), "
                       "but this information object has a depth > 0",
                    method, component=self.component)
        else:
            if self.depth == 0:
                self.depth_item.add_error(
                    2, "First information object had a depth > 0 (indicating a tree structure), "
                       "but this information object has a depth = 0",
                    method, component=self.component)
            if self.is_first and self.depth > 1:
                self.depth_item.add_error(
                    3, "First information object must have a depth of 0 or 1",
                    method, component=self.component)
            elif self.depth - prev_depth > 1:
                self.depth_item.add_error(
                    4, f"Information object has a depth which is more than one greater "
                       f"than the previous depth ({prev_depth})",
                    method, component=self.component)
            if self.parent is not None and self.depth != self.parent.depth + 1:
                self.depth_item.add_error(
                    8, f"Information object has depth {self.depth} but its parent "
                       f"({self.parent.id}) has depth {self.parent.depth}",
                    method, component=self.component)

        ltpf_by_piece: Dict[int, bool] = {}
        for record in self.content_files:
            record.validate(veo_dir, hash_algorithm, content_files, ltsf_registry,
                            chunk_size=chunk_size)
            # format classification stands even when the hash check failed
            is_ltpf = record.is_long_term_format
            ltpf_by_piece[record.piece_seq] = ltpf_by_piece.get(record.piece_seq, False) or is_ltpf
            self.has_long_term_format |= is_ltpf

        if not restricted_mode:
            for piece, has_ltpf in ltpf_by_piece.items():
                if not has_ltpf:
                    self.add_error(
                        6, f"Information piece {piece} did not have a valid long term "
                           f"preservation format",
                        method)

        if self.is_first and self.metadata_package_count == 0:
            self.add_error(5, "The first information object must have at least one metadata package",
                           method)

        if not skip_recommended and self.has_long_term_format and self.metadata_package_count == 0:
            self.add_warning(7, "Information object holds long term preservation content "
                                "but has no metadata package", method)

        return self.depth

    def report_context(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'seq': self.seq,
            'link': self.link,
            'type': self.type.value,
            'depth': self.depth,
            'parent': self.parent,
            'children': self.children,
            'metadata_package_count': self.metadata_package_count,
            'content_files': [cf.report_context() for cf in self.content_files],
            'box_class': self.box_class(),
            'issues': self.own_issues(),
            'items': [self.type.report_context(), self.depth_item.report_context()]
        }

    def __str__(self) -> str:
        lines = [f"  Information Object - Type:'{self.type.value}' Depth:{self.depth}"]
        for record in self.content_files:
            lines.append(f"    {record}")
        return "\n".join(lines)
