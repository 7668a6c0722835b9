"""
Representation of a VEOContent.xml file

The manifest reads the document once, rebuilding the information object
tree as it goes, and then validates every information object in manifest
order. It is the root collector for the errors and warnings of the content.
"""

import logging
from typing import Dict, List, Any, Optional, Iterable
from pathlib import Path

from .issues import IssueCollector, ValidationItem, ManifestStructureError
from .information_object import InformationObjectNode
from .content_file import DEFAULT_CHUNK_SIZE, HASH_ALGORITHMS
from .tree import TreeBuilder
from xmldoc.document import XMLDocument

logger = logging.getLogger(__name__)

MANIFEST_NAME = 'VEOContent.xml'
SCHEMA_NAME = 'vers3-content.xsd'
EXPECTED_VERSION = '3.0'
VALID_HASH_ALGORITHMS = tuple(HASH_ALGORITHMS)
RDF_NAMESPACES = (
    'http://www.w3.org/1999/02/22-rdf-syntax-ns#',
    'http://www.w3.org/1999/02/22-rdf-syntax-ns',
)


class ContentManifest(IssueCollector):
    """
    The information objects, version and hash algorithm of a VEO

    If reading the manifest fails (schema violation, bad namespace, depths
    that can't form a tree) ``parse_succeeded`` is False, a single error
    explains why, and validation does nothing.
    """

    component = 'ContentManifest'

    def __init__(self, document=None, entity_id: str = MANIFEST_NAME):
        super().__init__(entity_id)
        self.version = ValidationItem(self.id, "Version")
        self.hash_algorithm = ValidationItem(self.id, "Hash algorithm")
        self.io_count = 0
        self.roots: List[InformationObjectNode] = []
        self.all_nodes: List[InformationObjectNode] = []
        self.parse_succeeded = False

        if document is not None:
            self._read(document)

    @classmethod
    def from_veo_directory(cls, veo_dir, schema_dir=None) -> 'ContentManifest':
        """
        Parse VEOContent.xml in an unpacked VEO

        Args:
            veo_dir: Directory holding the unpacked VEO
            schema_dir: Directory holding vers3-content.xsd (None = no
                schema validation)

        Raises:
            VEOError: If the manifest file is missing or the schema is unusable
        """
        veo_dir = Path(veo_dir)
        schema = None
        if schema_dir is not None:
            schema = Path(schema_dir) / SCHEMA_NAME

        document = XMLDocument(MANIFEST_NAME)
        manifest = cls()
        if not document.parse(veo_dir / MANIFEST_NAME, schema):
            for code, message in enumerate(document.parse_errors, start=1):
                manifest.add_error(1, message, 'parse', details={'sequence': code})
            return manifest

        manifest._read(document)
        return manifest

    def _check_rdf_namespace(self, document, where: str) -> bool:
        namespace = document.get_attribute('xmlns:rdf')
        if namespace and namespace not in RDF_NAMESPACES:
            self.add_error(
                2,
                f"{where} has an invalid xmlns:rdf attribute. Was '{namespace}', "
                f"should be '{RDF_NAMESPACES[0]}'",
                details={'namespace': namespace}
            )
            return False
        return True

    def _read(self, document):
        """Extract the content from the document, building the IO tree"""
        builder = TreeBuilder()

        document.goto_root_element()
        if not document.check_element('vers:VEOContentFile'):
            self.add_error(6, f"Root element is '{document.current_name()}', not vers:VEOContentFile")
            return
        if not self._check_rdf_namespace(document, 'VEOContentFile element'):
            return
        document.goto_next_element()

        if document.check_element('vers:Version'):
            self.version.set_value(document.get_text_value())
            document.goto_next_element()
        if document.check_element('vers:HashFunctionAlgorithm'):
            self.hash_algorithm.set_value(document.get_text_value())
            document.goto_next_element()

        try:
            while not document.at_end() and document.check_element('vers:InformationObject'):
                if not self._check_rdf_namespace(
                        document, f"vers:InformationObject({self.io_count + 1}) element"):
                    return
                document.goto_next_element()
                self.io_count += 1
                node = InformationObjectNode.from_document(document, self.id, self.io_count)
                builder.add(node)
        except ManifestStructureError as e:
            self.add_error(3, str(e), details={'information_object': self.io_count})
            return

        self.roots = builder.roots
        self.all_nodes = builder.all_nodes
        self.parse_succeeded = True
        self.logger.info(f"Read {self.io_count} information objects "
                         f"({len(self.roots)} at depth 0)")

    def owned_entities(self) -> Iterable[IssueCollector]:
        return [self.version, self.hash_algorithm] + self.all_nodes

    def top_level_nodes(self) -> List[InformationObjectNode]:
        """Information objects without a parent (depth 0 or 1)"""
        return [node for node in self.all_nodes if node.parent is None]

    def content_files(self):
        for node in self.all_nodes:
            yield from node.content_files

    def validate(self, veo_dir, content_files, ltsf_registry, skip_recommended: bool = False,
                 restricted_mode: bool = False, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Validate the manifest and every information object in it

        Args:
            veo_dir: Directory holding the unpacked VEO
            content_files: Index of the files found in the VEO
            ltsf_registry: Registry of long term sustainable formats
            skip_recommended: Don't warn about missing recommended metadata
            restricted_mode: Relax the long term format requirement
            chunk_size: Bytes read at a time while hashing
        """
        method = 'validate'

        if not self.parse_succeeded:
            return

        if self.version.value_or_empty != EXPECTED_VERSION:
            self.version.add_warning(
                1, f"VEOVersion has a value of '{self.version.value_or_empty}' "
                   f"instead of '{EXPECTED_VERSION}'",
                method, component=self.component)

        algorithm = self.hash_algorithm.value_or_empty
        if algorithm not in VALID_HASH_ALGORITHMS:
            self.hash_algorithm.add_error(
                2, f"VEOHashFunctionAlgorithm has a value of '{algorithm}' instead of "
                   f"'SHA-1', 'SHA-256', 'SHA-384', or 'SHA-512'",
                method, component=self.component)

        one_level = False
        prev_depth = 0
        for i, node in enumerate(self.all_nodes):
            # a first IO at depth 0 means a flat list of IOs
            if i == 0 and node.depth == 0:
                one_level = True
            prev_depth = node.validate(
                veo_dir, algorithm, content_files, ltsf_registry, one_level, prev_depth,
                skip_recommended=skip_recommended, restricted_mode=restricted_mode,
                chunk_size=chunk_size
            )

    def report_context(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'parse_succeeded': self.parse_succeeded,
            'io_count': self.io_count,
            'version': self.version.report_context(),
            'hash_algorithm': self.hash_algorithm.report_context(),
            'top_level_nodes': self.top_level_nodes(),
            'box_class': self.box_class(),
            'issues': self.own_issues()
        }

    def __str__(self) -> str:
        if not self.parse_succeeded:
            return " VEOContent: No valid content available as parse failed"
        lines = [f" VEOContent - Version: {self.version.value}"]
        lines.extend(str(node) for node in self.all_nodes)
        return "\n".join(lines)
