"""
XML element cursor used to read VEO XML files

The document is parsed (and optionally checked against an XSD) with lxml,
then flattened into its elements in document order. Readers step through
that list with a cursor, checking element names as they go.
"""

import logging
from typing import List, Optional
from pathlib import Path

from lxml import etree

from validation.issues import VEOError

logger = logging.getLogger(__name__)


def qualified_name(element) -> str:
    """Element name as written in the document, e.g. 'vers:Version'"""
    local = etree.QName(element).localname
    if element.prefix:
        return f"{element.prefix}:{local}"
    return local


class XMLDocument:
    """
    Parsed XML document with a forward-moving element cursor

    Example:
        doc = XMLDocument()
        if doc.parse(veo_dir / 'VEOContent.xml', schema_dir / 'vers3-content.xsd'):
            doc.goto_root_element()
            while not doc.at_end():
                ...
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self.parse_errors: List[str] = []
        self._tree = None
        self._elements: List = []
        self._current = 0
        self._contents_available = False

    def parse(self, file_path, schema_path=None) -> bool:
        """
        Parse an XML file, validating it against an XSD if one is given

        Args:
            file_path: XML file to parse
            schema_path: Optional XSD schema

        Returns:
            True if the document parsed (and validated); False if problems
            were recorded in ``parse_errors``

        Raises:
            VEOError: If the file is missing or the schema cannot be loaded
        """
        file_path = Path(file_path)
        if self.name is None:
            self.name = file_path.name

        if self._contents_available:
            logger.warning(f"Document {self.name} has already been parsed")
            return False
        if not file_path.exists():
            raise VEOError(f"File '{file_path}' does not exist")
        if not file_path.is_file():
            raise VEOError(f"File '{file_path}' is not a regular file")

        schema = None
        if schema_path is not None:
            schema = self._load_schema(Path(schema_path))

        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        try:
            self._tree = etree.parse(str(file_path), parser)
        except etree.XMLSyntaxError as e:
            self.parse_errors.append(
                f"Parse error when parsing file {file_path.name} (line {e.lineno} column {e.offset}): {e}"
            )
            return False
        except OSError as e:
            raise VEOError(f"System error when parsing file '{file_path}': {e}")

        if schema is not None and not schema.validate(self._tree):
            for error in schema.error_log:
                self.parse_errors.append(
                    f"Error when validating {file_path.name} against schema '{schema_path}' "
                    f"(line {error.line} column {error.column}): {error.message}"
                )
            return False

        self._elements = list(self._tree.getroot().iter(tag=etree.Element))
        self._current = 0
        self._contents_available = True
        logger.debug(f"Parsed {self.name}: {len(self._elements)} elements")
        return True

    def _load_schema(self, schema_path: Path):
        if not schema_path.is_file():
            raise VEOError(f"Schema '{schema_path}' does not exist")
        try:
            return etree.XMLSchema(etree.parse(str(schema_path)))
        except (etree.XMLSchemaParseError, etree.XMLSyntaxError) as e:
            raise VEOError(f"Failed to parse schema '{schema_path}': {e}")

    @property
    def contents_available(self) -> bool:
        return self._contents_available

    def goto_root_element(self):
        self._current = 0

    def goto_next_element(self):
        self._current += 1

    def at_end(self) -> bool:
        if not self._contents_available:
            return True
        return self._current >= len(self._elements)

    @property
    def current_index(self) -> int:
        return self._current

    def current_element(self):
        if self.at_end():
            return None
        return self._elements[self._current]

    def current_name(self) -> Optional[str]:
        element = self.current_element()
        if element is None:
            return None
        return qualified_name(element)

    def check_element(self, name: str) -> bool:
        """True if the current element has the given prefixed name"""
        return self.current_name() == name

    def get_attribute(self, name: str) -> Optional[str]:
        """
        Value of an attribute of the current element, or None

        Namespace declarations ('xmlns' / 'xmlns:prefix') are returned only
        for the element that declares them, not its descendants.
        """
        element = self.current_element()
        if element is None:
            return None

        if name == 'xmlns' or name.startswith('xmlns:'):
            prefix = name[6:] or None
            declared = element.nsmap.get(prefix)
            parent = element.getparent()
            if declared is None:
                return None
            if parent is not None and parent.nsmap.get(prefix) == declared:
                return None
            return declared

        if ':' in name:
            prefix, local = name.split(':', 1)
            uri = element.nsmap.get(prefix)
            if uri is None:
                return None
            return element.get(f"{{{uri}}}{local}")
        return element.get(name)

    def get_text_value(self) -> Optional[str]:
        """Trimmed text directly inside the current element, or None"""
        element = self.current_element()
        if element is None or element.text is None:
            return None
        return element.text.strip()

    def skip_subtree(self):
        """Move the cursor past the current element and all its descendants"""
        element = self.current_element()
        if element is None:
            return
        descendants = sum(1 for _ in element.iterdescendants(tag=etree.Element))
        self._current += 1 + descendants
