"""
Shared fixtures for VEO Content Analysis tests

Builds VEO directories (VEOContent.xml, content files and Base64 hashes)
and support directories (validLTSF.txt, optional schema) in tmp_path.
"""

import base64
import hashlib
import logging
from pathlib import Path
from typing import Dict, List, Optional
from xml.sax.saxutils import escape

import pytest

from storage.ltsf import LTSFRegistry
from utils.config import AnalysisConfig


# =============================================================================
# KEY CONSTANTS
# =============================================================================

VERS_NS = 'http://www.prov.vic.gov.au/VERS'
RDF_NS = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#'

LTSF_TEXT = """! Long term sustainable formats
# extension  description
.pdf    Portable Document Format
tif     Tagged Image File Format
.JPG    JPEG image
.txt    Plain text
"""

MINIMAL_SCHEMA = """<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
           targetNamespace="http://www.prov.vic.gov.au/VERS"
           elementFormDefault="qualified">
  <xs:element name="VEOContentFile">
    <xs:complexType>
      <xs:sequence>
        <xs:element name="Version" type="xs:string"/>
        <xs:any minOccurs="0" maxOccurs="unbounded" processContents="skip"/>
      </xs:sequence>
    </xs:complexType>
  </xs:element>
</xs:schema>
"""


# =============================================================================
# VEO BUILDING HELPERS
# =============================================================================

def b64_hash(data: bytes, algorithm: str = 'SHA-256') -> str:
    """Base64 encoded digest as stored in vers:HashValue"""
    digest = hashlib.new(algorithm.replace('-', '').lower(), data).digest()
    return base64.b64encode(digest).decode('ascii')


def content_file(path: str, data: Optional[bytes] = b'content', hash_value: Optional[str] = None,
                 write: bool = True) -> Dict:
    return {'path': path, 'data': data, 'hash': hash_value, 'write': write}


def information_object(depth: int, files: Optional[List[Dict]] = None, io_type: str = 'Record',
                       metadata: bool = True, label: Optional[str] = 'Piece',
                       rdf_ns: Optional[str] = None, pieces: Optional[List[List[Dict]]] = None) -> Dict:
    if pieces is None:
        pieces = [files] if files else []
    return {'depth': depth, 'type': io_type, 'metadata': metadata, 'label': label,
            'rdf_ns': rdf_ns, 'pieces': pieces}


def manifest_xml(ios: List[Dict], version: Optional[str] = '3.0', algorithm: Optional[str] = 'SHA-256',
                 rdf_ns: Optional[str] = RDF_NS, hash_algorithm: Optional[str] = None) -> str:
    """Render a VEOContent.xml document; hashes are computed with ``hash_algorithm`` or ``algorithm``"""
    hash_algorithm = hash_algorithm or algorithm or 'SHA-256'
    root_ns = f' xmlns:rdf="{rdf_ns}"' if rdf_ns else ''
    lines = ['<?xml version="1.0" encoding="UTF-8"?>',
             f'<vers:VEOContentFile xmlns:vers="{VERS_NS}"{root_ns}>']
    if version is not None:
        lines.append(f'  <vers:Version>{escape(version)}</vers:Version>')
    if algorithm is not None:
        lines.append(f'  <vers:HashFunctionAlgorithm>{escape(algorithm)}</vers:HashFunctionAlgorithm>')

    for io in ios:
        io_ns = f' xmlns:rdf="{io["rdf_ns"]}"' if io['rdf_ns'] else ''
        lines.append(f'  <vers:InformationObject{io_ns}>')
        lines.append(f'    <vers:InformationObjectType>{escape(io["type"])}</vers:InformationObjectType>')
        lines.append(f'    <vers:InformationObjectDepth>{io["depth"]}</vers:InformationObjectDepth>')
        if io['metadata']:
            lines.append('    <vers:MetadataPackage>')
            lines.append(f'      <rdf:RDF xmlns:rdf="{RDF_NS}"><rdf:Description rdf:about="x"/></rdf:RDF>')
            lines.append('    </vers:MetadataPackage>')
        for files in io['pieces']:
            lines.append('    <vers:InformationPiece>')
            if io['label'] is not None:
                lines.append(f'      <vers:Label>{escape(io["label"])}</vers:Label>')
            for cf in files:
                hash_value = cf['hash']
                if hash_value is None and cf['data'] is not None:
                    hash_value = b64_hash(cf['data'], hash_algorithm)
                lines.append('      <vers:ContentFile>')
                lines.append(f'        <vers:PathName>{escape(cf["path"])}</vers:PathName>')
                lines.append(f'        <vers:HashValue>{escape(hash_value or "")}</vers:HashValue>')
                lines.append('      </vers:ContentFile>')
            lines.append('    </vers:InformationPiece>')
        lines.append('  </vers:InformationObject>')
    lines.append('</vers:VEOContentFile>')
    return "\n".join(lines) + "\n"


def write_veo(veo_dir: Path, ios: List[Dict], extra_files: Optional[Dict[str, bytes]] = None,
              **manifest_options) -> Path:
    """Create a VEO directory holding the manifest and every content file it names"""
    veo_dir.mkdir(parents=True, exist_ok=True)
    for io in ios:
        for files in io['pieces']:
            for cf in files:
                if cf['write'] and cf['data'] is not None and cf['path']:
                    target = veo_dir / cf['path'].replace('\\', '/')
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(cf['data'])
    for name, data in (extra_files or {}).items():
        target = veo_dir / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    (veo_dir / 'VEOContent.xml').write_text(manifest_xml(ios, **manifest_options), encoding='utf-8')
    return veo_dir


# =============================================================================
# ENVIRONMENT FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """
    Run every test in its own working directory with no VEO_* settings,
    no log file and the root logger restored afterwards.
    """
    for name in ('VEO_SUPPORT_DIR', 'VEO_OUTPUT_DIR', 'VEO_LTSF_FILE', 'VEO_NO_RECOMMENDED',
                 'VEO_RESTRICTED_MODE', 'VEO_WORKERS', 'VEO_HASH_CHUNK_SIZE', 'LOG_FORMAT'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('LOG_FILE', '')
    monkeypatch.setenv('LOG_LEVEL', 'WARNING')
    monkeypatch.chdir(tmp_path)

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# =============================================================================
# SUPPORT FIXTURES
# =============================================================================

@pytest.fixture
def support_dir(tmp_path) -> Path:
    """Support directory holding validLTSF.txt (no schema)"""
    directory = tmp_path / 'support'
    directory.mkdir()
    (directory / 'validLTSF.txt').write_text(LTSF_TEXT, encoding='utf-8')
    return directory


@pytest.fixture
def schema_support_dir(support_dir) -> Path:
    """Support directory that also holds a (minimal) vers3-content.xsd"""
    (support_dir / 'vers3-content.xsd').write_text(MINIMAL_SCHEMA, encoding='utf-8')
    return support_dir


@pytest.fixture
def registry() -> LTSFRegistry:
    return LTSFRegistry(['.pdf', 'tif', '.jpg', '.txt'])


@pytest.fixture
def config(support_dir, tmp_path) -> AnalysisConfig:
    return AnalysisConfig(support_dir=support_dir, output_dir=tmp_path / 'output')


@pytest.fixture
def make_veo(tmp_path):
    """
    Factory building a VEO directory under tmp_path/veos

    Example:
        veo_dir = make_veo('a.veo', [information_object(0, [content_file('a.pdf')])])
    """
    def _make(name: str, ios: List[Dict], **options) -> Path:
        return write_veo(tmp_path / 'veos' / name, ios, **options)
    return _make


@pytest.fixture
def clean_veo(make_veo) -> Path:
    """One depth 0 IO with a matching PDF content file and a metadata package"""
    return make_veo('clean.veo', [
        information_object(0, [content_file('Content/report.pdf', b'%PDF-1.4 report body')])
    ])
