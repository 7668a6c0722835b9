"""
Analyse a single VEO

A VEO is either a directory already holding VEOContent.xml and its content
files, or a ZIP file (name.veo.zip) that is unpacked into the output
directory first. Analysis scans the files, reads and validates the manifest,
checks for unreferenced files, and optionally writes HTML reports.
"""

import logging
import shutil
import tempfile
import time
import zipfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Any, Optional

from storage.file_index import ContentFileIndex
from storage.ltsf import LTSFRegistry
from validation.issues import Issue, IssueCollector, VEOError
from validation.manifest import ContentManifest
from validation.html_report import write_html_reports
from utils.config import AnalysisConfig
from utils.logging_config import get_contextual_logger, log_veo_result

logger = logging.getLogger(__name__)


@dataclass
class VEOResult:
    """Outcome of analysing one VEO"""
    veo_path: str
    veo_dir: Optional[str] = None
    io_count: int = 0
    errors: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)
    parse_succeeded: bool = False
    duration: float = 0.0
    description: Optional[str] = None
    html_reports: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def status(self) -> str:
        return 'FAIL' if self.has_errors else 'PASS'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'veo_path': self.veo_path,
            'veo_dir': self.veo_dir,
            'status': self.status,
            'io_count': self.io_count,
            'parse_succeeded': self.parse_succeeded,
            'duration': self.duration,
            'errors': [issue.to_dict() for issue in self.errors],
            'warnings': [issue.to_dict() for issue in self.warnings],
            'html_reports': self.html_reports
        }


class VEOPackage(IssueCollector):
    """Issues concerning the VEO as a whole (existence, unpacking)"""

    component = 'VEOPackage'


def veo_name_for(zip_path: Path) -> str:
    """Name of the VEO directory for a ZIP file: 'x.veo.zip' -> 'x.veo'"""
    name = zip_path.name
    if name.lower().endswith('.zip'):
        return name[:-4]
    return name


def unpack_veo(zip_path: Path, output_dir: Path, package: VEOPackage) -> Path:
    """
    Unpack a zipped VEO into ``output_dir/<veo name>-<random>/<veo name>``

    Every call gets a fresh directory, so VEOs with the same file name never
    share (or overwrite) an unpack directory.

    Entries are forced into the VEO directory whatever their first path
    component says; entries that would land outside it are refused and
    recorded as errors on ``package``.

    Returns:
        The VEO directory

    Raises:
        VEOError: If the file is not a readable ZIP file
    """
    method = 'unpack'
    veo_name = veo_name_for(zip_path)
    output_dir.mkdir(parents=True, exist_ok=True)
    try:
        unpack_root = Path(tempfile.mkdtemp(prefix=f"{veo_name}-", dir=output_dir))
    except OSError as e:
        raise VEOError(f"Failed creating a directory to unpack '{zip_path}' into: {e}")
    veo_dir = (unpack_root / veo_name).resolve()
    veo_dir.mkdir()

    complained = False
    try:
        with zipfile.ZipFile(zip_path) as archive:
            claimed = sum(info.compress_size for info in archive.infolist())
            if zip_path.stat().st_size < claimed:
                package.add_error(
                    1, f"ZIP file length ({zip_path.stat().st_size}) is less than the sum of "
                       f"the compressed sizes of the ZIP entries ({claimed})", method)
                return veo_dir

            for info in archive.infolist():
                entry = PurePosixPath(info.filename.replace('\\', '/'))
                parts = entry.parts
                if not parts:
                    continue

                if parts[0] != veo_name:
                    if not complained:
                        package.add_warning(
                            3, f"The names of the entries in the ZIP file (e.g. '{info.filename}') "
                               f"do not start with the name of the VEO ('{veo_name}')", method)
                        complained = True
                else:
                    parts = parts[1:]
                if not parts:
                    continue

                if '..' in parts or entry.is_absolute():
                    package.add_error(
                        6, f"ZIP file contains a pathname that includes '..' elements "
                           f"or is absolute: '{info.filename}'", method)
                    continue
                target = veo_dir.joinpath(*parts).resolve()
                if not target.is_relative_to(veo_dir):
                    package.add_error(
                        7, f"ZIP entry '{info.filename}' is attempting to create a file "
                           f"outside the VEO directory", method)
                    continue

                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as src, open(target, 'wb') as dst:
                    shutil.copyfileobj(src, dst)
    except zipfile.BadZipFile as e:
        shutil.rmtree(unpack_root, ignore_errors=True)
        raise VEOError(f"VEO '{zip_path}' is not a valid ZIP file: {e}")
    except OSError as e:
        shutil.rmtree(unpack_root, ignore_errors=True)
        raise VEOError(f"Failed unpacking VEO '{zip_path}': {e}")

    logger.debug(f"Unpacked {zip_path} into {veo_dir}")
    return veo_dir


class VEOAnalyser:
    """
    Validates VEOs one at a time

    The LTSF registry is shared read-only; everything else (manifest tree,
    file index) is created per VEO, so one analyser can serve several
    worker threads.
    """

    def __init__(self, config: AnalysisConfig, ltsf_registry: LTSFRegistry):
        self.config = config
        self.ltsf_registry = ltsf_registry
        schema = config.schema_file
        self.schema_dir = schema.parent if schema is not None and schema.is_file() else None
        if self.schema_dir is None:
            logger.info("No vers3-content.xsd found; manifests will not be schema validated")

    def analyse(self, veo_path) -> VEOResult:
        """
        Analyse one VEO

        Args:
            veo_path: VEO directory or zipped VEO

        Returns:
            Result holding every error and warning found. A VEO that could
            not be processed at all has a single error explaining why.
        """
        veo_path = Path(veo_path)
        start_time = time.time()
        log = get_contextual_logger(__name__, veo=str(veo_path))
        package = VEOPackage(str(veo_path))
        result = VEOResult(veo_path=str(veo_path))
        collectors: List[IssueCollector] = [package]
        unpacked_dir = None
        failure = None

        try:
            if not veo_path.exists():
                raise VEOError(f"VEO '{veo_path}' does not exist")
            if veo_path.is_file():
                if not veo_path.name.lower().endswith('.zip'):
                    package.add_warning(2, f"VEO file name '{veo_path.name}' does not end in '.zip'",
                                        'analyse')
                veo_dir = unpack_veo(veo_path, self.config.output_dir, package)
                unpacked_dir = veo_dir
            else:
                veo_dir = veo_path
            result.veo_dir = str(veo_dir)

            content_files = ContentFileIndex.scan(veo_dir)
            manifest = ContentManifest.from_veo_directory(veo_dir, self.schema_dir)
            collectors.extend([manifest, content_files])

            manifest.validate(
                veo_dir, content_files, self.ltsf_registry,
                skip_recommended=self.config.skip_recommended,
                restricted_mode=self.config.restricted_mode,
                chunk_size=self.config.hash_chunk_size
            )
            content_files.validate()

            result.io_count = manifest.io_count
            result.parse_succeeded = manifest.parse_succeeded
            if self.config.verbose:
                result.description = str(manifest)
            if self.config.html_reports:
                written = write_html_reports(manifest, content_files, veo_dir, self.config.verbose)
                result.html_reports = [str(p) for p in written]

        except VEOError as e:
            failure = str(e)
            package.add_error(0, failure, 'analyse')

        finally:
            for collector in collectors:
                collector.collect_problems(True, result.errors)
                collector.collect_problems(False, result.warnings)
            result.duration = time.time() - start_time

            if unpacked_dir is not None and not (self.config.keep_unpacked or self.config.html_reports):
                shutil.rmtree(unpacked_dir.parent, ignore_errors=True)
                log.debug(f"Removed unpacked VEO directory {unpacked_dir}")

        log_veo_result(log, str(veo_path), result.io_count, len(result.errors),
                       len(result.warnings), result.duration, error=failure)
        return result
