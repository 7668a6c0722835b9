"""
Analyse many VEOs, optionally in parallel
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Iterable, Optional

from tqdm import tqdm

from .analyser import VEOAnalyser, VEOResult

logger = logging.getLogger(__name__)

MANIFEST_NAME = 'VEOContent.xml'
ZIPPED_VEO_SUFFIX = '.veo.zip'


def is_veo_directory(path: Path) -> bool:
    return path.is_dir() and (path / MANIFEST_NAME).is_file()


def expand_paths(paths: Iterable) -> List[Path]:
    """
    Turn the paths given by the user into a list of VEOs

    A VEO directory or a file is taken as is. Any other directory
    contributes the VEO directories and zipped VEOs directly inside it.
    Paths that don't exist are kept so that analysing them reports the
    problem.
    """
    veos = []
    for path in paths:
        path = Path(path)
        if not path.is_dir() or is_veo_directory(path):
            veos.append(path)
            continue

        found = [
            child for child in sorted(path.iterdir())
            if is_veo_directory(child)
            or (child.is_file() and child.name.lower().endswith(ZIPPED_VEO_SUFFIX))
        ]
        if not found:
            logger.warning(f"No VEOs found in directory {path}")
        veos.extend(found)
    return veos


class BatchAnalyser:
    """
    Runs a VEOAnalyser over a set of VEOs

    With more than one worker the VEOs are analysed on a thread pool. Each
    VEO gets its own manifest tree and file index, so workers share nothing
    but the read-only LTSF registry. Results are always returned in the
    order the VEOs were given.
    """

    def __init__(self, analyser: VEOAnalyser, workers: int = 1, show_progress: bool = False):
        self.analyser = analyser
        self.workers = max(1, workers)
        self.show_progress = show_progress

    def analyse_all(self, paths: Iterable) -> List[VEOResult]:
        """
        Analyse every VEO found in the given paths

        Args:
            paths: VEO directories, zipped VEOs, or directories holding them

        Returns:
            One result per VEO, in input order
        """
        veos = expand_paths(paths)
        logger.info(f"Analysing {len(veos)} VEOs with {self.workers} worker(s)")

        results: List[Optional[VEOResult]] = [None] * len(veos)
        with tqdm(total=len(veos), desc="Analysing VEOs", unit="veo",
                  disable=not self.show_progress) as pbar:
            if self.workers == 1:
                for i, veo in enumerate(veos):
                    results[i] = self.analyser.analyse(veo)
                    pbar.update(1)
            else:
                with ThreadPoolExecutor(max_workers=self.workers) as executor:
                    futures = {
                        executor.submit(self.analyser.analyse, veo): i
                        for i, veo in enumerate(veos)
                    }
                    for future in as_completed(futures):
                        results[futures[future]] = future.result()
                        pbar.update(1)

        failed = sum(1 for r in results if r.has_errors)
        logger.info(f"Analysed {len(results)} VEOs: {len(results) - failed} passed, {failed} failed")
        return results
