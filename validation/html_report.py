"""
HTML reports for a single VEO

Rendered with Jinja2 into the VEO directory:

- Report-VEOContent.html: the manifest, its scalar values and top level IOs
- Report-IO<n>.html: one page per information object
- Report-Files.html: every file found in the VEO and what references it
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader, select_autoescape

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
CONTENT_REPORT = 'Report-VEOContent.html'
FILES_REPORT = 'Report-Files.html'

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(['html']),
    trim_blocks=True,
    lstrip_blocks=True
)


def _content_file_links(manifest) -> Dict[int, str]:
    """Map each content file record to its anchor in its IO report"""
    links = {}
    for node in manifest.all_nodes:
        for record in node.content_files:
            links[id(record)] = f"{node.link}#{record.anchor}"
    return links


def _write(path: Path, template_name: str, **context) -> Path:
    template = _environment.get_template(template_name)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(template.render(**context))
    logger.debug(f"Wrote {path}")
    return path


def write_html_reports(manifest, file_index, veo_dir, verbose: bool = False) -> List[Path]:
    """
    Render the HTML reports for an analysed VEO

    Args:
        manifest: Validated ContentManifest
        file_index: Validated ContentFileIndex
        veo_dir: Directory to write the reports into
        verbose: Include hash values and issue locations

    Returns:
        Paths of the files written
    """
    veo_dir = Path(veo_dir)
    common = {
        'veo_name': veo_dir.name,
        'generated': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        'verbose': verbose,
        'content_report': CONTENT_REPORT,
        'files_report': FILES_REPORT
    }
    written = []

    written.append(_write(veo_dir / CONTENT_REPORT, 'veo_content.html',
                          manifest=manifest.report_context(), **common))

    for node in manifest.all_nodes:
        written.append(_write(veo_dir / node.link, 'information_object.html',
                              node=node.report_context(), **common))

    links = _content_file_links(manifest)
    files = []
    for entry in file_index:
        context = entry.report_context()
        record = entry.linked_content_file
        context['content_file_link'] = links.get(id(record)) if record is not None else None
        files.append(context)
    written.append(_write(veo_dir / FILES_REPORT, 'files.html', files=files, **common))

    logger.info(f"Wrote {len(written)} HTML reports to {veo_dir}")
    return written
