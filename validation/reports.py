"""
Run reporting for VEO Content Analysis

Summarises the results of analysing a set of VEOs in console, JSON and CSV
formats.
"""

import io
import json
import csv
import logging
from typing import Dict, List, Any, Optional, Tuple
from datetime import datetime
from pathlib import Path
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class AnalysisMetrics:
    """Metrics for summary reporting"""
    total_veos: int
    passed: int
    failed: int
    errors: int
    warnings: int
    information_objects: int
    success_rate: float
    analysis_duration: float

    @classmethod
    def from_results(cls, results: List[Any]) -> 'AnalysisMetrics':
        """Create metrics from a list of VEO results"""
        total = len(results)
        failed = sum(1 for r in results if r.has_errors)
        return cls(
            total_veos=total,
            passed=total - failed,
            failed=failed,
            errors=sum(len(r.errors) for r in results),
            warnings=sum(len(r.warnings) for r in results),
            information_objects=sum(r.io_count for r in results),
            success_rate=(total - failed) / max(total, 1) * 100,
            analysis_duration=sum(r.duration for r in results)
        )


class AnalysisReport:
    """
    Report generator for a run over one or more VEOs

    Produces reports in multiple formats for different audiences
    """

    def __init__(self, results: List[Any], show_errors: bool = False,
                 show_io_count: bool = False):
        self.results = results
        self.metrics = AnalysisMetrics.from_results(results)
        self.show_errors = show_errors
        self.show_io_count = show_io_count
        self.timestamp = datetime.now()

    def generate_console_report(self) -> str:
        """Generate human-readable console report"""
        lines = []

        # Header
        lines.append("=" * 80)
        lines.append("📊 VEO CONTENT ANALYSIS REPORT")
        lines.append("=" * 80)
        lines.append(f"Generated: {self.timestamp.strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Duration: {self.metrics.analysis_duration:.1f} seconds")
        lines.append(f"Overall Status: {'✅ PASS' if self.overall_status == 'PASS' else '❌ FAIL'}")
        lines.append("")

        # Summary
        lines.append("📈 SUMMARY METRICS")
        lines.append("-" * 40)
        lines.append(f"VEOs analysed: {self.metrics.total_veos}")
        lines.append(f"✅ Passed: {self.metrics.passed}")
        lines.append(f"❌ Failed: {self.metrics.failed}")
        lines.append(f"💥 Errors: {self.metrics.errors}")
        lines.append(f"⚠️  Warnings: {self.metrics.warnings}")
        lines.append(f"Information objects: {self.metrics.information_objects}")
        lines.append(f"Success Rate: {self.metrics.success_rate:.1f}%")
        lines.append("")

        # Per VEO
        lines.append("📦 VEOS")
        lines.append("-" * 40)
        for result in self.results:
            icon = '❌' if result.has_errors else ('⚠️' if result.has_warnings else '✅')
            line = f"{icon} {result.veo_path}: {len(result.errors)} errors, {len(result.warnings)} warnings"
            if self.show_io_count:
                line += f", {result.io_count} IOs"
            lines.append(line)

            if result.description:
                lines.append(result.description)

            if self.show_errors:
                for issue in result.errors:
                    lines.append(f"    Error: {issue.get_message()}")
                for issue in result.warnings:
                    lines.append(f"    Warning: {issue.get_message()}")
        lines.append("")

        # Unique issues across the run
        summary = self.unique_issues()
        if summary:
            lines.append("🔍 ISSUES BY TYPE")
            lines.append("-" * 40)
            for entry in summary:
                icon = '💥' if entry['severity'] == 'ERROR' else '⚠️'
                lines.append(f"{icon} {entry['component']}({entry['code']}): {entry['example']}")
                lines.append(f"    - occurrences: {entry['occurrences']}, VEOs affected: {entry['veos_affected']}")
            lines.append("")

        lines.append("=" * 80)

        return "\n".join(lines)

    def generate_json_report(self) -> Dict[str, Any]:
        """Generate machine-readable JSON report"""
        return {
            'report_metadata': {
                'generated_at': self.timestamp.isoformat(),
                'report_version': '1.0',
                'system': 'VEO Content Analysis'
            },
            'results': [result.to_dict() for result in self.results],
            'metrics': self.metrics.__dict__,
            'summary': {
                'overall_status': self.overall_status,
                'success_rate': self.metrics.success_rate,
                'unique_issues': self.unique_issues()
            }
        }

    def generate_csv_report(self) -> str:
        """Generate CSV report with one row per issue"""
        output = []

        # Header
        output.append([
            'VEO', 'Severity', 'Component', 'Code', 'Entity',
            'Message', 'Timestamp', 'Details'
        ])

        # Data rows
        for result in self.results:
            for issue in result.errors + result.warnings:
                output.append([
                    result.veo_path,
                    issue.severity,
                    issue.component,
                    issue.code,
                    issue.entity_id,
                    issue.message,
                    issue.timestamp,
                    json.dumps(issue.details or {}, default=str)
                ])

        csv_buffer = io.StringIO()
        writer = csv.writer(csv_buffer)
        writer.writerows(output)
        return csv_buffer.getvalue()

    @property
    def overall_status(self) -> str:
        return 'FAIL' if self.metrics.failed else 'PASS'

    def unique_issues(self) -> List[Dict[str, Any]]:
        """
        Issues grouped by component and code

        Returns:
            One entry per distinct (severity, component, code) with an
            example message, the number of occurrences and the number of
            VEOs affected; errors first
        """
        groups: Dict[Tuple[str, str, int], Dict[str, Any]] = {}
        for result in self.results:
            for issue in result.errors + result.warnings:
                key = (issue.severity, issue.component, issue.code)
                entry = groups.get(key)
                if entry is None:
                    entry = groups[key] = {
                        'severity': issue.severity,
                        'component': issue.component,
                        'code': issue.code,
                        'example': issue.message,
                        'occurrences': 0,
                        'veos': set()
                    }
                entry['occurrences'] += 1
                entry['veos'].add(result.veo_path)

        summary = []
        for key in sorted(groups, key=lambda k: (k[0] != 'ERROR', k[1], k[2])):
            entry = groups[key]
            entry['veos_affected'] = len(entry.pop('veos'))
            summary.append(entry)
        return summary

    def save_report(self, output_dir: str, formats: Optional[List[str]] = None) -> Dict[str, str]:
        """
        Save reports to files

        Args:
            output_dir: Directory to save reports
            formats: List of formats to generate ('console', 'json', 'csv')

        Returns:
            Dictionary mapping format to saved file path
        """
        if formats is None:
            formats = ['console', 'json', 'csv']

        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        timestamp_str = self.timestamp.strftime('%Y%m%d_%H%M%S')
        saved_files = {}

        for format_name in formats:
            try:
                if format_name == 'console':
                    content = self.generate_console_report()
                    filename = f"veo_analysis_{timestamp_str}.txt"

                elif format_name == 'json':
                    content = json.dumps(self.generate_json_report(), indent=2, default=str)
                    filename = f"veo_analysis_{timestamp_str}.json"

                elif format_name == 'csv':
                    content = self.generate_csv_report()
                    filename = f"veo_analysis_{timestamp_str}.csv"

                else:
                    logger.warning(f"Unknown report format: {format_name}")
                    continue

                file_path = output_path / filename
                with open(file_path, 'w', encoding='utf-8', newline='') as f:
                    f.write(content)

                saved_files[format_name] = str(file_path)
                logger.info(f"Saved {format_name} report to {file_path}")

            except OSError as e:
                logger.error(f"Error saving {format_name} report: {e}")

        return saved_files
