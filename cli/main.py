"""
Command-line interface for VEO Content Analysis
"""

import click
import json
import logging
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from analysis.analyser import VEOAnalyser
from analysis.batch import BatchAnalyser
from storage.ltsf import LTSFRegistry
from utils.config import AnalysisConfig, ConfigError
from utils.logging_config import init_from_environment
from validation.issues import VEOError, VEOFatal
from validation.reports import AnalysisReport

logger = logging.getLogger(__name__)

EXIT_ERRORS = 1
EXIT_FATAL = 2


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--config', help='Path to configuration file')
@click.pass_context
def cli(ctx, debug, config):
    """VEO Content Analysis - validate VERS V3 archival packages"""

    # Load environment variables
    load_dotenv(config or 'config.env')
    init_from_environment('DEBUG' if debug else None)

    # Initialize context
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    ctx.obj['config'] = config


def _load_registry(config: AnalysisConfig) -> LTSFRegistry:
    try:
        return LTSFRegistry.from_file(config.ltsf_path)
    except VEOError as e:
        raise VEOFatal(str(e))


@cli.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option('--support-dir', '-s', type=click.Path(path_type=Path),
              help='Directory holding vers3-content.xsd and validLTSF.txt')
@click.option('--output-dir', '-o', type=click.Path(path_type=Path),
              help='Directory to unpack zipped VEOs into')
@click.option('--ltsf', type=click.Path(path_type=Path), help='Long term sustainable format file')
@click.option('--norec', is_flag=True, help='Do not warn about missing recommended metadata')
@click.option('--vpa', is_flag=True, help='Restricted mode: do not insist on a long term format per piece')
@click.option('--html', '-r', is_flag=True, help='Write HTML reports into each VEO directory')
@click.option('--keep-unpacked', '-u', is_flag=True, help='Leave unpacked VEOs in the output directory')
@click.option('--verbose', '-v', is_flag=True, help='Describe the content of each VEO')
@click.option('--errors', '-e', is_flag=True, help='List the errors and warnings of each VEO')
@click.option('--iocnt', is_flag=True, help='Show the number of information objects in each VEO')
@click.option('--workers', '-w', type=int, help='Number of VEOs to analyse at once')
@click.option('--report-format', '-f',
              type=click.Choice(['console', 'json', 'csv']),
              multiple=True, default=['console'],
              help='Report output format(s)')
@click.option('--save-report', help='Directory to save run reports')
@click.pass_context
def analyse(ctx, paths, support_dir, output_dir, ltsf, norec, vpa, html, keep_unpacked,
            verbose, errors, iocnt, workers, report_format, save_report):
    """Analyse VEO directories or zipped VEOs"""

    exit_code = 0
    try:
        config = AnalysisConfig.from_environment(ctx.obj['config']).with_overrides(
            support_dir=support_dir,
            output_dir=output_dir,
            ltsf_file=ltsf,
            skip_recommended=norec or None,
            restricted_mode=vpa or None,
            html_reports=html or None,
            keep_unpacked=keep_unpacked or None,
            verbose=verbose or None,
            workers=workers
        )
        config.validate()
        registry = _load_registry(config)

        click.echo(f"🔍 Analysing {len(paths)} path(s) with {len(registry)} long term formats...")

        analyser = VEOAnalyser(config, registry)
        batch = BatchAnalyser(analyser, workers=config.workers, show_progress=sys.stderr.isatty())
        results = batch.analyse_all(paths)

        report = AnalysisReport(results, show_errors=errors, show_io_count=iocnt)

        # Display reports
        if 'console' in report_format:
            click.echo("\n" + report.generate_console_report())
        if 'json' in report_format and not save_report:
            click.echo(json.dumps(report.generate_json_report(), indent=2, default=str))
        if 'csv' in report_format and not save_report:
            click.echo(report.generate_csv_report())

        # Save reports if requested
        if save_report:
            saved_files = report.save_report(save_report, list(report_format))
            click.echo(f"\n📁 Reports saved:")
            for format_name, file_path in saved_files.items():
                click.echo(f"  • {format_name}: {file_path}")

        if html:
            for result in results:
                if result.html_reports:
                    click.echo(f"🌐 HTML reports for {result.veo_path} in {result.veo_dir}")

        if report.metrics.failed:
            exit_code = EXIT_ERRORS

    except (ConfigError, VEOFatal) as e:
        click.echo(f"❌ Cannot run analysis: {e}", err=True)
        if ctx.obj['debug']:
            raise
        exit_code = EXIT_FATAL

    ctx.exit(exit_code)


@cli.command()
@click.option('--support-dir', '-s', type=click.Path(path_type=Path),
              help='Directory holding validLTSF.txt')
@click.option('--ltsf', type=click.Path(path_type=Path), help='Long term sustainable format file')
@click.pass_context
def formats(ctx, support_dir, ltsf):
    """List the long term sustainable formats"""

    try:
        config = AnalysisConfig.from_environment(ctx.obj['config']).with_overrides(
            support_dir=support_dir,
            ltsf_file=ltsf
        )
        config.validate()
        registry = _load_registry(config)

        click.echo(f"📋 {len(registry)} long term sustainable formats ({registry.source}):")
        for extension in registry.extensions():
            click.echo(f"  {extension}")

    except (ConfigError, VEOFatal) as e:
        click.echo(f"❌ Cannot read formats: {e}", err=True)
        if ctx.obj['debug']:
            raise
        ctx.exit(EXIT_FATAL)


def main():
    """Main entry point"""
    cli()


if __name__ == '__main__':
    main()
