"""Command-line entry point."""

import sys

import click

from lnkbackup import __version__, configure_logging, create_orchestrator, get_config
from lnkbackup.backup.compression import WriteReport, progress_percent


class ConsoleProgress:
    """Renders per-entry progress as a single overwritten console line."""

    def __init__(self, stream=None):
        self.stream = stream

    def __call__(self, index: int, total: int, archive_path: str):
        click.echo(f"\r[{progress_percent(index, total):3d}%] {archive_path}", nl=False, file=self.stream)

    def summary(self, report: WriteReport):
        click.echo(file=self.stream)
        click.echo(f"Done: {report.total} items -> {report.archive_path}", file=self.stream)


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.version_option(version=__version__, prog_name='lnkbackup')
@click.option('--split', is_flag=True, help='Create one archive per shortcut inside OUTPUT.')
@click.option('--env', 'config_name', default=None, help='Configuration name (development, production, testing).')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging.')
@click.argument('source_dir', type=click.Path(file_okay=False))
@click.argument('output', type=click.Path())
def cli(split, config_name, verbose, source_dir, output):
    """Back up the folders behind the shortcuts in SOURCE_DIR.

    OUTPUT is the archive to create, or the output directory with --split.
    """
    try:
        cfg = get_config(config_name)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--env')

    configure_logging(cfg, verbose=verbose)

    console = ConsoleProgress()
    orchestrator = create_orchestrator(cfg, progress=console, on_archive=console.summary)
    result = orchestrator.run(source_dir, output, split=split)

    if result.message:
        click.echo(result.message, err=True)

    sys.exit(result.exit_code)


def main():
    cli()
