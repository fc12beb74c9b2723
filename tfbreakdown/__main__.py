import click
from collections import Counter
from click.core import ParameterSource
from rich.console import Console
from rich.table import Table
from . import __version__
from .analyzer import TerraformAnalyzer
from .config import Settings, load_settings
from .errors import ConfigError, TraversalError
from .models import Breakdown


@click.group()
@click.version_option(__version__)
def cli():
    """Terraform Breakdown - Inventory the resources, modules, providers and variables of a Terraform tree."""
    pass


def _explicit(ctx: click.Context, name: str):
    """Value of a command-line option, or None when it was left at its default."""
    if ctx.get_parameter_source(name) in (ParameterSource.DEFAULT, None):
        return None
    return ctx.params[name]


def _settings(ctx: click.Context, config: str) -> Settings:
    try:
        settings = load_settings(config)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="'--config'")
    exclude = ctx.params.get('exclude')
    return settings.merge(
        pretty=_explicit(ctx, 'pretty'),
        verbose=_explicit(ctx, 'verbose'),
        output=ctx.params.get('output'),
        exclude_dirs=list(exclude) if exclude else None,
    )


def _scan(path: str, settings: Settings, console: Console) -> Breakdown:
    analyzer = TerraformAnalyzer(path, exclude_dirs=settings.exclude_dirs,
                                 verbose=settings.verbose, console=console)
    try:
        return analyzer.analyze()
    except TraversalError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.argument('path')
@click.option('--output', '-o', default=None, help='Write output to file instead of stdout')
@click.option('--pretty/--no-pretty', '-p/-P', default=True, help='Pretty print JSON output')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output (show warnings)')
@click.option('--exclude', '-x', multiple=True, help='Directory name to skip (repeatable)')
@click.option('--config', '-c', default=None, help='Path to config file')
@click.pass_context
def parse(ctx: click.Context, path: str, output: str, pretty: bool, verbose: bool,
          exclude: tuple, config: str):
    """Parse Terraform code under PATH and output a JSON breakdown.

    Recursively scans PATH for .tf, .tfvars and .tfvars.json files and
    extracts resources, module calls, providers, variable declarations and
    variable values.
    """
    settings = _settings(ctx, config)
    console = Console(stderr=True)
    breakdown = _scan(path, settings, console)

    try:
        result = breakdown.to_json(pretty=settings.pretty)
    except (TypeError, ValueError) as e:
        raise click.ClickException(f'error marshaling JSON: {e}')

    if settings.output:
        try:
            with open(settings.output, 'w', encoding='utf-8') as f:
                f.write(result)
        except OSError as e:
            raise click.ClickException(f'error writing to file: {e}')
        if settings.verbose:
            console.print(f'Output written to {settings.output}', markup=False, highlight=False)
    else:
        click.echo(result)


def _table(title: str) -> Table:
    # wide enough that the title stays on one line
    return Table(title=title, min_width=len(title) + 4)


def _output_summary(breakdown: Breakdown, console: Console):
    """Print the breakdown as rich tables."""
    table = _table("Terraform Breakdown Summary")
    table.add_column("Kind", style="cyan")
    table.add_column("Count", style="magenta", justify="right")
    table.add_row("Resources", str(len(breakdown.resources)))
    table.add_row("Modules", str(len(breakdown.modules)))
    table.add_row("Providers", str(len(breakdown.providers)))
    table.add_row("Variables", str(len(breakdown.variables)))
    table.add_row("Variable files", str(len(breakdown.tfvars)))
    console.print(table)

    if breakdown.resources:
        by_type = Counter(resource.type for resource in breakdown.resources)
        table = _table("Resources by Type")
        table.add_column("Resource Type", style="cyan")
        table.add_column("Count", style="magenta", justify="right")
        for resource_type, count in sorted(by_type.items(), key=lambda x: (-x[1], x[0])):
            table.add_row(resource_type, str(count))
        console.print(table)

    if breakdown.providers:
        table = _table("Providers")
        table.add_column("Name", style="cyan")
        table.add_column("Alias", style="green")
        table.add_column("File", style="yellow")
        for provider in breakdown.providers:
            table.add_row(provider.name, provider.alias or '', provider.file)
        console.print(table)

    if breakdown.modules:
        table = _table("Modules")
        table.add_column("Name", style="cyan")
        table.add_column("Source", style="green")
        table.add_column("File", style="yellow")
        for module in breakdown.modules:
            table.add_row(module.name, module.source, module.file)
        console.print(table)

    if breakdown.tfvars:
        console.print("\n[bold]Variable files:[/bold]")
        for key in sorted(breakdown.tfvars):
            tfvars = breakdown.tfvars[key]
            console.print(f"{key}: {len(tfvars.values)} values ({tfvars.file})", markup=False)


@cli.command()
@click.argument('path')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output (show warnings)')
@click.option('--exclude', '-x', multiple=True, help='Directory name to skip (repeatable)')
@click.option('--config', '-c', default=None, help='Path to config file')
@click.pass_context
def summary(ctx: click.Context, path: str, verbose: bool, exclude: tuple, config: str):
    """Print summary tables of the Terraform code under PATH."""
    settings = _settings(ctx, config)
    breakdown = _scan(path, settings, Console(stderr=True))
    _output_summary(breakdown, Console())


if __name__ == '__main__':
    cli()
