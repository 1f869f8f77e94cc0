"""
Main CLI entry point for the Process Analytics Engine.

Usage:
    process-analytics generate --count 500 --output ./data --seed 42
    process-analytics analyze --input-dir ./data --output-dir ./output --format both
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from . import __version__
from .config import AnalyticsConfig
from .engine import ProcessAnalyticsEngine
from .exceptions import ConfigurationError
from .ingest.loader import DataLoader
from .report.generator import ReportGenerator
from .synthetic import EventLogGenerator, GeneratorConfig, apply_preset
from .timestamps import parse_timestamp


REPORT_FILES = {
    'json': 'analytics_report.json',
    'markdown': 'analytics_report.md',
}


def _load_config(config_file: Optional[str]) -> AnalyticsConfig:
    """Read an AnalyticsConfig from a JSON file, or return the defaults."""
    if config_file is None:
        return AnalyticsConfig()
    with open(config_file, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return AnalyticsConfig.from_dict(data)


@click.group()
@click.version_option(version=__version__)
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              default='WARNING', help='Logging verbosity')
@click.pass_context
def cli(ctx, log_level: str):
    """Process Analytics Engine

    Reconstructs cases from state-transition events and reports the
    process map, bottlenecks, variants, stuck cases and SLA compliance.
    """
    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    ctx.ensure_object(dict)


@cli.command()
@click.option('--input-dir', '-i', required=True, type=click.Path(exists=True, file_okay=False),
              help='Directory containing events.json, violations.json and definitions.json')
@click.option('--output-dir', '-o', type=click.Path(), default='./output',
              help='Directory for report outputs')
@click.option('--format', '-f', 'output_format', type=click.Choice(['json', 'markdown', 'both']),
              default='json', help='Output format')
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True, dir_okay=False), default=None,
              help='JSON configuration file')
@click.option('--staleness-hours', type=float, default=None,
              help='Hours without activity before a case counts as stuck')
@click.option('--terminal-state', 'terminal_states', multiple=True,
              help='State that ends a case (repeatable); terminal cases are never stuck')
@click.option('--shard-count', type=int, default=None,
              help='Number of case shards to fold independently')
@click.option('--strict-dedupe', is_flag=True, default=False,
              help='Drop events that repeat case, time, action and state')
@click.option('--breach-level', type=int, default=None,
              help='Escalation level at which an active violation counts as breached')
@click.option('--monitored-cases', type=int, default=None,
              help='Total monitored cases, for the compliance on-track figure')
@click.option('--now', 'now_text', type=str, default=None,
              help='Reference time for stuck detection (ISO-8601, default: current UTC time)')
def analyze(input_dir: str, output_dir: str, output_format: str, config_file: Optional[str],
            staleness_hours: Optional[float], terminal_states: Tuple[str, ...],
            shard_count: Optional[int], strict_dedupe: bool, breach_level: Optional[int],
            monitored_cases: Optional[int], now_text: Optional[str]):
    """Run the full analysis over a directory of JSON inputs.

    Builds the process map, scores bottlenecks, mines variants, detects
    stuck cases and evaluates SLA compliance, then writes the report.
    """
    try:
        config = _load_config(config_file).with_overrides(
            staleness_hours=staleness_hours,
            terminal_states=terminal_states or None,
            strict_dedupe=True if strict_dedupe else None,
            shard_count=shard_count,
            breach_escalation_level=breach_level,
        )
    except (ConfigurationError, json.JSONDecodeError) as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        sys.exit(1)

    now = None
    if now_text is not None:
        now = parse_timestamp(now_text)
        if now is None:
            click.echo(f"Error: could not parse --now value {now_text!r}", err=True)
            sys.exit(1)

    input_path = Path(input_dir)
    click.echo(f"Loading data from {input_path}...")
    loader = DataLoader()
    loaded = loader.load_all(input_path)
    for warning in loaded.warnings:
        click.echo(f"Warning: {warning}", err=True)

    if not loaded.events and not loaded.violations:
        click.echo("Error: No events or violations loaded. Check input directory.", err=True)
        sys.exit(1)

    click.echo(
        f"Loaded {len(loaded.events)} events, {len(loaded.violations)} violations, "
        f"{len(loaded.definitions)} definitions"
    )

    engine = ProcessAnalyticsEngine(config)
    try:
        snapshot = engine.run(
            loaded.events,
            loaded.violations,
            loaded.definitions,
            now=now,
            monitored_cases=monitored_cases,
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    formats = ['json', 'markdown'] if output_format == 'both' else [output_format]
    for fmt in formats:
        content = ReportGenerator(output_format=fmt).generate(snapshot)
        output_file = output_path / REPORT_FILES[fmt]
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(content)
        click.echo(f"  Wrote {output_file}")

    process_map = snapshot.process_map
    click.echo("\n" + "=" * 60)
    click.echo("Analysis complete!")
    click.echo(f"Cases: {process_map.total_cases} ({snapshot.reconstruction.total_skipped} records skipped)")
    click.echo(f"States: {len(process_map.nodes)}, transitions: {len(process_map.edges)}")
    click.echo(f"Variants: {snapshot.variants.distinct_variants}")
    click.echo(f"Stuck cases: {snapshot.stuck.total_stuck}")
    click.echo(f"SLA breached: {snapshot.compliance.stats.breached}")
    click.echo("=" * 60)


@cli.command()
@click.option('--count', '-n', default=500, type=int, help='Number of cases to generate')
@click.option('--seed', default=42, type=int, help='Random seed for reproducibility')
@click.option('--output', '-o', type=click.Path(), default='sample_output',
              help='Output directory for generated files')
@click.option('--preset', type=click.Choice(['small', 'medium', 'large']), default=None,
              help='Size preset (overrides --count)')
@click.option('--start-date', default='2024-01-01', help='Earliest case start (YYYY-MM-DD)')
@click.option('--end-date', default='2024-12-31', help='End of the generated window (YYYY-MM-DD)')
def generate(count: int, seed: int, output: str, preset: Optional[str], start_date: str, end_date: str):
    """Generate a synthetic event log, SLA violations and definitions."""
    config = GeneratorConfig(seed=seed, num_cases=count, start_date=start_date, end_date=end_date)
    if preset:
        apply_preset(config, preset)

    try:
        generator = EventLogGenerator(config, output_dir=output)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    generator.generate_all()
    written = generator.save_output()
    for path in written.values():
        click.echo(f"  Wrote {path}")
    click.echo(
        f"Generated {len(generator.events)} events across {config.num_cases} cases "
        f"and {len(generator.violations)} violations"
    )


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
