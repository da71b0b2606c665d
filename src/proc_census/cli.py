"""CLI commands for proc-census."""

from pathlib import Path

import click


@click.group()
@click.version_option(package_name="proc-census")
def main() -> None:
    """Count processes by scheduler state."""
    pass


@main.command()
@click.option("--ps", "force_ps", is_flag=True, help="Read states from ps")
@click.option("--proc", "force_proc", is_flag=True, help="Read states from /proc")
@click.option("--json", "as_json", is_flag=True, help="Print the record as JSON")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ~/.config/proc-census/config.toml)",
)
def collect(force_ps: bool, force_proc: bool, as_json: bool, config_path: Path | None) -> None:
    """Run one census and print the counts."""
    import json
    import time

    from proc_census import logging as census_log
    from proc_census.collector import ProcessesCollector
    from proc_census.config import Config
    from proc_census.errors import CensusError

    if force_ps and force_proc:
        raise click.UsageError("--ps and --proc are mutually exclusive")

    try:
        cfg = Config.load(config_path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if force_ps or force_proc:
        cfg.census.force_ps = force_ps
        cfg.census.force_proc = force_proc

    census_log.configure(cfg)
    collector = ProcessesCollector.from_config(cfg)
    source = "ps" if collector.use_ps() else "procfs"
    if not as_json:
        census_log.source_selected(source, collector.platform)

    start = time.monotonic()
    try:
        record = collector.collect()
    except CensusError as e:
        census_log.census_failed(str(e))
        raise SystemExit(1) from e
    elapsed_ms = int((time.monotonic() - start) * 1000)

    if as_json:
        click.echo(json.dumps(record, sort_keys=True))
        return

    census_log.census_collected(record["total"], elapsed_ms)
    width = max(len(name) for name in record)
    for name in sorted(record):
        click.echo(f"{name:<{width}}  {record[name]:>8}")


@main.group()
def config() -> None:
    """Configuration management."""
    pass


@config.command("show")
def config_show() -> None:
    """Display current configuration."""
    from proc_census.config import Config

    try:
        cfg = Config.load()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Config file: {cfg.config_path}")
    click.echo(f"Exists: {cfg.config_path.exists()}")
    click.echo()
    click.echo("[census]")
    click.echo(f"  force_ps = {cfg.census.force_ps}")
    click.echo(f"  force_proc = {cfg.census.force_proc}")
    click.echo(f"  proc_root = {cfg.census.proc_root}")
    click.echo(f"  ps_command = {' '.join(cfg.census.ps_command)}")
    click.echo(f"  ps_timeout = {cfg.census.ps_timeout}")
    click.echo()
    click.echo("[logging]")
    click.echo(f"  level = {cfg.logging.level}")
    click.echo(f"  json_file = {cfg.logging.json_file}")
    click.echo(f"  log_path = {cfg.log_path}")


@config.command("reset")
@click.confirmation_option(prompt="Reset config to defaults?")
def config_reset() -> None:
    """Reset configuration to defaults."""
    from proc_census import logging as census_log
    from proc_census.config import Config

    cfg = Config()
    cfg.save()
    census_log.config_created(str(cfg.config_path))
    click.echo(f"Config reset to defaults at {cfg.config_path}")


if __name__ == "__main__":
    main()
