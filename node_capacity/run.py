from __future__ import annotations
import click
import os
from datetime import datetime
from .config import AppConfig, DEFAULT_CONFIG_FILE, load_config
from .capacity.builder import build_cluster_metric
from .errors import InventoryError
from .kube.client import make_api_client
from .kube.inventory import fetch_inventory
from .reporting.base import get_generator, get_report_types
from .reporting.table import build_table, render_text
from .reporting import text_report  # noqa: F401 registers 'table'
from .reporting import html_report  # noqa: F401 registers 'html'
from .reporting import excel_report  # noqa: F401 registers 'excel'
from .util import logging as log


def _load_app_config(path: str | None) -> AppConfig:
    """Explicit --config must exist; otherwise use the default file when present, else built-in defaults."""
    if path is None:
        if not os.path.exists(DEFAULT_CONFIG_FILE):
            return AppConfig()
        path = DEFAULT_CONFIG_FILE
    try:
        return load_config(path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))


def _resolve_out_path(out: str | None, generator, cluster: str) -> str:
    ts = datetime.now().strftime('%Y%m%dT%H%M%S')
    filename = f'{generator.filename_prefix}{cluster}-{ts}{generator.file_extension}'
    if not out:
        return filename
    if os.path.isdir(out):
        return os.path.join(out, filename)
    return out


@click.group(add_help_option=False)
@click.option('--config', default=None, help=f'Config file path (default: {DEFAULT_CONFIG_FILE} when present)')
@click.pass_context
def cli(ctx, config):
    """Node capacity CLI"""
    ctx.ensure_object(dict)
    ctx.obj['config'] = config


@cli.command(add_help_option=False)
@click.option('--cluster', default=None, help='Cluster name from config (default: first configured cluster)')
@click.option('--available/--utilization', 'available', default=None,
              help='Show remaining/allocatable instead of amount and percent of allocatable')
@click.option('--format', 'output_format', default=None, help='Output format (table, html, excel). Default: table')
@click.option('--out', required=False, help='Output file path or directory. Tables print to stdout when omitted.')
@click.option('--metrics/--no-metrics', 'use_metrics', default=None, help='Collect live usage from the metrics API')
@click.option('--gpu/--no-gpu', 'show_gpu', default=None, help='Show GPU request and limit columns')
@click.option('--list-types', is_flag=True, help='List available output formats and exit')
@click.pass_context
def report(ctx, cluster, available, output_format, out, use_metrics, show_gpu, list_types):
    """Report requests and limits against node allocatable capacity."""
    if list_types:
        click.echo('Available output formats:')
        for t in get_report_types():
            click.echo(f'  {t}')
        return
    cfg = _load_app_config(ctx.obj['config'])
    log.configure_logging(cfg.logging.level, cfg.logging.format)
    try:
        target = cfg.get_cluster(cluster)
    except ValueError as e:
        raise click.ClickException(str(e))
    available = cfg.report.available if available is None else available
    use_metrics = cfg.report.use_metrics if use_metrics is None else use_metrics
    show_gpu = cfg.report.show_gpu if show_gpu is None else show_gpu
    output_format = output_format or cfg.report.format
    try:
        generator = get_generator(output_format)
    except ValueError as e:
        raise click.ClickException(str(e))

    try:
        api_client = make_api_client(target)
        inventory = fetch_inventory(api_client, target, use_metrics=use_metrics,
                                    gpu_resource=cfg.report.gpu_resource)
    except InventoryError as e:
        log.error('inventory fetch failed', cluster=target.name, error=str(e), exit_code=e.exit_code)
        click.echo(str(e), err=True)
        ctx.exit(e.exit_code)

    cm = build_cluster_metric(inventory.nodes, inventory.workloads,
                              node_usage=inventory.node_usage, workload_usage=inventory.workload_usage)
    table = build_table(cm, available=available, show_gpu=show_gpu)
    if output_format == 'table' and not out:
        click.echo(render_text(table), nl=False)
        return
    out_path = _resolve_out_path(out, generator, target.name)
    generator.generate(table, target.name, out_path)
    click.echo(f'Wrote {output_format} report to {out_path}')


@cli.command('help', add_help_option=False)
@click.argument('command', required=False)
@click.pass_context
def help_cmd(ctx, command):
    """Show context-driven help for a command, or list all commands."""
    group = ctx.parent.command if ctx.parent else ctx.command
    if not command:
        click.echo("Available commands:")
        for cmd_name in group.commands:
            click.echo(f"  {cmd_name}")
        click.echo("\nRun 'node-capacity help <command>' for details.")
        return
    cmd = group.commands.get(command)
    if not cmd:
        click.echo(f"Unknown command: {command}")
        click.echo("Run 'node-capacity help' to list available commands.")
        return
    with click.Context(cmd) as cmd_ctx:
        click.echo(cmd.get_help(cmd_ctx))


if __name__ == '__main__':
    cli()
