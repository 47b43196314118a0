#!/usr/bin/env python3
"""
FPL Price Predictor - CLI Interface

Command-line interface for FPL price-change predictions.
"""

import logging
from typing import Optional, List

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from .data.database import get_connection
from .data.repository import PriceChangeRepository
from .engine.player_prediction import build_player_prediction
from .engine.report import index_bootstrap, merge_transfer_feed, top_transfer_deltas
from .export import PredictionExporter
from .models.prediction import PlayerPrediction, PredictionReport
from .predictor import PricePredictor
from .utils.name_search import PlayerSearch

console = Console()


def _make_predictor(use_history: bool = True) -> PricePredictor:
    repository = PriceChangeRepository(get_connection()) if use_history else None
    return PricePredictor(repository=repository)


def load_report(predictor: PricePredictor, data_file: Optional[str]) -> Optional[PredictionReport]:
    """Build a report from a file or a live fetch, with a spinner"""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        if data_file:
            progress.add_task(f"Loading {data_file}...", total=None)
            report = predictor.load_from_file(data_file)
        else:
            progress.add_task("Fetching FPL data...", total=None)
            report = predictor.refresh()

    if report is None:
        console.print(f"[red]Failed to build predictions: {predictor.error}[/red]")
    return report


def _signal_style(prediction: PlayerPrediction) -> str:
    if prediction.signal.value == 'likely_up':
        return "green"
    if prediction.signal.value == 'likely_down':
        return "red"
    return "dim"


def display_predictions(title: str, predictions: List[PlayerPrediction]) -> None:
    """Display a risers or fallers table"""
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Player", style="cyan")
    table.add_column("Pos", style="yellow")
    table.add_column("Team", style="magenta")
    table.add_column("Price", justify="right")
    table.add_column("Own%", justify="right")
    table.add_column("Transfers", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Rate/h", justify="right")
    table.add_column("When")
    table.add_column("Signal")

    for p in predictions:
        transfers = p.transfers_in_event if p.is_riser else p.transfers_out_event
        style = _signal_style(p)
        table.add_row(
            p.web_name,
            p.position,
            str(p.team),
            f"£{p.price:.1f}m",
            f"{p.ownership:.1f}",
            f"{transfers:,}",
            f"[{style}]{p.progress:.2f}%[/{style}]",
            f"{p.hourly_change:+.3f}",
            p.change_time,
            f"[{style}]{p.signal.value}[/{style}]",
        )

    console.print(table)


def display_report(report: PredictionReport, limit: int) -> None:
    """Display the full risers/fallers report"""
    display_predictions("Likely Risers", report.risers[:limit])
    display_predictions("Likely Fallers", report.fallers[:limit])

    console.print(Panel(
        f"Predictions: {report.total_predictions}\n"
        f"Last updated: {report.last_updated.isoformat() if report.last_updated else '-'}\n"
        f"Next price update: {report.next_update.isoformat() if report.next_update else '-'}\n"
        f"Algorithm: {report.algorithm} ({report.accuracy})",
        title="Report"
    ))


def display_player(prediction: PlayerPrediction, in_report: bool) -> None:
    """Display a single player prediction"""
    table = Table(title=f"{prediction.web_name} - £{prediction.price:.1f}m", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Ownership", f"{prediction.ownership:.1f}%")
    table.add_row("Transfers in (GW)", f"{prediction.transfers_in_event:,}")
    table.add_row("Transfers out (GW)", f"{prediction.transfers_out_event:,}")
    table.add_row("P(rise)", f"{prediction.prob_up:.1%}")
    table.add_row("P(fall)", f"{prediction.prob_down:.1%}")
    table.add_row("Signal", prediction.signal.value)
    table.add_row("Progress", f"{prediction.progress:.2f}%")
    table.add_row("Hourly change", f"{prediction.hourly_change:+.3f}")
    table.add_row("Expected", prediction.change_time)

    console.print(table)

    if prediction.result is not None:
        console.print(f"\n[dim]{prediction.result.explanation}[/dim]")
    if not in_report:
        console.print("\n[yellow]Below the display cutoff; not shown in the risers/fallers lists[/yellow]")


# CLI Commands
@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, verbose):
    """FPL Price Predictor - Predict player price rises and falls"""
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option('--data', '-f', 'data_file', type=click.Path(exists=True),
              help='Saved bootstrap-static JSON (fetches live data if omitted)')
@click.option('--limit', '-n', default=20, type=int, help='Rows per table')
@click.option('--output', '-o', type=click.Path(), help='Export the report to a JSON file')
@click.option('--no-history', is_flag=True, help='Do not use the local price history')
def predict(data_file, limit, output, no_history):
    """Show likely price risers and fallers"""
    predictor = _make_predictor(not no_history)
    report = load_report(predictor, data_file)
    if report is None:
        raise SystemExit(1)

    display_report(report, limit)

    if output:
        exporter = PredictionExporter()
        path = exporter.export_report(report, filename=output)
        console.print(f"[green]Report exported to {path}[/green]")


@cli.command()
@click.argument('name')
@click.option('--data', '-f', 'data_file', type=click.Path(exists=True),
              help='Saved bootstrap-static JSON (fetches live data if omitted)')
def player(name, data_file):
    """Predict the price move of one player"""
    predictor = _make_predictor()
    report = load_report(predictor, data_file)
    if report is None:
        raise SystemExit(1)

    index = index_bootstrap(predictor.bootstrap)
    match = PlayerSearch(index.values()).best_match(name)
    if match is None:
        console.print(f"[red]Player '{name}' not found[/red]")
        raise SystemExit(1)

    prediction = report.get_prediction(match.id)
    in_report = prediction is not None
    if not in_report:
        elements = [e for e in predictor.bootstrap.get('elements', []) if e.get('id') == match.id]
        deltas = merge_transfer_feed(top_transfer_deltas(elements))
        if not deltas:
            console.print(f"[yellow]{match.web_name} has no transfer activity this gameweek[/yellow]")
            return
        prediction = build_player_prediction(
            deltas[0], index,
            history=predictor.get_history(),
            now=predictor.last_refresh,
            active_managers=predictor.active_managers,
            config=predictor.config,
            display=predictor.display,
        )

    display_player(prediction, in_report)


@cli.command()
@click.option('--days', '-d', default=7, type=int, help='Lookback in days')
def history(days):
    """Show recorded price changes"""
    predictor = _make_predictor()
    price_history = predictor.get_history(days=days)

    table = Table(title=f"Price changes - last {days} days", box=box.ROUNDED)
    table.add_column("Time (UTC)", style="cyan")
    table.add_column("Player", style="yellow")
    table.add_column("Change", justify="right")
    table.add_column("Price", justify="right")

    records = sorted(price_history.records, key=lambda r: r.change_time, reverse=True)
    for r in records:
        style = "green" if r.change_type == 'rise' else "red"
        new_price = f"£{r.new_price / 10:.1f}m" if r.new_price is not None else "-"
        table.add_row(
            r.change_time.strftime('%Y-%m-%d %H:%M'),
            r.web_name or str(r.player_id),
            f"[{style}]{r.change_amount / 10:+.1f}[/{style}]",
            new_price,
        )

    console.print(table)
    if not records:
        console.print("[yellow]No price changes recorded yet. Run 'record' periodically.[/yellow]")


@cli.command()
@click.option('--data', '-f', 'data_file', type=click.Path(exists=True),
              help='Saved bootstrap-static JSON (fetches live data if omitted)')
def record(data_file):
    """Record a price snapshot into the local history"""
    predictor = _make_predictor()
    before = predictor.repository.count()

    if load_report(predictor, data_file) is None:
        raise SystemExit(1)

    recorded = predictor.repository.count() - before
    console.print(f"[green]Snapshot recorded ({recorded} new price changes)[/green]")


@cli.command()
def info():
    """Show information about the predictor"""
    console.print(Panel(
        "[bold]FPL Price Predictor[/bold]\n\n"
        "Estimates which Fantasy Premier League players are about to rise or fall in price.\n\n"
        "[cyan]Model:[/cyan]\n"
        "• Transfers normalized by active managers and ownership\n"
        "• Ownership- and flag-dependent thresholds\n"
        "• Cooldown and same-direction damping after a recent change\n"
        "• Deadline time weighting and logistic probabilities\n\n"
        "[yellow]Usage:[/yellow]\n"
        "1. python -m fpl_prices.main predict\n"
        "2. python -m fpl_prices.main player 'Salah'\n"
        "3. python -m fpl_prices.main record   (run hourly to build price history)",
        title="About"
    ))


if __name__ == '__main__':
    cli()
