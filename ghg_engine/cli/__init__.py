"""GHG Engine CLI - Main entry point.

Developer preview tool over the calculation engine.

Usage:
    ghg-engine calculate --value 1000 --unit kWh --category electricity --region US --year 2024
    ghg-engine normalize 100 therms natural_gas
    ghg-engine resolve --category diesel --region US --unit gallon
    ghg-engine factors --category electricity --region GB
    ghg-engine batch activities.yaml
"""
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ghg_engine.calculation import (
    BatchCalculator,
    EmissionCalculator,
    FactorResolver,
    UnitNormalizer,
    map_to_factor_unit,
)
from ghg_engine.config import get_config
from ghg_engine.data.factor_store import FactorStore, InMemoryFactorStore
from ghg_engine.exceptions import GHGEngineException, NoFactorFoundError
from ghg_engine.models import ActivityRecord

console = Console()

# Create main app
app = typer.Typer(
    name="ghg-engine",
    help="GHG emissions calculation engine",
    no_args_is_help=True,
    rich_markup_mode="rich"
)


RegistryOption = typer.Option(
    None, "--registry", "-r", help="YAML emission factor registry (bundled if omitted)"
)
DatabaseOption = typer.Option(
    None, "--database-url", help="Read factors from a SQL database instead of YAML"
)
JsonOption = typer.Option(False, "--json", help="Output results as JSON")


@app.callback()
def _configure(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
):
    level = (log_level or get_config().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_store(registry: Optional[Path], database_url: Optional[str]) -> FactorStore:
    if database_url:
        from ghg_engine.db.store import SQLFactorStore
        return SQLFactorStore.from_url(database_url)
    if registry:
        return InMemoryFactorStore.from_yaml(registry)
    return InMemoryFactorStore.from_config()


def _fail(error: Exception) -> None:
    if isinstance(error, NoFactorFoundError):
        console.print(f"[red]{escape(error.user_message)}[/red]")
    else:
        console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(1)


@app.command()
def calculate(
    value: float = typer.Option(..., "--value", "-v", help="Activity quantity"),
    unit: str = typer.Option(..., "--unit", "-u", help="Activity unit"),
    category: str = typer.Option(..., "--category", "-c", help="Activity category"),
    region: str = typer.Option("GLOBAL", "--region", help="Region code"),
    year: int = typer.Option(..., "--year", "-y", help="Reporting year"),
    subcategory: Optional[str] = typer.Option(None, "--subcategory", "-s"),
    custom_factor_id: Optional[str] = typer.Option(None, "--custom-factor-id"),
    organization_id: Optional[str] = typer.Option(None, "--organization-id"),
    registry: Optional[Path] = RegistryOption,
    database_url: Optional[str] = DatabaseOption,
    output_json: bool = JsonOption,
):
    """Calculate emissions for one activity

    Examples:
        ghg-engine calculate -v 100 -u therms -c natural_gas -y 2025
        ghg-engine calculate -v 10 -u kg -c refrigerant -s R-410A -y 2024 --json
    """
    try:
        record = ActivityRecord(
            activity_value=value,
            activity_unit=unit,
            category=category,
            subcategory=subcategory,
            region=region,
            year=year,
            custom_factor_id=custom_factor_id,
        )
        calculator = EmissionCalculator(_load_store(registry, database_url))
        result = calculator.calculate(record, organization_id)
    except (GHGEngineException, ValidationError) as e:
        _fail(e)

    if output_json:
        typer.echo(result.to_json())
        return

    table = Table(title="Emissions", show_header=True, header_style="bold")
    table.add_column("Gas")
    table.add_column("kg", justify="right")
    table.add_row("CO2e", f"{result.co2e:.4f}")
    table.add_row("CO2", f"{result.co2:.4f}")
    table.add_row("CH4 (CO2e)", f"{result.ch4:.4f}")
    table.add_row("N2O (CO2e)", f"{result.n2o:.4f}")
    console.print(table)
    console.print(f"[bold]Method:[/bold] {result.calculation_method}")
    console.print(f"[bold]Factor source:[/bold] {result.emission_factor_source}")
    if result.gas_split_estimated:
        console.print("[yellow]Gas split estimated from the fallback ratio[/yellow]")
    console.print()
    for line in result.methodology.splitlines():
        console.print(f"  {line}", highlight=False)


@app.command()
def normalize(
    value: float = typer.Argument(..., help="Activity quantity"),
    unit: str = typer.Argument(..., help="Activity unit"),
    category: str = typer.Argument(..., help="Activity category"),
    output_json: bool = JsonOption,
):
    """Normalize an activity quantity to its canonical unit"""
    normalized = UnitNormalizer().normalize(value, unit, category)
    factor_unit = map_to_factor_unit(normalized.unit, category)

    if output_json:
        payload = normalized.to_dict()
        payload["factor_unit"] = factor_unit
        typer.echo(json.dumps(payload, indent=2))
        return

    console.print(
        f"{value} {normalized.original_unit} -> {normalized.value:.4f} {normalized.unit} "
        f"(factor: {normalized.conversion_factor}, {normalized.kind.value})",
        highlight=False,
    )
    console.print(f"Reference unit: {factor_unit}", highlight=False)


@app.command()
def resolve(
    category: str = typer.Option(..., "--category", "-c"),
    region: str = typer.Option("GLOBAL", "--region"),
    unit: str = typer.Option(..., "--unit", "-u", help="Canonical unit (kWh, liter, km, kg, ...)"),
    subcategory: Optional[str] = typer.Option(None, "--subcategory", "-s"),
    year: Optional[int] = typer.Option(None, "--year", "-y"),
    registry: Optional[Path] = RegistryOption,
    database_url: Optional[str] = DatabaseOption,
    output_json: bool = JsonOption,
):
    """Resolve the emission factor for a category, region and unit"""
    factor_unit = map_to_factor_unit(unit, category)
    try:
        resolver = FactorResolver(_load_store(registry, database_url))
        factor = resolver.resolve(category, subcategory, region, factor_unit, year)
    except GHGEngineException as e:
        _fail(e)

    if factor is None:
        _fail(NoFactorFoundError(category, subcategory, region, unit))

    if output_json:
        typer.echo(json.dumps(factor.to_dict(), indent=2))
        return

    console.print(
        f"{factor.value} {factor.unit} (Source: {factor.source} {factor.year}, "
        f"Region: {factor.region}, step: {factor.fallback_step.value})",
        highlight=False,
    )


@app.command()
def factors(
    category: Optional[str] = typer.Option(None, "--category", "-c"),
    region: Optional[str] = typer.Option(None, "--region", help="Region (GLOBAL factors included)"),
    registry: Optional[Path] = RegistryOption,
    database_url: Optional[str] = DatabaseOption,
    output_json: bool = JsonOption,
):
    """List active emission factors"""
    try:
        rows = _load_store(registry, database_url).list_factors(category=category, region=region)
    except GHGEngineException as e:
        _fail(e)

    if output_json:
        typer.echo(json.dumps([f.to_dict() for f in rows], indent=2))
        return

    table = Table(title=f"Emission factors ({len(rows)})", show_header=True, header_style="bold")
    for column in ("Category", "Subcategory", "Region", "Unit", "kgCO2e/unit", "Source", "Year"):
        table.add_column(column)
    for f in rows:
        table.add_row(
            f.category, f.subcategory or "-", f.region, f.unit,
            str(f.co2e_per_unit), f.source, str(f.year),
        )
    console.print(table)


@app.command()
def batch(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML or JSON list of activities"),
    organization_id: Optional[str] = typer.Option(None, "--organization-id"),
    registry: Optional[Path] = RegistryOption,
    database_url: Optional[str] = DatabaseOption,
    output_json: bool = JsonOption,
):
    """Calculate a file of activities and summarize by scope and category"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or []
        if isinstance(data, dict):
            data = data.get("activities") or []
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a list of activities")
        records: List[ActivityRecord] = [ActivityRecord.model_validate(row) for row in data]
        calculator = EmissionCalculator(_load_store(registry, database_url))
        result = BatchCalculator(calculator).calculate_batch(records, organization_id)
    except (GHGEngineException, ValidationError, yaml.YAMLError, ValueError) as e:
        _fail(e)

    if output_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        if result.failed_count:
            raise typer.Exit(1)
        return

    summary = result.summary()
    table = Table(title="Emissions by category", show_header=True, header_style="bold")
    for column in ("Category", "Scope", "kg CO2e", "%", "Entries"):
        table.add_column(column)
    for c in summary.by_category:
        table.add_row(
            c.category, c.scope.value, f"{c.total_co2e:.2f}",
            f"{c.percentage:.1f}", str(c.entry_count),
        )
    console.print(table)
    console.print(
        f"Scope 1: {summary.total_scope1:.2f}  Scope 2: {summary.total_scope2:.2f}  "
        f"Scope 3: {summary.total_scope3:.2f}  Total: {summary.total_emissions:.2f} kg CO2e",
        highlight=False,
    )
    for error in result.get_errors():
        console.print(f"[red]{escape(error)}[/red]")
    if result.failed_count:
        raise typer.Exit(1)


def main():
    """Main entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(1)


__all__ = ["app", "main"]
