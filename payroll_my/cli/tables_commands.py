"""Statutory table commands: list versions, show a table, look up a wage."""

import json

import click

from payroll_my.sdk import (
    StatutoryError,
    get_rules_dir,
    list_table_versions,
    load_wage_band_table,
    load_pcb_rules,
    lookup_wage_band,
)
from payroll_my.sdk.taxes.tables import TABLE_KINDS, WAGE_BAND_SCHEMES, parse_date

from .params import MONEY


@click.group()
def tables():
    """Inspect the SOCSO, EIS and PCB tables.

    Tables are versioned by effective date. A pay date uses the latest
    version effective on or before it.
    """
    pass


@tables.command("list")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text")
def tables_list(output_format):
    """List available table versions by kind."""
    try:
        rules_dir = get_rules_dir()
        versions = {kind: [v.isoformat() for v in list_table_versions(kind, rules_dir)] for kind in TABLE_KINDS}
    except StatutoryError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(json.dumps(versions, indent=2))
        return

    for kind, dates in versions.items():
        click.echo(f"{kind}:")
        if not dates:
            click.echo("  (none)")
        for i, effective in enumerate(dates):
            marker = "  [latest]" if i == len(dates) - 1 else ""
            click.echo(f"  {effective}{marker}")


@tables.command("show")
@click.argument("kind", type=click.Choice(TABLE_KINDS))
@click.option("--date", "on_date", help="Show the version in force on this date (YYYY-MM-DD).")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text")
def tables_show(kind, on_date, output_format):
    """Show one table: wage bands for socso/eis, brackets and reliefs for pcb."""
    try:
        effective = parse_date(on_date) if on_date else None
        rules_dir = get_rules_dir()
        if kind in WAGE_BAND_SCHEMES:
            table = load_wage_band_table(kind, effective, rules_dir)
        else:
            table = load_pcb_rules(effective, rules_dir)
    except StatutoryError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(json.dumps(table.model_dump(mode="json"), indent=2))
        return

    click.echo(f"{kind.upper()} effective {table.effective_from.isoformat()}")
    if table.description:
        click.echo(table.description)
    click.echo("=" * 56)

    if kind in WAGE_BAND_SCHEMES:
        click.echo(f"Wage ceiling: RM{table.wage_ceiling:,.2f}")
        click.echo(f"  {'From':>10} {'Below':>10} {'Employee':>12} {'Employer':>12}")
        for tier in table.tiers:
            upper = f"{tier.upper_bound:>10,.2f}" if tier.upper_bound is not None else f"{'-':>10}"
            click.echo(f"  {tier.lower_bound:>10,.2f} {upper} {tier.employee:>12,.2f} {tier.employer:>12,.2f}")
        return

    click.echo(f"  {'Chargeable from':>16} {'Rate %':>8} {'Tax on lower':>14}")
    for bracket in table.brackets:
        click.echo(f"  {bracket.lower_bound:>16,.2f} {bracket.rate_percent:>8} {bracket.cumulative_tax:>14,.2f}")
    click.echo("")
    click.echo("Reliefs:")
    for name, amount in table.reliefs.model_dump().items():
        click.echo(f"  {name:<24} RM{amount:>10,.2f}")
    click.echo(
        f"Rebate: RM{table.rebate.individual:,.2f} (+RM{table.rebate.spouse:,.2f} KB) "
        f"when chargeable income <= RM{table.rebate.chargeable_income_limit:,.2f}"
    )
    click.echo(f"EPF relief cap: RM{table.epf_relief_cap:,.2f}")
    click.echo(f"Non-resident rate: {table.non_resident_rate_percent}%")


@tables.command("lookup")
@click.argument("scheme", type=click.Choice(WAGE_BAND_SCHEMES))
@click.argument("wage", type=MONEY)
@click.option("--date", "on_date", help="Use the table in force on this date (YYYY-MM-DD).")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text")
def tables_lookup(scheme, wage, on_date, output_format):
    """Look up the SOCSO or EIS contribution for a monthly wage."""
    try:
        effective = parse_date(on_date) if on_date else None
        table = load_wage_band_table(scheme, effective, get_rules_dir())
        pair = lookup_wage_band(wage, table)
    except StatutoryError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        output = {
            "scheme": scheme,
            "table": table.effective_from.isoformat(),
            "wage": str(wage),
            "capped": wage > table.wage_ceiling,
            **pair.model_dump(mode="json"),
        }
        click.echo(json.dumps(output, indent=2))
        return

    click.echo(f"{scheme.upper()} (table {table.effective_from.isoformat()}) for RM{wage:,.2f}:")
    click.echo(f"  Employee: RM{pair.employee:,.2f}")
    click.echo(f"  Employer: RM{pair.employer:,.2f}")
