"""Payroll MY CLI - Malaysian statutory deductions from the command line."""

import json
import logging
from datetime import date

import click

from payroll_my import __version__
from payroll_my.sdk import (
    StatutoryError,
    PeriodInput,
    StatutoryToggles,
    TaxProfile,
    YtdSnapshot,
    load_profile,
    load_epf_rates,
    load_employee,
    get_rules_dir,
    load_statutory_tables,
    calculate_all_statutory,
    calculate_pcb_breakdown,
    calculate_periods_in_sequence,
    build_year_periods,
)

from .config_commands import config as config_group
from .params import MONEY
from .tables_commands import tables as tables_group


@click.group()
@click.version_option(version=__version__, prog_name="payroll-my")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose):
    """Payroll MY - Malaysian statutory payroll deductions.

    Calculates EPF, SOCSO, EIS and PCB for a monthly pay period using
    the statutory tables in force on the pay date.

    Configuration is loaded from (in order):

    \b
    1. PAYROLL_MY_CONFIG_PATH environment variable
    2. settings.json 'profile' key (if set)
    3. ~/.config/payroll-my/profile.yaml (XDG default)

    Run 'payroll-my config show' to see the resolved configuration.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


cli.add_command(config_group)
cli.add_command(tables_group)


def profile_options(f):
    """Tax profile, YTD and toggle options shared by calc and year."""
    options = [
        click.option("--employee", "employee_id", help="Load tax profile and toggles from profile.yaml employees.<ID>."),
        click.option("--category", type=click.Choice(["KA", "KB", "KC"], case_sensitive=False),
                     help="Tax category (default KA).  KB: spouse not working."),
        click.option("--children", type=int, help="Number of qualifying children."),
        click.option("--higher-ed-children", type=int, help="Children in higher education (included in --children)."),
        click.option("--disabled-children", type=int, help="Disabled children (included in --children)."),
        click.option("--disabled-self/--no-disabled-self", default=None, help="Employee is disabled."),
        click.option("--disabled-spouse/--no-disabled-spouse", default=None, help="Spouse is disabled (KB only)."),
        click.option("--non-resident/--resident", default=None, help="Non-resident: flat rate, no reliefs."),
        click.option("--ytd-gross", type=MONEY, default="0", help="Gross paid earlier this year."),
        click.option("--ytd-epf", type=MONEY, default="0", help="Employee EPF deducted earlier this year."),
        click.option("--ytd-pcb", type=MONEY, default="0", help="PCB deducted earlier this year."),
        click.option("--ytd-zakat", type=MONEY, default="0", help="Zakat paid earlier this year."),
        click.option("--no-epf", is_flag=True, help="Employee does not contribute to EPF."),
        click.option("--no-socso", is_flag=True, help="Employee is not covered by SOCSO."),
        click.option("--no-eis", is_flag=True, help="Employee is not covered by EIS."),
        click.option("--no-pcb", is_flag=True, help="Do not withhold PCB."),
        click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
                     help="Output format."),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _resident_status(non_resident):
    if non_resident is None:
        return None
    return "non_resident" if non_resident else "resident"


def _resolve_profile(opts: dict, profile_config: dict) -> tuple[TaxProfile, StatutoryToggles]:
    """Merge an employee from profile.yaml with command-line overrides."""
    if opts["employee_id"]:
        tax_profile, toggles = load_employee(opts["employee_id"], profile_config)
    else:
        tax_profile, toggles = TaxProfile(), StatutoryToggles()

    overrides = {
        "category": opts["category"],
        "number_of_children": opts["children"],
        "children_in_higher_education": opts["higher_ed_children"],
        "disabled_children": opts["disabled_children"],
        "disabled_self": opts["disabled_self"],
        "disabled_spouse": opts["disabled_spouse"],
        "resident_status": _resident_status(opts["non_resident"]),
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        tax_profile = TaxProfile(**{**tax_profile.model_dump(), **overrides})

    toggles = StatutoryToggles(
        has_epf=toggles.has_epf and not opts["no_epf"],
        has_socso=toggles.has_socso and not opts["no_socso"],
        has_eis=toggles.has_eis and not opts["no_eis"],
        has_pcb=toggles.has_pcb and not opts["no_pcb"],
    )
    return tax_profile, toggles


def _resolve_ytd(opts: dict) -> YtdSnapshot:
    return YtdSnapshot(
        gross=opts["ytd_gross"],
        epf=opts["ytd_epf"],
        pcb_deducted=opts["ytd_pcb"],
        zakat=opts["ytd_zakat"],
    )


def _parse_date_option(value):
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Invalid date '{value}'. Expected YYYY-MM-DD.", param_hint="--date")


def _format_result_text(result, period, profile, breakdown=None) -> str:
    """Format one period's deductions as a table for terminal display."""
    lines = []
    lines.append(f"STATUTORY DEDUCTIONS - MONTH {period.month} ({profile.category}, {profile.resident_status})")
    lines.append("=" * 50)
    lines.append(f"  {'Gross salary':<20} RM{period.gross_salary:>12,.2f}")
    if period.additional_remuneration:
        lines.append(f"  {'Bonus/arrears':<20} RM{period.additional_remuneration:>12,.2f}")
    lines.append("")
    lines.append(f"  {'':<20} {'Employee':>14} {'Employer':>14}")
    lines.append("  " + "-" * 48)
    for label, pair in (("EPF", result.epf), ("SOCSO", result.socso), ("EIS", result.eis)):
        lines.append(f"  {label:<20} RM{pair.employee:>12,.2f} RM{pair.employer:>12,.2f}")
    lines.append(f"  {'PCB':<20} RM{result.pcb:>12,.2f}")
    lines.append("  " + "-" * 48)
    lines.append(
        f"  {'Total':<20} RM{result.total_employee_deduction:>12,.2f} "
        f"RM{result.total_employer_contribution:>12,.2f}"
    )

    if breakdown is not None:
        lines.append("")
        lines.append("PCB BREAKDOWN")
        lines.append("-" * 50)
        rows = [
            ("Remaining months (n)", breakdown.remaining_months),
            ("Projected gross", breakdown.total_gross),
            ("EPF relief", breakdown.total_epf),
            ("Net income", breakdown.net_income),
            ("Reliefs", breakdown.reliefs),
            ("Chargeable income (P)", breakdown.chargeable_income),
            ("Bracket from (M)", breakdown.bracket_lower_bound),
            ("Rate % (R)", breakdown.rate_percent),
            ("Base tax (B)", breakdown.base_tax),
            ("Annual tax (T)", breakdown.annual_tax),
            ("Annual tax w/ bonus", breakdown.annual_tax_with_additional),
            ("PCB normal", breakdown.pcb_normal),
            ("PCB on bonus", breakdown.pcb_additional),
            ("Before rounding", breakdown.total_before_rounding),
        ]
        for label, value in rows:
            if value is None:
                continue
            if isinstance(value, int):
                lines.append(f"  {label:<24} {value:>14}")
            else:
                lines.append(f"  {label:<24} {value:>14,.2f}")

    return "\n".join(lines)


@cli.command("calc")
@click.argument("gross", type=MONEY)
@click.option("--month", type=click.IntRange(1, 12), help="Month of the tax year (default: month of --date, else 1).")
@click.option("--bonus", type=MONEY, default="0", help="Bonus/arrears paid this month.")
@click.option("--zakat", type=MONEY, default="0", help="Zakat paid this month.")
@click.option("--date", "pay_date", help="Pay date (YYYY-MM-DD) selecting the tables in force (default: latest).")
@click.option("--breakdown", is_flag=True, help="Show PCB intermediate values.")
@profile_options
def calc(gross, month, bonus, zakat, pay_date, breakdown, **opts):
    """Calculate EPF, SOCSO, EIS and PCB for one month.

    GROSS is the monthly gross salary in RM.

    \b
    Examples:
      payroll-my calc 3500 --month 6
      payroll-my calc 10000 --category KB --children 2 --breakdown
      payroll-my calc 6000 --date 2024-09-30 --format json
    """
    pay_date = _parse_date_option(pay_date)
    if month is None:
        month = pay_date.month if pay_date else 1

    try:
        profile_config = load_profile(require_exists=bool(opts["employee_id"]))
        tax_profile, toggles = _resolve_profile(opts, profile_config)
        ytd = _resolve_ytd(opts)
        period = PeriodInput(
            gross_salary=gross,
            month=month,
            additional_remuneration=bonus,
            zakat=zakat,
            epf_rates=load_epf_rates(profile_config),
        )
        tables = load_statutory_tables(pay_date, get_rules_dir())
        result = calculate_all_statutory(period, tax_profile, ytd, toggles, tables)
        pcb_breakdown = None
        if breakdown and toggles.has_pcb:
            pcb_breakdown = calculate_pcb_breakdown(period, tax_profile, ytd, toggles, tables)
    except (StatutoryError, ValueError) as e:
        raise click.ClickException(str(e))

    if opts["output_format"] == "json":
        output = {
            "month": period.month,
            "tables": {
                "socso": tables.socso.effective_from.isoformat(),
                "eis": tables.eis.effective_from.isoformat(),
                "pcb": tables.pcb.effective_from.isoformat(),
            },
            "profile": tax_profile.model_dump(mode="json"),
            "result": result.model_dump(mode="json"),
        }
        if pcb_breakdown is not None:
            output["pcb_breakdown"] = pcb_breakdown.model_dump(mode="json")
        click.echo(json.dumps(output, indent=2))
    else:
        click.echo(_format_result_text(result, period, tax_profile, pcb_breakdown))


def _format_year_text(outcomes, profile) -> str:
    """Format a month-by-month run with running PCB totals."""
    lines = []
    lines.append(f"YEAR PROJECTION ({profile.category}, {profile.resident_status})")
    lines.append("=" * 86)
    lines.append(
        f"  {'Month':>5} {'Gross':>11} {'EPF':>9} {'SOCSO':>8} {'EIS':>7} "
        f"{'PCB':>10} {'Net pay':>11} {'YTD PCB':>11}"
    )
    lines.append("  " + "-" * 84)
    for outcome in outcomes:
        period, result = outcome.period, outcome.result
        gross = period.gross_salary + period.additional_remuneration
        net = gross - result.total_employee_deduction
        lines.append(
            f"  {period.month:>5} {gross:>11,.2f} {result.epf.employee:>9,.2f} "
            f"{result.socso.employee:>8,.2f} {result.eis.employee:>7,.2f} "
            f"{result.pcb:>10,.2f} {net:>11,.2f} {outcome.ytd_after.pcb_deducted:>11,.2f}"
        )
    if outcomes:
        final = outcomes[-1].ytd_after
        lines.append("  " + "-" * 84)
        lines.append(
            f"  {'Total':>5} {final.gross:>11,.2f} {final.epf:>9,.2f} {final.socso_employee:>8,.2f} "
            f"{final.eis_employee:>7,.2f} {final.pcb_deducted:>10,.2f}"
        )
    return "\n".join(lines)


@cli.command("year")
@click.argument("gross", type=MONEY)
@click.option("--from-month", type=click.IntRange(1, 12), default=1, show_default=True,
              help="First month to calculate; pass earlier months through the --ytd-* options.")
@click.option("--bonus", type=MONEY, default="0", help="Bonus paid in --bonus-month.")
@click.option("--bonus-month", type=click.IntRange(1, 12), default=12, show_default=True)
@click.option("--zakat", type=MONEY, default="0", help="Zakat paid each month.")
@click.option("--year", "tax_year", type=int,
              help="Calendar year; each month uses the tables in force on its first day (default: latest tables).")
@profile_options
def year(gross, from_month, bonus, bonus_month, zakat, tax_year, **opts):
    """Run months FROM-MONTH..12 in sequence at a constant salary.

    GROSS is the monthly gross salary in RM. Each month's PCB sees the
    YTD totals of the months before it, so withholding self-corrects.

    \b
    Examples:
      payroll-my year 10000
      payroll-my year 5500 --bonus 11000 --bonus-month 12
      payroll-my year 6000 --year 2024 --format json
    """
    try:
        profile_config = load_profile(require_exists=bool(opts["employee_id"]))
        tax_profile, toggles = _resolve_profile(opts, profile_config)
        additional = {bonus_month: bonus} if bonus_month >= from_month else {}
        periods = build_year_periods(
            gross,
            start_month=from_month,
            additional=additional,
            zakat=zakat,
            epf_rates=load_epf_rates(profile_config),
        )
        rules_dir = get_rules_dir()
        if tax_year:
            outcomes = calculate_periods_in_sequence(
                periods,
                tax_profile,
                _resolve_ytd(opts),
                toggles,
                tables_for=lambda p: load_statutory_tables(date(tax_year, p.month, 1), rules_dir),
            )
        else:
            outcomes = calculate_periods_in_sequence(
                periods,
                tax_profile,
                _resolve_ytd(opts),
                toggles,
                tables=load_statutory_tables(None, rules_dir),
            )
    except (StatutoryError, ValueError) as e:
        raise click.ClickException(str(e))

    if opts["output_format"] == "json":
        output = {
            "profile": tax_profile.model_dump(mode="json"),
            "months": [
                {
                    "month": o.period.month,
                    "result": o.result.model_dump(mode="json"),
                    "ytd": o.ytd_after.model_dump(mode="json"),
                }
                for o in outcomes
            ],
        }
        click.echo(json.dumps(output, indent=2))
    else:
        click.echo(_format_year_text(outcomes, tax_profile))


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
