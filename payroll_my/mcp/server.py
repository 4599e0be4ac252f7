"""Payroll MY MCP Server - FastMCP implementation for statutory deduction tools."""

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from payroll_my.sdk import (
    StatutoryError,
    PeriodInput,
    StatutoryToggles,
    TaxProfile,
    YtdSnapshot,
    get_rules_dir,
    list_table_versions,
    load_epf_rates,
    load_profile,
    load_statutory_tables,
    load_wage_band_table,
    lookup_wage_band,
    calculate_all_statutory,
    calculate_pcb_breakdown,
)
from payroll_my.sdk.taxes.tables import TABLE_KINDS

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("payroll-my")


# --- Tools ---

@mcp.tool()
async def calculate_statutory(
    gross_salary: str = Field(description="Monthly gross salary in RM (e.g., '3500.00')"),
    month: int = Field(description="Month of the tax year, 1-12"),
    category: str = Field(default="KA", description="Tax category: KA (single), KB (spouse not working), KC (spouse working)"),
    number_of_children: int = Field(default=0, description="Qualifying children, including those in higher education"),
    children_in_higher_education: int = Field(default=0, description="Children in diploma/degree studies"),
    disabled_children: int = Field(default=0, description="Disabled children"),
    disabled_self: bool = Field(default=False, description="Employee is disabled"),
    disabled_spouse: bool = Field(default=False, description="Spouse is disabled (KB only)"),
    non_resident: bool = Field(default=False, description="Employee is a non-resident"),
    additional_remuneration: str = Field(default="0", description="Bonus/arrears paid this month"),
    zakat: str = Field(default="0", description="Zakat paid this month"),
    ytd_gross: str = Field(default="0", description="Gross paid earlier this year, including bonuses"),
    ytd_epf: str = Field(default="0", description="Employee EPF deducted earlier this year"),
    ytd_pcb: str = Field(default="0", description="PCB deducted earlier this year"),
    ytd_zakat: str = Field(default="0", description="Zakat paid earlier this year"),
    has_epf: bool = Field(default=True, description="Employee contributes to EPF"),
    has_socso: bool = Field(default=True, description="Employee is covered by SOCSO"),
    has_eis: bool = Field(default=True, description="Employee is covered by EIS"),
    has_pcb: bool = Field(default=True, description="Withhold PCB"),
    pay_date: str | None = Field(default=None, description="Pay date YYYY-MM-DD selecting the tables in force (default: latest)"),
    include_breakdown: bool = Field(default=False, description="Include PCB intermediate values"),
) -> dict[str, Any]:
    """Calculate EPF, SOCSO, EIS and PCB for one monthly pay period. Amounts are strings with 2 decimals."""
    try:
        profile = TaxProfile(
            category=category,
            number_of_children=number_of_children,
            children_in_higher_education=children_in_higher_education,
            disabled_children=disabled_children,
            disabled_self=disabled_self,
            disabled_spouse=disabled_spouse,
            resident_status="non_resident" if non_resident else "resident",
        )
        period = PeriodInput(
            gross_salary=gross_salary,
            month=month,
            additional_remuneration=additional_remuneration,
            zakat=zakat,
            epf_rates=load_epf_rates(load_profile(require_exists=False)),
        )
        ytd = YtdSnapshot(gross=ytd_gross, epf=ytd_epf, pcb_deducted=ytd_pcb, zakat=ytd_zakat)
        toggles = StatutoryToggles(has_epf=has_epf, has_socso=has_socso, has_eis=has_eis, has_pcb=has_pcb)
        tables = load_statutory_tables(pay_date, get_rules_dir())

        result = calculate_all_statutory(period, profile, ytd, toggles, tables)

        output = {
            "result": result.model_dump(mode="json"),
            "tables": {
                "socso": tables.socso.effective_from.isoformat(),
                "eis": tables.eis.effective_from.isoformat(),
                "pcb": tables.pcb.effective_from.isoformat(),
            },
        }
        if include_breakdown and has_pcb:
            breakdown = calculate_pcb_breakdown(period, profile, ytd, toggles, tables)
            output["pcb_breakdown"] = breakdown.model_dump(mode="json")
        return output

    except (StatutoryError, ValueError) as e:
        logger.error(f"Error calculating statutory deductions: {e}")
        return {"error": str(e), "result": None}


@mcp.tool()
async def lookup_contribution(
    scheme: str = Field(description="'socso' or 'eis'"),
    wage: str = Field(description="Monthly wage in RM"),
    pay_date: str | None = Field(default=None, description="Pay date YYYY-MM-DD selecting the table (default: latest)"),
) -> dict[str, Any]:
    """Look up the SOCSO or EIS employee/employer contribution for a monthly wage."""
    try:
        table = load_wage_band_table(scheme, pay_date, get_rules_dir())
        pair = lookup_wage_band(wage, table)
        return {
            "scheme": scheme,
            "table": table.effective_from.isoformat(),
            "wage_ceiling": str(table.wage_ceiling),
            **pair.model_dump(mode="json"),
        }
    except (StatutoryError, ArithmeticError) as e:
        logger.error(f"Error looking up {scheme} contribution: {e}")
        return {"error": str(e) or f"Invalid wage: {wage}", "employee": None, "employer": None}


@mcp.tool()
async def list_tables() -> dict[str, Any]:
    """List available SOCSO, EIS and PCB table versions by effective date."""
    try:
        rules_dir = get_rules_dir()
        return {
            kind: [v.isoformat() for v in list_table_versions(kind, rules_dir)]
            for kind in TABLE_KINDS
        }
    except StatutoryError as e:
        logger.error(f"Error listing tables: {e}")
        return {"error": str(e)}


# --- Resources ---

@mcp.resource("payroll-my://tables/latest")
async def latest_tables_resource() -> str:
    """The latest SOCSO, EIS and PCB tables as JSON."""
    try:
        tables = load_statutory_tables(None, get_rules_dir())
        return json.dumps(tables.model_dump(mode="json"), indent=2)
    except StatutoryError as e:
        return json.dumps({"error": str(e)})


# --- Server Entry Point ---

def run_server():
    """Run the MCP server in stdio mode."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_server()
