"""Config CLI commands for Payroll MY.

- settings.json: machine-specific settings (profile path, rules_dir)
- profile.yaml: employer EPF rates and per-employee tax profiles
"""

import json
import os
from pathlib import Path

import click

from payroll_my.sdk import (
    StatutoryError,
    get_config_dir,
    get_settings_path,
    load_settings,
    set_setting,
    get_profile_path,
    load_profile,
    get_rules_dir,
    load_epf_rates,
)
from payroll_my.sdk.config import CONFIG_ENV_VAR
from payroll_my.sdk.taxes.tables import TABLE_KINDS


@click.group()
def config():
    """Show and edit machine-specific settings (settings.json)."""
    pass


@config.command("show")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text")
def config_show(output_format):
    """Show configuration paths, active profile and effective EPF rates."""
    try:
        settings = load_settings()
        profile_path = get_profile_path()
        profile = load_profile(require_exists=False)
        rules_dir = get_rules_dir()
        epf_rates = load_epf_rates(profile)
    except StatutoryError as e:
        raise click.ClickException(str(e))

    employees = sorted(str(k) for k in (profile.get("employees") or {}))

    if output_format == "json":
        output = {
            "config_dir": str(get_config_dir()),
            "settings_file": str(get_settings_path()),
            "settings": settings,
            "profile": str(profile_path),
            "profile_exists": profile_path.exists(),
            "rules_dir": str(rules_dir) if rules_dir else None,
            "employees": employees,
            "epf_rates": epf_rates.model_dump(mode="json"),
        }
        click.echo(json.dumps(output, indent=2))
        return

    source = f"from {CONFIG_ENV_VAR}" if os.environ.get(CONFIG_ENV_VAR) else "XDG default"
    click.echo("Configuration paths:")
    click.echo(f"  Config directory: {get_config_dir()}")
    click.echo(f"    ({source})")
    settings_path = get_settings_path()
    click.echo(f"  Settings file:    {settings_path} [{'exists' if settings_path.exists() else 'not found'}]")
    click.echo(f"  Profile:          {profile_path} [{'exists' if profile_path.exists() else 'not found'}]")
    click.echo(f"  Rules directory:  {rules_dir or '(bundled tables)'}")
    click.echo()
    click.echo(f"Employees: {', '.join(employees) if employees else '(none)'}")
    click.echo()
    click.echo("EPF rates:")
    click.echo(f"  Employee:                    {epf_rates.employee_rate * 100:.2f}%")
    click.echo(f"  Employer (wage <= RM{epf_rates.threshold:,.2f}): {epf_rates.employer_rate_below_threshold * 100:.2f}%")
    click.echo(f"  Employer (wage >  RM{epf_rates.threshold:,.2f}): {epf_rates.employer_rate_above_threshold * 100:.2f}%")


@config.command("set-profile")
@click.argument("profile_path", type=click.Path())
def config_set_profile(profile_path):
    """Point settings.json at a profile.yaml outside the config directory."""
    path = Path(profile_path).expanduser().resolve()
    if not path.exists():
        click.echo(f"Warning: {path} does not exist yet", err=True)
    try:
        settings_file = set_setting("profile", str(path))
    except StatutoryError as e:
        raise click.ClickException(str(e))
    click.echo(f"Profile set to {path}")
    click.echo(f"  (saved in {settings_file})")


@config.command("set-rules-dir")
@click.argument("rules_dir", type=click.Path(exists=True, file_okay=False))
def config_set_rules_dir(rules_dir):
    """Use statutory tables from RULES_DIR instead of the bundled ones.

    RULES_DIR must contain socso/, eis/ and pcb/ subdirectories of
    YYYY-MM-DD.yaml files.
    """
    path = Path(rules_dir).expanduser().resolve()
    missing = [kind for kind in TABLE_KINDS if not (path / kind).is_dir()]
    if missing:
        raise click.ClickException(f"{path} is missing table directories: {', '.join(missing)}")
    try:
        settings_file = set_setting("rules_dir", str(path))
    except StatutoryError as e:
        raise click.ClickException(str(e))
    click.echo(f"Rules directory set to {path}")
    click.echo(f"  (saved in {settings_file})")
