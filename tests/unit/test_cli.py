"""Tests for the payroll-my CLI."""

import json

import pytest
import yaml
from click.testing import CliRunner

from payroll_my.cli.__main__ import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestCalc:

    def test_text_output(self, runner):
        result = runner.invoke(cli, ["calc", "3500", "--month", "6"])
        assert result.exit_code == 0, result.output
        assert "MONTH 6" in result.output
        assert "385.00" in result.output
        assert "11.15" in result.output
        assert "420.30" in result.output

    def test_json_output(self, runner):
        result = runner.invoke(cli, ["calc", "3500", "--month", "6", "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["result"]["epf"] == {"employee": "385.00", "employer": "455.00"}
        assert data["result"]["pcb"] == "11.15"
        assert data["result"]["total_employer_contribution"] == "522.25"
        assert data["tables"]["socso"] == "2024-10-01"

    def test_profile_flags(self, runner):
        result = runner.invoke(cli, [
            "calc", "10000", "--category", "kb", "--disabled-spouse", "--children", "2", "--format", "json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["profile"]["category"] == "KB"
        assert data["result"]["pcb"] == "688.35"

    def test_date_selects_legacy_tables(self, runner):
        result = runner.invoke(cli, ["calc", "8000", "--date", "2024-09-30", "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["month"] == 9
        assert data["result"]["socso"]["employee"] == "24.75"

    def test_breakdown(self, runner):
        result = runner.invoke(cli, ["calc", "3500", "--month", "6", "--breakdown", "--format", "json"])
        data = json.loads(result.output)
        assert data["pcb_breakdown"]["remaining_months"] == 6
        assert data["pcb_breakdown"]["pcb"] == data["result"]["pcb"]

    def test_breakdown_text(self, runner):
        result = runner.invoke(cli, ["calc", "3500", "--month", "6", "--breakdown"])
        assert result.exit_code == 0, result.output
        assert "PCB BREAKDOWN" in result.output
        assert "Chargeable income (P)" in result.output

    def test_toggles(self, runner):
        result = runner.invoke(cli, ["calc", "3500", "--no-eis", "--no-pcb", "--format", "json"])
        data = json.loads(result.output)
        assert data["result"]["eis"] == {"employee": "0.00", "employer": "0.00"}
        assert data["result"]["pcb"] == "0.00"

    def test_invalid_amount(self, runner):
        result = runner.invoke(cli, ["calc", "abc"])
        assert result.exit_code != 0
        assert "not a valid amount" in result.output

    def test_negative_gross_is_error(self, runner):
        result = runner.invoke(cli, ["calc", "--", "-100"])
        assert result.exit_code == 1
        assert "gross_salary must be non-negative" in result.output

    def test_profile_error_reported(self, runner):
        result = runner.invoke(cli, ["calc", "3000", "--children", "1", "--higher-ed-children", "2"])
        assert result.exit_code == 1
        assert "exceeds number_of_children" in result.output

    def test_employee_from_profile(self, runner, isolated_config):
        with open(isolated_config / "profile.yaml", "w") as f:
            yaml.safe_dump({
                "employer": {"epf": {"employee_rate": 0.09}},
                "employees": {"E1": {"tax_profile": {"category": "KC"}, "toggles": {"has_socso": False}}},
            }, f)
        result = runner.invoke(cli, ["calc", "4000", "--employee", "E1", "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["profile"]["category"] == "KC"
        assert data["result"]["epf"]["employee"] == "360.00"
        assert data["result"]["socso"]["employee"] == "0.00"

    def test_employee_without_profile(self, runner):
        result = runner.invoke(cli, ["calc", "4000", "--employee", "E1"])
        assert result.exit_code == 1
        assert "No profile found" in result.output

    def test_flags_override_employee_profile(self, runner, isolated_config):
        with open(isolated_config / "profile.yaml", "w") as f:
            yaml.safe_dump({
                "employees": {"E2": {"tax_profile": {
                    "category": "KB", "disabled_spouse": True, "disabled_self": True,
                    "resident_status": "non_resident",
                }}},
            }, f)
        result = runner.invoke(cli, [
            "calc", "5000", "--employee", "E2", "--no-disabled-spouse", "--no-disabled-self",
            "--resident", "--format", "json",
        ])
        assert result.exit_code == 0, result.output
        profile = json.loads(result.output)["profile"]
        assert profile["disabled_spouse"] is False
        assert profile["disabled_self"] is False
        assert profile["resident_status"] == "resident"

    def test_employee_profile_kept_without_flags(self, runner, isolated_config):
        with open(isolated_config / "profile.yaml", "w") as f:
            yaml.safe_dump({"employees": {"E2": {"tax_profile": {"category": "KB", "disabled_spouse": True}}}}, f)
        result = runner.invoke(cli, ["calc", "5000", "--employee", "E2", "--format", "json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["profile"]["disabled_spouse"] is True


class TestYear:

    def test_json_full_year(self, runner):
        result = runner.invoke(cli, ["year", "10000", "--format", "json"])
        assert result.exit_code == 0, result.output
        months = json.loads(result.output)["months"]
        assert len(months) == 12
        assert months[0]["result"]["pcb"] == "929.20"
        assert months[-1]["ytd"]["pcb_deducted"] == "11150.00"

    def test_from_month(self, runner):
        result = runner.invoke(cli, [
            "year", "10000", "--from-month", "10", "--ytd-gross", "90000", "--ytd-epf", "4000",
            "--ytd-pcb", "8362.55", "--format", "json",
        ])
        assert result.exit_code == 0, result.output
        months = json.loads(result.output)["months"]
        assert [m["month"] for m in months] == [10, 11, 12]
        assert months[-1]["ytd"]["pcb_deducted"] == "11150.00"

    def test_calendar_year_switches_tables(self, runner):
        result = runner.invoke(cli, ["year", "8000", "--year", "2024", "--format", "json"])
        months = json.loads(result.output)["months"]
        assert months[8]["result"]["socso"]["employee"] == "24.75"
        assert months[9]["result"]["socso"]["employee"] == "29.75"

    def test_text_output(self, runner):
        result = runner.invoke(cli, ["year", "5000", "--bonus", "5000"])
        assert result.exit_code == 0, result.output
        assert "YEAR PROJECTION" in result.output
        assert "Total" in result.output


class TestTables:

    def test_list(self, runner):
        result = runner.invoke(cli, ["tables", "list", "--format", "json"])
        data = json.loads(result.output)
        assert data["socso"] == ["2022-09-01", "2024-10-01"]
        assert data["pcb"] == ["2022-01-01", "2023-01-01"]

    def test_list_text_marks_latest(self, runner):
        result = runner.invoke(cli, ["tables", "list"])
        assert "2024-10-01  [latest]" in result.output

    def test_show_wage_band(self, runner):
        result = runner.invoke(cli, ["tables", "show", "eis", "--date", "2024-01-01"])
        assert result.exit_code == 0, result.output
        assert "effective 2022-09-01" in result.output
        assert "Wage ceiling: RM5,000.00" in result.output

    def test_show_pcb_json(self, runner):
        result = runner.invoke(cli, ["tables", "show", "pcb", "--format", "json"])
        data = json.loads(result.output)
        assert data["effective_from"] == "2023-01-01"
        assert data["reliefs"]["individual"] == "9000"

    def test_lookup(self, runner):
        result = runner.invoke(cli, ["tables", "lookup", "socso", "3500", "--format", "json"])
        data = json.loads(result.output)
        assert data["employee"] == "17.25"
        assert data["employer"] == "60.35"
        assert data["capped"] is False

    def test_lookup_capped(self, runner):
        result = runner.invoke(cli, ["tables", "lookup", "eis", "9000", "--format", "json"])
        data = json.loads(result.output)
        assert data["employee"] == "11.90"
        assert data["capped"] is True

    def test_date_before_tables(self, runner):
        result = runner.invoke(cli, ["tables", "show", "socso", "--date", "2019-01-01"])
        assert result.exit_code == 1
        assert "No socso table in force" in result.output


class TestConfig:

    def test_show_json(self, runner, isolated_config):
        result = runner.invoke(cli, ["config", "show", "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["config_dir"] == str(isolated_config)
        assert data["profile_exists"] is False
        assert data["epf_rates"]["employee_rate"] == "0.11"

    def test_show_text(self, runner):
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "from PAYROLL_MY_CONFIG_PATH" in result.output
        assert "(bundled tables)" in result.output

    def test_set_profile(self, runner, isolated_config, tmp_path):
        target = tmp_path / "team.yaml"
        target.write_text("employees: {}\n")
        result = runner.invoke(cli, ["config", "set-profile", str(target)])
        assert result.exit_code == 0, result.output
        settings = json.loads((isolated_config / "settings.json").read_text())
        assert settings["profile"] == str(target.resolve())

    def test_set_rules_dir_requires_table_dirs(self, runner, tmp_path):
        result = runner.invoke(cli, ["config", "set-rules-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "missing table directories" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "payroll-my" in result.output
