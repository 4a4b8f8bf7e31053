"""Tests for the operational CLI."""

from __future__ import annotations

import json
from decimal import Decimal
from uuid import uuid4

import pytest

from hr_payroll.cli import HRPayrollCli, _run_summary
from hr_payroll.config import Settings
from hr_payroll.models import PayrollRun


@pytest.fixture
def cli(tmp_path) -> HRPayrollCli:
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}",
        office_timezone="Asia/Kolkata",
        employee_cache_ttl=60,
        log_level="WARNING",
    )
    return HRPayrollCli(settings)


class TestParser:
    def test_no_command_prints_help(self, cli, capsys):
        assert cli.run([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_run_payroll_requires_employee(self, cli):
        with pytest.raises(SystemExit):
            cli.parser.parse_args(["run-payroll", "--start", "2026-10-01", "--end", "2026-10-31"])

    def test_run_payroll_arguments(self, cli):
        args = cli.parser.parse_args([
            "run-payroll",
            "--employee-id", "2b0f6c1e-8a4e-4a39-9d51-0f1f4f0d7d11",
            "--start", "2026-10-01",
            "--end", "2026-10-31",
            "--bonus", "500",
        ])

        assert str(args.employee_id) == "2b0f6c1e-8a4e-4a39-9d51-0f1f4f0d7d11"
        assert args.start.isoformat() == "2026-10-01"
        assert str(args.bonus) == "500"


    @pytest.mark.parametrize("month", ["0", "13"])
    def test_accrue_rejects_invalid_month(self, cli, month):
        with pytest.raises(SystemExit):
            cli.parser.parse_args(["accrue", "--month", month])


class TestCommands:
    def test_init_and_accrue(self, cli, capsys):
        assert cli.run(["init-db"]) == 0
        assert cli.run(["accrue", "--year", "2026", "--month", "10"]) == 0
        assert "processed=0" in capsys.readouterr().out

        assert cli.run(["accrue", "--year", "2026", "--month", "10"]) == 0
        assert "skipped" in capsys.readouterr().out

    def test_seed_tax_slab(self, cli, capsys):
        cli.run(["init-db"])
        capsys.readouterr()

        assert cli.run(["seed-tax-slab", "--max", "700000", "--percentage", "5"]) == 0
        assert len(capsys.readouterr().out.strip()) == 36

    def test_domain_error_exits_non_zero(self, cli, capsys):
        cli.run(["init-db"])

        code = cli.run(["mark-paid", "--run-id", "2b0f6c1e-8a4e-4a39-9d51-0f1f4f0d7d11"])

        assert code == 1
        assert "not found" in capsys.readouterr().err

    def test_run_payroll_for_unknown_employee(self, cli, capsys):
        cli.run(["init-db"])
        capsys.readouterr()

        code = cli.run([
            "run-payroll",
            "--employee-id", "2b0f6c1e-8a4e-4a39-9d51-0f1f4f0d7d11",
            "--start", "2026-10-01",
            "--end", "2026-10-31",
        ])

        out = capsys.readouterr()
        assert code == 1
        assert out.out == ""
        assert "Employee 2b0f6c1e-8a4e-4a39-9d51-0f1f4f0d7d11 not found" in out.err

    def test_run_summary_is_json(self, cli):
        run = PayrollRun(payroll_run_id=uuid4(), net_pay=Decimal("52200.00"), status="PROCESSED")

        summary = json.loads(json.dumps(_run_summary(run)))

        assert summary["net_pay"] == "52200.00"
        assert summary["payment_date"] is None
