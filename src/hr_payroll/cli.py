"""HR payroll command line interface.

Provides operational tools for:
- Schema creation
- Monthly leave accrual (the scheduler's trigger)
- Running and paying payroll
- Seeding tax slabs

Usage:
    python -m hr_payroll init-db
    python -m hr_payroll accrue [--year 2026 --month 10]
    python -m hr_payroll run-payroll --employee-id X --start 2026-10-01 --end 2026-10-31
    python -m hr_payroll mark-paid --run-id X
    python -m hr_payroll seed-tax-slab --min 0 --max 500000 --percentage 5
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.clock import office_clock
from hr_payroll.config import Settings, get_settings
from hr_payroll.database import Database
from hr_payroll.errors import HRPayrollError
from hr_payroll.models import PayrollRun, TaxSlab
from hr_payroll.services import LeaveAccrualService, PayrollRunService

logger = logging.getLogger(__name__)


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


def _run_summary(run: PayrollRun) -> dict[str, Any]:
    return {
        key: str(value) if value is not None else None
        for key, value in run.to_dict().items()
    }


class HRPayrollCli:
    """HR payroll command line interface."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m hr_payroll",
            description="HR payroll operational tools",
        )
        parser.add_argument(
            "--database-url",
            type=str,
            help="Database URL (default: $DATABASE_URL)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser("init-db", help="Create database tables")

        accrue = subparsers.add_parser(
            "accrue",
            help="Accrue one month of leave for every employee",
        )
        accrue.add_argument("--year", type=int, help="Accrual year (default: current)")
        accrue.add_argument(
            "--month",
            type=int,
            choices=range(1, 13),
            metavar="{1..12}",
            help="Accrual month (default: current)",
        )

        run = subparsers.add_parser("run-payroll", help="Compute and record payroll")
        run.add_argument("--employee-id", type=parse_uuid, required=True)
        run.add_argument("--start", type=parse_date, required=True, help="Period start")
        run.add_argument("--end", type=parse_date, required=True, help="Period end")
        run.add_argument("--bonus", type=Decimal, default=Decimal("0"))
        run.add_argument("--manual-deduction", type=Decimal, default=Decimal("0"))

        paid = subparsers.add_parser("mark-paid", help="Mark a payroll run as paid")
        paid.add_argument("--run-id", type=parse_uuid, required=True)

        slab = subparsers.add_parser("seed-tax-slab", help="Add a tax slab")
        slab.add_argument("--min", dest="min_salary", type=Decimal, default=Decimal("0"))
        slab.add_argument("--max", dest="max_salary", type=Decimal)
        slab.add_argument("--percentage", type=Decimal, required=True)
        slab.add_argument("--region", type=str, default="IN")
        slab.add_argument("--effective-date", type=parse_date)

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        logging.basicConfig(
            level=self.settings.log_level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )

        handlers: dict[str, Callable[[AsyncSession, argparse.Namespace], Awaitable[int]]] = {
            "accrue": self._cmd_accrue,
            "run-payroll": self._cmd_run_payroll,
            "mark-paid": self._cmd_mark_paid,
            "seed-tax-slab": self._cmd_seed_tax_slab,
        }

        url = parsed.database_url or self.settings.database_url
        if parsed.command == "init-db":
            return asyncio.run(self._init_db(url))

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return asyncio.run(self._in_session(url, handler, parsed))
        except HRPayrollError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        except Exception:
            logger.exception("Command %s failed", parsed.command)
            return 1

    async def _init_db(self, url: str) -> int:
        db = Database(url)
        await db.open()
        try:
            await db.create_schema()
        finally:
            await db.close()
        print("Schema created.")
        return 0

    async def _in_session(
        self,
        url: str,
        handler: Callable[[AsyncSession, argparse.Namespace], Awaitable[int]],
        args: argparse.Namespace,
    ) -> int:
        db = Database(url)
        await db.open()
        try:
            async with db.session() as session:
                return await handler(session, args)
        finally:
            await db.close()

    async def _cmd_accrue(self, session: AsyncSession, args: argparse.Namespace) -> int:
        """Accrue leave balances for a period."""
        service = LeaveAccrualService(session, clock=office_clock(self.settings))
        result = await service.accrue(year=args.year, month=args.month)
        if result.skipped:
            print(f"Accrual for {result.year:04d}-{result.month:02d} already done; skipped.")
        else:
            print(
                f"Accrued {result.year:04d}-{result.month:02d}: "
                f"processed={result.processed} initialized={result.initialized}"
            )
        return 0

    async def _cmd_run_payroll(
        self, session: AsyncSession, args: argparse.Namespace
    ) -> int:
        """Compute and record payroll for one employee."""
        service = PayrollRunService(session, clock=office_clock(self.settings))
        run = await service.process_payroll(
            args.employee_id,
            args.start,
            args.end,
            bonus=args.bonus,
            manual_deduction=args.manual_deduction,
        )
        print(json.dumps(_run_summary(run), indent=2))
        return 0

    async def _cmd_mark_paid(self, session: AsyncSession, args: argparse.Namespace) -> int:
        """Mark a processed payroll run as paid."""
        service = PayrollRunService(session, clock=office_clock(self.settings))
        run = await service.mark_paid(args.run_id)
        print(f"Payroll run {run.payroll_run_id} paid at {run.payment_date.isoformat()}")
        return 0

    async def _cmd_seed_tax_slab(
        self, session: AsyncSession, args: argparse.Namespace
    ) -> int:
        """Insert a tax slab and print its id."""
        slab = TaxSlab(
            min_salary=args.min_salary,
            max_salary=args.max_salary,
            tax_percentage=args.percentage,
            region=args.region,
            effective_date=args.effective_date,
        )
        session.add(slab)
        await session.flush()
        print(slab.tax_slab_id)
        return 0


def main() -> int:
    """CLI entry point."""
    cli = HRPayrollCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
