"""Prepaid Ledger Reconciliation Background Worker

Replays every client's prepaid ledger against the stored balance on a fixed
interval. Run it from a scheduler with ``--once`` (exit status 1 when
discrepancies are found) or as a long-lived process.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.client_billing_profile_repository import SqlAlchemyClientBillingProfileRepository
from src.adapter.repositories.ledger_transaction_repository import SqlAlchemyLedgerTransactionRepository
from src.app.use_cases.prepaid import ReconcileLedger, ReconciliationResultDTO
from src.app.use_cases.prepaid.dtos import LedgerDiscrepancyDTO

logger = logging.getLogger(__name__)


def describe_discrepancy(discrepancy: LedgerDiscrepancyDTO) -> str:
    """One-line description used by both the log and the CLI summary"""
    parts = [
        f"client {discrepancy.client_id} (profile_id={discrepancy.client_profile_id})",
        f"stored={discrepancy.stored_balance}",
        f"replayed={discrepancy.replayed_balance}",
    ]
    if discrepancy.broken_entry_ids:
        parts.append(f"broken_entries={discrepancy.broken_entry_ids}")
    return ", ".join(parts)


class LedgerReconcilerWorker:
    """
    Runs ReconcileLedger against its own engine

    The worker only reads: profiles and ledger entries are loaded in a
    short-lived session per cycle and nothing is written back. A mismatch is
    an operator alert, never an automatic correction.

    Usage:
        worker = LedgerReconcilerWorker()
        result = await worker.run_once()
        await worker.run_forever()  # RECONCILIATION_INTERVAL_SECONDS between cycles
    """

    def __init__(self, db_uri: Optional[str] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        engine_options = {"echo": False, "future": True}
        if ApplicationConfig.DB_ISOLATION_LEVEL:
            engine_options["isolation_level"] = ApplicationConfig.DB_ISOLATION_LEVEL
        self.engine = create_async_engine(self.db_uri, **engine_options)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("LedgerReconcilerWorker initialized")

    @staticmethod
    def _skipped_result() -> ReconciliationResultDTO:
        return ReconciliationResultDTO(
            total_profiles_checked=0,
            discrepancies_found=0,
            discrepancies=[],
            reconciliation_time=datetime.utcnow(),
            execution_time_ms=0,
        )

    async def run_once(self) -> ReconciliationResultDTO:
        """
        Reconcile every profile once

        Raises:
            RuntimeError: the reconciliation itself could not complete
        """
        if not ApplicationConfig.RECONCILIATION_ENABLED:
            logger.info("Ledger reconciliation is disabled, skipping")
            return self._skipped_result()

        async with self.async_session_factory() as session:
            result = await ReconcileLedger(
                profile_repo=SqlAlchemyClientBillingProfileRepository(session),
                transaction_repo=SqlAlchemyLedgerTransactionRepository(session),
            ).execute()

        if result.is_err():
            logger.error(f"Reconciliation failed: {result.error.message}")
            raise RuntimeError(f"Reconciliation failed: {result.error.message}")

        report = result.value
        if report.discrepancies_found:
            logger.error(
                f"ALERT: {report.discrepancies_found} of {report.total_profiles_checked} "
                f"prepaid ledgers do not reconcile"
            )
            for discrepancy in report.discrepancies:
                logger.error(f"  - {describe_discrepancy(discrepancy)}")
        return report

    async def run_forever(self, interval_seconds: Optional[int] = None):
        """Reconcile on a fixed interval until cancelled; a failed cycle is logged and skipped"""
        interval = interval_seconds or ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS
        logger.info(f"Starting continuous ledger reconciliation every {interval}s")

        while True:
            try:
                report = await self.run_once()
                logger.info(
                    f"Reconciliation cycle complete: {report.total_profiles_checked} profiles, "
                    f"{report.discrepancies_found} discrepancies, {report.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            await asyncio.sleep(interval)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("LedgerReconcilerWorker shutdown complete")


def _print_summary(report: ReconciliationResultDTO):
    print(
        f"Checked {report.total_profiles_checked} prepaid ledgers in "
        f"{report.execution_time_ms}ms, {report.discrepancies_found} discrepancies"
    )
    for discrepancy in report.discrepancies:
        print(f"  - {describe_discrepancy(discrepancy)}")


async def main(argv=None) -> int:
    """
    Entry point:

        python -m src.worker.ledger_reconciler --once
        python -m src.worker.ledger_reconciler --interval 3600
    """
    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Prepaid ledger reconciliation worker")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument(
        "--interval",
        type=int,
        default=ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS,
        help="Seconds between cycles",
    )
    parser.add_argument("--db-uri", default=None, help="Override DB_URI")
    args = parser.parse_args(argv)

    worker = LedgerReconcilerWorker(db_uri=args.db_uri)
    try:
        if args.once:
            report = await worker.run_once()
            _print_summary(report)
            return 1 if report.discrepancies_found else 0
        await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
