from __future__ import annotations

import pytest

from domain.reconciliation import ReconciliationEngine
from tests.helpers.fakes import SYNC_TIME, FakeBalanceSource, RecordingLedgerClient


@pytest.fixture(scope="function")
def balance_source() -> FakeBalanceSource:
    return FakeBalanceSource()


@pytest.fixture(scope="function")
def ledger() -> RecordingLedgerClient:
    return RecordingLedgerClient()


@pytest.fixture(scope="function")
def engine(balance_source: FakeBalanceSource, ledger: RecordingLedgerClient) -> ReconciliationEngine:
    return ReconciliationEngine(balance_source=balance_source, ledger_client=ledger, clock=lambda: SYNC_TIME)
