"""
pytest 설정 파일
"""
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# 프로젝트 루트를 sys.path에 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.config import FusionConfig
from src.store import InMemoryReportStore, Report

# Sunday, 2025-10-19 07:35 UTC
REFERENCE = datetime(2025, 10, 19, 7, 35, tzinfo=timezone.utc)


def make_report(ts, level, source="rider", bus_id=None, route="CC", stop="A"):
    """Report helper: ts may be a datetime or an ISO string."""
    if isinstance(ts, str):
        ts = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    return Report(route=route, stop=stop, source=source, level=level,
                  timestamp=ts, bus_id=bus_id)


@pytest.fixture(scope="session")
def test_client(tmp_path_factory):
    """FastAPI 테스트 클라이언트 픽스처 (임시 SQLite DB)"""
    db_path = tmp_path_factory.mktemp("db") / "reports.db"
    os.environ["REPORT_STORE"] = "sqlite"
    os.environ["REPORT_DB_PATH"] = str(db_path)
    os.environ["RATE_LIMIT_PER_MINUTE"] = "10000"
    os.environ["REPORT_RATE_LIMIT_PER_MINUTE"] = "10000"

    from api.app import app
    with TestClient(app) as client:
        yield client


@pytest.fixture
def config():
    """Default knobs (CAPACITY=60, PRIOR_MU0_DEFAULT=0.35, ...)."""
    return FusionConfig()


@pytest.fixture
def empty_store():
    return InMemoryReportStore()


@pytest.fixture
def reference():
    return REFERENCE
