# pyright: reportMissingParameterType=false, reportUnknownParameterType=false, reportUnknownMemberType=false, reportUnknownArgumentType=false, reportPrivateUsage=false
"""crowd/reports 라우터 추가 테스트"""
import asyncio
from datetime import datetime, timezone

import pytest
from fastapi import HTTPException

from api import app as app_module
from api.dependencies import EstimatorRegistry, build_store
from api.routers import crowd, reports
from api.schemas import ReportRequest
from src.config import FusionConfig
from src.store import InMemoryReportStore, SQLiteReportStore, StoreUnavailableError


class _FailingStore(InMemoryReportStore):
    def append(self, report):
        raise StoreUnavailableError("disk full")


class _ExplodingEstimator:
    async def estimate(self, *args, **kwargs):
        raise KeyError("boom")


def _loaded_registry(store):
    reg = EstimatorRegistry()
    reg.load(config=FusionConfig(), store=store)
    return reg


def test_submit_report_appends_to_store(monkeypatch):
    store = InMemoryReportStore()
    monkeypatch.setattr(reports, "registry", _loaded_registry(store))

    req = ReportRequest(route="CC", stop="A", level=3, source="driver", bus_id="01", headcount=40)
    result = asyncio.run(reports.submit_report(req))

    assert result.ok is True
    assert len(store) == 1
    saved = store.query("REPORT#CC#A", *_wide_range())[0]
    assert (saved.level, saved.source, saved.bus_id, saved.headcount) == (3, "driver", "01", 40)


def test_submit_report_store_failure_is_503(monkeypatch):
    monkeypatch.setattr(reports, "registry", _loaded_registry(_FailingStore()))

    with pytest.raises(HTTPException) as exc:
        asyncio.run(reports.submit_report(ReportRequest(route="CC", stop="A", level=2)))
    assert exc.value.status_code == 503


def test_crowd_now_unexpected_error_is_500(monkeypatch):
    monkeypatch.setattr(crowd.registry, "get_estimator", lambda: _ExplodingEstimator())

    with pytest.raises(HTTPException) as exc:
        asyncio.run(crowd.crowd_now(route="CC", stop="A", bus_id=None, win=None, at=None))
    assert exc.value.status_code == 500


def test_crowd_now_direct_call(monkeypatch):
    monkeypatch.setattr(crowd, "registry", _loaded_registry(InMemoryReportStore()))

    result = asyncio.run(crowd.crowd_now(
        route="CC", stop="A", bus_id="", win=10, at="2025-10-19T07:35:00Z",
    ))

    assert result.est_headcount == 21
    assert result.bus_id is None
    assert result.window_min == 10.0


def test_health_reports_unavailable_before_load(monkeypatch):
    monkeypatch.setattr(app_module, "registry", EstimatorRegistry())

    response = asyncio.run(app_module.health())
    assert response.status_code == 503


def test_unloaded_registry_raises():
    reg = EstimatorRegistry()
    with pytest.raises(RuntimeError):
        reg.get_estimator()
    with pytest.raises(RuntimeError):
        reg.get_config()


def test_build_store_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("REPORT_STORE", "memory")
    assert isinstance(build_store(), InMemoryReportStore)

    monkeypatch.setenv("REPORT_STORE", "sqlite")
    monkeypatch.setenv("REPORT_DB_PATH", str(tmp_path / "r.db"))
    store = build_store()
    assert isinstance(store, SQLiteReportStore)
    assert store.db_path == tmp_path / "r.db"

    monkeypatch.setenv("REPORT_STORE", "dynamo")
    with pytest.raises(ValueError):
        build_store()


def _wide_range():
    return (datetime(2000, 1, 1, tzinfo=timezone.utc), datetime(2100, 1, 1, tzinfo=timezone.utc))
