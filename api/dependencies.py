"""
CrowdEstimator 싱글턴 관리.
Config and store are built once at app start-up and reused by every request.
"""
import os
import sys
from pathlib import Path

# 프로젝트 루트를 sys.path에 추가
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.config import FusionConfig
from src.estimator import CrowdEstimator
from src.store import InMemoryReportStore, SQLiteReportStore

DEFAULT_DB_PATH = PROJECT_ROOT / "data" / "reports.db"


def build_store():
    """REPORT_STORE=memory for a throwaway store, otherwise SQLite at REPORT_DB_PATH."""
    backend = os.getenv("REPORT_STORE", "sqlite").strip().lower()
    if backend == "memory":
        return InMemoryReportStore()
    if backend != "sqlite":
        raise ValueError(f"Unknown REPORT_STORE: {backend!r} (expected sqlite or memory)")
    return SQLiteReportStore(os.getenv("REPORT_DB_PATH", str(DEFAULT_DB_PATH)))


class EstimatorRegistry:
    def __init__(self):
        self.config: FusionConfig | None = None
        self.store = None
        self.estimator: CrowdEstimator | None = None

    def load(self, config=None, store=None):
        self.config = config or FusionConfig.from_env()
        self.store = store if store is not None else build_store()
        self.estimator = CrowdEstimator(self.config, self.store)

    def get_estimator(self) -> CrowdEstimator:
        if self.estimator is None:
            raise RuntimeError("Estimator not loaded")
        return self.estimator

    def get_store(self):
        if self.store is None:
            raise RuntimeError("Estimator not loaded")
        return self.store

    def get_config(self) -> FusionConfig:
        if self.config is None:
            raise RuntimeError("Estimator not loaded")
        return self.config


registry = EstimatorRegistry()
