"""
Busload 서버 진입점
실행: python run.py
접속: http://localhost:8000/docs
"""
import os
import sys
from pathlib import Path
import uvicorn
from dotenv import load_dotenv


def check_dependencies():
    """필수 패키지 확인"""
    required = ["fastapi", "uvicorn", "pydantic"]
    missing = []
    for pkg in required:
        try:
            __import__(pkg)
        except ImportError:
            missing.append(pkg)

    if missing:
        print(f"[ERROR] Missing packages: {', '.join(missing)}")
        print("Install them with:")
        print("  pip install -e .")
        sys.exit(1)


def check_config():
    """Fail before the server starts if a knob is malformed."""
    from src.config import FusionConfig
    try:
        return FusionConfig.from_env()
    except ValueError as e:
        print(f"[ERROR] Invalid configuration: {e}")
        sys.exit(1)


def check_data():
    """리포트 DB 확인"""
    if os.getenv("REPORT_STORE", "sqlite").lower() == "memory":
        print("[WARN]  REPORT_STORE=memory: reports are lost on restart.")
        return
    db_path = Path(os.getenv("REPORT_DB_PATH", "data/reports.db"))
    if not db_path.exists():
        print(f"[WARN]  {db_path} does not exist yet; it will be created on first use.")
        print("To load a week of synthetic reports:")
        print("  python scripts/seed_reports.py")
        print()


def main():
    """메인 실행 함수"""
    print("=" * 60)
    print("Busload - crowd-sourced transit occupancy")
    print("=" * 60)
    print()

    load_dotenv()

    check_dependencies()
    cfg = check_config()
    check_data()

    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "False").lower() == "true"

    url = f"http://{host}:{port}"

    print(f"[*] Server:   {url}")
    print(f"[*] Capacity: {cfg.capacity}  tau: {cfg.tau_min} min  window: {cfg.window_min_default} min")
    print(f"[*] Reload:   {'on' if reload else 'off'}")
    print()
    print("Press Ctrl+C to stop.")
    print("=" * 60)
    print()

    try:
        uvicorn.run(
            "api.app:app",
            host=host,
            port=port,
            reload=reload,
            reload_dirs=["api", "src"],
            log_level=os.getenv("LOG_LEVEL", "info").lower(),
        )
    except KeyboardInterrupt:
        print("\n\n[*] Shutting down.")
    except Exception as e:
        print(f"\n[ERROR] Server failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
