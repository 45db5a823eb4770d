"""
Test client config loading and validation, and the settings that drive logging.

Run: python tools/testing/test_client_config.py
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import logging
import tempfile
from datetime import date
from unittest.mock import patch

from pydantic import ValidationError

from act_kpi.config import load_client_config, parse_client_config
from act_kpi.logging_config import setup_logging
from act_kpi.settings import get_settings
from act_kpi.state import KPIDashboardState

PROJECT_ROOT = Path(__file__).parent.parent.parent


def test_demo_config():
    print("\n=== TEST 1: Demo Config ===")

    cfg = load_client_config(PROJECT_ROOT / "configs" / "client_demo.yaml")
    assert cfg.data_source == "mock"
    assert cfg.customer_id == "1234567890"
    assert cfg.default_time_range == "7d"
    assert cfg.refresh.request_timeout_seconds == 30
    print(f"✅ PASS: {cfg.client_name}")


def test_defaults():
    print("\n=== TEST 2: Defaults ===")

    cfg = parse_client_config({"client_name": "Minimal", "google_ads": {"customer_id": "111 222 3333"}})
    assert cfg.customer_id == "1112223333"
    assert cfg.google_ads.mcc_id is None
    assert cfg.currency == "EUR"
    assert cfg.refresh.inter_call_delay_seconds == 0.0
    assert cfg.mock_seed == 42
    print("✅ PASS")


def test_invalid_values():
    print("\n=== TEST 3: Invalid Values ===")

    base = {"client_name": "Bad", "google_ads": {"customer_id": "1234567890"}}
    bad_values = [
        {"google_ads": {"customer_id": "abc"}},
        {"default_time_range": "90d"},
        {"data_source": "csv"},
        {"refresh": {"request_timeout_seconds": 0}},
        {"refresh": {"inter_call_delay_seconds": -1}},
        {"timezone": "Mars/Olympus_Mons"},
    ]
    for override in bad_values:
        try:
            parse_client_config({**base, **override})
        except ValidationError:
            pass
        else:
            raise AssertionError(f"{override} should fail validation")
    print(f"✅ PASS: {len(bad_values)} invalid configs rejected")


def test_file_errors():
    print("\n=== TEST 4: File Errors ===")

    with tempfile.TemporaryDirectory() as tmp:
        try:
            load_client_config(Path(tmp) / "missing.yaml")
        except FileNotFoundError:
            pass
        else:
            raise AssertionError("missing file should raise FileNotFoundError")

        not_mapping = Path(tmp) / "list.yaml"
        not_mapping.write_text("- a\n- b\n", encoding="utf-8")
        try:
            load_client_config(not_mapping)
        except ValueError:
            pass
        else:
            raise AssertionError("YAML list should be rejected")
    print("✅ PASS")


def test_settings_from_env():
    print("\n=== TEST 5: Settings ===")

    with patch.dict("os.environ", {"KPI_DATA_SOURCE": " Warehouse ", "LOG_LEVEL": "DEBUG"}):
        settings = get_settings()
    assert settings.data_source == "warehouse"
    assert settings.log_level == "DEBUG"

    with patch.dict("os.environ", {"KPI_DATA_SOURCE": ""}):
        assert get_settings().data_source is None
    print("✅ PASS")


def test_client_timezone_drives_today():
    print("\n=== TEST 6: Client Timezone ===")

    cfg = parse_client_config({
        "client_name": "Pacific",
        "google_ads": {"customer_id": "1234567890"},
        "timezone": "Pacific/Kiritimati",
    })
    with patch("act_kpi.state.today_in", return_value=date(2025, 3, 10)) as today_in:
        state = KPIDashboardState.from_config(cfg, data_source="mock")
        assert state.load_campaigns() is True
    today_in.assert_called_with("Pacific/Kiritimati")
    assert state.range_result("7d").date_range.end_date == date(2025, 3, 10)

    # an explicit clock wins over the timezone
    pinned = KPIDashboardState.from_config(cfg, data_source="mock", today_fn=lambda: date(2024, 1, 31))
    assert pinned.load_campaigns() is True
    assert pinned.range_result("24h").date_range.start_date == date(2024, 1, 31)
    print("✅ PASS")


def test_logging_follows_settings():
    print("\n=== TEST 7: Logging Settings ===")

    with tempfile.TemporaryDirectory() as tmp:
        with patch.dict("os.environ", {"LOG_DIR": tmp, "LOG_LEVEL": "WARNING"}):
            logger = setup_logging("act_kpi.settings_check")
        try:
            assert logger.level == logging.WARNING
            logger.warning("written to the configured directory")
            files = list(Path(tmp).glob("settings_check_*.log"))
            assert len(files) == 1, files
            assert "configured directory" in files[0].read_text(encoding="utf-8")
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
    print("✅ PASS")


if __name__ == "__main__":
    all_passed = True
    for test in [
        test_demo_config,
        test_defaults,
        test_invalid_values,
        test_file_errors,
        test_settings_from_env,
        test_client_timezone_drives_today,
        test_logging_follows_settings,
    ]:
        try:
            test()
        except AssertionError as e:
            print(f"❌ FAIL: {e}")
            all_passed = False
    print("\n✅ ALL TESTS PASSED" if all_passed else "\n❌ SOME TESTS FAILED")
