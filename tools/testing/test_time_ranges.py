"""
Test time range windows.

Run: python tools/testing/test_time_ranges.py
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from datetime import date, timedelta

from act_kpi.models import DateRange
from act_kpi.time_ranges import (
    TIME_RANGES,
    days_in_range,
    get_date_range,
    previous_date_range,
    today_in,
    validate_time_range,
)

TODAY = date(2025, 3, 10)


def test_windows():
    print("\n=== TEST 1: Windows ===")

    assert TIME_RANGES == ("30d", "14d", "7d", "3d", "24h")

    w = get_date_range("7d", today=TODAY)
    assert w.start_date == date(2025, 3, 4)
    assert w.end_date == TODAY
    assert w.days == 7

    assert get_date_range("24h", today=TODAY) == DateRange(TODAY, TODAY)
    assert get_date_range("30d", today=TODAY).days == 30
    print("✅ PASS")


def test_previous_window():
    print("\n=== TEST 2: Previous Window ===")

    for tr in TIME_RANGES:
        current = get_date_range(tr, today=TODAY)
        prev = previous_date_range(current)
        assert prev.days == current.days, tr
        assert prev.end_date == current.start_date - timedelta(days=1), tr

    prev = previous_date_range(get_date_range("3d", today=TODAY))
    assert prev == DateRange(date(2025, 3, 5), date(2025, 3, 7))
    print("✅ PASS")


def test_helpers():
    print("\n=== TEST 3: Helpers ===")

    assert len(days_in_range(get_date_range("14d", today=TODAY))) == 14

    try:
        validate_time_range("90d")
    except ValueError:
        pass
    else:
        raise AssertionError("90d should be rejected")

    try:
        DateRange(TODAY, date(2025, 3, 1))
    except ValueError:
        pass
    else:
        raise AssertionError("reversed range should be rejected")
    print("✅ PASS")


def test_today_in_timezone():
    print("\n=== TEST 4: Today In Timezone ===")

    # UTC+14 and UTC-11 are always one or two calendar days apart
    ahead = today_in("Pacific/Kiritimati")
    behind = today_in("Pacific/Pago_Pago")
    assert 1 <= (ahead - behind).days <= 2, (ahead, behind)
    print("✅ PASS")


if __name__ == "__main__":
    all_passed = True
    for test in [test_windows, test_previous_window, test_helpers, test_today_in_timezone]:
        try:
            test()
        except AssertionError as e:
            print(f"❌ FAIL: {e}")
            all_passed = False
    print("\n✅ ALL TESTS PASSED" if all_passed else "\n❌ SOME TESTS FAILED")
