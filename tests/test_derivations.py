from datetime import date, timedelta

from app.core.derivations import (
    compliance_doc_status,
    derive_stock_alerts,
    hours_worked,
    inspection_score,
    inspection_status,
    inventory_health,
    is_auto_picklist,
    is_manual_picklist,
    leave_days,
    multi_order_pick_status,
    picker_status,
    putaway_pallets,
    shift_status,
    target_achievement,
    temperature_status,
    units_per_hour,
)


TODAY = date(2026, 10, 18)


def _alerts(current, min_stock=20, max_stock=100, expiry=None):
    return derive_stock_alerts(
        sku="SKU-7",
        product_name="Gasket",
        current_stock=current,
        min_stock=min_stock,
        max_stock=max_stock,
        expiry_date=expiry,
        today=TODAY,
        high_priority_ratio=0.5,
        expiry_warning_days=30,
        expiry_critical_days=7,
    )


class TestStockAlerts:

    def test_low_stock_at_quarter_of_minimum_is_high(self):
        alerts = _alerts(5)
        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.type == "low-stock"
        assert alert.priority == "high"
        assert alert.current_level == 5
        assert alert.threshold == 20
        assert alert.id == "low-stock:SKU-7"

    def test_low_stock_above_ratio_is_medium(self):
        assert [(a.type, a.priority) for a in _alerts(15)] == [("low-stock", "medium")]

    def test_ratio_boundary_is_high(self):
        assert _alerts(10)[0].priority == "high"

    def test_out_of_stock(self):
        assert [(a.type, a.priority) for a in _alerts(0)] == [("out-of-stock", "high")]

    def test_overstock_only_with_positive_max(self):
        assert [(a.type, a.priority) for a in _alerts(120)] == [("overstock", "low")]
        assert _alerts(120, max_stock=0) == []

    def test_healthy_item_has_no_alerts(self):
        assert _alerts(20) == []
        assert _alerts(100) == []

    def test_expiry_bands(self):
        assert [(a.type, a.priority) for a in _alerts(50, expiry=TODAY + timedelta(days=5))] == [("expiring", "medium")]
        assert [(a.type, a.priority) for a in _alerts(50, expiry=TODAY + timedelta(days=20))] == [("expiring", "low")]
        assert _alerts(50, expiry=TODAY + timedelta(days=40)) == []

    def test_empty_item_does_not_report_expiry(self):
        alerts = _alerts(0, expiry=TODAY + timedelta(days=2))
        assert [a.type for a in alerts] == ["out-of-stock"]


def test_putaway_pallets():
    assert putaway_pallets(40, items_per_pallet=4) == 10
    assert putaway_pallets(5, items_per_pallet=4) == 2
    assert putaway_pallets(0, items_per_pallet=4) == 0


def test_multi_order_pick_status():
    assert multi_order_pick_status(0, 10) == "pending"
    assert multi_order_pick_status(4, 10) == "in-progress"
    assert multi_order_pick_status(10, 10) == "completed"
    assert multi_order_pick_status(12, 10) == "completed"


def test_picker_status():
    assert picker_status(False, 0) == "available"
    assert picker_status(False, 2) == "busy"
    assert picker_status(True, 0) == "break"


def test_picklist_view_predicates():
    assert is_auto_picklist(None, "pending")
    assert is_auto_picklist("", "queued")
    assert not is_auto_picklist(None, "picking")
    assert not is_auto_picklist("Alice", "assigned")
    assert is_manual_picklist("Alice", "pending")
    assert is_manual_picklist(None, "picking")
    assert not is_manual_picklist(None, "pending")


def test_shift_status():
    assert shift_status(1, 2) == "understaffed"
    assert shift_status(2, 2) == "full"
    assert shift_status(3, 2) == "overstaffed"


def test_leave_days_is_inclusive():
    assert leave_days(date(2026, 11, 2), date(2026, 11, 2)) == 1
    assert leave_days(date(2026, 11, 2), date(2026, 11, 4)) == 3


def test_hours_worked():
    assert hours_worked("09:00", "17:30") == 8.5
    assert hours_worked("22:00", "06:00") == 8.0
    assert hours_worked("09:00", None) == 0.0


def test_inspection_score_and_status():
    assert inspection_score(100, 5) == 95
    assert inspection_score(0, 0) == 0
    # .5 ties round up
    assert inspection_score(8, 3) == 63
    assert inspection_score(40, 3) == 93
    assert inspection_score(200, 1) == 100
    assert inspection_status(100, 5, pass_score=80) == "passed"
    assert inspection_status(10, 5, pass_score=80) == "failed"
    assert inspection_status(10, 2, pass_score=80) == "passed"


def test_temperature_status():
    assert temperature_status(20, 50) == "normal"
    assert temperature_status(28, 50) == "warning"
    assert temperature_status(20, 65) == "warning"
    assert temperature_status(5, 50) == "critical"
    assert temperature_status(20, 80) == "critical"


def test_compliance_doc_status():
    assert compliance_doc_status(TODAY + timedelta(days=90), today=TODAY, window_days=30) == "valid"
    assert compliance_doc_status(TODAY + timedelta(days=10), today=TODAY, window_days=30) == "expiring-soon"
    assert compliance_doc_status(TODAY, today=TODAY, window_days=30) == "expiring-soon"
    assert compliance_doc_status(TODAY - timedelta(days=1), today=TODAY, window_days=30) == "expired"


def test_inventory_health():
    assert inventory_health(0, 0) == 100
    assert inventory_health(4, 1) == 75
    assert inventory_health(8, 3) == 63
    assert inventory_health(200, 199) == 1


def test_target_achievement_and_speed():
    assert target_achievement(40, 1500) == 3
    assert target_achievement(3, 200) == 2
    assert target_achievement(10, 0) == 0
    assert units_per_hour(40, 8.0) == 5.0
    assert units_per_hour(40, 0) == 0.0
