"""
Derived warehouse values.

Everything here is a pure function of its arguments. Models expose these
through read-only properties so the value is recomputed on every read and
can never drift from the fields it is derived from.
"""
import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from app.config import settings


# ==================== INVENTORY ALERTS ====================

@dataclass(frozen=True)
class StockAlert:
    """An alert derived from an inventory item and its thresholds."""
    id: str
    type: str
    sku: str
    product_name: str
    current_level: int
    threshold: int
    priority: str


def derive_stock_alerts(
    sku: str,
    product_name: str,
    current_stock: int,
    min_stock: int,
    max_stock: int,
    expiry_date: Optional[date] = None,
    today: Optional[date] = None,
    high_priority_ratio: Optional[float] = None,
    expiry_warning_days: Optional[int] = None,
    expiry_critical_days: Optional[int] = None,
) -> List[StockAlert]:
    """
    Alerts for one item.

    out-of-stock: stock at or below zero (high).
    low-stock: 0 < stock < minStock; high at or below minStock * ratio, else medium.
    overstock: stock above a positive maxStock (low).
    expiring: expiry within the warning window; medium inside the critical window, else low.
    """
    ratio = settings.LOW_STOCK_HIGH_PRIORITY_RATIO if high_priority_ratio is None else high_priority_ratio
    warning_days = settings.EXPIRY_WARNING_DAYS if expiry_warning_days is None else expiry_warning_days
    critical_days = settings.EXPIRY_CRITICAL_DAYS if expiry_critical_days is None else expiry_critical_days

    alerts: List[StockAlert] = []

    def _alert(alert_type: str, threshold: int, priority: str) -> StockAlert:
        return StockAlert(
            id=f"{alert_type}:{sku}",
            type=alert_type,
            sku=sku,
            product_name=product_name,
            current_level=current_stock,
            threshold=threshold,
            priority=priority,
        )

    if current_stock <= 0:
        alerts.append(_alert("out-of-stock", min_stock, "high"))
    elif current_stock < min_stock:
        priority = "high" if current_stock <= min_stock * ratio else "medium"
        alerts.append(_alert("low-stock", min_stock, priority))
    elif max_stock > 0 and current_stock > max_stock:
        alerts.append(_alert("overstock", max_stock, "low"))

    if expiry_date is not None and current_stock > 0:
        remaining = (expiry_date - (today or date.today())).days
        if remaining <= warning_days:
            priority = "medium" if remaining <= critical_days else "low"
            alerts.append(_alert("expiring", warning_days, priority))

    return alerts


# ==================== RECEIVING ====================

def putaway_pallets(items: int, items_per_pallet: Optional[int] = None) -> int:
    """Display heuristic: pallets generated by a completed GRN."""
    per_pallet = items_per_pallet or settings.PUTAWAY_ITEMS_PER_PALLET
    if items <= 0:
        return 0
    return math.ceil(items / per_pallet)


# ==================== PICKING ====================

def multi_order_pick_status(picked_qty: int, total_qty: int) -> str:
    """0 -> pending, partial -> in-progress, picked >= total -> completed."""
    if picked_qty <= 0:
        return "pending"
    if picked_qty >= total_qty:
        return "completed"
    return "in-progress"


def picker_status(on_break: bool, active_orders: int) -> str:
    """A picker is busy iff it holds active orders; break excludes assignment."""
    if on_break:
        return "break"
    return "busy" if active_orders > 0 else "available"


def is_auto_picklist(picker: Optional[str], status: str) -> bool:
    """Dashboard "auto" tab: unassigned and not yet started."""
    return not picker and status in ("pending", "queued")


def is_manual_picklist(picker: Optional[str], status: str) -> bool:
    """Dashboard "manual" tab predicate."""
    return bool(picker) or status in ("assigned", "picking")


# ==================== WORKFORCE ====================

def target_achievement(actual: int, target: int) -> int:
    """Percent of target reached, .5 rounded up."""
    if target <= 0:
        return 0
    return _percent_half_up(actual, target)


def units_per_hour(units: int, hours: float) -> float:
    if hours <= 0:
        return 0.0
    return round(units / hours, 1)


def shift_status(assigned_count: int, required_staff: int) -> str:
    if assigned_count < required_staff:
        return "understaffed"
    if assigned_count > required_staff:
        return "overstaffed"
    return "full"


def leave_days(start_date: date, end_date: date) -> int:
    """Inclusive span in days, minimum 1."""
    return max(1, (end_date - start_date).days + 1)


def hours_worked(check_in: Optional[str], check_out: Optional[str]) -> float:
    """Hours between two HH:MM clock readings; an overnight shift wraps past midnight."""
    if not check_in or not check_out:
        return 0.0
    start = _minutes(check_in)
    end = _minutes(check_out)
    if end < start:
        end += 24 * 60
    return round((end - start) / 60, 2)


def _minutes(clock: str) -> int:
    hours, _, minutes = clock.partition(":")
    return int(hours) * 60 + int(minutes or 0)


# ==================== QUALITY ====================

def inspection_score(items_inspected: int, defects_found: int) -> int:
    if items_inspected <= 0:
        return 0
    return _percent_half_up(items_inspected - defects_found, items_inspected)


def inspection_status(items_inspected: int, defects_found: int, pass_score: Optional[int] = None) -> str:
    threshold = settings.QC_PASS_SCORE if pass_score is None else pass_score
    return "passed" if inspection_score(items_inspected, defects_found) >= threshold else "failed"


def temperature_status(temperature: float, humidity: float) -> str:
    if (
        temperature < settings.TEMP_WARNING_MIN
        or temperature > settings.TEMP_WARNING_MAX
        or humidity > settings.HUMIDITY_CRITICAL_MAX
    ):
        return "critical"
    if (
        temperature < settings.TEMP_NORMAL_MIN
        or temperature > settings.TEMP_NORMAL_MAX
        or humidity > settings.HUMIDITY_WARNING_MAX
    ):
        return "warning"
    return "normal"


def compliance_doc_status(expiry_date: date, today: Optional[date] = None, window_days: Optional[int] = None) -> str:
    window = settings.COMPLIANCE_DOC_EXPIRING_DAYS if window_days is None else window_days
    remaining = (expiry_date - (today or date.today())).days
    if remaining < 0:
        return "expired"
    if remaining <= window:
        return "expiring-soon"
    return "valid"


# ==================== OVERVIEW ====================

def inventory_health(total_items: int, items_with_alerts: int) -> int:
    """Percentage of items without any alert."""
    if total_items <= 0:
        return 100
    return _percent_half_up(total_items - items_with_alerts, total_items)


def _percent_half_up(part: int, whole: int) -> int:
    """100 * part / whole with .5 rounded up, in integers (round() would go to even)."""
    return (200 * part + whole) // (2 * whole)


def distinct_sorted(values: Sequence[Optional[str]]) -> List[str]:
    return sorted({v for v in values if v})
