from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from school_api.models import DiscountType, FeeFrequency, FeeStatus


FREQUENCY_STEP_MONTHS = {
    FeeFrequency.MONTHLY.value: 1,
    FeeFrequency.QUARTERLY.value: 3,
    FeeFrequency.HALF_YEARLY.value: 6,
}

SETTLED_STATUSES = (FeeStatus.PAID.value, FeeStatus.WAIVED.value)


def money(value: float) -> float:
    return round(float(value or 0), 2)


@dataclass(frozen=True)
class Installment:
    fee_category_id: int | None
    frequency: str
    period_year: int
    period_month: int
    amount: float
    due_date: date


@dataclass(frozen=True)
class Allocation:
    detail_id: int
    amount: float


@dataclass(frozen=True)
class FeeSummary:
    paid_amount: float
    late_fee_amount: float
    balance_amount: float
    status: str


def billing_months(start: date, end: date) -> list[tuple[int, int]]:
    """Every (year, month) from the start date's month to the end date's month inclusive."""
    months: list[tuple[int, int]] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append((year, month))
        month += 1
        if month > 12:
            month = 1
            year += 1
    return months


def billing_periods(frequency: str, months: Sequence[tuple[int, int]]) -> list[tuple[int, int]]:
    if not months:
        return []
    step = FREQUENCY_STEP_MONTHS.get(frequency)
    if step is None:
        # YEARLY and ONE_TIME bill once, in the first month of the year.
        return [months[0]]
    return list(months[::step])


def expand_structure(items: Iterable, *, start: date, end: date, due_day: int) -> list[Installment]:
    months = billing_months(start, end)
    installments: list[Installment] = []
    for item in items:
        for year, month in billing_periods(item.frequency, months):
            installments.append(
                Installment(
                    fee_category_id=item.fee_category_id,
                    frequency=item.frequency,
                    period_year=year,
                    period_month=month,
                    amount=money(item.amount),
                    due_date=date(year, month, int(due_day)),
                )
            )
    installments.sort(key=lambda row: (row.due_date, row.fee_category_id or 0))
    return installments


def expected_total(items: Iterable, *, start: date, end: date) -> float:
    months = billing_months(start, end)
    return money(sum(float(item.amount) * len(billing_periods(item.frequency, months)) for item in items))


def outstanding_amount(detail) -> float:
    return money(float(detail.amount) + float(detail.late_fee or 0) - float(detail.paid_amount or 0))


def detail_status(detail) -> str:
    if outstanding_amount(detail) <= 0:
        return FeeStatus.PAID.value
    if detail.status == FeeStatus.OVERDUE.value:
        return FeeStatus.OVERDUE.value
    if float(detail.paid_amount or 0) > 0:
        return FeeStatus.PARTIAL.value
    return FeeStatus.PENDING.value


def allocate_payment(details: Sequence, amount: float, *, cap: float) -> tuple[list[Allocation], float]:
    """Spread ``amount`` over ``details`` in the given order, oldest debt first.

    ``cap`` bounds the total applied (the parent fee's balance); whatever is
    left over is returned as the excess.
    """
    budget = money(min(float(amount), float(cap)))
    allocations: list[Allocation] = []
    for detail in details:
        if budget <= 0:
            break
        if detail.status in SETTLED_STATUSES:
            continue
        needed = outstanding_amount(detail)
        if needed <= 0:
            continue
        pay = money(min(budget, needed))
        allocations.append(Allocation(detail_id=int(detail.id), amount=pay))
        budget = money(budget - pay)
    applied = money(sum(row.amount for row in allocations))
    return allocations, money(float(amount) - applied)


def summarize_fee(*, total_amount: float, discount_amount: float, details: Sequence, current_status: str) -> FeeSummary:
    paid = money(sum(float(d.paid_amount or 0) for d in details))
    late = money(sum(float(d.late_fee or 0) for d in details))
    balance = money(float(total_amount) + late - float(discount_amount) - paid)

    if current_status == FeeStatus.WAIVED.value:
        status = FeeStatus.WAIVED.value
    elif balance <= 0:
        status = FeeStatus.PAID.value
    elif any(d.status == FeeStatus.OVERDUE.value for d in details):
        status = FeeStatus.OVERDUE.value
    elif paid > 0:
        status = FeeStatus.PARTIAL.value
    else:
        status = FeeStatus.PENDING.value
    return FeeSummary(paid_amount=paid, late_fee_amount=late, balance_amount=balance, status=status)


def late_fee_for(amount: float, *, percentage: float, fixed_amount: float) -> float:
    return money(float(amount) * float(percentage or 0) / 100 + float(fixed_amount or 0))


def is_past_grace(due_date: date, grace_period_days: int, today: date) -> bool:
    return today > due_date + timedelta(days=int(grace_period_days or 0))


def discount_for(discount, *, gross_total: float, category_totals: dict[int, float]) -> float:
    base = gross_total
    if discount.fee_category_id is not None:
        base = category_totals.get(int(discount.fee_category_id), 0.0)
    if discount.discount_type == DiscountType.PERCENTAGE.value:
        return money(base * float(discount.discount_value) / 100)
    return money(min(float(discount.discount_value), base))


def month_bounds(moment: datetime) -> tuple[datetime, datetime]:
    start = datetime(moment.year, moment.month, 1)
    if moment.month == 12:
        return start, datetime(moment.year + 1, 1, 1)
    return start, datetime(moment.year, moment.month + 1, 1)


def format_receipt_number(prefix: str, moment: datetime, sequence: int) -> str:
    return f'{prefix}-{moment:%Y%m}-{int(sequence):05d}'
