import unittest
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from school_api.domain.fee_engine import (
    allocate_payment,
    billing_months,
    billing_periods,
    detail_status,
    discount_for,
    expand_structure,
    expected_total,
    format_receipt_number,
    is_past_grace,
    late_fee_for,
    month_bounds,
    summarize_fee,
)


def _item(amount, frequency, fee_category_id=1):
    return SimpleNamespace(amount=amount, frequency=frequency, fee_category_id=fee_category_id)


def _detail(detail_id, amount, paid=0.0, late_fee=0.0, status='PENDING'):
    return SimpleNamespace(id=detail_id, amount=amount, paid_amount=paid, late_fee=late_fee, status=status)


class BillingScheduleTests(unittest.TestCase):
    START = date(2026, 4, 1)
    END = date(2027, 3, 31)

    def test_academic_year_spans_twelve_months_across_new_year(self):
        months = billing_months(self.START, self.END)
        self.assertEqual(len(months), 12)
        self.assertEqual(months[0], (2026, 4))
        self.assertEqual(months[-1], (2027, 3))

    def test_frequency_periods(self):
        months = billing_months(self.START, self.END)
        self.assertEqual(len(billing_periods('MONTHLY', months)), 12)
        self.assertEqual(billing_periods('QUARTERLY', months), [(2026, 4), (2026, 7), (2026, 10), (2027, 1)])
        self.assertEqual(billing_periods('HALF_YEARLY', months), [(2026, 4), (2026, 10)])
        self.assertEqual(billing_periods('YEARLY', months), [(2026, 4)])
        self.assertEqual(billing_periods('ONE_TIME', months), [(2026, 4)])

    def test_expanded_rows_sum_to_expected_total(self):
        items = [
            _item(1500, 'MONTHLY', 1),
            _item(2000, 'QUARTERLY', 2),
            _item(5000, 'ONE_TIME', 3),
            _item(1200.5, 'HALF_YEARLY', 4),
        ]
        rows = expand_structure(items, start=self.START, end=self.END, due_day=10)
        total = expected_total(items, start=self.START, end=self.END)

        self.assertEqual(len(rows), 12 + 4 + 1 + 2)
        self.assertAlmostEqual(sum(row.amount for row in rows), total)
        self.assertEqual(total, 18000 + 8000 + 5000 + 2401)
        self.assertTrue(all(row.due_date.day == 10 for row in rows))
        self.assertEqual([row.due_date for row in rows], sorted(row.due_date for row in rows))


class AllocationTests(unittest.TestCase):
    def test_oldest_first_with_partial_last(self):
        details = [_detail(1, 1000), _detail(2, 1000), _detail(3, 1000)]
        allocations, excess = allocate_payment(details, 1500, cap=3000)
        self.assertEqual([(row.detail_id, row.amount) for row in allocations], [(1, 1000), (2, 500)])
        self.assertEqual(excess, 0)

    def test_cap_limits_applied_amount(self):
        details = [_detail(1, 1000), _detail(2, 1000)]
        allocations, excess = allocate_payment(details, 2500, cap=1800)
        self.assertEqual(sum(row.amount for row in allocations), 1800)
        self.assertEqual(excess, 700)

    def test_settled_and_zero_outstanding_rows_are_skipped(self):
        details = [
            _detail(1, 1000, paid=1000, status='PAID'),
            _detail(2, 1000, status='WAIVED'),
            _detail(3, 1000, paid=400, late_fee=50, status='OVERDUE'),
        ]
        allocations, excess = allocate_payment(details, 1000, cap=650)
        self.assertEqual([(row.detail_id, row.amount) for row in allocations], [(3, 650)])
        self.assertEqual(excess, 350)

    def test_detail_status_after_payment(self):
        self.assertEqual(detail_status(_detail(1, 1000, paid=1000)), 'PAID')
        self.assertEqual(detail_status(_detail(1, 1000, paid=500)), 'PARTIAL')
        self.assertEqual(detail_status(_detail(1, 1000, paid=500, status='OVERDUE')), 'OVERDUE')
        self.assertEqual(detail_status(_detail(1, 1000, paid=1000, late_fee=100, status='OVERDUE')), 'OVERDUE')
        self.assertEqual(detail_status(_detail(1, 1000)), 'PENDING')


class SummaryTests(unittest.TestCase):
    def test_statuses(self):
        base = dict(total_amount=3000, discount_amount=0)
        pending = summarize_fee(details=[_detail(1, 1000), _detail(2, 2000)], current_status='PENDING', **base)
        self.assertEqual((pending.status, pending.balance_amount), ('PENDING', 3000))

        partial = summarize_fee(details=[_detail(1, 1000, paid=1000), _detail(2, 2000)], current_status='PENDING', **base)
        self.assertEqual((partial.status, partial.paid_amount, partial.balance_amount), ('PARTIAL', 1000, 2000))

        overdue = summarize_fee(
            details=[_detail(1, 1000, late_fee=100, status='OVERDUE'), _detail(2, 2000)],
            current_status='PENDING',
            **base,
        )
        self.assertEqual((overdue.status, overdue.late_fee_amount, overdue.balance_amount), ('OVERDUE', 100, 3100))

        paid = summarize_fee(details=[_detail(1, 1000, paid=1000), _detail(2, 2000, paid=2000)], current_status='PARTIAL', **base)
        self.assertEqual((paid.status, paid.balance_amount), ('PAID', 0))

    def test_waived_is_sticky(self):
        summary = summarize_fee(total_amount=1000, discount_amount=0, details=[_detail(1, 1000)], current_status='WAIVED')
        self.assertEqual(summary.status, 'WAIVED')

    def test_discount_reduces_balance(self):
        summary = summarize_fee(total_amount=3000, discount_amount=300, details=[_detail(1, 3000, paid=2700)], current_status='PARTIAL')
        self.assertEqual((summary.status, summary.balance_amount), ('PAID', 0))


def test_late_fee_and_grace():
    assert late_fee_for(1000, percentage=10, fixed_amount=0) == 100
    assert late_fee_for(1000, percentage=2.5, fixed_amount=50) == 75
    assert not is_past_grace(date(2026, 1, 10), 5, date(2026, 1, 15))
    assert is_past_grace(date(2026, 1, 10), 5, date(2026, 1, 16))


def test_discount_for_percentage_fixed_and_category():
    totals = {1: 2000.0, 2: 1000.0}
    percentage = SimpleNamespace(discount_type='PERCENTAGE', discount_value=10, fee_category_id=None)
    category = SimpleNamespace(discount_type='PERCENTAGE', discount_value=50, fee_category_id=2)
    fixed = SimpleNamespace(discount_type='FIXED', discount_value=5000, fee_category_id=1)
    assert discount_for(percentage, gross_total=3000, category_totals=totals) == 300
    assert discount_for(category, gross_total=3000, category_totals=totals) == 500
    assert discount_for(fixed, gross_total=3000, category_totals=totals) == 2000


@pytest.mark.parametrize(
    'moment, sequence, expected',
    [
        (datetime(2026, 1, 15, 9, 30), 1, 'DPS-202601-00001'),
        (datetime(2026, 12, 31, 23, 59), 123, 'DPS-202612-00123'),
    ],
)
def test_receipt_number_format(moment, sequence, expected):
    assert format_receipt_number('DPS', moment, sequence) == expected


def test_month_bounds_rolls_over_december():
    start, end = month_bounds(datetime(2026, 12, 5, 8, 0))
    assert start == datetime(2026, 12, 1)
    assert end == datetime(2027, 1, 1)
