# tests/test_models.py
from datetime import date, timedelta

import pytest

from clinicnexus import models


@pytest.mark.parametrize("status, completed, canceled, pending", [
    ("Done", True, False, False),
    ("Canceled", False, True, False),
    ("Not Done", False, False, True),
])
def test_appointment_status_predicates(status, completed, canceled, pending):
    appointment = models.Appointment(status=status)

    assert appointment.is_completed is completed
    assert appointment.is_canceled is canceled
    assert appointment.is_pending is pending


def test_unpaid_bill_is_overdue():
    assert models.Billing(paid=False).is_overdue is True
    assert models.Billing(paid=True).is_overdue is False


def test_needs_reorder_at_threshold():
    assert models.Inventory(stock_quantity=10, reorder_threshold=10).needs_reorder is True
    assert models.Inventory(stock_quantity=11, reorder_threshold=10).needs_reorder is False


def test_expiry():
    assert models.Inventory(expiry_date=None).is_expired is False
    assert models.Inventory(expiry_date=date.today() - timedelta(days=1)).is_expired is True
    assert models.Inventory(expiry_date=date.today()).is_expired is False
