# tests/test_inventory_management.py
import pytest

from clinicnexus import crud, models
from clinicnexus.services.inventory_management import InventoryManagementService
from clinicnexus.services.notifications import AuditLogger


@pytest.fixture
def service(session_factory, audit, notifier, settings):
    return InventoryManagementService(
        session_factory=session_factory, audit=audit, notifier=notifier, settings=settings
    )


def test_reorder_quantity_has_a_floor(service, make_item):
    assert service.reorder_quantity(make_item(name="A", reorder_threshold=10)) == 50
    assert service.reorder_quantity(make_item(name="B", reorder_threshold=40)) == 80


def test_sweep_orders_only_active_low_stock_items(service, make_item, notifier, audit):
    make_item(name="Gloves", stock_quantity=5, reorder_threshold=10, supplier_info="MedSupply")
    make_item(name="Masks", stock_quantity=10, reorder_threshold=10)
    make_item(name="Bandages", stock_quantity=200, reorder_threshold=10)
    make_item(name="Retired", stock_quantity=0, reorder_threshold=10, active_status=False)

    result = service.process_inventory_management()

    assert result.success is True
    assert result.errors == []
    assert result.processed_items == [
        "Auto-ordered: Gloves (Current: 5, Threshold: 10)",
        "Auto-ordered: Masks (Current: 10, Threshold: 10)",
        "Checked for pending restocking operations",
        "Usage tracking updated",
    ]
    assert notifier.supplier_messages[0] == {"item_name": "Gloves", "supplier": "MedSupply", "quantity": 50}
    assert audit.actions().count("purchase_order_created") == 2


def test_sweep_tolerates_per_item_failure(session_factory, audit, settings, make_item):
    class FlakyNotifier:
        def notify_supplier(self, item_name, supplier_info, quantity):
            if item_name == "Gloves":
                raise RuntimeError("supplier portal offline")

    make_item(name="Gloves", stock_quantity=1, reorder_threshold=10)
    make_item(name="Masks", stock_quantity=2, reorder_threshold=10)
    service = InventoryManagementService(
        session_factory=session_factory, audit=audit, notifier=FlakyNotifier(), settings=settings
    )

    result = service.process_inventory_management()

    assert result.success is True
    assert result.errors == ["Failed to auto-order Gloves: supplier portal offline"]
    assert "Auto-ordered: Masks (Current: 2, Threshold: 10)" in result.processed_items


def test_sweep_with_nothing_low(service, make_item):
    make_item(stock_quantity=500, reorder_threshold=10)

    result = service.process_inventory_management()

    assert result.processed_items == ["Checked for pending restocking operations", "Usage tracking updated"]


def test_restock_adds_stock_and_updates_supplier(service, db, make_item, audit):
    item = make_item(name="Gloves", stock_quantity=5, supplier_info="Old Co")

    result = service.process_restocking(item.id, 45, "New Co")

    assert result.success is True
    assert result.message == "Successfully restocked Gloves with 45 units"
    db.expire_all()
    restocked = crud.get_inventory_item(db, item.id)
    assert restocked.stock_quantity == 50
    assert restocked.supplier_info == "New Co"
    assert "inventory_restocked" in audit.actions()


def test_restock_keeps_supplier_when_blank(service, db, make_item):
    item = make_item(supplier_info="Old Co")

    service.process_restocking(item.id, 5, "   ")

    db.expire_all()
    assert crud.get_inventory_item(db, item.id).supplier_info == "Old Co"


def test_restock_unknown_item(service):
    result = service.process_restocking(12345, 10)

    assert result.success is False
    assert result.message == "Inventory item not found"


def test_restock_rejects_non_positive_quantity(service, db, make_item):
    item = make_item(stock_quantity=5)

    result = service.process_restocking(item.id, 0)

    assert result.success is False
    db.expire_all()
    assert crud.get_inventory_item(db, item.id).stock_quantity == 5


def test_usage_decrements_and_raises_alerts(service, db, patient, doctor, make_appointment, make_item):
    appointment = make_appointment(patient.id, doctor.id)
    gloves = make_item(name="Gloves", stock_quantity=12, reorder_threshold=10)
    masks = make_item(name="Masks", stock_quantity=100, reorder_threshold=10)

    result = service.process_inventory_usage(appointment.id, {gloves.id: 3, masks.id: 1})

    assert result.success is True
    assert result.message == "Inventory usage processed successfully"
    assert result.processed_items == ["Gloves (Used: 3)", "Masks (Used: 1)"]
    assert result.reorder_alerts == ["REORDER ALERT: Gloves (Stock: 9, Threshold: 10)"]
    db.expire_all()
    assert crud.get_inventory_item(db, gloves.id).stock_quantity == 9
    assert crud.get_inventory_usage(db, appointment.id, masks.id).quantity_used == 1


def test_usage_is_all_or_nothing(service, db, patient, doctor, make_appointment, make_item):
    appointment = make_appointment(patient.id, doctor.id)
    gloves = make_item(name="Gloves", stock_quantity=12)
    masks = make_item(name="Masks", stock_quantity=1)

    result = service.process_inventory_usage(appointment.id, {gloves.id: 3, masks.id: 2})

    assert result.success is False
    assert result.message == "Insufficient stock for Masks"
    db.expire_all()
    assert crud.get_inventory_item(db, gloves.id).stock_quantity == 12
    assert db.query(models.AppointmentInventory).count() == 0


def test_usage_unknown_item_and_appointment(service, patient, doctor, make_appointment):
    appointment = make_appointment(patient.id, doctor.id)

    assert service.process_inventory_usage(appointment.id, {777: 1}).message == "Insufficient stock for Item ID 777"
    assert service.process_inventory_usage(999, {1: 1}).message == "Appointment not found"


class FailingAudit(AuditLogger):
    def log_event(self, action, category, details=None, severity="INFO", **fields):
        raise RuntimeError("audit sink down")


def test_restock_audit_failure_returns_a_result(session_factory, notifier, settings, db, make_item):
    item = make_item(stock_quantity=5)
    service = InventoryManagementService(
        session_factory=session_factory, audit=FailingAudit(), notifier=notifier, settings=settings
    )

    result = service.process_restocking(item.id, 10)

    assert result.success is False
    assert result.message == "audit sink down"
    db.expire_all()
    assert crud.get_inventory_item(db, item.id).stock_quantity == 5


def test_usage_rejects_non_positive_quantity(service, db, patient, doctor, make_appointment, make_item):
    appointment = make_appointment(patient.id, doctor.id)
    item = make_item(stock_quantity=5)

    result = service.process_inventory_usage(appointment.id, {item.id: -3})

    assert result.success is False
    assert result.message == f"Quantity for item {item.id} must be positive"
    db.expire_all()
    assert crud.get_inventory_item(db, item.id).stock_quantity == 5
    assert db.query(models.AppointmentInventory).count() == 0
