import threading

import pytest

from family_budget.services import IngestionWorkflow, QrDecoder
from family_budget.services.fiscal_lookup import ReceiptLine
from family_budget.services.ingestion import DUPLICATE_MESSAGE, NO_TOTAL_DESCRIPTION

from conftest import RECEIPT_QR, FakeClassifier, FakeLookup, blank_png, qr_png

LINES = [
    ReceiptLine(name="Бананы", quantity=1.2, sum=15600, price=13000),
    ReceiptLine(name="Шуруповёрт", quantity=1, sum=499000, price=499000),
]


def category_id(store, name):
    return next(c.id for c in store.list_categories() if c.name == name)


def classify_bananas(store):
    def respond(items, categories):
        fruit = category_id(store, "Овощи, фрукты")
        other = category_id(store, "Прочее")
        return {i.id: fruit if i.name == "Бананы" else other for i in items}
    return respond


@pytest.fixture
def lookup():
    return FakeLookup(lines=LINES)


@pytest.fixture
def workflow(store, lookup):
    return IngestionWorkflow(store, lookup, FakeClassifier(classify_bananas(store)))


def test_full_receipt_is_recorded_with_items(store, workflow, lookup):
    result = workflow.ingest_qr(RECEIPT_QR, "syoma")

    assert result.success
    assert result.items_count == 2
    assert result.classified_count == 2
    assert result.message == "Чек на 1234.50₽ сохранен. Отредактируйте кто сколько заплатил."

    payment = store.get_payment(result.payment_id)
    assert payment.total == 123450
    assert payment.paid_syoma == 123450
    assert payment.paid_egor == 0
    assert payment.created_by == "syoma"
    assert payment.raw_qr == RECEIPT_QR
    assert payment.description == "Чек от 30.06.2025 17:36 на 1234.5₽"
    assert payment.fns_payload == (
        "t=20250630T1736&s=1234.5&fn=7380440800123456&i=12345&fp=1234567890&n=1"
    )
    assert len(lookup.calls) == 1

    items = {i.name: i for i in store.list_items_for_payment(payment.id)}
    assert items["Бананы"].qty == 1.2
    assert items["Бананы"].price == 15600
    assert items["Бананы"].category_id == category_id(store, "Овощи, фрукты")
    assert items["Шуруповёрт"].category_id == category_id(store, "Прочее")


def test_duplicate_scan_creates_one_payment(store, workflow):
    first = workflow.ingest_qr(RECEIPT_QR, "egor")
    second = workflow.ingest_qr(RECEIPT_QR, "syoma")

    assert first.success
    assert not second.success
    assert second.duplicate
    assert second.error == DUPLICATE_MESSAGE
    assert second.payment_id == first.payment_id
    assert len(store.list_payments_with_items()) == 1


def test_concurrent_duplicate_scans_create_one_payment(store, workflow):
    results = []

    def scan(role):
        results.append(workflow.ingest_qr(RECEIPT_QR, role))

    threads = [threading.Thread(target=scan, args=(role,)) for role in ("egor", "syoma") * 4]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(r.success for r in results) == 1
    assert len(store.list_payments_with_items()) == 1


def test_missing_fiscal_fields_skip_lookup(store, workflow, lookup):
    result = workflow.ingest_qr("t=20250630T1736&s=500.00", "egor")

    assert result.success
    assert result.items_count == 0
    assert lookup.calls == []
    payment = store.get_payment(result.payment_id)
    assert payment.total == 50000
    assert payment.paid_egor == 50000
    assert payment.fns_payload is None


def test_qr_without_total_needs_manual_amounts(store, workflow, lookup):
    result = workflow.ingest_qr("something unexpected", "egor")

    assert result.success
    assert result.message == "QR код сохранен. Отредактируйте платеж с правильными суммами."
    payment = store.get_payment(result.payment_id)
    assert payment.total == 0
    assert payment.paid_egor == 0
    assert payment.description == NO_TOTAL_DESCRIPTION
    assert lookup.calls == []


def test_lookup_failure_keeps_payment(store):
    workflow = IngestionWorkflow(
        store, FakeLookup(error=RuntimeError("timeout")), FakeClassifier()
    )

    result = workflow.ingest_qr(RECEIPT_QR, "egor")

    assert result.success
    assert result.items_count == 0
    assert store.get_payment(result.payment_id).total == 123450


def test_lookup_without_lines_keeps_payment(store):
    classifier = FakeClassifier()
    workflow = IngestionWorkflow(store, FakeLookup(lines=None), classifier)

    result = workflow.ingest_qr(RECEIPT_QR, "egor")

    assert result.success
    assert result.items_count == 0
    assert classifier.calls == []


def test_classifier_failure_keeps_items(store, lookup):
    def explode(items, categories):
        raise RuntimeError("model down")

    workflow = IngestionWorkflow(store, lookup, FakeClassifier(explode))

    result = workflow.ingest_qr(RECEIPT_QR, "egor")

    assert result.success
    assert result.items_count == 2
    assert result.classified_count == 0
    items = store.list_items_for_payment(result.payment_id)
    assert all(i.category_id is None for i in items)


def test_classify_payment_only_uncategorized(store, workflow):
    payment_id = workflow.ingest_qr(RECEIPT_QR, "egor").payment_id
    item = store.insert_item(payment_id, name="Пакет", qty=1, price=900)

    classifier = FakeClassifier(lambda items, categories: {i.id: categories[0].id for i in items})
    workflow.classifier = classifier
    outcome = workflow.classify_payment(payment_id, only_uncategorized=True)

    assert outcome.attempted_count == 1
    assert outcome.updated_count == 1
    [(items, categories)] = classifier.calls
    assert [i.id for i in items] == [item.id]
    assert [c.name for c in categories] == [c.name for c in store.list_categories()]


def test_classify_payment_without_items(store, workflow):
    outcome = workflow.classify_payment(999)

    assert outcome.attempted_count == 0
    assert outcome.updated_count == 0


def test_ingest_image(store, workflow):
    result = workflow.ingest_image(qr_png(RECEIPT_QR), "egor", "receipt.png")

    assert result.success
    assert result.decode.method == 1
    assert store.get_payment(result.payment_id).raw_qr == RECEIPT_QR


def test_ingest_unreadable_image_records_nothing(store, lookup):
    workflow = IngestionWorkflow(
        store, lookup, FakeClassifier(), decoder=QrDecoder(decode=lambda image: None)
    )

    result = workflow.ingest_image(blank_png(), "egor")

    assert not result.success
    assert result.decode is not None
    assert result.payment_id is None
    assert store.list_payments_with_items() == []


def test_oversized_total_is_recorded_without_amounts(store, workflow, lookup):
    result = workflow.ingest_qr("t=20250630T1736&s=1e30&fn=1&i=2&fp=3", "egor")

    assert result.success
    payment = store.get_payment(result.payment_id)
    assert payment.total == 0
    assert payment.paid_egor == 0
    assert payment.description == NO_TOTAL_DESCRIPTION
    assert lookup.calls == []
