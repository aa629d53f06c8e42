import json

import pytest

from family_budget.config import DEFAULT_CATEGORIES, Settings
from family_budget.store import (
    JsonFileBackend,
    RecordStore,
    SqlAlchemyBackend,
    create_backend,
    open_store,
)


def make_backend(kind, path):
    if kind == "json":
        return JsonFileBackend(path)
    return SqlAlchemyBackend(path / "budget.db")


@pytest.fixture(params=["json", "sqlite"])
def backend_kind(request):
    return request.param


@pytest.fixture
def ledger(backend_kind, tmp_path):
    store = RecordStore(make_backend(backend_kind, tmp_path))
    store.load()
    yield store
    store.close()


def add_payment(store, total=1000, paid_egor=500, paid_syoma=500, **kwargs):
    kwargs.setdefault("description", None)
    kwargs.setdefault("created_by", "egor")
    return store.insert_payment(total=total, paid_egor=paid_egor, paid_syoma=paid_syoma, **kwargs)


def test_ids_are_unique_and_increasing(ledger):
    first = add_payment(ledger)
    second = add_payment(ledger)
    ledger.delete_payment(second.id)
    third = add_payment(ledger)

    assert first.id == 1
    assert second.id == 2
    assert third.id == 3


def test_records_survive_reopen(backend_kind, tmp_path):
    store = RecordStore(make_backend(backend_kind, tmp_path))
    store.load()
    payment = add_payment(store, raw_qr="t=1&s=10")
    store.insert_item(payment.id, name="Молоко", qty=2, price=18000)
    store.close()

    reopened = RecordStore(make_backend(backend_kind, tmp_path))
    reopened.load()
    try:
        assert reopened.find_payment_by_qr("t=1&s=10").id == payment.id
        items = reopened.list_items_for_payment(payment.id)
        assert [(i.name, i.qty, i.price) for i in items] == [("Молоко", 2, 18000)]
        assert add_payment(reopened).id == payment.id + 1
    finally:
        reopened.close()


def test_delete_payment_cascades_to_items(ledger):
    kept = add_payment(ledger)
    doomed = add_payment(ledger)
    ledger.insert_item(kept.id, name="Хлеб", qty=1, price=5000)
    ledger.insert_item(doomed.id, name="Сыр", qty=1, price=30000)
    ledger.insert_item(doomed.id, name="Вино", qty=1, price=90000)

    assert ledger.delete_payment(doomed.id) is True

    assert ledger.get_payment(doomed.id) is None
    assert ledger.list_items_for_payment(doomed.id) == []
    assert [i.name for i in ledger.list_items_for_payment(kept.id)] == ["Хлеб"]


def test_missing_ids_are_noops(ledger):
    assert ledger.delete_payment(42) is False
    assert ledger.update_item(42, name="x") is None
    assert ledger.update_category(42, "x", "", "#000000", 0) is None
    assert ledger.insert_item(42, name="x", qty=1, price=1) is None


def test_item_payment_id_cannot_change(ledger):
    payment = add_payment(ledger)
    item = ledger.insert_item(payment.id, name="Кофе", qty=1, price=40000)

    with pytest.raises(ValueError):
        ledger.items.update(item.id, {"payment_id": 99})


def test_update_item_keeps_omitted_fields(ledger):
    payment = add_payment(ledger)
    item = ledger.insert_item(payment.id, name="Кофе", qty=1, price=40000)

    updated = ledger.update_item(item.id, price=45000)

    assert updated.name == "Кофе"
    assert updated.qty == 1
    assert updated.price == 45000


def test_dangling_category_reads_as_uncategorized(ledger):
    category = ledger.insert_category("Чай, кофе", "", "#22c55e", 0)
    payment = add_payment(ledger)
    ledger.insert_item(payment.id, name="Кофе", qty=1, price=40000, category_id=category.id)
    ledger.delete_category(category.id)

    [entry] = ledger.list_payments_with_items()
    [item] = entry.items
    assert item.category_id is None
    assert item.category_name is None


def test_payments_listed_newest_first(ledger):
    older = add_payment(ledger)
    newer = add_payment(ledger)
    ledger.payments.update(older.id, {"ts": "2025-01-01T10:00:00.000Z"})
    ledger.payments.update(newer.id, {"ts": "2025-02-01T10:00:00.000Z"})
    same_time = add_payment(ledger)
    ledger.payments.update(same_time.id, {"ts": "2025-02-01T10:00:00.000Z"})

    ids = [entry.payment.id for entry in ledger.list_payments_with_items()]
    assert ids == [same_time.id, newer.id, older.id]


def test_balance_is_exact_on_half_kopecks(ledger):
    add_payment(ledger, total=1000, paid_egor=500, paid_syoma=500)
    add_payment(ledger, total=1001, paid_egor=1001, paid_syoma=0)
    add_payment(ledger, total=0, paid_egor=0, paid_syoma=0)

    balance = ledger.aggregate_balance()

    assert balance.egor_delta == 500.5
    assert balance.syoma_delta == -500.5
    assert balance.total_spent == 2001
    assert balance.payments_count == 2


def test_even_split_payments_balance_to_zero(ledger):
    add_payment(ledger, total=2000, paid_egor=1500, paid_syoma=500)
    add_payment(ledger, total=3000, paid_egor=500, paid_syoma=2500)

    balance = ledger.aggregate_balance()

    assert balance.egor_delta + balance.syoma_delta == 0
    assert balance.egor_delta == -500


def test_list_categories_sorted_by_name(ledger):
    ledger.insert_category("чай", "", "#000000", 0)
    ledger.insert_category("Бакалея", "", "#000000", 0)
    ledger.insert_category("Алкоголь", "", "#000000", 0)

    assert [c.name for c in ledger.list_categories()] == ["Алкоголь", "Бакалея", "чай"]


def test_open_store_seeds_once(tmp_path):
    settings = Settings(data_dir=tmp_path)
    store = open_store(settings)
    store.insert_category("Лекарства", "", "#ef4444", 0)
    store.close()

    reopened = open_store(settings)
    try:
        names = [c.name for c in reopened.list_categories()]
        assert len(names) == len(DEFAULT_CATEGORIES) + 1
        assert "Прочее" in names
    finally:
        reopened.close()


def test_corrupt_json_file_loads_empty(tmp_path):
    (tmp_path / "payments.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "items.json").write_text('{"id": 1}', encoding="utf-8")

    store = RecordStore(JsonFileBackend(tmp_path))
    store.load()

    assert store.list_payments_with_items() == []
    assert add_payment(store).id == 1


def test_hand_edited_json_file(tmp_path):
    rows = [
        {"id": 3, "name": "Белок", "color": "#3b82f6"},
        {"id": 8, "name": "Прочее", "description": None, "color": "#6b7280", "note": "x"},
        {"name": "no id"},
    ]
    (tmp_path / "categories.json").write_text(json.dumps(rows), encoding="utf-8")

    store = RecordStore(JsonFileBackend(tmp_path))
    store.load()

    assert [(c.id, c.description) for c in store.list_categories()] == [(3, ""), (8, "")]
    assert store.insert_category("Новая", "", "#000000", 0).id == 9


def test_json_files_are_readable(tmp_path):
    store = RecordStore(JsonFileBackend(tmp_path))
    store.load()
    store.insert_category("Овощи, фрукты", "Свежие", "#10b981", 0)

    text = (tmp_path / "categories.json").read_text(encoding="utf-8")
    assert "Овощи, фрукты" in text
    assert json.loads(text)[0]["name"] == "Овощи, фрукты"


def test_create_backend_rejects_unknown_kind(tmp_path):
    with pytest.raises(ValueError):
        create_backend(Settings(data_dir=tmp_path, store_backend="mongo"))


def test_create_backend_sqlite(tmp_path):
    backend = create_backend(Settings(data_dir=tmp_path, store_backend="sqlite"))
    try:
        assert isinstance(backend, SqlAlchemyBackend)
        assert (tmp_path / "budget.db").exists()
    finally:
        backend.close()


def read_rows(path):
    return json.loads(path.read_text(encoding="utf-8"))


def test_malformed_row_id_is_not_reissued(tmp_path):
    (tmp_path / "payments.json").write_text(json.dumps([{"id": 1, "total": 100}]), encoding="utf-8")

    store = RecordStore(JsonFileBackend(tmp_path))
    store.load()
    payment = add_payment(store, total=500, paid_egor=500, paid_syoma=0)
    store.update_payment_totals(payment.id, 700, 700, 0, None)

    assert payment.id == 2
    assert [(r["id"], r["total"]) for r in read_rows(tmp_path / "payments.json")] == [(2, 700)]

    reopened = RecordStore(JsonFileBackend(tmp_path))
    reopened.load()
    assert [(e.payment.id, e.payment.total) for e in reopened.list_payments_with_items()] == [(2, 700)]


@pytest.mark.parametrize("bad_id", [None, "3", 2.5, True])
def test_rows_with_non_integer_ids_are_skipped(tmp_path, bad_id):
    rows = [{"id": bad_id, "payment_id": 1, "name": "x", "price": 1}]
    (tmp_path / "items.json").write_text(json.dumps(rows), encoding="utf-8")

    store = RecordStore(JsonFileBackend(tmp_path))
    store.load()

    assert store.items.find_all() == []
    payment = add_payment(store)
    assert store.insert_item(payment.id, name="Хлеб", qty=1, price=5000).id == 1


def test_repeated_ids_keep_the_first_row(tmp_path):
    rows = [
        {"id": 4, "name": "Белок", "color": "#3b82f6"},
        {"id": 4, "name": "Копия", "color": "#000000"},
    ]
    (tmp_path / "categories.json").write_text(json.dumps(rows), encoding="utf-8")

    store = RecordStore(JsonFileBackend(tmp_path))
    store.load()
    created = store.insert_category("Сервис", "", "#3b82f6", 0)

    assert [c.name for c in store.list_categories()] == ["Белок", "Сервис"]
    assert created.id == 5
    assert [r["id"] for r in read_rows(tmp_path / "categories.json")] == [4, 5]
