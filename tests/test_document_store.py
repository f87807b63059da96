import json
import os
from unittest import mock

import pytest

from indiyum.domain.models import Document, Review
from indiyum.infrastructure.document_store import InMemoryDocumentStore, JsonFileDocumentStore
from indiyum.infrastructure.repositories.document_repository import DocumentRepository


def _review(i=1):
    return Review(id=i, productName="Banana Chips", name="Meera", rating=5, text="Crunchy")


def test_missing_file_loads_empty_document(tmp_path):
    store = JsonFileDocumentStore(str(tmp_path / "db.json"))
    assert store.load() == Document()


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", '{"orders": [{"id": "x"}]}'])
def test_broken_file_loads_empty_document(tmp_path, content):
    path = tmp_path / "db.json"
    path.write_text(content, encoding="utf-8")

    assert JsonFileDocumentStore(str(path)).load() == Document()


def test_legacy_file_without_orders_or_users(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"reviews": [{"id": 1, "productName": "Chakli", "name": "A", "rating": 4, "text": "ok"}]}))

    document = JsonFileDocumentStore(str(path)).load()

    assert document.reviews[0].product_name == "Chakli"
    assert document.orders == [] and document.users == []


def test_save_writes_camelcase_reviews_and_leaves_no_temp_files(tmp_path):
    path = tmp_path / "db.json"
    store = JsonFileDocumentStore(str(path))

    store.save(Document(reviews=[_review()]))

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert set(raw) == {"reviews", "orders", "users"}
    assert raw["reviews"][0]["productName"] == "Banana Chips"
    assert os.listdir(tmp_path) == ["db.json"]
    assert store.load().reviews[0] == _review()


def test_save_failure_is_logged_not_raised(tmp_path, caplog):
    store = JsonFileDocumentStore(str(tmp_path / "missing-dir" / "db.json"))

    store.save(Document(reviews=[_review()]))

    assert "Failed to write" in caplog.text
    assert store.load() == Document()


def test_in_memory_store_hands_out_copies():
    store = InMemoryDocumentStore()
    document = store.load()
    document.reviews.append(_review())

    assert store.load().reviews == []
    store.save(document)
    document.reviews.append(_review(2))
    assert len(store.load().reviews) == 1
    assert store.saves == 1


@pytest.mark.anyio
async def test_edit_discards_changes_when_block_raises():
    store = InMemoryDocumentStore()
    repo = DocumentRepository(store)

    with pytest.raises(RuntimeError):
        async with repo.edit() as document:
            document.reviews.append(_review())
            raise RuntimeError("abort")

    assert store.saves == 0
    assert (await repo.read()).reviews == []


def _good_review():
    return {"id": 1, "productName": "Chakli", "name": "A", "rating": 4, "text": "ok"}


def _order_with_camelcase_timestamp():
    return {
        "id": 2, "receipt": "r1", "razorpay_order_id": "order_1", "amount": 5.0,
        "amount_paise": 500, "createdAt": "2024-01-01T00:00:00+05:30",
    }


@pytest.mark.anyio
async def test_bad_record_does_not_wipe_the_rest(tmp_path):
    path = tmp_path / "db.json"
    original = {"reviews": [_good_review()], "orders": [_order_with_camelcase_timestamp()], "users": []}
    path.write_text(json.dumps(original), encoding="utf-8")
    repo = DocumentRepository(JsonFileDocumentStore(str(path)))

    async with repo.edit() as document:
        document.reviews.append(_review(3))

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert [r["productName"] for r in saved["reviews"]] == ["Chakli", "Banana Chips"]

    [backup] = [p for p in tmp_path.iterdir() if p.name.startswith("db.json.corrupt-")]
    assert json.loads(backup.read_text(encoding="utf-8")) == original


def test_unparseable_file_is_backed_up_before_overwrite(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileDocumentStore(str(path))

    store.load()
    store.save(Document(reviews=[_review()]))

    [backup] = [p for p in tmp_path.iterdir() if p.name.startswith("db.json.corrupt-")]
    assert backup.read_text(encoding="utf-8") == "{not json"


def test_refuses_to_save_when_backup_fails(tmp_path, caplog):
    path = tmp_path / "db.json"
    path.write_text('{"orders": [{"id": "x"}]}', encoding="utf-8")
    store = JsonFileDocumentStore(str(path))

    with mock.patch("indiyum.infrastructure.document_store.shutil.copy2", side_effect=OSError("disk full")):
        assert store.load() == Document()

    store.save(Document(reviews=[_review()]))

    assert store.writable is False
    assert path.read_text(encoding="utf-8") == '{"orders": [{"id": "x"}]}'
    assert "Refusing to overwrite" in caplog.text


def test_unknown_fields_survive_a_rewrite(tmp_path):
    path = tmp_path / "db.json"
    review = dict(_good_review(), verified_buyer=True)
    path.write_text(json.dumps({"reviews": [review], "orders": [], "users": [], "coupons": ["DIWALI"]}), encoding="utf-8")
    store = JsonFileDocumentStore(str(path))

    store.save(store.load())

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["coupons"] == ["DIWALI"]
    assert saved["reviews"][0]["verified_buyer"] is True
