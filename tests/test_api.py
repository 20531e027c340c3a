import pytest

from services.book_service import BookService

BASE = "/api/book"

DUNE = {
    "title": "Dune",
    "author": "Herbert",
    "category": "Science Fiction",
    "price": "499",
    "publish_year": "1965",
    "isbn_num": "9780441013593",
}


def cover(name="cover.jpg", content=b"\xff\xd8\xff fake jpeg", content_type="image/jpeg"):
    return {"cover_image": (name, content, content_type)}


def create(client, data=None, files=None):
    return client.post(f"{BASE}/", data=data if data is not None else DUNE, files=files if files is not None else cover())


def test_create_returns_201_envelope(client):
    response = create(client)
    body = response.json()
    assert response.status_code == 201
    assert body["status"] == 201
    assert body["error"] is False
    assert body["message"] == "Book added successfully"
    book = body["result"]
    assert book["_id"]
    assert book["cover_image"].startswith("https://")
    assert book["created_at"] == book["updated_at"]
    assert book["title"] == "Dune"
    assert book["price"] == 499
    assert book["publish_year"] == 1965
    assert book["isbn_num"] == 9780441013593


def test_create_without_file_is_rejected(client, images):
    response = client.post(f"{BASE}/", data=DUNE)
    body = response.json()
    assert response.status_code == 400
    assert body == {"status": 400, "error": True, "message": "Image is not Found"}
    assert images.stored == {}


def test_create_without_file_is_rejected_even_with_bad_fields(client):
    response = client.post(f"{BASE}/", data={"price": "not-a-number"})
    assert response.json()["status"] == 400
    assert response.json()["error"] is True


def test_create_requires_title_and_author(client, images):
    response = create(client, data={"category": "Poetry"})
    body = response.json()
    assert body["status"] == 400
    assert "title" in body["message"]
    assert "author" in body["message"]
    assert images.stored == {}


def test_create_rejects_non_numeric_fields(client):
    response = create(client, data=dict(DUNE, publish_year="nineteen sixty-five"))
    body = response.json()
    assert body["status"] == 400
    assert "publish_year" in body["message"]


def test_create_rejects_non_image_upload(client):
    response = create(client, files=cover("notes.txt", b"hello", "text/plain"))
    body = response.json()
    assert body["status"] == 400
    assert body["error"] is True


def test_list_empty_store(client):
    response = client.get(f"{BASE}/")
    assert response.status_code == 200
    assert response.json() == {
        "status": 200,
        "error": False,
        "message": "Books fetched successfully",
        "result": [],
    }


def test_list_without_trailing_slash(client):
    create(client)
    response = client.get(BASE)
    assert response.status_code == 200
    assert len(response.json()["result"]) == 1


def test_list_reflects_creates_and_deletes(client):
    ids = [create(client, data=dict(DUNE, title=f"Book {i}")).json()["result"]["_id"] for i in range(3)]
    client.delete(f"{BASE}/{ids[1]}")

    listed = client.get(f"{BASE}/").json()["result"]
    assert sorted(b["_id"] for b in listed) == sorted([ids[0], ids[2]])


def test_round_trip_create_then_get(client):
    created = create(client).json()["result"]
    response = client.get(f"{BASE}/{created['_id']}")
    body = response.json()
    assert body["status"] == 200
    assert body["message"] == "Book fetch success"
    fetched = body["result"]
    for field in ("title", "author", "category", "price", "publish_year", "isbn_num", "cover_image"):
        assert fetched[field] == created[field]


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_unknown_id_is_not_found(client, images, method):
    kwargs = {"data": {"title": "Nope"}, "files": cover()} if method == "put" else {}
    response = getattr(client, method)(f"{BASE}/does-not-exist", **kwargs)
    body = response.json()
    assert response.status_code == 400
    assert body == {"status": 400, "error": True, "message": "Book not found"}
    assert images.stored == {}
    assert images.deleted == []
    assert client.get(f"{BASE}/").json()["result"] == []


def test_update_fields_without_image(client, images):
    created = create(client).json()["result"]
    response = client.put(f"{BASE}/{created['_id']}", data={"price": "550", "category": "Classics"})
    body = response.json()
    assert body["status"] == 200
    assert body["message"] == "Book updated successfully"
    updated = body["result"]
    assert updated["price"] == 550
    assert updated["category"] == "Classics"
    assert updated["title"] == "Dune"
    assert updated["cover_image"] == created["cover_image"]
    assert updated["created_at"] == created["created_at"]
    assert images.deleted == []


def test_update_with_new_image_deletes_old_one(client, images):
    created = create(client).json()["result"]
    response = client.put(f"{BASE}/{created['_id']}", data=DUNE, files=cover("new.png", b"png", "image/png"))
    updated = response.json()["result"]
    assert updated["cover_image"] != created["cover_image"]
    assert updated["cover_image"].endswith(".png")
    assert images.deleted == ["Book-Management/cover1"]


def test_update_survives_failed_image_cleanup(client, images):
    created = create(client).json()["result"]
    images.fail_delete = True
    response = client.put(f"{BASE}/{created['_id']}", data=DUNE, files=cover("new.jpg"))
    body = response.json()
    assert body["status"] == 200
    assert body["result"]["cover_image"] != created["cover_image"]
    assert len(images.deleted) == 1


def test_update_rejects_blank_title(client):
    created = create(client).json()["result"]
    response = client.put(f"{BASE}/{created['_id']}", data={"title": "   "})
    assert response.json()["status"] == 400
    assert client.get(f"{BASE}/{created['_id']}").json()["result"]["title"] == "Dune"


def test_delete_returns_snapshot_and_keeps_image(client, images):
    created = create(client).json()["result"]
    response = client.delete(f"{BASE}/{created['_id']}")
    body = response.json()
    assert body["status"] == 200
    assert body["message"] == "Book deleted successfully"
    assert body["result"]["_id"] == created["_id"]
    assert images.deleted == []


def test_unexpected_fault_returns_generic_500(client, monkeypatch):
    async def boom(self):
        raise RuntimeError("database exploded: password=hunter2")

    monkeypatch.setattr(BookService, "list_books", boom)
    response = client.get(f"{BASE}/")
    assert response.status_code == 500
    assert response.json() == {"status": 500, "error": True, "message": "Internal server error"}


def test_dune_scenario(client):
    created = create(client)
    assert created.json()["status"] == 201
    book = created.json()["result"]
    assert book["cover_image"]

    fetched = client.get(f"{BASE}/{book['_id']}").json()
    assert fetched["status"] == 200
    assert (fetched["result"]["title"], fetched["result"]["author"]) == ("Dune", "Herbert")

    deleted = client.delete(f"{BASE}/{book['_id']}").json()
    assert deleted["status"] == 200
    assert deleted["result"]["title"] == "Dune"

    gone = client.get(f"{BASE}/{book['_id']}").json()
    assert gone["status"] == 400
    assert gone["error"] is True


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


@pytest.mark.parametrize("price", ["inf", "-inf", "nan", "-1"])
def test_create_rejects_unrenderable_price(client, images, price):
    response = create(client, data=dict(DUNE, price=price))
    body = response.json()
    assert response.status_code == 400
    assert body["error"] is True
    assert "price" in body["message"]
    assert images.stored == {}
    listing = client.get(f"{BASE}/").json()
    assert (listing["status"], listing["result"]) == (200, [])


@pytest.mark.parametrize("price", ["inf", "nan"])
def test_update_rejects_unrenderable_price(client, price):
    created = create(client).json()["result"]
    response = client.put(f"{BASE}/{created['_id']}", data={"price": price})
    assert response.json()["status"] == 400
    listing = client.get(f"{BASE}/").json()
    assert listing["status"] == 200
    assert [b["price"] for b in listing["result"]] == [created["price"]]


@pytest.mark.parametrize("field, value", [
    ("isbn_num", "9" * 25),
    ("isbn_num", "-5"),
    ("publish_year", "10000"),
    ("publish_year", "9" * 25),
])
def test_create_rejects_out_of_range_integers(client, images, field, value):
    response = create(client, data=dict(DUNE, **{field: value}))
    body = response.json()
    assert response.status_code == 400
    assert field in body["message"]
    assert images.stored == {}
    assert images.deleted == []


def test_update_rejects_out_of_range_isbn_and_keeps_cover(client, images):
    created = create(client).json()["result"]
    response = client.put(f"{BASE}/{created['_id']}", data={"isbn_num": "9" * 25}, files=cover("new.jpg"))
    assert response.json()["status"] == 400
    fetched = client.get(f"{BASE}/{created['_id']}").json()["result"]
    assert fetched["cover_image"] == created["cover_image"]
    assert fetched["isbn_num"] == created["isbn_num"]
    assert images.deleted == []


def test_update_treats_empty_form_values_as_not_supplied(client):
    created = create(client).json()["result"]
    response = client.put(
        f"{BASE}/{created['_id']}",
        data={"title": "", "category": "", "price": "", "publish_year": "", "isbn_num": ""},
    )
    body = response.json()
    assert body["status"] == 200
    updated = body["result"]
    for field in ("title", "author", "category", "price", "publish_year", "isbn_num", "cover_image"):
        assert updated[field] == created[field]
