def _create(client, headers, **fields):
    payload = {"title": "Dijkstra", "content": "Shortest path"}
    payload.update(fields)
    r = client.post("/api/notes", headers=headers, json=payload)
    assert r.status_code == 201, r.text
    return r.json()["note"]


def test_crud_flow(client, signup):
    headers, user = signup()

    r = client.post("/api/tags", headers=headers, json={"name": "algorithms"})
    assert r.status_code == 201
    tag = r.json()["tag"]

    note = _create(client, headers, tags=[tag["id"]], tagNames=["graphs"])
    assert note["userId"] == user["id"]
    assert {t["name"] for t in note["tags"]} == {"algorithms", "graphs"}
    assert note["isFavorite"] is False and note["isDeleted"] is False

    r = client.get(f"/api/notes/{note['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["note"]["title"] == "Dijkstra"

    r = client.get("/api/notes", headers=headers, params={"tagId": tag["id"]})
    assert r.status_code == 200
    assert [n["id"] for n in r.json()["notes"]] == [note["id"]]

    r = client.patch(
        f"/api/notes/{note['id']}", headers=headers, json={"title": "Dijkstra algo"}
    )
    assert r.status_code == 200
    assert r.json()["note"]["title"] == "Dijkstra algo"
    assert len(r.json()["note"]["tags"]) == 2

    r = client.delete(f"/api/notes/{note['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["success"] is True


def test_create_requires_title(client, signup):
    headers, _ = signup()
    r = client.post("/api/notes", headers=headers, json={"title": "   ", "content": "x"})
    assert r.status_code == 400
    assert r.json()["code"] == "MISSING_TITLE"


def test_create_rejects_extra_field(client, signup):
    headers, _ = signup()
    r = client.post(
        "/api/notes",
        headers=headers,
        json={"title": "Valid", "content": "Body", "evil": "field"},
    )
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"


def test_create_validates_category_and_tags(client, signup):
    headers, _ = signup()
    other_headers, _ = signup(email="u2@example.com")
    foreign = client.get("/api/categories", headers=other_headers).json()["categories"][0]

    r = client.post(
        "/api/notes", headers=headers, json={"title": "T", "categoryId": foreign["id"]}
    )
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_CATEGORY"

    r = client.post("/api/notes", headers=headers, json={"title": "T", "tags": [999]})
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_TAGS"


def test_tag_and_category_auto_creation(client, signup):
    headers, _ = signup()
    r = client.post("/api/tags", headers=headers, json={"name": "Work"})
    existing = r.json()["tag"]

    note = _create(
        client,
        headers,
        tagNames=["work", "#Urgent", "urgent", " "],
        categoryName="Reading",
    )
    names = sorted(t["name"] for t in note["tags"])
    assert names == ["Urgent", "Work"]
    assert existing["id"] in {t["id"] for t in note["tags"]}

    cats = client.get("/api/categories", headers=headers).json()["categories"]
    reading = [c for c in cats if c["name"] == "Reading"]
    assert len(reading) == 1
    assert note["categoryId"] == reading[0]["id"]

    # existing category is reused, case-insensitively
    second = _create(client, headers, categoryName="reading")
    assert second["categoryId"] == reading[0]["id"]
    tags = client.get("/api/tags", headers=headers).json()["tags"]
    assert len(tags) == 2


def test_other_users_note_is_forbidden(client, signup):
    headers, _ = signup()
    other_headers, _ = signup(email="u2@example.com")
    note = _create(client, headers)

    assert client.get(f"/api/notes/{note['id']}", headers=other_headers).status_code == 403
    r = client.patch(
        f"/api/notes/{note['id']}", headers=other_headers, json={"title": "mine"}
    )
    assert r.status_code == 403
    assert client.delete(f"/api/notes/{note['id']}", headers=other_headers).status_code == 403
    assert client.get("/api/notes", headers=other_headers).json()["notes"] == []


def test_missing_note_404(client, signup):
    headers, _ = signup()
    r = client.get("/api/notes/999999", headers=headers)
    assert r.status_code == 404
    assert r.json()["code"] == "NOTE_NOT_FOUND"


def test_views_and_flags(client, signup):
    headers, _ = signup()
    plain = _create(client, headers, title="Plain")
    fav = _create(client, headers, title="Fav", isFavorite=True)
    archived = _create(client, headers, title="Archived")
    trashed = _create(client, headers, title="Trashed")

    client.put(f"/api/notes/{archived['id']}", headers=headers, json={"isArchived": True})
    client.delete(f"/api/notes/{trashed['id']}", headers=headers)

    def ids(**params):
        r = client.get("/api/notes", headers=headers, params=params)
        assert r.status_code == 200
        return {n["id"] for n in r.json()["notes"]}

    assert ids() == {plain["id"], fav["id"]}
    assert ids(filter="favorites") == {fav["id"]}
    assert ids(filter="archived") == {archived["id"]}
    assert ids(filter="trash") == {trashed["id"]}
    assert ids(filter="recent") == {plain["id"], fav["id"], archived["id"]}
    assert ids(isArchived="true") == {archived["id"]}

    r = client.get("/api/notes", headers=headers, params={"filter": "bogus"})
    assert r.status_code == 400


def test_list_orders_by_updated_and_paginates(client, signup):
    headers, _ = signup()
    first = _create(client, headers, title="First")
    second = _create(client, headers, title="Second")
    client.patch(f"/api/notes/{first['id']}", headers=headers, json={"content": "edited"})

    notes = client.get("/api/notes", headers=headers).json()["notes"]
    assert [n["id"] for n in notes] == [first["id"], second["id"]]

    page = client.get("/api/notes", headers=headers, params={"limit": 1, "offset": 1})
    assert [n["id"] for n in page.json()["notes"]] == [second["id"]]


def test_search_is_case_insensitive_and_injection_safe(client, signup):
    headers, _ = signup()
    _create(client, headers, title="Safe title", content="Graph theory notes")
    _create(client, headers, title="Other", content="nothing here")

    r = client.get("/api/notes", headers=headers, params={"search": "GRAPH"})
    assert [n["title"] for n in r.json()["notes"]] == ["Safe title"]

    r = client.get("/api/notes", headers=headers, params={"search": "'; DROP TABLE notes;--"})
    assert r.status_code == 200
    assert r.json()["notes"] == []
    assert len(client.get("/api/notes", headers=headers).json()["notes"]) == 2


def test_search_treats_wildcards_literally(client, signup):
    headers, _ = signup()
    _create(client, headers, title="alpha", content="plain")
    _create(client, headers, title="100% done", content="")
    _create(client, headers, title="snake_case", content="")

    def titles(term):
        r = client.get("/api/notes", headers=headers, params={"search": term})
        assert r.status_code == 200
        return [n["title"] for n in r.json()["notes"]]

    assert titles("%") == ["100% done"]
    assert titles("_") == ["snake_case"]
    assert titles("\\") == []
    assert titles("a_p") == []


def test_update_category_and_tags(client, signup):
    headers, _ = signup()
    cat = client.get("/api/categories", headers=headers).json()["categories"][0]
    note = _create(client, headers, tagNames=["a", "b"])

    r = client.patch(
        f"/api/notes/{note['id']}",
        headers=headers,
        json={"categoryId": cat["id"], "tagNames": ["c"], "tags": []},
    )
    body = r.json()["note"]
    assert body["categoryId"] == cat["id"]
    assert [t["name"] for t in body["tags"]] == ["c"]

    r = client.patch(f"/api/notes/{note['id']}", headers=headers, json={"categoryId": None})
    assert r.json()["note"]["categoryId"] is None

    r = client.patch(f"/api/notes/{note['id']}", headers=headers, json={"categoryId": 12345})
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_CATEGORY"


def test_soft_delete_restore_and_permanent_delete(client, signup):
    headers, _ = signup()
    note = _create(client, headers, tagNames=["keep"])

    client.delete(f"/api/notes/{note['id']}", headers=headers)
    r = client.get(f"/api/notes/{note['id']}", headers=headers)
    assert r.json()["note"]["isDeleted"] is True

    r = client.patch(f"/api/notes/{note['id']}", headers=headers, json={"isDeleted": False})
    assert r.json()["note"]["isDeleted"] is False

    r = client.delete(f"/api/notes/{note['id']}", headers=headers, params={"permanent": "true"})
    assert r.status_code == 200
    assert client.get(f"/api/notes/{note['id']}", headers=headers).status_code == 404
    # the tag itself survives
    assert [t["name"] for t in client.get("/api/tags", headers=headers).json()["tags"]] == ["keep"]


def test_empty_trash(client, signup):
    headers, _ = signup()
    keep = _create(client, headers, title="keep")
    for title in ("a", "b"):
        n = _create(client, headers, title=title)
        client.delete(f"/api/notes/{n['id']}", headers=headers)

    r = client.delete("/api/notes/trash", headers=headers)
    assert r.status_code == 200
    assert r.json()["deleted"] == 2
    remaining = client.get("/api/notes", headers=headers, params={"filter": "recent"}).json()
    assert [n["id"] for n in remaining["notes"]] == [keep["id"]]


def test_stats(client, signup):
    headers, _ = signup()
    cat = client.get("/api/categories", headers=headers).json()["categories"][0]
    _create(client, headers, categoryId=cat["id"], isFavorite=True)
    _create(client, headers)
    gone = _create(client, headers)
    client.delete(f"/api/notes/{gone['id']}", headers=headers)

    r = client.get("/api/notes/stats", headers=headers)
    assert r.status_code == 200
    stats = r.json()
    assert stats["total"] == 2
    assert stats["favorites"] == 1
    assert stats["archived"] == 0
    assert stats["trash"] == 1
    by_cat = {row["categoryId"]: row["count"] for row in stats["byCategory"]}
    assert by_cat == {cat["id"]: 1, None: 1}
