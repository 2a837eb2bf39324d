from datetime import date

from notesai.templates import TEMPLATE_CATEGORIES, get_template, list_templates


def test_render_substitutes_date():
    template = get_template("daily-journal")
    rendered = template.render(date(2025, 3, 14))
    assert "# Journal - 2025-03-14" in rendered
    assert "{date}" not in rendered


def test_category_filter():
    dev = list_templates("development")
    assert {t.id for t in dev} == {"software-analysis", "code-snippet"}
    assert list_templates("nope") == []
    assert len(list_templates()) == 12
    assert {t.category for t in list_templates()} <= set(TEMPLATE_CATEGORIES)


def test_list_endpoint(client):
    r = client.get("/api/templates")
    assert r.status_code == 200
    body = r.json()
    assert len(body["templates"]) == 12
    assert {c["id"] for c in body["categories"]} == {
        "productivity", "personal", "development", "creative"
    }
    simple = next(t for t in body["templates"] if t["id"] == "meeting-notes-simple")
    assert simple["category"] == "productivity"
    assert "{date}" not in simple["content"]
    assert date.today().isoformat() in simple["content"]


def test_list_endpoint_by_category(client):
    r = client.get("/api/templates", params={"category": "creative"})
    assert {t["id"] for t in r.json()["templates"]} == {"blog-post", "brainstorm"}


def test_create_note_from_template(client, signup):
    headers, _ = signup()
    r = client.post("/api/notes/from-template", json={"templateId": "goal-tracker"}, headers=headers)
    assert r.status_code == 201
    note = r.json()["note"]
    assert note["title"] == get_template("goal-tracker").title
    assert "{date}" not in note["content"]
    assert note["categoryId"] is None

    cats = client.get("/api/categories", headers=headers).json()["categories"]
    r = client.post(
        "/api/notes/from-template",
        json={"templateId": "recipe", "title": "Pancakes", "categoryId": cats[0]["id"]},
        headers=headers,
    )
    assert r.status_code == 201
    assert r.json()["note"]["title"] == "Pancakes"
    assert r.json()["note"]["categoryId"] == cats[0]["id"]


def test_unknown_template(client, signup):
    headers, _ = signup()
    r = client.post("/api/notes/from-template", json={"templateId": "missing"}, headers=headers)
    assert r.status_code == 404
    assert r.json()["code"] == "TEMPLATE_NOT_FOUND"
