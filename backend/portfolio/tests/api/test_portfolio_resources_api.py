from datetime import date

from portfolio.models import Certification, CertificationPublic


# Experiences

def test_experience_create_accepts_camel_case_and_caps_arrays(client):
    payload = {
        "title": "Data Engineer",
        "organization": "Acme",
        "startDate": "2023-05",
        "images": [f"https://img.example/{i}.png" for i in range(12)],
        "tags": ["Python", 42, "x" * 600],
    }

    response = client.post("/api/experiences", json=payload)

    assert response.status_code == 200, response.text
    experience = response.json()
    assert experience["startDate"] == "2023-05"
    assert experience["type"] == "work"
    assert len(experience["images"]) == 10
    assert experience["image"] == "https://img.example/0.png"
    assert experience["tags"] == ["Python", "x" * 500]


def test_experience_accepts_snake_case_and_full_dates(client):
    response = client.post(
        "/api/experiences",
        json={"title": "Intern", "start_date": "2022-08-15", "sort_order": 2, "type": "internship"},
    )

    experience = response.json()
    assert experience["startDate"] == "2022-08"
    assert experience["sortOrder"] == 2
    assert experience["type"] == "internship"


def test_experience_rejects_malformed_start_date(client):
    response = client.post("/api/experiences", json={"title": "Intern", "startDate": "August 2022"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid start date"}


def test_experiences_are_listed_newest_first_with_undated_last(client):
    for title, start in (("Old", "2019-01"), ("Undated", None), ("New", "2024-02")):
        client.post("/api/experiences", json={"title": title, "startDate": start})

    titles = [row["title"] for row in client.get("/api/experiences").json()]

    assert titles == ["New", "Old", "Undated"]


def test_experience_update_and_delete(client):
    created = client.post("/api/experiences", json={"title": "Analyst", "organization": "Acme"}).json()

    updated = client.put(f"/api/experiences/{created['id']}", json={"period": "2020 - 2021"}).json()
    assert updated["period"] == "2020 - 2021"
    assert updated["organization"] == "Acme"

    assert client.put("/api/experiences/999", json={"title": "x"}).status_code == 404
    assert client.delete(f"/api/experiences/{created['id']}").json() == {"success": True}
    assert client.delete(f"/api/experiences/{created['id']}").json() == {"success": True}
    assert client.get(f"/api/experiences/{created['id']}").status_code == 404


def test_experience_requires_title(client):
    response = client.post("/api/experiences", json={"organization": "Acme"})

    assert response.status_code == 400
    assert response.json() == {"error": "Title is required"}


# Projects

def test_project_crud(client):
    created = client.post(
        "/api/projects",
        json={"title": "Smart Farm", "tags": ["ESP32", "MQTT"], "link": "https://github.com/x/farm"},
    ).json()

    assert created["category"] == "Web Development"
    assert created["tags"] == ["ESP32", "MQTT"]

    updated = client.put(f"/api/projects/{created['id']}", json={"category": "AI & IoT"}).json()
    assert updated["category"] == "AI & IoT"
    assert updated["link"] == "https://github.com/x/farm"

    assert [row["id"] for row in client.get("/api/projects").json()] == [created["id"]]
    assert client.delete(f"/api/projects/{created['id']}").json() == {"success": True}
    assert client.get("/api/projects").json() == []


def test_project_requires_title(client):
    response = client.post("/api/projects", json={"description": "untitled"})

    assert response.status_code == 400


# Certifications

def test_certification_dates_round_trip_as_year_month(client):
    created = client.post(
        "/api/certifications",
        json={
            "name": "AWS Cloud Practitioner",
            "organization": "Amazon Web Services",
            "issueDate": "2024-01",
            "expiryDate": "2099-01",
            "credentialId": "ABC-123",
            "skills": ["Cloud"],
        },
    ).json()

    assert created["issueDate"] == "2024-01"
    assert created["expiryDate"] == "2099-01"
    assert created["credentialId"] == "ABC-123"
    assert created["expired"] is False

    fetched = client.get(f"/api/certifications/{created['id']}").json()
    assert fetched == created


def test_certification_without_expiry_never_expires(client):
    created = client.post("/api/certifications", json={"name": "Scrum", "issueDate": "2020-03"}).json()

    assert created["expiryDate"] == ""
    assert created["expired"] is False


def test_certification_in_the_past_is_expired(client):
    created = client.post(
        "/api/certifications",
        json={"name": "Old Cert", "issueDate": "2018-01", "expiryDate": "2020-01"},
    ).json()

    assert created["expired"] is True


def test_certification_expires_at_the_start_of_its_expiry_month():
    row = Certification(id=1, name="Cert", organization="Org", expiry_date=date(2025, 6, 1))

    assert CertificationPublic.from_row(row, today=date(2025, 5, 31)).expired is False
    assert CertificationPublic.from_row(row, today=date(2025, 6, 1)).expired is True


def test_certification_rejects_malformed_dates(client):
    response = client.post("/api/certifications", json={"name": "Bad", "issueDate": "Jan 2024"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid date, expected YYYY-MM"}


def test_certifications_listed_by_issue_date(client):
    for name, issued in (("First", "2021-01"), ("Latest", "2024-06"), ("Middle", "2022-09")):
        client.post("/api/certifications", json={"name": name, "issueDate": issued})

    names = [row["name"] for row in client.get("/api/certifications").json()]

    assert names == ["Latest", "Middle", "First"]


# Settings

def test_settings_merge_defaults_with_stored_values(client):
    defaults = client.get("/api/settings").json()
    assert defaults["site_title"] == "Portfolio"

    saved = client.post("/api/settings", json={"key": "site_title", "value": "Ana's <Lab>"}).json()
    assert saved["site_title"] == "Ana&#x27;s &lt;Lab&gt;"
    assert saved["email"] == defaults["email"]

    bulk = client.post(
        "/api/settings/bulk",
        json={"settings": {"email": "me@example.com", "custom_key": 42}},
    ).json()
    assert bulk["email"] == "me@example.com"
    assert bulk["custom_key"] == "42"
    assert bulk["site_title"] == "Ana&#x27;s &lt;Lab&gt;"


def test_settings_reject_bad_keys(client):
    response = client.post("/api/settings", json={"key": "bad key!", "value": "x"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid setting key"}

    bulk = client.post("/api/settings/bulk", json={"settings": {"ok": "1", "no-dash": "2"}})
    assert bulk.status_code == 400


# Missing rows

def test_update_of_missing_rows_is_404_and_creates_nothing(client):
    cases = [
        ("/api/experiences", {"title": "Ghost"}, "Experience not found"),
        ("/api/projects", {"title": "Ghost"}, "Project not found"),
        ("/api/certifications", {"name": "Ghost"}, "Certification not found"),
    ]
    for path, body, message in cases:
        response = client.put(f"{path}/999", json=body)

        assert response.status_code == 404, path
        assert response.json() == {"error": message}
        assert client.get(path).json() == []


def test_delete_of_missing_rows_succeeds(client):
    for path in ("/api/projects", "/api/certifications"):
        response = client.delete(f"{path}/999")

        assert response.status_code == 200, path
        assert response.json() == {"success": True}


def test_overflowing_id_is_rejected(client):
    response = client.get("/api/experiences/99999999999999999999999")

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid ID"}
