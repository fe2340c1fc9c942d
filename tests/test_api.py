"""API tests over the in-memory store. No Neo4j, SMTP or wallet provider needed."""

import asyncio

import httpx
import pytest
from fakes import RecordingNotifier, StubQrEncoder, StubWallet
from fastapi.testclient import TestClient

from api.main import create_app
from api.settings import Settings
from mobile.backend import BackendClient
from mobile.reconciler import Reconciler
from mobile.session import InMemorySessionStore, Session
from xscard.application import DocumentStoreError
from xscard.application.documents import CARDS
from xscard.infrastructure import InMemoryDocumentStore

CARD_URL = "https://cards.example"


def _client(tmp_path, store=None, notifier=None, encoder=None, wallet=None) -> TestClient:
    settings = Settings(media_dir=tmp_path / "media", card_public_url=CARD_URL)
    app = create_app(
        settings,
        store=store or InMemoryDocumentStore(),
        notifier=notifier or RecordingNotifier(),
        encoder=encoder or StubQrEncoder(),
        wallet=wallet,
    )
    return TestClient(app)


@pytest.fixture
def client(tmp_path, store, notifier, encoder):
    with _client(tmp_path, store, notifier, encoder) as c:
        yield c


def _add_user(client, email="xolisa@example.com", **extra) -> str:
    body = {
        "name": "Xolisa",
        "surname": "Mbeki",
        "email": email,
        "password": "s3cret",
        **extra,
    }
    r = client.post("/AddUser", json=body)
    assert r.status_code == 201, r.text
    return r.json()["userId"]


def _save(client, owner_id, name="Pule"):
    return client.post(
        "/saveContactInfo",
        json={
            "userId": owner_id,
            "contactInfo": {"name": name, "surname": "Doe", "phone": "+27825550000", "howWeMet": "Conference"},
        },
    )


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


# --- users ---


def test_add_user_and_sign_in(client):
    user_id = _add_user(client, linkedin="xolisa", x="")
    user = client.get(f"/Users/{user_id}").json()
    assert user["id"] == user_id
    assert user["colorScheme"] == "#1B2B5B"
    assert user["linkedin"] == "xolisa"
    assert "x" not in user
    assert "passwordHash" not in user
    assert "password" not in user

    r = client.post("/SignIn", json={"email": "XOLISA@example.com", "password": "s3cret"})
    assert r.status_code == 200
    assert r.json()["user"]["id"] == user_id

    r = client.post("/SignIn", json={"email": "xolisa@example.com", "password": "wrong"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid email or password"


def test_add_user_validation(client):
    _add_user(client)
    dup = client.post(
        "/AddUser",
        json={"name": "A", "surname": "B", "email": "xolisa@example.com", "password": "pw"},
    )
    assert dup.status_code == 409

    missing = client.post("/AddUser", json={"name": "A", "email": "a@example.com"})
    assert missing.status_code == 400

    bad_color = client.post(
        "/AddUser",
        json={"name": "A", "surname": "B", "email": "a@example.com", "password": "pw", "colorScheme": "blue"},
    )
    assert bad_color.status_code == 400


def test_update_user(client):
    user_id = _add_user(client, instagram="xolisa")
    other_id = _add_user(client, email="other@example.com")

    r = client.patch(f"/UpdateUser/{user_id}", json={"occupation": "CTO", "instagram": None, "x": "@xo"})
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["occupation"] == "CTO"
    assert "instagram" not in user
    assert user["x"] == "@xo"

    # password survives the full rewrite
    assert client.post("/SignIn", json={"email": "xolisa@example.com", "password": "s3cret"}).status_code == 200

    assert client.patch(f"/UpdateUser/{user_id}", json={"role": "admin"}).status_code == 400
    assert client.patch(f"/UpdateUser/{user_id}", json={"email": "other@example.com"}).status_code == 409
    assert client.patch(f"/UpdateUser/{other_id}", json={"email": "other@example.com"}).status_code == 200
    assert client.patch("/UpdateUser/missing", json={"name": "A"}).status_code == 404


def test_update_color(client):
    user_id = _add_user(client)
    r = client.patch(f"/Users/{user_id}/color", json={"colorScheme": "#FF8800"})
    assert r.status_code == 200
    assert client.get(f"/Users/{user_id}").json()["colorScheme"] == "#FF8800"
    assert client.patch(f"/Users/{user_id}/color", json={"colorScheme": "#FF88"}).status_code == 400


def test_profile_image_upload_is_served(client):
    user_id = _add_user(client)
    r = client.patch(
        f"/Users/{user_id}/profile-image",
        files={"profileImage": ("me.png", b"\x89PNG fake", "image/png")},
    )
    assert r.status_code == 200
    path = r.json()["profileImage"]
    assert path.startswith("profiles/")
    assert client.get(f"/Users/{user_id}").json()["profileImage"] == path

    served = client.get(f"/{path}")
    assert served.status_code == 200
    assert served.content == b"\x89PNG fake"

    bad = client.patch(
        f"/Users/{user_id}/profile-image",
        files={"profileImage": ("notes.txt", b"hello", "text/plain")},
    )
    assert bad.status_code == 400


def test_company_logo_upload_reaches_card_display(client):
    user_id = _add_user(client)
    r = client.patch(
        f"/Users/{user_id}/company-logo",
        files={"companyLogo": ("logo.webp", b"RIFF logo", "image/webp")},
    )
    assert r.status_code == 200
    path = r.json()["companyLogo"]
    assert client.get(f"/Users/{user_id}").json()["companyLogo"] == path
    assert client.get(f"/{path}").content == b"RIFF logo"

    http = httpx.AsyncClient(
        base_url="http://testserver", transport=httpx.ASGITransport(app=client.app)
    )
    reconciler = Reconciler(
        BackendClient("http://testserver", client=http),
        InMemorySessionStore(Session(user_id=user_id)),
    )
    state = asyncio.run(reconciler.refresh())
    assert state.display.logo_url == f"http://testserver/{path}"

    assert client.patch(
        "/Users/ghost/company-logo",
        files={"companyLogo": ("logo.png", b"x", "image/png")},
    ).status_code == 404


def test_media_dir_created_on_startup(tmp_path):
    media = tmp_path / "media"
    app = create_app(
        Settings(media_dir=media),
        store=InMemoryDocumentStore(),
        notifier=RecordingNotifier(),
        encoder=StubQrEncoder(),
    )
    assert not media.exists()
    with TestClient(app):
        assert (media / "profiles").is_dir()


def test_delete_user(client):
    user_id = _add_user(client)
    assert client.get("/Users").json()[0]["id"] == user_id
    assert client.delete(f"/Users/{user_id}").status_code == 200
    assert client.get(f"/Users/{user_id}").status_code == 404
    assert client.delete(f"/Users/{user_id}").status_code == 404


# --- cards ---


def test_card_lifecycle(client):
    user_id = _add_user(client)
    body = {
        "userId": user_id,
        "Company": "XS Card",
        "Email": "work@xscard.example",
        "PhoneNumber": "+27215550000",
        "title": "CTO",
        "socialLinks": [{"platform": "website", "url": "https://xscard.example"}],
    }
    r = client.post("/AddCard", json=body)
    assert r.status_code == 201
    assert r.json()["card"]["id"] == user_id

    card = client.get(f"/Cards/{user_id}").json()
    assert card["userId"] == f"users/{user_id}"
    assert card["socialLinks"] == [{"platform": "website", "url": "https://xscard.example"}]

    r = client.patch(f"/Cards/{user_id}", json={"title": "CEO"})
    assert r.status_code == 200
    assert client.get(f"/Cards/{user_id}").json()["title"] == "CEO"
    assert client.get(f"/Cards/{user_id}").json()["Company"] == "XS Card"
    assert len(client.get("/Cards").json()) == 1

    assert client.delete(f"/Cards/{user_id}").status_code == 200
    assert client.get(f"/Cards/{user_id}").status_code == 404


def test_add_card_validation(client):
    r = client.post("/AddCard", json={"userId": "ghost", "Company": "A", "Email": "a@b.c", "PhoneNumber": "1", "title": "T"})
    assert r.status_code == 404
    user_id = _add_user(client)
    r = client.post("/AddCard", json={"userId": user_id, "Company": "A"})
    assert r.status_code == 400


def test_generate_qr_encodes_public_card_url(client, encoder):
    user_id = _add_user(client)
    r = client.get(f"/generateQR/{user_id}")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.content.startswith(b"\x89PNG")
    assert encoder.encoded == [f"{CARD_URL}/saveContact?userId={user_id}"]

    assert client.get("/generateQR/ghost").status_code == 404


def test_generate_qr_encoder_failure(tmp_path):
    with _client(tmp_path, encoder=StubQrEncoder(fail=True)) as client:
        user_id = _add_user(client)
        r = client.get(f"/generateQR/{user_id}")
        assert r.status_code == 500
        assert r.json()["error"] == "encoder crashed"


# --- contact lists ---


def test_save_contact_then_enumerate(client, notifier):
    owner_id = _add_user(client)
    r = _save(client, owner_id)
    assert r.status_code == 200
    body = r.json()
    assert body["emailSent"] is True
    assert body["contactId"] == owner_id
    assert body["contact"]["name"] == "Pule"
    assert notifier.sent[0][0] == "xolisa@example.com"

    _save(client, owner_id, name="Sapho")
    listed = client.get(f"/Contacts/{owner_id}").json()
    assert listed["id"] == owner_id
    assert listed["userId"] == f"users/{owner_id}"
    assert [e["name"] for e in listed["contactsList"]] == ["Pule", "Sapho"]
    assert all(e["entryId"] and e["createdAt"] for e in listed["contactsList"])


def test_save_contact_with_failed_email_is_partial_success(tmp_path):
    with _client(tmp_path, notifier=RecordingNotifier(fail=True)) as client:
        owner_id = _add_user(client)
        r = _save(client, owner_id)
        assert r.status_code == 200
        body = r.json()
        assert body["emailSent"] is False
        assert "saved" in body["message"].lower()
        assert body["error"] == "SMTP connection refused"

        listed = client.get(f"/Contacts/{owner_id}").json()
        assert [e["name"] for e in listed["contactsList"]] == ["Pule"]


def test_save_contact_requires_body_fields(client):
    assert client.post("/saveContactInfo", json={"userId": "u1"}).status_code == 400
    assert client.post("/saveContactInfo", json={"contactInfo": {"name": "A"}}).status_code == 400
    r = client.post("/saveContactInfo", content=b"not json", headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid request body"


def test_missing_list_is_404_and_empty_list_is_200(client):
    r = client.get("/Contacts/ghost")
    assert r.status_code == 404
    assert r.json()["message"] == "Contact list not found"
    assert client.get("/Contacts").status_code == 404

    owner_id = _add_user(client)
    _save(client, owner_id)
    assert client.delete(f"/Contacts/{owner_id}/contact/0").status_code == 200
    r = client.get(f"/Contacts/{owner_id}")
    assert r.status_code == 200
    assert r.json()["contactsList"] == []


def test_delete_by_index(client):
    owner_id = _add_user(client)
    for name in ["A", "B", "C"]:
        _save(client, owner_id, name=name)

    r = client.delete(f"/Contacts/{owner_id}/contact/1")
    assert r.status_code == 200
    assert r.json()["remainingContacts"] == 2
    names = [e["name"] for e in client.get(f"/Contacts/{owner_id}").json()["contactsList"]]
    assert names == ["A", "C"]

    r = client.delete(f"/Contacts/{owner_id}/contact/2")
    assert r.status_code == 400
    assert r.json()["length"] == 2

    r = client.delete(f"/Contacts/{owner_id}/contact/abc")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid contact index"

    assert client.delete("/Contacts/ghost/contact/0").status_code == 404
    assert len(client.get(f"/Contacts/{owner_id}").json()["contactsList"]) == 2


def test_delete_by_entry_id(client):
    owner_id = _add_user(client)
    _save(client, owner_id, name="A")
    _save(client, owner_id, name="B")
    entries = client.get(f"/Contacts/{owner_id}").json()["contactsList"]

    r = client.delete(f"/Contacts/{owner_id}/entries/{entries[1]['entryId']}")
    assert r.status_code == 200
    assert r.json()["remainingContacts"] == 1
    assert client.delete(f"/Contacts/{owner_id}/entries/{entries[1]['entryId']}").status_code == 404


def test_add_contact_creates_list_and_patch_appends(client):
    r = client.post("/AddContact", json={"userId": "u1", "contactInfo": {"name": "A", "number": "+27825550000"}})
    assert r.status_code == 201
    list_id = r.json()["contactId"]
    assert r.json()["contactData"]["contactsList"][0]["number"] == "+27825550000"

    r = client.patch(f"/Contacts/{list_id}", json={"contactInfo": {"name": "B"}})
    assert r.status_code == 200
    assert [e["name"] for e in r.json()["updatedContacts"]] == ["A", "B"]

    assert client.patch("/Contacts/ghost", json={"contactInfo": {"name": "B"}}).status_code == 404
    assert len(client.get("/Contacts").json()) == 1

    assert client.delete(f"/Contacts/{list_id}").json()["deletedContactId"] == list_id
    assert client.get(f"/Contacts/{list_id}").status_code == 404


def test_store_failure_is_500_with_error(tmp_path):
    class DownStore(InMemoryDocumentStore):
        def get(self, collection, doc_id):
            raise DocumentStoreError("database unavailable")

    with _client(tmp_path, store=DownStore()) as client:
        r = client.get("/Contacts/u1")
        assert r.status_code == 500
        assert r.json() == {"message": "Internal Server Error", "error": "database unavailable"}


# --- wallet ---


def test_wallet_not_configured_is_503(client):
    user_id = _add_user(client)
    assert client.post(f"/wallet/{user_id}").status_code == 503


def test_wallet_pass_uses_card_over_profile(tmp_path):
    wallet = StubWallet()
    with _client(tmp_path, wallet=wallet) as client:
        user_id = _add_user(client, occupation="Engineer")
        client.post(
            "/AddCard",
            json={"userId": user_id, "Company": "XS Card", "Email": "w@x.example", "PhoneNumber": "1", "title": "CTO"},
        )
        r = client.post(f"/wallet/{user_id}")
        assert r.status_code == 200
        assert r.json()["pass"]["identifier"] == "pass-1"
        payload = wallet.payloads[0]
        assert payload["title"] == "CTO"
        assert payload["email"] == "w@x.example"
        assert payload["barcodeValue"] == f"{CARD_URL}/saveContact?userId={user_id}"

        assert client.post("/wallet/ghost").status_code == 404


def test_wallet_provider_failure_is_502(tmp_path):
    with _client(tmp_path, wallet=StubWallet(fail=True)) as client:
        user_id = _add_user(client)
        r = client.post(f"/wallet/{user_id}")
        assert r.status_code == 502
        assert r.json()["error"] == "provider returned 500"


def test_wallet_store_failure_is_500(tmp_path):
    class CardsDown(InMemoryDocumentStore):
        def get(self, collection, doc_id):
            if collection == CARDS:
                raise DocumentStoreError("database unavailable")
            return super().get(collection, doc_id)

    with _client(tmp_path, store=CardsDown(), wallet=StubWallet()) as client:
        user_id = _add_user(client)
        r = client.post(f"/wallet/{user_id}")
        assert r.status_code == 500
        assert r.json()["error"] == "database unavailable"


# --- public save-contact page ---


def test_save_contact_page_renders_form_for_owner(client):
    user_id = _add_user(client, colorScheme="#FF8800")
    r = client.get("/saveContact", params={"userId": user_id})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert 'action="/saveContact"' in r.text
    assert f'name="userId" value="{user_id}"' in r.text
    assert "Xolisa Mbeki" in r.text
    assert "#FF8800" in r.text

    assert client.get("/saveContact", params={"userId": "ghost"}).status_code == 404
    assert client.get("/saveContact").status_code == 404


def test_save_contact_page_submission_appends_and_notifies(client, notifier):
    user_id = _add_user(client)
    r = client.post(
        "/saveContact",
        data={"userId": user_id, "name": "Pule", "surname": "Doe", "phone": "+27825550000", "howWeMet": "Expo"},
    )
    assert r.status_code == 200
    assert "Contact saved" in r.text
    assert notifier.sent[0][0] == "xolisa@example.com"

    entries = client.get(f"/Contacts/{user_id}").json()["contactsList"]
    assert [(e["name"], e["number"], e["howWeMet"]) for e in entries] == [("Pule", "+27825550000", "Expo")]

    blank = client.post("/saveContact", data={"userId": user_id, "name": "  "})
    assert blank.status_code == 400
    assert 'role="alert"' in blank.text
    assert len(client.get(f"/Contacts/{user_id}").json()["contactsList"]) == 1

    assert client.post("/saveContact", data={"userId": "ghost", "name": "Pule"}).status_code == 404


def test_save_contact_page_escapes_owner_name(client):
    r = client.post(
        "/AddUser",
        json={"name": "<b>Eve</b>", "surname": "X", "email": "eve@example.com", "password": "pw"},
    )
    user_id = r.json()["userId"]
    page = client.get("/saveContact", params={"userId": user_id}).text
    assert "&lt;b&gt;Eve&lt;/b&gt;" in page
    assert "<b>Eve</b>" not in page
