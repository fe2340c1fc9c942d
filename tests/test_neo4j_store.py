"""Integration tests for Neo4jDocumentStore. Require Docker
(testcontainers). Run with: pytest -m integration"""

import pytest
from fakes import RecordingNotifier

from xscard.application import ContactInfo, ContactService, DocumentNotFoundError, EntryRemoved
from xscard.application.documents import CONTACTS, USERS
from xscard.infrastructure import Neo4jDocumentStore, ensure_document_constraint

pytestmark = pytest.mark.integration


@pytest.fixture(scope="session")
def neo4j_driver():
    from testcontainers.neo4j import Neo4jContainer

    with Neo4jContainer() as neo4j:
        driver = neo4j.get_driver()
        try:
            ensure_document_constraint(driver)
            yield driver
        finally:
            driver.close()


@pytest.fixture
def clean_neo4j(neo4j_driver):
    """Clear the graph before each test so tests are independent."""
    with neo4j_driver.session() as session:
        session.run("MATCH (n) DETACH DELETE n")
    yield neo4j_driver


def test_set_get_replace_and_merge(clean_neo4j):
    store = Neo4jDocumentStore(clean_neo4j)
    assert store.get(USERS, "u1") is None

    store.set(USERS, "u1", {"name": "Xolisa", "linkedin": "xolisa", "tags": ["a", "b"]})
    assert store.get(USERS, "u1") == {"name": "Xolisa", "linkedin": "xolisa", "tags": ["a", "b"]}

    store.set(USERS, "u1", {"name": "Xolisa M"})
    assert store.get(USERS, "u1") == {"name": "Xolisa M"}

    store.set(USERS, "u1", {"email": "x@example.com"}, merge=True)
    assert store.get(USERS, "u1") == {"name": "Xolisa M", "email": "x@example.com"}


def test_add_update_delete(clean_neo4j):
    store = Neo4jDocumentStore(clean_neo4j)
    doc_id = store.add(CONTACTS, {"userId": "users/u1", "contactsList": []})
    store.update(CONTACTS, doc_id, {"contactsList": [{"name": "Pule"}]})
    assert store.get(CONTACTS, doc_id)["contactsList"] == [{"name": "Pule"}]

    with pytest.raises(DocumentNotFoundError):
        store.update(CONTACTS, "missing", {"contactsList": []})

    store.delete(CONTACTS, doc_id)
    assert store.get(CONTACTS, doc_id) is None


def test_find_and_list_all_are_scoped_to_collection(clean_neo4j):
    store = Neo4jDocumentStore(clean_neo4j)
    store.set(USERS, "u1", {"email": "a@example.com"})
    store.set(USERS, "u2", {"email": "b@example.com"})
    store.set(CONTACTS, "u1", {"email": "a@example.com"})

    assert [doc_id for doc_id, _ in store.find(USERS, "email", "a@example.com")] == ["u1"]
    assert store.find(USERS, "email", "nobody@example.com") == []
    assert sorted(doc_id for doc_id, _ in store.list_all(USERS)) == ["u1", "u2"]


def test_contact_service_over_neo4j(clean_neo4j):
    store = Neo4jDocumentStore(clean_neo4j)
    store.set(USERS, "owner", {"email": "owner@example.com"})
    service = ContactService(store, RecordingNotifier())
    for name in ["A", "B", "C"]:
        service.save_contact("owner", ContactInfo(name=name, phone="+27825550000"))

    assert [e.name for e in service.get_list("owner").entries] == ["A", "B", "C"]
    assert isinstance(service.delete_at("owner", 1), EntryRemoved)
    assert [e.name for e in service.get_list("owner").entries] == ["A", "C"]
