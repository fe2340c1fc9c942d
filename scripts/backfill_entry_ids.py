#!/usr/bin/env python3
"""One-off migration: give every stored contact entry a stable entryId.

Entries saved before entryId existed can only be deleted by position. This
reads each contact list, assigns a fresh id to entries that lack one and
writes the list back. Run from repo root with .env (NEO4J_URI, NEO4J_USER,
NEO4J_PASSWORD) while the backend is stopped: the rewrite is the same
read-modify-write the API uses and would race with live saves. Idempotent.
"""
import os
import sys
import uuid
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT / "src"))

from dotenv import load_dotenv  # noqa: E402
from neo4j import GraphDatabase  # noqa: E402

from xscard.application.documents import CONTACTS, CONTACTS_FIELD  # noqa: E402
from xscard.infrastructure import Neo4jDocumentStore  # noqa: E402

load_dotenv(REPO_ROOT / ".env")


def backfill(entries: list) -> int:
    """Assign entryId in place where missing. Returns how many were assigned."""
    assigned = 0
    for entry in entries:
        if isinstance(entry, dict) and not entry.get("entryId"):
            entry["entryId"] = uuid.uuid4().hex
            assigned += 1
    return assigned


def main() -> int:
    uri = os.environ.get("NEO4J_URI", "bolt://localhost:7687").strip()
    user = os.environ.get("NEO4J_USER", "neo4j").strip()
    password = os.environ.get("NEO4J_PASSWORD", "password").strip()
    driver = GraphDatabase.driver(uri, auth=(user, password))
    try:
        store = Neo4jDocumentStore(driver)
        touched = []
        for list_id, data in store.list_all(CONTACTS):
            entries = data.get(CONTACTS_FIELD)
            if not isinstance(entries, list):
                continue
            if backfill(entries):
                store.update(CONTACTS, list_id, {CONTACTS_FIELD: entries})
                touched.append(list_id)
        if not touched:
            print("Every contact entry already has an entryId.")
            return 0
        print(f"Assigned entry ids in {len(touched)} contact list(s): {touched}")
        return 0
    finally:
        driver.close()


if __name__ == "__main__":
    sys.exit(main())
