import logging

import pytest
from fastapi.testclient import TestClient

from conftest import VIRUS_SENTENCE
from controller.controller_dependencies import (
    get_chat_service,
    get_document_service,
    rate_limit,
)
from main import app
from service.chat_service import ChatService
from service.document_service import DocumentService


@pytest.fixture
def client(memory_repos):
    documents, blobs, chunks = memory_repos
    app.dependency_overrides[rate_limit] = lambda: None
    app.dependency_overrides[get_document_service] = lambda: DocumentService(documents, blobs, chunks)
    app.dependency_overrides[get_chat_service] = lambda: ChatService(documents, blobs, chunks)
    # No lifespan: Redis is never contacted.
    yield TestClient(app)
    app.dependency_overrides.clear()


def _upload(client, data: bytes, name: str = "cells.pdf"):
    return client.post(
        "/api/v1/documents", files={"file": (name, data, "application/pdf")}
    )


def test_upload_get_delete_roundtrip(client, virus_pdf):
    created = _upload(client, virus_pdf)
    assert created.status_code == 201
    body = created.json()
    assert body["pageCount"] == 3

    doc_id = body["documentId"]
    fetched = client.get(f"/api/v1/documents/{doc_id}")
    assert fetched.status_code == 200
    assert fetched.json()["filename"] == "cells.pdf"

    assert client.delete(f"/api/v1/documents/{doc_id}").status_code == 204
    assert client.get(f"/api/v1/documents/{doc_id}").status_code == 404


def test_upload_rejects_non_pdf(client):
    resp = _upload(client, b"hello, plain text", name="notes.pdf")
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Uploaded file is not a readable PDF"


def test_search_endpoint(client, virus_pdf):
    doc_id = _upload(client, virus_pdf).json()["documentId"]

    resp = client.post(
        "/api/v1/pdf/search", json={"documentId": doc_id, "excerpts": [VIRUS_SENTENCE]}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["highlightedPages"] == [2]
    assert body["annotations"][0]["type"] == "HIGHLIGHT"
    assert body["pageMappings"] == [{"excerpt": VIRUS_SENTENCE, "pages": [2]}]


def test_search_unknown_document(client):
    resp = client.post(
        "/api/v1/pdf/search", json={"documentId": "nope", "excerpts": [VIRUS_SENTENCE]}
    )
    assert resp.status_code == 404


def test_inject_endpoint(client):
    excerpt = "Viruses replicate inside host cells and destroy them."
    resp = client.post(
        "/api/v1/citations/inject",
        json={
            "answer": "Viruses replicate inside host cells.",
            "excerpts": [excerpt],
            "pageMappings": [{"excerpt": excerpt, "pages": [18]}],
        },
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "answer": "Viruses replicate inside host cells (page 18).",
        "citedPages": [18],
    }


def test_chat_requires_fields(client):
    resp = client.post("/api/v1/chat", json={"documentId": "d", "message": "", "apiKey": "k"})
    assert resp.status_code == 422


def test_chat_unknown_document(client):
    resp = client.post(
        "/api/v1/chat", json={"documentId": "nope", "message": "Hi?", "apiKey": "k"}
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Document not found"


def test_request_id_is_echoed(client):
    resp = client.post(
        "/api/v1/citations/inject",
        json={"answer": "No citations here."},
        headers={"X-Request-ID": "abc123"},
    )
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "abc123"
    assert resp.json()["answer"] == "No citations here."


def test_request_id_is_generated(client):
    resp = client.post("/api/v1/citations/inject", json={"answer": "x"})
    assert len(resp.headers["X-Request-ID"]) == 12


def test_access_log_line_has_no_duplicate_request_id(client, caplog):
    with caplog.at_level(logging.INFO, logger="main"):
        client.post("/api/v1/citations/inject", json={"answer": "x"}, headers={"X-Request-ID": "r1"})

    lines = [r.getMessage() for r in caplog.records if r.getMessage().startswith("http.done")]
    assert len(lines) == 1
    assert lines[0].startswith("http.done method=POST path=/api/v1/citations/inject status=200 ms=")
    assert "rid=" not in lines[0]


def test_list_documents_with_title_search(client, virus_pdf):
    _upload(client, virus_pdf, name="Virology Basics.pdf")
    _upload(client, virus_pdf, name="Plant cells.pdf")

    everything = client.get("/api/v1/documents")
    assert everything.status_code == 200
    assert {d["title"] for d in everything.json()["documents"]} == {
        "Virology Basics",
        "Plant cells",
    }

    filtered = client.get("/api/v1/documents", params={"search": "VIROLOGY"})
    assert [d["title"] for d in filtered.json()["documents"]] == ["Virology Basics"]


def test_update_document_title_and_pages(client, virus_pdf):
    doc_id = _upload(client, virus_pdf).json()["documentId"]
    before = client.get(f"/api/v1/documents/{doc_id}").json()

    resp = client.put(f"/api/v1/documents/{doc_id}", json={"title": "Renamed", "pageCount": 9})

    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Renamed"
    assert body["pageCount"] == 9
    assert body["lastAccessedAt"] >= before["lastAccessedAt"]


def test_update_rejects_bad_payload_and_unknown_id(client):
    assert client.put("/api/v1/documents/nope", json={"title": "x"}).status_code == 404
    assert client.put("/api/v1/documents/nope", json={"title": ""}).status_code == 422
    assert client.put("/api/v1/documents/nope", json={"pageCount": 0}).status_code == 422
