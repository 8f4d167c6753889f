import io

import pytest
from pypdf import PdfReader

from app import create_app
from combiner import CombinerConfig

from conftest import FakeBackend, make_pdf


@pytest.fixture
def app():
    app = create_app(CombinerConfig(max_total_size=64 * 1024))
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def upload(client, *files):
    data = {"files": [(io.BytesIO(content), name, content_type) for name, content, content_type in files]}
    return client.post("/files", data=data, content_type="multipart/form-data")


def pdf(name, *widths):
    return (name, make_pdf(*(widths or (72,))), "application/pdf")


def messages(response):
    return [n["message"] for n in response.get_json()["notifications"]]


def test_health(client):
    response = client.get("/")
    body = response.get_json()
    assert response.status_code == 200
    assert "/merge" in body["endpoints"]
    assert body["max_total_size"] == "64 KB"


def test_add_and_list_files(client):
    response = upload(client, pdf("a.pdf"), pdf("b.pdf", 100, 200))
    body = response.get_json()

    assert response.status_code == 200
    assert [f["name"] for f in body["added"]] == ["a.pdf", "b.pdf"]
    assert messages(response) == ["Added 2 files"]
    assert body["can_merge"] is True
    assert body["state"] == "idle"

    listing = client.get("/files").get_json()
    assert [f["name"] for f in listing["files"]] == ["a.pdf", "b.pdf"]
    assert listing["total_size"] == sum(f["size"] for f in listing["files"])


def test_rejections_become_notifications(client):
    upload(client, pdf("a.pdf"))
    response = upload(client, pdf("a.pdf"), ("notes.txt", b"hello", "text/plain"))
    body = response.get_json()

    assert body["added"] == []
    assert {r["reason"] for r in body["rejections"]} == {"duplicate", "unsupported type"}
    assert "a.pdf: Already added" in messages(response)
    assert "notes.txt: Only PDF files are allowed" in messages(response)


def test_batch_over_cap_leaves_set_unchanged(client):
    upload(client, ("a.pdf", bytes(40 * 1024), "application/pdf"))
    response = upload(client, ("b.pdf", bytes(30 * 1024), "application/pdf"))
    body = response.get_json()

    assert body["rejections"][0]["reason"] == "aggregate limit exceeded"
    assert messages(response) == ["Total size would exceed 64 KB limit"]
    assert body["count"] == 1
    assert body["total_size"] == 40 * 1024


def test_empty_post_is_a_no_op(client):
    response = client.post("/files", data={}, content_type="multipart/form-data")
    assert response.status_code == 200
    assert response.get_json()["count"] == 0


def test_remove_file(client):
    body = upload(client, pdf("a.pdf"), pdf("b.pdf", 90)).get_json()
    first_id = body["added"][0]["id"]

    response = client.delete(f"/files/{first_id}")
    assert messages(response) == ["File removed"]
    assert [f["name"] for f in response.get_json()["files"]] == ["b.pdf"]

    again = client.delete(f"/files/{first_id}")
    assert again.status_code == 200
    assert messages(again) == []
    assert again.get_json()["count"] == 1


def test_merge_download_reset(client):
    upload(client, pdf("a.pdf", 100, 110), pdf("b.pdf", 200))

    response = client.post("/merge")
    body = response.get_json()
    assert response.status_code == 200
    assert body["state"] == "complete"
    assert body["artifact"]["page_count"] == 3
    assert messages(response) == ["PDFs merged successfully!"]

    download = client.get("/download")
    assert download.status_code == 200
    assert download.mimetype == "application/pdf"
    assert "merged-document.pdf" in download.headers["Content-Disposition"]
    widths = [float(p.mediabox.width) for p in PdfReader(io.BytesIO(download.data)).pages]
    assert widths == [100, 110, 200]

    reset = client.post("/reset")
    assert messages(reset) == ["Reset complete"]
    assert reset.get_json()["state"] == "idle"
    assert reset.get_json()["count"] == 0
    assert client.get("/download").status_code == 409


def test_merge_needs_two_files(client):
    upload(client, pdf("a.pdf"))
    response = client.post("/merge")
    assert response.status_code == 400
    assert messages(response) == ["Please select at least 2 PDF files"]


def test_merge_failure_reports_error_state(client):
    upload(client, pdf("a.pdf"), ("broken.pdf", b"not a pdf at all", "application/pdf"))

    response = client.post("/merge")
    body = response.get_json()

    assert response.status_code == 500
    assert body["state"] == "error"
    assert body["error"]
    assert messages(response) == ["Failed to merge PDFs. Please try again. (broken.pdf)"]
    assert client.get("/download").status_code == 409

    # fixing the input returns the session to idle
    broken_id = next(f["id"] for f in body["files"] if f["name"] == "broken.pdf")
    upload(client, pdf("c.pdf", 300))
    assert client.get("/files").get_json()["state"] == "idle"
    client.delete(f"/files/{broken_id}")
    assert client.post("/merge").status_code == 200


def test_second_merge_after_complete_is_refused(client):
    upload(client, pdf("a.pdf"), pdf("b.pdf", 80))
    client.post("/merge")
    assert client.post("/merge").status_code == 409


def test_cancel_without_merge(client):
    assert client.post("/merge/cancel").get_json() == {"cancelled": False}


def test_oversized_request_is_refused(client):
    response = upload(client, ("huge.pdf", bytes(2 * 1024 * 1024), "application/pdf"))
    assert response.status_code == 413
    assert "64 KB" in response.get_json()["error"]


def test_one_shot_merge(client):
    data = {
        "files": [
            (io.BytesIO(make_pdf(100)), "a.pdf", "application/pdf"),
            (io.BytesIO(make_pdf(200, 210)), "b.pdf", "application/pdf"),
        ]
    }
    response = client.post("/merge-pdf", data=data, content_type="multipart/form-data")

    assert response.status_code == 200
    assert len(PdfReader(io.BytesIO(response.data)).pages) == 3
    # the stateful session is left alone
    assert client.get("/files").get_json()["count"] == 0


def test_one_shot_merge_rejects_non_pdf(client):
    data = {
        "files": [
            (io.BytesIO(make_pdf(100)), "a.pdf", "application/pdf"),
            (io.BytesIO(b"text"), "b.txt", "text/plain"),
        ]
    }
    response = client.post("/merge-pdf", data=data, content_type="multipart/form-data")
    assert response.status_code == 400
    assert "Only PDF files are allowed" in response.get_json()["error"]


def test_one_shot_merge_requires_files(client):
    response = client.post("/merge-pdf", data={}, content_type="multipart/form-data")
    assert response.status_code == 400


def test_custom_backend_is_used():
    backend = FakeBackend(pages_per_file=3)
    client = create_app(CombinerConfig(), backend=backend).test_client()
    upload(client, pdf("a.pdf"), pdf("b.pdf", 90))

    body = client.post("/merge").get_json()

    assert backend.loaded == ["a.pdf", "b.pdf"]
    assert body["artifact"]["page_count"] == 6
