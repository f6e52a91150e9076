from sharelink.core.config import settings
from sharelink.models.file import File


def _stored_upload(make_upload, s3_client, **kwargs):
    """Upload slot plus the object the client would have PUT to storage."""
    data = make_upload(**kwargs)
    key = s3_client.presigned[-1][1]["Key"]
    s3_client.objects.add(key)
    return data


def test_clear_files_requires_admin(client, user_headers):
    assert client.post("/api/admin/clear-files").status_code == 401
    response = client.post("/api/admin/clear-files", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["success"] is False


def test_clear_files_empties_bucket_and_records(client, db_session, tiers, admin_headers, s3_client, make_upload):
    for name in ("a.txt", "b.txt", "c.txt"):
        _stored_upload(make_upload, s3_client, file_name=name)
    s3_client.objects.add("stray/object.bin")

    response = client.post("/api/admin/clear-files", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"objectsDeleted": 4, "errors": 0, "recordsDeleted": 3}
    assert s3_client.objects == set()
    assert db_session.query(File).count() == 0


def test_clear_files_keeps_records_when_bucket_is_empty(client, db_session, tiers, admin_headers, make_upload):
    make_upload()
    response = client.post("/api/admin/clear-files", headers=admin_headers)
    assert response.json()["data"] == {"objectsDeleted": 0, "errors": 0, "recordsDeleted": 0}
    assert db_session.query(File).count() == 1


def test_clear_files_checks_admin_api_key(client, admin_headers, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_API_KEY", "top-secret")

    assert client.post("/api/admin/clear-files", headers=admin_headers).status_code == 401

    wrong = {**admin_headers, "X-Admin-Api-Key": "guess"}
    assert client.post("/api/admin/clear-files", headers=wrong).status_code == 401

    right = {**admin_headers, "X-Admin-Api-Key": "top-secret"}
    assert client.post("/api/admin/clear-files", headers=right).status_code == 200
