import io
import json
import zipfile

from app.services.record_service import RecordService
from app.services.user_service import UserService
from app.utils.security import create_admin_token

def seed_user(db_session, storage, language, wav_bytes, contact="7770001111", name="Meera", indexes=(0, 1)):
    user = UserService(db_session).register_user(name, 41, "female", contact, language.name)
    record_service = RecordService(db_session, storage)
    for index in indexes:
        record_service.save_recording(user.unique_code, language.name, index, wav_bytes)
    return user

def test_admin_login(client):
    assert client.post("/api/v1/admin/login", json={"password": "wrong"}).status_code == 401
    response = client.post("/api/v1/admin/login", json={"password": "admin"})
    assert response.status_code == 200
    assert response.json()["token"]

def test_admin_routes_require_token(client):
    response = client.get("/api/v1/admin/stats")
    assert response.status_code == 401
    assert "error" in response.json()
    assert client.get("/api/v1/admin/stats", headers={"X-Admin-Token": "1.bad"}).status_code == 401

    expired = create_admin_token(now=0)
    assert client.get("/api/v1/admin/users", headers={"X-Admin-Token": expired}).status_code == 401

def test_change_admin_password(client, admin_headers):
    url = "/api/v1/admin/password"
    response = client.put(url, json={"new_password": "abcd", "confirm_password": "abce"}, headers=admin_headers)
    assert response.status_code == 400
    response = client.put(url, json={"new_password": "abc", "confirm_password": "abc"}, headers=admin_headers)
    assert response.status_code == 400

    response = client.put(url, json={"new_password": "n3wpass", "confirm_password": "n3wpass"}, headers=admin_headers)
    assert response.status_code == 200
    assert client.post("/api/v1/admin/login", json={"password": "admin"}).status_code == 401
    assert client.post("/api/v1/admin/login", json={"password": "n3wpass"}).status_code == 200

def test_storage_settings(client, admin_headers):
    url = "/api/v1/admin/settings/storage"
    data = client.get(url, headers=admin_headers).json()
    assert data["storage_type"] == "local"
    assert data["google_connected"] is False

    response = client.put(url, json={"storage_type": "google-drive"}, headers=admin_headers)
    assert response.status_code == 400
    assert client.put(url, json={"storage_type": "ftp"}, headers=admin_headers).status_code == 400

    response = client.post("/api/v1/admin/settings/google-drive",
                           json={"email": "ops@example.org", "folder_name": "Recordings"}, headers=admin_headers)
    assert response.json()["google_connected"] is True

    data = client.put(url, json={"storage_type": "google-drive", "auto_sync": True}, headers=admin_headers).json()
    assert data["storage_type"] == "google-drive"
    assert data["auto_sync"] is True

    data = client.delete("/api/v1/admin/settings/google-drive", headers=admin_headers).json()
    assert data["storage_type"] == "local"
    assert data["google_email"] is None

def test_language_management(client, admin_headers):
    url = "/api/v1/admin/languages"
    response = client.post(url, json={"name": "Marathi", "sentences": ["एक", " ", "दोन"]}, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["sentences"] == ["एक", "दोन"]
    assert client.post(url, json={"name": "Marathi", "sentences": ["x"]}, headers=admin_headers).status_code == 409
    assert client.post(url, json={"name": "Empty", "sentences": []}, headers=admin_headers).status_code == 400

    response = client.post(
        f"{url}/upload",
        data={"name": "Bengali", "text_format": "single"},
        files={"file": ("bengali.txt", "প্রথম\n\nদ্বিতীয়\r\nতৃতীয়\n".encode("utf-8"), "text/plain")},
        headers=admin_headers
    )
    assert response.status_code == 201
    assert response.json()["sentences"] == ["প্রথম", "দ্বিতীয়", "তৃতীয়"]

    response = client.post(
        f"{url}/upload",
        data={"name": "Gujarati", "text_format": "paragraph"},
        files={"file": ("p.txt", b"One. Two.  Three", "text/plain")},
        headers=admin_headers
    )
    assert response.json()["sentences"] == ["One.", "Two.", "Three."]

    response = client.post(
        f"{url}/upload",
        data={"name": "Broken"},
        files={"file": ("b.txt", b"\xff\xfe\xfa", "text/plain")},
        headers=admin_headers
    )
    assert response.status_code == 400

    languages = client.get(url, headers=admin_headers).json()
    assert [l["name"] for l in languages] == sorted(l["name"] for l in languages)
    marathi = next(l for l in languages if l["name"] == "Marathi")
    assert client.delete(f"{url}/{marathi['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"{url}/{marathi['id']}", headers=admin_headers).status_code == 404

def test_user_list_and_detail(client, admin_headers, db_session, storage, language, wav_bytes):
    first = seed_user(db_session, storage, language, wav_bytes)
    second = seed_user(db_session, storage, language, wav_bytes, contact="7770002222", name="Arjun", indexes=())

    users = client.get("/api/v1/admin/users", headers=admin_headers).json()
    assert [u["unique_code"] for u in users] == [second.unique_code, first.unique_code]
    assert users[0]["language_preference"] == "English"

    detail = client.get(f"/api/v1/admin/users/{first.unique_code}", headers=admin_headers).json()
    assert detail["languages"] == ["English"]
    assert [r["sentence_index"] for r in detail["recordings"]] == [0, 1]
    assert client.get("/api/v1/admin/users/NOONE", headers=admin_headers).status_code == 404

def test_recording_playback_and_waveform(client, admin_headers, db_session, storage, language, wav_bytes):
    user = seed_user(db_session, storage, language, wav_bytes)
    recording = RecordService(db_session, storage).get_user_recordings(user.unique_code)[0]

    response = client.get(f"/api/v1/admin/recordings/{recording.id}/audio", headers=admin_headers)
    assert response.status_code == 200
    assert response.content == wav_bytes
    assert response.headers["content-type"] == "audio/wav"

    response = client.get(f"/api/v1/admin/recordings/{recording.id}/audio",
                          params={"download": True}, headers=admin_headers)
    assert f"female_English_{user.unique_code}_0.wav" in response.headers["content-disposition"]

    bars = client.get(f"/api/v1/admin/recordings/{recording.id}/waveform", headers=admin_headers).json()["bars"]
    assert len(bars) == 50
    assert max(bars) == 1.0

    response = client.post("/api/v1/admin/recordings/rerecord", headers=admin_headers, json={
        "unique_code": user.unique_code, "language": "English", "sentence_index": 0
    })
    assert response.status_code == 200
    assert response.json()["needs_rerecording"] is True

    # 文件已删除，播放返回404，波形为静音
    assert client.get(f"/api/v1/admin/recordings/{recording.id}/audio", headers=admin_headers).status_code == 404
    bars = client.get(f"/api/v1/admin/recordings/{recording.id}/waveform", headers=admin_headers).json()["bars"]
    assert bars == [0.05] * 50

    response = client.post("/api/v1/admin/recordings/rerecord", headers=admin_headers, json={
        "unique_code": user.unique_code, "language": "English", "sentence_index": 2
    })
    assert response.status_code == 404

def test_waveform_bars_are_bounded(client, admin_headers, db_session, storage, language, wav_bytes):
    user = seed_user(db_session, storage, language, wav_bytes)
    recording = RecordService(db_session, storage).get_user_recordings(user.unique_code)[0]
    url = f"/api/v1/admin/recordings/{recording.id}/waveform"

    assert len(client.get(url, params={"bars": 1000}, headers=admin_headers).json()["bars"]) == 1000
    for bars in (0, -5, 2000000):
        response = client.get(url, params={"bars": bars}, headers=admin_headers)
        assert response.status_code == 400
        assert "error" in response.json()

def test_dashboard_stats(client, admin_headers, db_session, storage, language, wav_bytes):
    seed_user(db_session, storage, language, wav_bytes)
    stats = client.get("/api/v1/admin/stats", headers=admin_headers).json()
    assert stats["total_users"] == 1
    assert stats["total_languages"] == 1
    assert stats["total_recordings"] == 2
    assert stats["rerecording_requests"] == 0
    assert stats["storage_used"] == 2 * len(wav_bytes)

def test_delete_user_recordings(client, admin_headers, db_session, storage, language, wav_bytes):
    user = seed_user(db_session, storage, language, wav_bytes)
    response = client.delete(f"/api/v1/admin/users/{user.unique_code}/recordings", headers=admin_headers)
    assert response.json()["deleted_recordings"] == 2
    assert storage.list_files("recordings") == []
    assert client.get(f"/api/v1/users/{user.unique_code}").status_code == 200

def test_delete_user(client, admin_headers, db_session, storage, language, wav_bytes):
    user = seed_user(db_session, storage, language, wav_bytes)
    client.post("/api/v1/feedback", json={"unique_code": user.unique_code, "rating": 4})
    client.post("/api/v1/sessions", json={"unique_code": user.unique_code, "language": "English"})
    RecordService(db_session, storage).mark_for_rerecording(user.unique_code, "English", 1)

    response = client.delete(f"/api/v1/admin/users/{user.unique_code}", headers=admin_headers)
    assert response.status_code == 200
    deleted = response.json()["deleted"]
    assert deleted["recordings"] == 2
    assert deleted["notifications"] == 1
    assert deleted["feedback"] == 1
    assert deleted["sessions"] == 1

    assert client.get(f"/api/v1/users/{user.unique_code}").status_code == 404
    assert storage.list_files("recordings") == []
    assert client.delete(f"/api/v1/admin/users/{user.unique_code}", headers=admin_headers).status_code == 404

def test_exports(client, admin_headers, db_session, storage, language, wav_bytes):
    user = seed_user(db_session, storage, language, wav_bytes)
    client.post("/api/v1/feedback", json={"unique_code": user.unique_code, "rating": 3})

    data = client.get("/api/v1/admin/export", headers=admin_headers).json()
    assert set(data) == {"users", "recordings", "languages", "feedback", "exportDate"}
    assert len(data["recordings"]) == 2
    assert data["feedback"][0]["rating"] == 3

    data = client.get("/api/v1/admin/export/languages/English", headers=admin_headers).json()
    assert data["total_sentences"] == 3
    assert data["total_recordings"] == 2
    assert data["recordings"][1]["file_name"] == f"female_English_{user.unique_code}_1.wav"
    assert client.get("/api/v1/admin/export/languages/Nope", headers=admin_headers).status_code == 404

def test_user_archive(client, admin_headers, db_session, storage, language, wav_bytes):
    user = seed_user(db_session, storage, language, wav_bytes)
    response = client.get(f"/api/v1/admin/users/{user.unique_code}/archive", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"

    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        names = set(archive.namelist())
        assert f"English/female_English_{user.unique_code}_0.wav" in names
        assert f"English/female_English_{user.unique_code}_1.wav" in names
        metadata = json.loads(archive.read("English/metadata.json"))
    assert metadata["user"]["unique_code"] == user.unique_code
    assert len(metadata["recordings"]) == 2

    empty = seed_user(db_session, storage, language, wav_bytes, contact="7770003333", indexes=())
    response = client.get(f"/api/v1/admin/users/{empty.unique_code}/archive", headers=admin_headers)
    assert response.status_code == 404

def test_clean_all_recordings(client, admin_headers, db_session, storage, language, wav_bytes):
    user = seed_user(db_session, storage, language, wav_bytes)
    RecordService(db_session, storage).mark_for_rerecording(user.unique_code, "English", 0)
    RecordService(db_session, storage).save_recording(user.unique_code, "English", 0, wav_bytes)

    result = client.delete("/api/v1/admin/recordings", headers=admin_headers).json()
    assert result["deleted_recordings"] == 2
    assert result["deleted_files"] == 2
    assert storage.list_files("recordings") == []
    assert storage.list_files("rerecordings") == []
    assert client.get("/api/v1/admin/stats", headers=admin_headers).json()["total_users"] == 1
