import re

from app.models.recording import Recording
from app.services.record_service import RecordService
from app.services.user_service import UserService

def make_user(db_session, language):
    return UserService(db_session).register_user("Ravi", 34, "male", "5550001111", language.name)

def start_session(client, code, **extra):
    response = client.post("/api/v1/sessions", json={"unique_code": code, "language": "English", **extra})
    assert response.status_code == 201
    return response.json()

def record_current(client, session_id, audio):
    assert client.post(f"/api/v1/sessions/{session_id}/start").status_code == 200
    assert client.post(f"/api/v1/sessions/{session_id}/stop").status_code == 200
    return client.post(
        f"/api/v1/sessions/{session_id}/save",
        files={"audio": ("recording.wav", audio, "audio/wav")}
    )

def test_full_recording_session(client, db_session, storage, language, wav_bytes):
    user = make_user(db_session, language)
    session = start_session(client, user.unique_code)
    assert session["current_index"] == 0
    assert session["current_step"] == "idle"
    assert session["sentence_text"] == language.sentences[0]
    assert session["total_sentences"] == 3

    for index in range(3):
        response = record_current(client, session["id"], wav_bytes)
        assert response.status_code == 200
        data = response.json()
        assert data["recording"]["sentence_index"] == index
        assert data["recording"]["snr"] > 0
        assert data["recording"]["duration"] == 1.0

    assert data["session"]["completed"] is True
    assert data["session"]["status"] == "completed"
    assert data["session"]["saved_count"] == 3

    recordings = db_session.query(Recording).filter_by(unique_code=user.unique_code).all()
    assert len(recordings) == 3
    stored = storage.list_files("recordings")
    assert len(stored) == 3
    for recording in recordings:
        assert re.fullmatch(
            rf"\d{{4}}-\d{{2}}-\d{{2}}/male_English_{user.unique_code}/{recording.sentence_index}\.wav",
            recording.file_path
        )
        assert recording.file_path in stored

    # 完成后不能继续录音
    assert client.post(f"/api/v1/sessions/{session['id']}/start").status_code == 409

def test_illegal_transitions_return_conflict(client, db_session, language, wav_bytes):
    user = make_user(db_session, language)
    session_id = start_session(client, user.unique_code)["id"]

    response = client.post(f"/api/v1/sessions/{session_id}/stop")
    assert response.status_code == 409
    assert "error" in response.json()

    response = client.post(
        f"/api/v1/sessions/{session_id}/save",
        files={"audio": ("recording.wav", wav_bytes, "audio/wav")}
    )
    assert response.status_code == 409

    client.post(f"/api/v1/sessions/{session_id}/start")
    assert client.post(f"/api/v1/sessions/{session_id}/next").status_code == 409
    assert client.post(f"/api/v1/sessions/{session_id}/unknown").status_code == 404

def test_discard_and_navigation(client, db_session, language):
    user = make_user(db_session, language)
    session_id = start_session(client, user.unique_code)["id"]

    client.post(f"/api/v1/sessions/{session_id}/start")
    client.post(f"/api/v1/sessions/{session_id}/stop")
    data = client.post(f"/api/v1/sessions/{session_id}/discard").json()
    assert data["current_step"] == "idle"
    assert data["current_index"] == 0

    assert client.post(f"/api/v1/sessions/{session_id}/previous").json()["current_index"] == 0
    assert client.post(f"/api/v1/sessions/{session_id}/next").json()["current_index"] == 1
    data = client.post(f"/api/v1/sessions/{session_id}/go-to", json={"index": 2}).json()
    assert data["current_index"] == 2
    assert data["has_next"] is False
    assert client.post(f"/api/v1/sessions/{session_id}/next").json()["current_index"] == 2
    assert client.post(f"/api/v1/sessions/{session_id}/go-to", json={"index": 9}).status_code == 400

def test_saving_again_updates_existing_recording(client, db_session, storage, language, wav_bytes):
    user = make_user(db_session, language)
    session_id = start_session(client, user.unique_code)["id"]

    first = record_current(client, session_id, wav_bytes).json()["recording"]
    client.post(f"/api/v1/sessions/{session_id}/previous")
    second = record_current(client, session_id, wav_bytes).json()["recording"]

    assert first["id"] == second["id"]
    assert db_session.query(Recording).count() == 1
    assert len(storage.list_files("recordings")) == 1

def test_session_resumes_at_first_pending_sentence(client, db_session, storage, language, wav_bytes):
    user = make_user(db_session, language)
    record_service = RecordService(db_session, storage)
    record_service.save_recording(user.unique_code, "English", 0, wav_bytes)
    record_service.save_recording(user.unique_code, "English", 1, wav_bytes)

    session = start_session(client, user.unique_code)
    assert session["current_index"] == 2
    assert session["recorded_count"] == 2

    # 已有活跃会话时继续原会话
    assert start_session(client, user.unique_code)["id"] == session["id"]

    assert client.delete(f"/api/v1/sessions/{session['id']}").json()["status"] == "ended"
    assert client.post(f"/api/v1/sessions/{session['id']}/start").status_code == 409

    record_service.mark_for_rerecording(user.unique_code, "English", 0)
    session = start_session(client, user.unique_code)
    assert session["current_index"] == 0
    assert session["needs_rerecording"] is True

def test_session_requires_user_language(client, db_session, language):
    user = make_user(db_session, language)
    response = client.post("/api/v1/sessions", json={"unique_code": user.unique_code, "language": "Hindi"})
    assert response.status_code == 400
    response = client.post("/api/v1/sessions", json={"unique_code": "NOONE", "language": "English"})
    assert response.status_code == 404

def test_rerecording_flow(client, db_session, storage, language, wav_bytes):
    user = make_user(db_session, language)
    record_service = RecordService(db_session, storage)
    recording = record_service.save_recording(user.unique_code, "English", 1, wav_bytes)
    original_path = recording.file_path
    assert storage.download("recordings", original_path) == wav_bytes

    flagged = record_service.mark_for_rerecording(user.unique_code, "English", 1)
    assert flagged.needs_rerecording is True
    assert storage.download("recordings", original_path) is None

    count = client.get(f"/api/v1/users/{user.unique_code}/rerecordings/count", params={"language": "English"})
    assert count.json()["count"] == 1

    notifications = client.get(f"/api/v1/notifications/user/{user.unique_code}").json()
    assert notifications["unread_count"] == 1
    assert language.sentences[1] in notifications["notifications"][0]["message"]

    notification_id = notifications["notifications"][0]["id"]
    assert client.put(f"/api/v1/notifications/{notification_id}/read").json()["read"] is True
    assert client.put("/api/v1/notifications/999/read").status_code == 404

    session_id = start_session(client, user.unique_code, start_index=1)["id"]
    saved = record_current(client, session_id, wav_bytes).json()["recording"]
    assert saved["id"] == recording.id
    assert saved["is_rerecording"] is True
    assert saved["needs_rerecording"] is False
    assert storage.download("rerecordings", saved["file_path"]) == wav_bytes
    assert record_service.count_rerecording_requests(user.unique_code, "English") == 0

def test_long_sentence_notification_is_truncated(db_session, storage, language, wav_bytes):
    from app.services.language_service import LanguageService
    from app.services.notification_service import NotificationService

    long_sentence = "word " * 30
    LanguageService(db_session).create_language("Long", [long_sentence])
    user = make_user(db_session, language)
    UserService(db_session).add_user_language(user.unique_code, "Long")
    record_service = RecordService(db_session, storage)
    record_service.save_recording(user.unique_code, "Long", 0, wav_bytes)
    record_service.mark_for_rerecording(user.unique_code, "Long", 0)

    message = NotificationService(db_session).get_user_notifications(user.unique_code)[0].message
    assert long_sentence.strip()[:50] in message
    assert message.endswith('..."')

def test_empty_upload_is_rejected(client, db_session, language):
    user = make_user(db_session, language)
    session_id = start_session(client, user.unique_code)["id"]
    client.post(f"/api/v1/sessions/{session_id}/start")
    client.post(f"/api/v1/sessions/{session_id}/stop")
    response = client.post(
        f"/api/v1/sessions/{session_id}/save",
        files={"audio": ("recording.wav", b"", "audio/wav")}
    )
    assert response.status_code == 400
    assert client.get(f"/api/v1/sessions/{session_id}").json()["current_step"] == "stopped"

def test_boundary_navigation_while_recording_returns_conflict(client, db_session, language):
    user = make_user(db_session, language)
    for start_index, action in ((2, "next"), (0, "previous")):
        session_id = start_session(client, user.unique_code, start_index=start_index)["id"]
        assert client.post(f"/api/v1/sessions/{session_id}/start").status_code == 200

        response = client.post(f"/api/v1/sessions/{session_id}/{action}")
        assert response.status_code == 409
        data = client.get(f"/api/v1/sessions/{session_id}").json()
        assert data["current_step"] == "recording"
        assert data["current_index"] == start_index

def test_deleted_language_leaves_sessions_readable(client, db_session, language, admin_headers, wav_bytes):
    user = make_user(db_session, language)
    session_id = start_session(client, user.unique_code)["id"]
    assert record_current(client, session_id, wav_bytes).status_code == 200

    response = client.delete(f"/api/v1/admin/languages/{language.id}", headers=admin_headers)
    assert response.status_code == 200

    response = client.get(f"/api/v1/sessions/user/{user.unique_code}")
    assert response.status_code == 200
    sessions = response.json()["sessions"]
    assert sessions[0]["status"] == "ended"
    assert sessions[0]["sentence_text"] is None
    assert sessions[0]["recorded_count"] == 1

    assert client.get(f"/api/v1/users/{user.unique_code}/languages").json()["languages"] == []
    assert client.post(f"/api/v1/sessions/{session_id}/start").status_code == 409
    assert client.get(f"/api/v1/users/{user.unique_code}/recordings").json()["total"] == 1

    response = client.post("/api/v1/sessions", json={"unique_code": user.unique_code, "language": "English"})
    assert response.status_code == 400
