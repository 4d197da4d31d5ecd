import json

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from preppal.core.errors import DuplicateUserError, InvalidPreferencesError, PersistenceWriteError, SessionNotFoundError
from preppal.repositories.kv_repository import SESSIONS_KEY, USERS_KEY, KeyValueRepository
from preppal.schemas.session import Message, MessageData, MessageRole, Preferences, SessionStatus


class TestUserRepository:
    def test_register_then_login_ignores_email_case(self, users):
        user = users.create("Jane", "jane@x.com", "secret1")

        found = users.authenticate("JANE@X.COM", "secret1")

        assert found is not None
        assert found.id == user.id

    def test_duplicate_email_is_rejected_case_insensitively(self, users):
        users.create("Jane", "jane@x.com", "secret1")

        with pytest.raises(DuplicateUserError):
            users.create("Other Jane", "Jane@X.com", "secret2")

        assert len(users.list_all()) == 1

    def test_wrong_secret_fails(self, users):
        users.create("Jane", "jane@x.com", "secret1")

        assert users.authenticate("jane@x.com", "nope123") is None
        assert users.authenticate("nobody@x.com", "secret1") is None

    def test_account_without_secret_accepts_any_secret(self, users):
        users.create("Legacy", "legacy@x.com", None)

        assert users.authenticate("legacy@x.com", "whatever").email == "legacy@x.com"

    def test_list_users_keeps_registration_order(self, users):
        users.create("A", "a@x.com", "secret1")
        users.create("B", "b@x.com", "secret1")

        assert [user.name for user in users.list_all()] == ["A", "B"]

    def test_current_user_round_trip(self, users):
        user = users.create("Jane", "jane@x.com", "secret1")

        users.set_current_user(user.id)
        assert users.get_current_user().id == user.id

        users.set_current_user(None)
        assert users.get_current_user() is None

    def test_users_blob_uses_camel_case_keys(self, users, db):
        users.create("Jane", "jane@x.com", "secret1")

        blob = json.loads(KeyValueRepository(db).get(USERS_KEY))

        assert blob["version"] == 1
        assert "joinedAt" in blob["items"][0]


class TestSessionRepository:
    def test_create_session_starts_active_and_empty(self, sessions, nurse_prefs):
        session = sessions.create(nurse_prefs, "user-1")

        assert session.status == SessionStatus.ACTIVE
        assert session.messages == []
        assert session.created_at == session.last_updated
        assert sessions.get(session.id).id == session.id

    def test_new_sessions_go_first(self, sessions, nurse_prefs):
        first = sessions.create(nurse_prefs, "user-1")
        second = sessions.create(nurse_prefs, "user-1")

        assert [s.id for s in sessions.list_all()] == [second.id, first.id]

    def test_save_replaces_in_place(self, sessions, nurse_prefs):
        first = sessions.create(nurse_prefs, "user-1")
        second = sessions.create(nurse_prefs, "user-1")

        first.messages.append(Message(role=MessageRole.AI, text="Hi"))
        sessions.save(first)

        stored = sessions.list_all()
        assert [s.id for s in stored] == [second.id, first.id]
        assert stored[1].messages[0].text == "Hi"

    def test_saving_unchanged_session_twice_does_not_duplicate(self, sessions, nurse_prefs):
        session = sessions.create(nurse_prefs, "user-1")

        sessions.save(session)
        sessions.save(session)

        assert len(sessions.list_all()) == 1

    def test_filter_by_owner(self, sessions, nurse_prefs):
        mine = sessions.create(nurse_prefs, "user-1")
        sessions.create(nurse_prefs, "user-2")

        assert [s.id for s in sessions.list_all(user_id="user-1")] == [mine.id]
        assert len(sessions.list_all()) == 2

    def test_get_scoped_to_owner(self, sessions, nurse_prefs):
        session = sessions.create(nurse_prefs, "user-1")

        assert sessions.get(session.id, user_id="user-2") is None
        assert sessions.get(session.id, user_id="user-1") is not None
        assert sessions.get("missing") is None

    def test_require_raises_for_missing_or_foreign_session(self, sessions, nurse_prefs):
        session = sessions.create(nurse_prefs, "user-1")

        assert sessions.require(session.id, user_id="user-1").id == session.id
        with pytest.raises(SessionNotFoundError):
            sessions.require("missing")
        with pytest.raises(SessionNotFoundError) as excinfo:
            sessions.require(session.id, user_id="user-2")
        assert excinfo.value.session_id == session.id

    def test_create_rejects_unknown_experience_level(self, sessions):
        with pytest.raises(InvalidPreferencesError):
            sessions.create(Preferences(job_role="Nurse", experience_level="Wizard"), "user-1")

        assert sessions.list_all() == []


class TestBlobHandling:
    def test_corrupt_blob_reads_as_empty(self, sessions, db):
        KeyValueRepository(db).set(SESSIONS_KEY, "not json{")

        assert sessions.list_all() == []

    def test_unknown_version_reads_as_empty(self, sessions, db):
        KeyValueRepository(db).set(SESSIONS_KEY, json.dumps({"version": 99, "items": []}))

        assert sessions.list_all() == []

    def test_legacy_bare_array_is_accepted(self, sessions, db):
        legacy = [
            {
                "id": "s-1",
                "userId": "u-1",
                "preferences": {"jobRole": "Teacher", "company": "", "experienceLevel": "Executive", "focusAreas": ""},
                "messages": [{"id": "m-1", "role": "ai", "text": "Welcome!", "timestamp": 1700000000000}],
                "createdAt": 1700000000000,
                "lastUpdated": 1700000000000,
                "status": "active",
            },
            {"id": "broken"},
        ]
        KeyValueRepository(db).set(SESSIONS_KEY, json.dumps(legacy))

        stored = sessions.list_all()

        assert [s.id for s in stored] == ["s-1"]
        assert stored[0].preferences.job_role == "Teacher"
        assert stored[0].created_at.year == 2023

    def test_write_failure_is_swallowed(self, sessions, nurse_prefs, monkeypatch):
        def fail(key, value):
            raise PersistenceWriteError("quota exceeded")

        monkeypatch.setattr(sessions.sessions.kv, "set", fail)

        session = sessions.create(nurse_prefs, "user-1")

        assert session.status == SessionStatus.ACTIVE
        assert sessions.list_all() == []

    def test_database_error_becomes_persistence_write_error(self, db, monkeypatch):
        kv = KeyValueRepository(db)

        def broken_commit():
            raise OperationalError("INSERT", {}, Exception("disk full"))

        monkeypatch.setattr(db, "commit", broken_commit)

        with pytest.raises(PersistenceWriteError):
            kv.set("anything", "value")


class TestMessageShape:
    def test_message_needs_a_payload(self):
        with pytest.raises(ValidationError):
            Message(role=MessageRole.AI)

    def test_message_cannot_carry_text_and_data(self):
        with pytest.raises(ValidationError):
            Message(role=MessageRole.AI, text="Hi", data=MessageData(next_question="Next?"))

    def test_user_message_carries_text(self):
        with pytest.raises(ValidationError):
            Message(role=MessageRole.USER, data=MessageData(next_question="Next?"))

    def test_stored_message_without_payload_is_skipped(self, sessions, db):
        blob = {
            "version": 1,
            "items": [
                {
                    "id": "s-1",
                    "userId": "u-1",
                    "preferences": {"jobRole": "Teacher", "experienceLevel": "Executive"},
                    "messages": [{"id": "m-1", "role": "ai", "timestamp": 1700000000000}],
                    "createdAt": 1700000000000,
                    "lastUpdated": 1700000000000,
                    "status": "active",
                }
            ],
        }
        KeyValueRepository(db).set(SESSIONS_KEY, json.dumps(blob))

        assert sessions.list_all() == []
