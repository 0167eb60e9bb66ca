"""Tests for user documents: signup, credentials and learning preferences."""

import pytest

from learnpath.db import containers
from learnpath.db.store import PreconditionFailed
from learnpath.exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from learnpath.services import users


async def _make_user(store, **overrides):
    fields = {
        "name": "Grace Brewster Hopper",
        "username": "grace",
        "email": "Grace@Example.com",
        "password": "cobol-1959",
    }
    fields.update(overrides)
    return await users.create_user(store, **fields)


async def test_create_user_stores_bcrypt_hash_not_plaintext(store):
    user = await _make_user(store)

    stored = await store.read(containers.USERS, user["id"], partition_key=user["id"])
    assert stored["passwordHash"] != "cobol-1959"
    assert stored["passwordHash"].startswith("$2")
    assert "cobol-1959" not in str(stored)
    assert users.verify_password("cobol-1959", stored["passwordHash"])


async def test_create_user_splits_profile_name_and_lowercases_email(store):
    user = await _make_user(store)

    assert user["email"] == "grace@example.com"
    assert user["profile"]["firstName"] == "Grace"
    assert user["profile"]["lastName"] == "Brewster Hopper"
    assert user["learningPreferences"] == {}
    assert user["surveyCompleted"] is False


def test_split_name_single_word():
    assert users.split_name("Plato") == ("Plato", "")


async def test_duplicate_email_or_username_is_rejected(store):
    await _make_user(store)

    with pytest.raises(ValidationError) as taken_email:
        await _make_user(store, username="someone-else")
    with pytest.raises(ValidationError):
        await _make_user(store, email="other@example.com", username="GRACE")

    assert taken_email.value.message == "Email or username already exists"


async def test_authenticate_accepts_correct_password(store):
    created = await _make_user(store)

    user = await users.authenticate(store, "grace@example.com", "cobol-1959")

    assert user["id"] == created["id"]


async def test_authenticate_same_error_for_unknown_email_and_wrong_password(store):
    await _make_user(store)

    with pytest.raises(AuthError) as wrong_password:
        await users.authenticate(store, "grace@example.com", "fortran")
    with pytest.raises(AuthError) as unknown_email:
        await users.authenticate(store, "nobody@example.com", "cobol-1959")

    assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"


def test_known_preferences_drops_unknown_keys(caplog):
    with caplog.at_level("WARNING"):
        known = users.known_preferences({"style": "visual", "bogusKey": "x"})

    assert known == {"style": "visual"}
    assert "bogusKey" in caplog.text


async def test_save_learning_preferences_is_last_write_wins_per_key(store):
    user = await _make_user(store)

    await users.save_learning_preferences(store, user["id"], {"style": "visual", "theme": "dark"})
    prefs = await users.save_learning_preferences(store, user["id"], {"style": "auditory", "bogusKey": 1})

    assert prefs == {"style": "auditory", "theme": "dark"}
    stored = await users.get_user(store, user["id"])
    assert stored["learningPreferences"] == prefs
    assert "bogusKey" not in stored["learningPreferences"]


def _losing_replace(store, losses):
    """Make the next ``losses`` replaces fail as if another writer got there first."""
    real_replace = store.replace
    remaining = losses

    async def replace(*args, **kwargs):
        nonlocal remaining
        if remaining:
            remaining -= 1
            raise PreconditionFailed("lost the race")
        return await real_replace(*args, **kwargs)

    return replace


async def test_unknown_key_is_logged_once_when_update_retries(store, caplog, monkeypatch):
    user = await _make_user(store)
    monkeypatch.setattr(store, "replace", _losing_replace(store, 2))

    with caplog.at_level("WARNING"):
        prefs = await users.save_learning_preferences(store, user["id"], {"style": "visual", "bogusKey": 1})

    assert prefs == {"style": "visual"}
    assert caplog.text.count("Unknown personality key: bogusKey") == 1


async def test_preferences_update_gives_up_after_max_attempts(store, monkeypatch):
    user = await _make_user(store)
    monkeypatch.setattr(store, "replace", _losing_replace(store, 100))

    with pytest.raises(ConflictError):
        await users.save_learning_preferences(store, user["id"], {"style": "visual"})


async def test_save_learning_preferences_unknown_user(store):
    with pytest.raises(NotFoundError):
        await users.save_learning_preferences(store, "missing", {"style": "visual"})


async def test_mark_survey_completed(store):
    user = await _make_user(store)

    updated = await users.mark_survey_completed(store, user["id"])

    assert updated["surveyCompleted"] is True
    assert updated["surveyCompletedAt"]
