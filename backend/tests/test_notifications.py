"""
Tests for notification delivery, jury dispatch and inbox housekeeping.
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import seed_user
from scorecard.services.errors import NotFoundError, NotificationFailure, ValidationError
from scorecard.services.notifications import (
    NotificationDispatcher,
    NotificationInbox,
    NotificationKind,
    UserInboxTransport,
    create_notification,
    notify_responsable_new_assignment,
)
from scorecard.services.notifications.notification_service import high_priority, unread


class TestCreateNotification:

    def test_defaults(self, now):
        n = create_notification("Hola", "Mensaje", NotificationKind.ASSIGNMENT_OVERDUE, now=now)
        assert n["id"].startswith("notif_")
        assert n["type"] == "warning"
        assert n["priority"] == "medium"
        assert n["read"] is False
        assert n["created_at"] == now.isoformat()
        assert "action_url" not in n

    def test_blank_action_url_dropped(self):
        n = create_notification("t", "m", NotificationKind.SYSTEM_ALERT, action_url="   ")
        assert "action_url" not in n

    def test_invalid_priority(self):
        with pytest.raises(ValidationError):
            create_notification("t", "m", NotificationKind.SYSTEM_ALERT, priority="urgent")

    def test_filters(self):
        items = [
            {"id": "1", "read": False, "priority": "high"},
            {"id": "2", "read": True, "priority": "high"},
            {"id": "3", "read": False, "priority": "low"},
        ]
        assert [n["id"] for n in unread(items)] == ["1", "3"]
        assert [n["id"] for n in high_priority(items)] == ["1", "2"]


class TestTransportAndDispatch:

    def test_send_to_unknown_user_raises(self, store):
        with pytest.raises(NotFoundError):
            UserInboxTransport(store).send_to_user("ghost", {"id": "x"})

    def test_send_skips_unknown_users_and_gives_each_copy_an_id(self, store):
        a = seed_user(store, "Luis Rojas")
        b = seed_user(store, "Carla Díaz")
        payload = create_notification("t", "m", NotificationKind.SYSTEM_ALERT)

        delivered = UserInboxTransport(store).send([a, "ghost", b], payload)

        assert delivered == 2
        ids = [store.get_by_id("user", u)["notifications"][0]["id"] for u in (a, b)]
        assert len(set(ids)) == 2

    def test_dispatcher_payload(self):
        transport = MagicMock()
        NotificationDispatcher(transport).notify(["j1", "j2", "j1"], "a-1", "Ana Torres")

        recipients, payload = transport.send.call_args[0]
        assert recipients == ["j1", "j2"]
        assert payload["title"] == "New evaluation pending"
        assert payload["priority"] == "high"
        assert payload["action_url"] == "/admin/grading"
        assert payload["assignment_id"] == "a-1"
        assert "Ana Torres" in payload["message"]

    def test_write_error_raises_notification_failure(self, store):
        user_id = seed_user(store, "Luis Rojas")
        transport = UserInboxTransport(store)

        with patch.object(store, "update", side_effect=OperationalError("UPDATE", {}, Exception("locked"))):
            with pytest.raises(NotificationFailure):
                transport.send_to_user(user_id, {"id": "x"})

    def test_send_continues_after_a_failed_inbox_write(self, store):
        a = seed_user(store, "Luis Rojas")
        b = seed_user(store, "Carla Díaz")
        real_update = store.update
        calls = []

        def flaky_update(*args, **kwargs):
            calls.append(args[1])
            if len(calls) == 1:
                raise OperationalError("UPDATE", {}, Exception("locked"))
            return real_update(*args, **kwargs)

        payload = create_notification("t", "m", NotificationKind.EVALUATION_REQUIRED)
        with patch.object(store, "update", side_effect=flaky_update):
            delivered = UserInboxTransport(store).send([a, b], payload)

        assert delivered == 1
        assert calls == [a, b]
        assert store.get_by_id("user", a)["notifications"] in (None, [])
        assert len(store.get_by_id("user", b)["notifications"]) == 1

    def test_new_assignment_notice_mentions_due_date(self, store):
        user_id = seed_user(store, "Ana Torres")

        notify_responsable_new_assignment(
            UserInboxTransport(store), user_id, "a-1", "Tasa de titulación",
            due_date=datetime(2025, 12, 15, 12, tzinfo=timezone.utc),
        )

        message = store.get_by_id("user", user_id)["notifications"][0]["message"]
        assert "Tasa de titulación" in message
        assert "Due 2025-12-15" in message

    def test_dispatcher_no_recipients(self):
        transport = MagicMock()
        NotificationDispatcher(transport).notify([], "a-1", "Ana Torres")
        transport.send.assert_not_called()


class TestInbox:

    @pytest.fixture
    def user_id(self, store):
        user_id = seed_user(store, "Ana Torres")
        transport = UserInboxTransport(store)
        for title in ("uno", "dos", "tres"):
            transport.send_to_user(user_id, create_notification(title, "m", NotificationKind.SYSTEM_ALERT))
        return user_id

    def test_mark_read_and_list_unread(self, store, user_id):
        inbox = NotificationInbox(store)
        first = inbox.list_for_user(user_id)[0]["id"]

        inbox.mark_read(user_id, first)

        assert len(inbox.list_for_user(user_id)) == 3
        assert len(inbox.list_for_user(user_id, only_unread=True)) == 2

    def test_mark_all_read_returns_count(self, store, user_id):
        inbox = NotificationInbox(store)
        assert inbox.mark_all_read(user_id) == 3
        assert inbox.list_for_user(user_id, only_unread=True) == []
        assert inbox.mark_all_read(user_id) == 0

    def test_delete(self, store, user_id):
        inbox = NotificationInbox(store)
        target = inbox.list_for_user(user_id)[1]["id"]

        inbox.delete(user_id, target)

        assert [n["title"] for n in inbox.list_for_user(user_id)] == ["uno", "tres"]
        with pytest.raises(NotFoundError):
            inbox.delete(user_id, target)

    def test_mark_read_unknown_notification(self, store, user_id):
        with pytest.raises(NotFoundError):
            NotificationInbox(store).mark_read(user_id, "notif_missing")

    def test_send_custom(self, store, user_id):
        other = seed_user(store, "Pedro Salas")

        count = NotificationInbox(store).send_custom(
            [user_id, other], "Aviso", "Cierre de periodo", priority="high", sender_name="Admin"
        )

        assert count == 2
        received = store.get_by_id("user", other)["notifications"][0]
        assert received["sender_name"] == "Admin"
        assert received["type"] == "error"
