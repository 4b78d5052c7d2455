"""
Unit Tests for NotificationStore

Tests field derivation, retention, filtering and deletion against the
in-memory document store with a mocked timer and a recording alert sink.
"""

import asyncio
from unittest.mock import call

import pytest

from camnotify.config import settings
from camnotify.models.notification import (
    NOTIFICATION_ID_ALPHABET,
    CameraNotification,
    SystemNotification,
    render_time,
)
from camnotify.notifications.store import CameraNotFoundError, NotificationStore
from camnotify.storage.base import NOTIFICATIONS
from tests.helpers import count, epoch


def camera_event(camera="front", **overrides):
    event = {"camera": camera, "trigger": "motion", "type": "Snapshot"}
    event.update(overrides)
    return event


class TestCreateCameraNotification:
    """Camera path of NotificationStore.create()."""

    @pytest.mark.asyncio
    async def test_derives_file_fields(self, store):
        notification = await store.create(
            {
                "id": "abc123def0",
                "camera": "Front Door",
                "timestamp": 1700000000,
                "trigger": "motion",
                "type": "Video",
                "label": "person",
            }
        )

        assert isinstance(notification, CameraNotification)
        assert notification.file_name == "Front_Door-abc123def0-1700000000_m_CUI.mp4"
        assert notification.name == "Front_Door-abc123def0-1700000000_m_CUI"
        assert notification.extension == "mp4"
        assert notification.record_storing is True
        assert notification.record_type == "Video"
        assert notification.trigger == "motion"
        assert notification.camera == "Front Door"
        assert notification.label == "person"
        assert notification.time == render_time(1700000000)

    @pytest.mark.asyncio
    async def test_same_inputs_reproduce_same_file_name(self, store):
        event = camera_event(id="0123456789", timestamp=1700000000, trigger="doorbell")
        first = await store.create(event)
        second = await store.create(event)
        assert first.file_name == second.file_name == "front-0123456789-1700000000_d_CUI.jpeg"

    @pytest.mark.asyncio
    async def test_room_from_camera_settings(self, store):
        notification = await store.create(camera_event("Front Door"))
        assert notification.room == "Entrance"

    @pytest.mark.asyncio
    async def test_room_defaults_without_camera_setting(self, store):
        notification = await store.create(camera_event("garage"))
        assert notification.room == "Standard"

    @pytest.mark.asyncio
    async def test_default_room_is_injected(self, documents, mock_timer, alert_sink):
        store = NotificationStore(
            documents=documents, timer=mock_timer, alert_sink=alert_sink, default_room="Lobby"
        )
        notification = await store.create(camera_event("garage"))
        assert notification.room == "Lobby"

    @pytest.mark.asyncio
    async def test_registers_expiry_timer(self, store, mock_timer):
        notification = await store.create(camera_event(timestamp=1700000000))
        mock_timer.set_notification.assert_called_once_with(notification.id, 1700000000)

    @pytest.mark.asyncio
    async def test_video_alert_uses_alternate_thumbnail(self, store, alert_sink):
        await store.create(
            camera_event("Front Door", id="abc123def0", timestamp=1700000000, type="Video")
        )

        payload = alert_sink.payloads[0]
        assert payload.is_notification is True
        assert payload.title == "Front Door"
        assert payload.message == f"Motion Event - {render_time(1700000000)}"
        assert payload.subtxt == "Entrance"
        assert payload.media_source == "/files/Front_Door-abc123def0-1700000000_m_CUI@2.jpeg"
        assert payload.count is True
        assert payload.camera == "Front Door"
        assert payload.file_name == "Front_Door-abc123def0-1700000000_m_CUI.mp4"

    @pytest.mark.asyncio
    async def test_snapshot_alert_uses_file_path(self, store, alert_sink):
        await store.create(camera_event(id="abc123def0", timestamp=1700000000, trigger="doorbell"))

        payload = alert_sink.payloads[0]
        assert payload.media_source == "/files/front-abc123def0-1700000000_d_CUI.jpeg"
        assert payload.message.startswith("Doorbell Event - ")

    @pytest.mark.asyncio
    async def test_non_storing_type_has_no_media(self, store, alert_sink):
        notification = await store.create(camera_event(type="Stream", trigger="continuous"))

        assert notification.record_storing is False
        assert notification.extension == "jpeg"
        assert notification.name.endswith("_c_CUI")
        assert alert_sink.payloads[0].media_source is False

    @pytest.mark.asyncio
    async def test_unknown_camera_fails_without_side_effects(
        self, store, documents, mock_timer, alert_sink
    ):
        await store.create(camera_event())
        mock_timer.reset_mock()
        alert_sink.clear()

        with pytest.raises(CameraNotFoundError) as exc_info:
            await store.create(camera_event("attic"))

        assert exc_info.value.camera_name == "attic"
        assert await count(documents, NOTIFICATIONS) == 1
        mock_timer.set_notification.assert_not_called()
        assert alert_sink.payloads == []

    @pytest.mark.asyncio
    async def test_missing_camera_name_fails(self, store, documents):
        with pytest.raises(CameraNotFoundError):
            await store.create({"trigger": "motion"})
        assert await count(documents, NOTIFICATIONS) == 0


class TestCreateSystemNotification:
    """System path of NotificationStore.create()."""

    @pytest.mark.asyncio
    async def test_builds_system_notification(self, store, documents):
        notification = await store.create(
            {"system": True, "title": "Update", "message": "Firmware updated", "timestamp": 1700000000}
        )

        assert isinstance(notification, SystemNotification)
        assert notification.title == "Update"
        assert notification.message == "Firmware updated"
        assert notification.label == "no label"

        stored = await documents.find(NOTIFICATIONS, id=notification.id)
        assert stored["kind"] == "system"
        assert "camera" not in stored
        assert "fileName" not in stored

    @pytest.mark.asyncio
    async def test_system_alert_payload(self, store, alert_sink):
        await store.create({"system": True, "title": "Disk", "message": "Low space", "subtxt": "90%"})

        payload = alert_sink.payloads[0]
        assert payload.is_notification is False
        assert payload.media_source is False
        assert payload.subtxt == "90%"
        assert payload.title == "Disk"
        assert payload.camera is None

    @pytest.mark.asyncio
    async def test_system_alert_without_subtxt(self, store, alert_sink):
        await store.create({"system": True, "title": "Disk", "message": "Low space"})
        assert alert_sink.payloads[0].subtxt is False

    @pytest.mark.asyncio
    async def test_system_path_skips_camera_lookup(self, store):
        notification = await store.create({"system": True, "camera": "attic", "title": "t"})
        assert notification.camera is None

    @pytest.mark.asyncio
    async def test_system_notification_gets_expiry_timer(self, store, mock_timer):
        notification = await store.create({"system": True, "title": "t", "timestamp": 1700000000})
        mock_timer.set_notification.assert_called_once_with(notification.id, 1700000000)


class TestIdentifiersAndTime:
    @pytest.mark.asyncio
    async def test_generated_ids_are_unique(self, store, documents):
        for _ in range(30):
            await store.create(camera_event())

        ids = [document["id"] for document in await documents.all(NOTIFICATIONS)]
        assert len(set(ids)) == 30
        for notification_id in ids:
            assert len(notification_id) == 10
            assert set(notification_id) <= set(NOTIFICATION_ID_ALPHABET)

    @pytest.mark.asyncio
    async def test_explicit_id_replaces_existing_record(self, store, documents):
        await store.create(camera_event(id="aaaaaaaaaa", label="cat"))
        await store.create(camera_event(id="aaaaaaaaaa", label="dog"))

        stored = await documents.all(NOTIFICATIONS)
        assert len(stored) == 1
        assert stored[0]["label"] == "dog"

    @pytest.mark.asyncio
    async def test_concurrent_creates_with_same_id_keep_one_record(self, store, documents):
        await asyncio.gather(
            store.create(camera_event(id="aaaaaaaaaa", label="cat")),
            store.create(camera_event(id="aaaaaaaaaa", label="dog")),
        )

        assert [d["id"] for d in await documents.all(NOTIFICATIONS)] == ["aaaaaaaaaa"]

    @pytest.mark.asyncio
    async def test_timestamp_defaults_to_now(self, store):
        notification = await store.create(camera_event())
        assert notification.timestamp > epoch(2024, 1, 1)

    @pytest.mark.asyncio
    async def test_stored_time_matches_timestamp(self, store, documents):
        for day in range(1, 6):
            await store.create(camera_event(timestamp=epoch(2024, 3, day)))

        for document in await documents.all(NOTIFICATIONS):
            assert document["time"] == render_time(document["timestamp"])


class TestRetention:
    @pytest.mark.asyncio
    async def test_collection_stabilizes_at_limit(self, store, documents, mock_timer):
        created = [await store.create(camera_event()) for _ in range(105)]

        stored = await documents.all(NOTIFICATIONS)
        assert len(stored) == 100
        assert [d["id"] for d in stored] == [n.id for n in created[5:]]

        evicted_ids = [n.id for n in created[:5]]
        mock_timer.remove_notification_timer.assert_has_calls(
            [call(notification_id) for notification_id in evicted_ids]
        )

    @pytest.mark.asyncio
    async def test_enforce_retention_trims_oldest(self, documents, mock_timer, alert_sink):
        await documents.replace(
            NOTIFICATIONS,
            [
                {"id": f"n{i}", "timestamp": epoch(2024, 1, i + 1), "title": "t", "kind": "system"}
                for i in range(5)
            ],
        )
        store = NotificationStore(
            documents=documents, timer=mock_timer, alert_sink=alert_sink, limit=3
        )

        evicted = await store.enforce_retention()

        assert [n.id for n in evicted] == ["n0", "n1"]
        assert [d["id"] for d in await documents.all(NOTIFICATIONS)] == ["n2", "n3", "n4"]
        mock_timer.remove_notification_timer.assert_has_calls([call("n0"), call("n1")])

    @pytest.mark.asyncio
    async def test_enforce_retention_within_bound_is_noop(self, store, mock_timer):
        await store.create(camera_event())
        assert await store.enforce_retention() == []
        mock_timer.remove_notification_timer.assert_not_called()


class TestList:
    @pytest.fixture
    async def seeded_store(self, store):
        """Five notifications across three cameras plus one system notification."""
        await store.create(camera_event("front", id="0000000001", timestamp=epoch(2023, 12, 31), label="person"))
        await store.create(camera_event("back", id="0000000002", timestamp=epoch(2024, 1, 10), type="Video"))
        await store.create(camera_event("garage", id="0000000003", timestamp=epoch(2024, 1, 15), label="car"))
        await store.create(camera_event("front", id="0000000004", timestamp=epoch(2024, 1, 31), label="person"))
        await store.create(camera_event("garage", id="0000000005", timestamp=epoch(2024, 2, 1), type="Video"))
        await store.create({"system": True, "id": "0000000006", "title": "t", "timestamp": epoch(2024, 1, 20)})
        return store

    @pytest.mark.asyncio
    async def test_no_filters_returns_most_recent_first(self, seeded_store):
        notifications = await seeded_store.list()
        assert [n.id for n in notifications] == [
            "0000000006",
            "0000000005",
            "0000000004",
            "0000000003",
            "0000000002",
            "0000000001",
        ]

    @pytest.mark.asyncio
    async def test_camera_filter(self, seeded_store):
        notifications = await seeded_store.list({"cameras": "front,back"})
        assert [n.id for n in notifications] == ["0000000004", "0000000002", "0000000001"]
        assert all(n.camera in ("front", "back") for n in notifications)

    @pytest.mark.asyncio
    async def test_date_range_filter(self, seeded_store):
        notifications = await seeded_store.list({"from": "2024-01-01", "to": "2024-01-31"})
        ids = [n.id for n in notifications]

        assert "0000000001" not in ids  # 2023-12-31
        assert "0000000003" in ids  # 2024-01-15
        assert "0000000004" in ids  # 2024-01-31, upper bound inclusive
        assert "0000000005" not in ids  # 2024-02-01
        assert ids == ["0000000006", "0000000004", "0000000003", "0000000002"]

    @pytest.mark.asyncio
    async def test_date_range_lower_bound_is_exclusive(self, seeded_store):
        notifications = await seeded_store.list({"from": "2024-01-10", "to": "2024-01-15"})
        assert [n.id for n in notifications] == ["0000000003"]

    @pytest.mark.asyncio
    async def test_unparsable_from_skips_date_filter(self, seeded_store):
        notifications = await seeded_store.list({"from": "yesterday", "to": "2024-01-01"})
        assert len(notifications) == 6

    @pytest.mark.asyncio
    async def test_missing_to_defaults_to_today(self, seeded_store):
        notifications = await seeded_store.list({"from": "2024-01-14"})
        assert [n.id for n in notifications] == [
            "0000000006",
            "0000000005",
            "0000000004",
            "0000000003",
        ]

    @pytest.mark.asyncio
    async def test_unparsable_to_defaults_to_today(self, seeded_store):
        notifications = await seeded_store.list({"from": "2024-01-14", "to": "31/01/2024"})
        assert len(notifications) == 4

    @pytest.mark.asyncio
    async def test_label_filter(self, seeded_store):
        notifications = await seeded_store.list({"labels": "person,car"})
        assert [n.id for n in notifications] == ["0000000004", "0000000003", "0000000001"]

    @pytest.mark.asyncio
    async def test_room_filter(self, seeded_store):
        notifications = await seeded_store.list({"rooms": "Standard"})
        assert [n.id for n in notifications] == ["0000000005", "0000000003"]

    @pytest.mark.asyncio
    async def test_type_filter(self, seeded_store):
        notifications = await seeded_store.list({"types": "Video"})
        assert [n.id for n in notifications] == ["0000000005", "0000000002"]

    @pytest.mark.asyncio
    async def test_filters_combine(self, seeded_store):
        notifications = await seeded_store.list(
            {"cameras": "garage,front", "labels": "person", "from": "2024-01-01", "to": "2024-01-31"}
        )
        assert [n.id for n in notifications] == ["0000000004"]

    @pytest.mark.asyncio
    async def test_list_by_camera_name(self, seeded_store):
        notifications = await seeded_store.list_by_camera_name("garage")
        assert [n.id for n in notifications] == ["0000000005", "0000000003"]

    @pytest.mark.asyncio
    async def test_list_by_camera_name_is_exact(self, seeded_store):
        assert await seeded_store.list_by_camera_name("Garage") == []
        assert await seeded_store.list_by_camera_name("unknown") == []


class TestFindAndRemove:
    @pytest.mark.asyncio
    async def test_find_by_id(self, store):
        created = await store.create(camera_event())
        assert await store.find_by_id(created.id) == created

    @pytest.mark.asyncio
    async def test_find_by_id_absent(self, store):
        assert await store.find_by_id("ffffffffff") is None

    @pytest.mark.asyncio
    async def test_remove_by_id(self, store, documents, mock_timer):
        keep = await store.create(camera_event())
        drop = await store.create(camera_event())

        assert await store.remove_by_id(drop.id) is True

        mock_timer.remove_notification_timer.assert_called_with(drop.id)
        assert [d["id"] for d in await documents.all(NOTIFICATIONS)] == [keep.id]

    @pytest.mark.asyncio
    async def test_remove_by_id_is_idempotent(self, store, mock_timer):
        created = await store.create(camera_event())
        await store.remove_by_id(created.id)

        assert await store.remove_by_id(created.id) is False
        assert mock_timer.remove_notification_timer.call_count == 2

    @pytest.mark.asyncio
    async def test_remove_all(self, store, mock_timer):
        for _ in range(3):
            await store.create(camera_event())

        assert await store.remove_all() == 3

        mock_timer.stop_notifications.assert_called_once()
        assert await store.list() == []

    @pytest.mark.asyncio
    async def test_remove_all_on_empty_collection(self, store):
        assert await store.remove_all() == 0


class TestConstruction:
    def test_limit_below_one_is_rejected(self, documents, mock_timer, alert_sink):
        with pytest.raises(ValueError, match="at least 1"):
            NotificationStore(documents=documents, timer=mock_timer, alert_sink=alert_sink, limit=0)

    def test_omitted_arguments_use_settings(self, documents, mock_timer, alert_sink):
        store = NotificationStore(documents=documents, timer=mock_timer, alert_sink=alert_sink)

        assert store.limit == settings.notifications_limit
        assert store.default_room == settings.default_room

    @pytest.mark.asyncio
    async def test_explicit_empty_default_room_is_kept(self, documents, mock_timer, alert_sink):
        store = NotificationStore(
            documents=documents, timer=mock_timer, alert_sink=alert_sink, default_room=""
        )

        notification = await store.create(camera_event("garage"))

        assert notification.room == ""
