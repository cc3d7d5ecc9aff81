"""
Tests for conversations, messages and live delivery over WebSocket.
"""

import pytest
import uuid
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from rentals.main import app
from rentals.repositories.message import ConversationRepository
from rentals.repositories.notification import NotificationRepository
from rentals.routers.realtime import WS_CLOSE_UNAUTHORIZED, dispatch_frame
from rentals.schemas.message import ConversationCreate
from rentals.services.messaging import MessagingService
from rentals.services.realtime import ConnectionManager, conversation_room, user_room
from rentals.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError, PropertyNotFoundError
from tests.conftest import FakeWebSocket, auth_headers


@pytest.fixture
def messaging_service(db_session, connection_manager) -> MessagingService:
    return MessagingService(db_session, connection_manager)


@pytest.fixture
async def conversation(messaging_service: MessagingService, test_guest, test_host, test_property):
    conv, _ = await messaging_service.create_conversation(
        ConversationCreate(participant_ids=[test_guest.id, test_host.id], property_id=test_property.id),
        test_guest,
    )
    return conv


class TestConversations:
    """Test conversation creation and membership rules."""

    @pytest.mark.asyncio
    async def test_create_then_reuse(self, messaging_service: MessagingService, test_guest, test_host, test_property):
        data = ConversationCreate(participant_ids=[test_guest.id, test_host.id], property_id=test_property.id)

        first, created = await messaging_service.create_conversation(data, test_guest)
        second, created_again = await messaging_service.create_conversation(data, test_host)

        assert created is True
        assert created_again is False
        assert first.id == second.id
        assert set(first.participant_ids) == {test_guest.id, test_host.id}

    @pytest.mark.asyncio
    async def test_other_property_gets_own_conversation(
        self, messaging_service: MessagingService, conversation, test_guest, test_host
    ):
        other, created = await messaging_service.create_conversation(
            ConversationCreate(participant_ids=[test_guest.id, test_host.id]), test_guest
        )
        assert created is True
        assert other.id != conversation.id

    @pytest.mark.asyncio
    async def test_caller_must_participate(self, messaging_service: MessagingService, test_guest, test_host, other_guest):
        with pytest.raises(BadRequestError, match="one of the participants"):
            await messaging_service.create_conversation(
                ConversationCreate(participant_ids=[test_guest.id, test_host.id]), other_guest
            )

    @pytest.mark.asyncio
    async def test_needs_two_distinct_users(self, messaging_service: MessagingService, test_guest):
        with pytest.raises(BadRequestError, match="two distinct participants"):
            await messaging_service.create_conversation(
                ConversationCreate(participant_ids=[test_guest.id, test_guest.id]), test_guest
            )

    @pytest.mark.asyncio
    async def test_unknown_participant_or_property(self, messaging_service: MessagingService, test_guest, test_host):
        with pytest.raises(NotFoundError):
            await messaging_service.create_conversation(
                ConversationCreate(participant_ids=[test_guest.id, uuid.uuid4()]), test_guest
            )
        with pytest.raises(PropertyNotFoundError):
            await messaging_service.create_conversation(
                ConversationCreate(participant_ids=[test_guest.id, test_host.id], property_id=uuid.uuid4()),
                test_guest,
            )

    @pytest.mark.asyncio
    async def test_outsiders_are_refused(self, messaging_service: MessagingService, conversation, other_guest):
        with pytest.raises(ForbiddenError):
            await messaging_service.get_messages(conversation.id, other_guest)
        with pytest.raises(ForbiddenError):
            await messaging_service.send_message(conversation.id, "hello?", other_guest)
        with pytest.raises(ForbiddenError):
            await messaging_service.mark_read(conversation.id, other_guest)
        with pytest.raises(NotFoundError):
            await messaging_service.set_archived(conversation.id, other_guest, True)

    @pytest.mark.asyncio
    async def test_archive_hides_until_next_message(
        self, messaging_service: MessagingService, conversation, test_guest, test_host
    ):
        await messaging_service.set_archived(conversation.id, test_guest, True)
        assert await messaging_service.list_conversations(test_guest) == []
        assert len(await messaging_service.list_conversations(test_guest, archived=True)) == 1

        await messaging_service.send_message(conversation.id, "Are you still coming?", test_host)
        inbox = await messaging_service.list_conversations(test_guest)
        assert [row["id"] for row in inbox] == [str(conversation.id)]


class TestMessages:
    """Test sending, paging and read receipts."""

    @pytest.mark.asyncio
    async def test_send_sets_recipient_and_notifies(
        self, messaging_service: MessagingService, db_session, conversation, test_guest, test_host
    ):
        message = await messaging_service.send_message(conversation.id, "What time is check-in?", test_guest)

        assert message.recipient_id == test_host.id
        assert message.is_read is False
        assert await NotificationRepository(db_session).unread_count(test_host.id) == 1

    @pytest.mark.asyncio
    async def test_group_message_has_no_recipient(
        self, messaging_service: MessagingService, test_guest, test_host, other_guest
    ):
        group, _ = await messaging_service.create_conversation(
            ConversationCreate(participant_ids=[test_guest.id, test_host.id, other_guest.id]), test_guest
        )
        message = await messaging_service.send_message(group.id, "Hi both", test_guest)
        assert message.recipient_id is None

    @pytest.mark.asyncio
    async def test_inbox_row_and_read_receipts(
        self, messaging_service: MessagingService, db_session, conversation, test_guest, test_host
    ):
        await messaging_service.send_message(conversation.id, "First", test_guest)
        await messaging_service.send_message(conversation.id, "Second", test_guest)

        inbox = await messaging_service.list_conversations(test_host)
        assert inbox[0]["unread_count"] == 2
        assert inbox[0]["other_participant"]["id"] == str(test_guest.id)
        assert inbox[0]["last_message"]["message"] == "Second"

        assert await messaging_service.mark_read(conversation.id, test_host) == 2
        counts = await ConversationRepository(db_session).unread_counts([conversation.id], test_host.id)
        assert counts == {}

    @pytest.mark.asyncio
    async def test_paging_reports_has_more(self, messaging_service: MessagingService, conversation, test_guest):
        for n in range(3):
            await messaging_service.send_message(conversation.id, f"message {n}", test_guest)

        page, has_more = await messaging_service.get_messages(conversation.id, test_guest, limit=2)
        assert has_more is True
        assert [m.message for m in page] == ["message 1", "message 2"]

        page, has_more = await messaging_service.get_messages(conversation.id, test_guest, limit=10)
        assert has_more is False
        assert len(page) == 3


class TestLiveDelivery:
    """Test room fan-out and the frame protocol."""

    @pytest.mark.asyncio
    async def test_send_emits_to_rooms(
        self, messaging_service: MessagingService, connection_manager: ConnectionManager,
        conversation, test_guest, test_host
    ):
        viewer = FakeWebSocket()
        host_socket = FakeWebSocket()
        connection_manager.join(viewer, conversation_room(conversation.id))
        await connection_manager.connect(host_socket, test_host.id)

        message = await messaging_service.send_message(conversation.id, "Hello", test_guest)

        assert viewer.events() == ["message:new"]
        assert viewer.sent[0]["data"]["id"] == str(message.id)
        assert host_socket.accepted
        assert host_socket.events() == ["conversation:update"]
        assert host_socket.sent[0]["data"]["conversation_id"] == str(conversation.id)

    @pytest.mark.asyncio
    async def test_emit_drops_failed_sockets(self, connection_manager: ConnectionManager):
        room = user_room(uuid.uuid4())
        healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)
        connection_manager.join(healthy, room)
        connection_manager.join(broken, room)
        connection_manager.join(broken, "conv:elsewhere")

        delivered = await connection_manager.emit(room, "ping", {"n": 1})

        assert delivered == 1
        assert healthy.sent == [{"event": "ping", "data": {"n": 1}}]
        assert connection_manager.members(room) == {healthy}
        assert connection_manager.members("conv:elsewhere") == set()

    @pytest.mark.asyncio
    async def test_ping_pong(self, messaging_service, connection_manager, test_guest):
        socket = FakeWebSocket()
        await dispatch_frame(socket, test_guest.id, {"event": "ping"}, connection_manager, messaging_service)
        assert socket.sent == [{"event": "pong", "data": {}}]

    @pytest.mark.asyncio
    async def test_join_and_leave(self, messaging_service, connection_manager, conversation, test_guest):
        socket = FakeWebSocket()
        frame = {"event": "conversation:join", "data": {"conversation_id": str(conversation.id)}}

        await dispatch_frame(socket, test_guest.id, frame, connection_manager, messaging_service)
        assert socket.events() == ["conversation:joined"]
        assert socket in connection_manager.members(conversation_room(conversation.id))

        frame["event"] = "conversation:leave"
        await dispatch_frame(socket, test_guest.id, frame, connection_manager, messaging_service)
        assert connection_manager.members(conversation_room(conversation.id)) == set()

    @pytest.mark.asyncio
    async def test_outsider_cannot_join(self, messaging_service, connection_manager, conversation, other_guest):
        socket = FakeWebSocket()
        frame = {"event": "conversation:join", "data": {"conversation_id": str(conversation.id)}}

        await dispatch_frame(socket, other_guest.id, frame, connection_manager, messaging_service)

        assert socket.events() == ["error"]
        assert connection_manager.members(conversation_room(conversation.id)) == set()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("frame", [
        {"event": "dance"},
        ["not", "an", "object"],
        {"data": {}},
        {"event": "conversation:join", "data": {"conversation_id": "nope"}},
    ])
    async def test_bad_frames_answer_with_error(self, messaging_service, connection_manager, test_guest, frame):
        socket = FakeWebSocket()
        await dispatch_frame(socket, test_guest.id, frame, connection_manager, messaging_service)
        assert socket.events() == ["error"]

    def test_socket_without_token_is_closed(self):
        client = TestClient(app)
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws") as websocket:
                websocket.receive_text()
        assert exc_info.value.code == WS_CLOSE_UNAUTHORIZED


class TestMessagingEndpoints:
    @pytest.mark.asyncio
    async def test_create_returns_201_then_200(self, async_client, test_guest, test_host):
        payload = {"participant_ids": [str(test_guest.id), str(test_host.id)]}

        first = await async_client.post("/api/v1/messages/conversations", json=payload, headers=auth_headers(test_guest))
        second = await async_client.post("/api/v1/messages/conversations", json=payload, headers=auth_headers(test_host))

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]

    @pytest.mark.asyncio
    async def test_send_and_list(self, async_client, conversation, test_guest, test_host):
        url = f"/api/v1/messages/conversations/{conversation.id}/messages"

        sent = await async_client.post(url, json={"message": "See you Friday"}, headers=auth_headers(test_guest))
        assert sent.status_code == 201
        assert sent.json()["recipient_id"] == str(test_host.id)

        listed = await async_client.get(url, headers=auth_headers(test_host))
        assert listed.status_code == 200
        body = listed.json()
        assert body["has_more"] is False
        assert [m["message"] for m in body["messages"]] == ["See you Friday"]

    @pytest.mark.asyncio
    async def test_outsider_gets_403(self, async_client, conversation, other_guest):
        response = await async_client.get(
            f"/api/v1/messages/conversations/{conversation.id}/messages", headers=auth_headers(other_guest)
        )
        assert response.status_code == 403
