import asyncio

from app.services.websocket_manager import WebSocketManager, websocket_manager
from app.utils.security import create_access_token


def test_authenticate_message_then_receive_assignment(client, headers, manager, employee):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "authenticate", "token": create_access_token(employee.id)})
        assert ws.receive_json() == {"type": "authenticated", "success": True}

        response = client.post("/tasks", json={"title": "Fix printer", "employeeId": employee.id}, headers=headers(manager))
        assert response.status_code == 201

        message = ws.receive_json()
        assert message["type"] == "notification"
        assert message["data"]["type"] == "task_assigned"
        assert message["data"]["task_id"] == response.json()["id"]
        assert message["data"]["user_id"] == employee.id


def test_query_token_subscribes_immediately(client, manager):
    with client.websocket_connect(f"/ws?token={create_access_token(manager.id)}") as ws:
        assert ws.receive_json() == {"type": "authenticated", "success": True}
        assert websocket_manager.get_connection_count(manager.id) == 1

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}

    assert websocket_manager.get_connection_count(manager.id) == 0


def test_bad_token_is_not_subscribed(client, employee):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "authenticate", "token": "forged"})
        assert ws.receive_json() == {"type": "authenticated", "success": False}
        assert websocket_manager.get_connection_count(employee.id) == 0


def test_publish_without_subscriber_is_a_no_op():
    manager = WebSocketManager()

    manager.publish(42, "notification", {"id": 1})

    assert manager.get_total_connections() == 0


def test_publish_without_loop_does_not_raise():
    class FakeSocket:
        async def send_text(self, text):
            raise AssertionError("should not be sent")

    manager = WebSocketManager()
    manager.subscribe(FakeSocket(), 7)

    manager.publish(7, "notification", {"id": 1})

    assert manager.get_connection_count(7) == 1


def test_failed_socket_is_dropped():
    class BrokenSocket:
        async def send_text(self, text):
            raise ConnectionError("gone")

    manager = WebSocketManager()
    manager.subscribe(BrokenSocket(), 7)

    asyncio.run(manager.send_to_user(7, {"type": "notification"}))

    assert manager.get_connection_count(7) == 0
