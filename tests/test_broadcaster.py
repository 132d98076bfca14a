import asyncio

from app.services.broadcaster import Broadcaster, Event, EventKind, Topic


class FakeWebSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.messages = []

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.messages.append(message)


def event(subject="Leak") -> Event:
    return Event(EventKind.REQUEST_CREATED, {"id": 1, "subject": subject})


def test_topic_names():
    assert str(Topic.admin()) == "admin"
    assert str(Topic.for_block("Malema", "2")) == "block:Malema:2"
    assert Topic.for_block("Malema", "2") == Topic.for_block("Malema", "2")
    assert Topic.for_block("Malema", "2") != Topic.for_block("Malema", "3")


def test_publish_reaches_only_members():
    broadcaster = Broadcaster()
    admin_ws, block_ws, idle_ws = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()

    admin_id = broadcaster.connect(admin_ws)
    block_id = broadcaster.connect(block_ws)
    broadcaster.connect(idle_ws)
    broadcaster.join(admin_id, Topic.admin())
    broadcaster.join(block_id, Topic.for_block("Malema", "2"))

    delivered = asyncio.run(broadcaster.publish(Topic.for_block("Malema", "2"), event()))

    assert delivered == 1
    assert block_ws.messages == [{"event": "new-request", "data": {"id": 1, "subject": "Leak"}}]
    assert admin_ws.messages == []
    assert idle_ws.messages == []


def test_fan_out_delivers_once_per_connection():
    broadcaster = Broadcaster()
    ws = FakeWebSocket()
    cid = broadcaster.connect(ws)
    broadcaster.join(cid, Topic.admin())
    broadcaster.join(cid, Topic.for_block("Malema", "2"))

    topics = [Topic.admin(), Topic.for_block("Malema", "2")]
    delivered = asyncio.run(broadcaster.fan_out(topics, event()))

    assert delivered == 1
    assert len(ws.messages) == 1


def test_failed_send_drops_connection_without_raising():
    broadcaster = Broadcaster()
    good, bad = FakeWebSocket(), FakeWebSocket(fail=True)
    good_id = broadcaster.connect(good)
    bad_id = broadcaster.connect(bad)
    for cid in (good_id, bad_id):
        broadcaster.join(cid, Topic.admin())

    delivered = asyncio.run(broadcaster.publish(Topic.admin(), event()))

    assert delivered == 1
    assert broadcaster.connection_count == 1
    assert broadcaster.topics_of(bad_id) == set()


def test_disconnect_forgets_memberships():
    broadcaster = Broadcaster()
    cid = broadcaster.connect(FakeWebSocket())
    broadcaster.join(cid, Topic.admin())

    broadcaster.disconnect(cid)
    broadcaster.disconnect(cid)

    assert broadcaster.connection_count == 0
    assert broadcaster.subscribers([Topic.admin()]) == []


def test_no_history_for_late_joiners():
    broadcaster = Broadcaster()
    asyncio.run(broadcaster.publish(Topic.admin(), event("before")))

    ws = FakeWebSocket()
    cid = broadcaster.connect(ws)
    broadcaster.join(cid, Topic.admin())
    asyncio.run(broadcaster.publish(Topic.admin(), event("after")))

    assert [m["data"]["subject"] for m in ws.messages] == ["after"]


def test_leave_stops_delivery():
    broadcaster = Broadcaster()
    ws = FakeWebSocket()
    cid = broadcaster.connect(ws)
    broadcaster.join(cid, Topic.admin())
    broadcaster.leave(cid, Topic.admin())

    assert asyncio.run(broadcaster.publish(Topic.admin(), event())) == 0
    assert ws.messages == []
