"""Morning queue / digest batch storage tests."""

from steward.models.notification import Notification, Priority
from steward.notifications.queues import JsonlQueue, MemoryQueue


def _note(id_: str) -> Notification:
    return Notification(type="pipeline_alert", id=id_, content=f"Deal {id_} slipped")


class TestMemoryQueue:
    async def test_put_and_drain(self):
        queue = MemoryQueue()
        await queue.put(_note("a"))
        await queue.put(_note("b"))
        assert [n.id for n in queue.drain()] == ["a", "b"]
        assert queue.drain() == []


class TestJsonlQueue:
    async def test_round_trip(self, tmp_path):
        queue = JsonlQueue(str(tmp_path / "nested" / "digest.jsonl"), label="Digest batch")
        await queue.put(_note("a"))
        await queue.put(Notification(type="system", id="b", priority=Priority.CRITICAL, content="x"))
        items = await queue.read_all()
        assert [n.key for n in items] == [("pipeline_alert", "a"), ("system", "b")]
        assert items[1].priority is Priority.CRITICAL

    async def test_one_line_per_notification(self, tmp_path):
        path = tmp_path / "morning.jsonl"
        queue = JsonlQueue(str(path))
        await queue.put(_note("a"))
        await queue.put(_note("b"))
        assert len(path.read_text().strip().splitlines()) == 2

    async def test_read_missing_file(self, tmp_path):
        assert await JsonlQueue(str(tmp_path / "none.jsonl")).read_all() == []
