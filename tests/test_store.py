"""Tests for the durable queue stores and their failure policies."""

import json

import pytest
from fakeredis import aioredis

from formsync.errors import StorageError
from formsync.models import QueueJob, QueuedAnswer
from formsync.queue import FileQueueStore, MemoryQueueStore, PersistentRetryQueue, RedisQueueStore


def make_job(job_id: str = "job-1", attempts: int = 0) -> QueueJob:
    return QueueJob(
        id=job_id,
        resource_id="product-1",
        payload=[QueuedAnswer(key="q1", value="test"), QueuedAnswer(key="q2", value=["a", "b"])],
        attempts=attempts,
    )


class TestMemoryStore:

    @pytest.mark.asyncio
    async def test_missing_record_is_empty(self):
        assert await MemoryQueueStore().load() == []

    @pytest.mark.asyncio
    async def test_save_and_load_preserve_order(self):
        store = MemoryQueueStore()
        jobs = [make_job("a"), make_job("b", attempts=2), make_job("c")]

        assert await store.save(jobs) is True

        assert [job.id for job in await store.load()] == ["a", "b", "c"]


class TestFileStore:

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path):
        store = FileQueueStore(str(tmp_path / "nested" / "queue.json"))
        await store.save([make_job()])

        [job] = await store.load()

        assert job == make_job()
        stored = json.loads((tmp_path / "nested" / "queue.json").read_text())
        assert stored[0]["payload"][1] == {"key": "q2", "value": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_write_leaves_no_temp_files(self, tmp_path):
        store = FileQueueStore(str(tmp_path / "queue.json"))
        await store.save([make_job("a")])
        await store.save([make_job("b")])

        assert [p.name for p in tmp_path.iterdir()] == ["queue.json"]
        assert [job.id for job in await store.load()] == ["b"]

    @pytest.mark.asyncio
    async def test_corrupt_record_reads_as_empty(self, tmp_path):
        path = tmp_path / "queue.json"
        path.write_text("{not json")

        assert await FileQueueStore(str(path)).load() == []

    @pytest.mark.asyncio
    async def test_corrupt_record_raises_when_fail_loud(self, tmp_path):
        path = tmp_path / "queue.json"
        path.write_text('[{"id": 1}]')

        with pytest.raises(StorageError):
            await FileQueueStore(str(path), fail_open=False).load()

    @pytest.mark.asyncio
    async def test_write_failure_is_swallowed(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = FileQueueStore(str(blocker / "queue.json"))

        assert await store.save([make_job()]) is False

    @pytest.mark.asyncio
    async def test_write_failure_raises_when_fail_loud(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = FileQueueStore(str(blocker / "queue.json"), fail_open=False)

        with pytest.raises(StorageError):
            await store.save([make_job()])

    @pytest.mark.asyncio
    async def test_flush_does_not_overwrite_unreadable_record(self, tmp_path, transport, connectivity, clock):
        path = tmp_path / "queue.json"
        path.write_text("{not json")
        queue = PersistentRetryQueue(FileQueueStore(str(path)), transport, connectivity, clock=clock)

        await queue.flush()

        assert path.read_text() == "{not json"
        assert transport.submit_calls == []


class TestRedisStore:

    @pytest.fixture
    def client(self):
        return aioredis.FakeRedis(decode_responses=True)

    @pytest.mark.asyncio
    async def test_round_trip(self, client):
        store = RedisQueueStore(client=client, key="autosave_queue")
        await store.save([make_job("a"), make_job("b")])

        assert [job.id for job in await store.load()] == ["a", "b"]
        raw = await client.get("autosave_queue")
        assert [item["id"] for item in json.loads(raw)] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_missing_key_is_empty(self, client):
        assert await RedisQueueStore(client=client).load() == []

    @pytest.mark.asyncio
    async def test_garbage_value_reads_as_empty(self, client):
        await client.set("autosave_queue", "garbage")

        assert await RedisQueueStore(client=client).load() == []

    @pytest.mark.asyncio
    async def test_check_reports_ok(self, client):
        status = await RedisQueueStore(client=client).check()

        assert status["status"] == "ok"
        assert status["backend"] == "RedisQueueStore"


class TestUnreadableRecord:

    @pytest.mark.asyncio
    async def test_load_for_update_distinguishes_missing_from_unreadable(self, tmp_path):
        path = tmp_path / "queue.json"
        store = FileQueueStore(str(path))

        assert await store.load_for_update() == []

        path.write_text("{not json")
        assert await store.load_for_update() is None
        assert await store.load() == []

    @pytest.mark.asyncio
    async def test_enqueue_does_not_overwrite_unreadable_record(self, tmp_path, transport, connectivity, clock):
        path = tmp_path / "queue.json"
        path.write_text('[{"id": "job-1", "resource_id": "product-1", "attempts": -1}]')
        queue = PersistentRetryQueue(FileQueueStore(str(path)), transport, connectivity, clock=clock)

        job = await queue.enqueue("product-2", {"q1": "a"})

        assert job.resource_id == "product-2"
        assert path.read_text() == '[{"id": "job-1", "resource_id": "product-1", "attempts": -1}]'

    @pytest.mark.asyncio
    async def test_enqueue_raises_on_unreadable_record_when_fail_loud(self, tmp_path, transport, connectivity, clock):
        path = tmp_path / "queue.json"
        path.write_text("{not json")
        queue = PersistentRetryQueue(FileQueueStore(str(path), fail_open=False), transport, connectivity, clock=clock)

        with pytest.raises(StorageError):
            await queue.enqueue("product-2", {"q1": "a"})

        assert path.read_text() == "{not json"
