import asyncio
import json

import pytest

from mediapress.errors import EngineError, ValidationError
from mediapress.models.job import JobStatus, MediaKind
from mediapress.services.dispatcher import Dispatcher, DispatchState
from mediapress.services.processor import JobProcessor
from mediapress.services.queue import QueueService
from mediapress.services.signature import SignatureVerifier

from doubles import FakeBroker, FakeEngine, MemoryStorage, image_payload, new_redis

PROCESS_URL = "http://testserver/api/jobs/process"


def run(coro):
    return asyncio.run(coro)


def trigger(job_id: str) -> bytes:
    return json.dumps({"jobId": job_id}).encode()


async def setup(signing_keys=(), engine=None):
    queue = QueueService(new_redis(), FakeBroker())
    engine = engine or FakeEngine()
    processor = JobProcessor(queue, engine, MemoryStorage())
    dispatcher = Dispatcher(queue, processor, SignatureVerifier(list(signing_keys)), url=PROCESS_URL)
    job_id = (await queue.enqueue(MediaKind.IMAGE, image_payload())).job_id
    return dispatcher, queue, engine, job_id


class TestDelivery:

    def test_trigger_processes_job(self):
        async def scenario():
            dispatcher, queue, _, job_id = await setup()
            outcome = await dispatcher.dispatch(trigger(job_id), None)
            return outcome, await queue.get_job(job_id)

        outcome, job = run(scenario())

        assert outcome.state == DispatchState.DELEGATED
        assert outcome.http_status == 200
        assert outcome.status == JobStatus.COMPLETED
        assert job.status == JobStatus.COMPLETED

    def test_duplicate_trigger_is_a_no_op(self):
        async def scenario():
            dispatcher, queue, engine, job_id = await setup()
            await dispatcher.dispatch(trigger(job_id), None)
            before = await queue.get_job(job_id)
            second = await dispatcher.dispatch(trigger(job_id), None)
            return second, before, await queue.get_job(job_id), engine

        second, before, after, engine = run(scenario())

        assert second.skipped
        assert second.http_status == 200
        assert second.detail == "Job already processed"
        assert engine.calls == 1
        assert after == before

    def test_unknown_job_is_acknowledged(self):
        async def scenario():
            dispatcher, _, engine, _ = await setup()
            return await dispatcher.dispatch(trigger("missing"), None), engine

        outcome, engine = run(scenario())

        assert outcome.skipped
        assert outcome.http_status == 200
        assert engine.calls == 0

    def test_failed_processing_asks_for_redelivery(self):
        async def scenario():
            dispatcher, _, _, job_id = await setup(engine=FakeEngine(error=EngineError("boom")))
            return await dispatcher.dispatch(trigger(job_id), None)

        outcome = run(scenario())

        assert outcome.state == DispatchState.DELEGATED
        assert outcome.status == JobStatus.FAILED
        assert outcome.http_status == 500

    def test_concurrent_deliveries_run_the_pipeline_once(self):
        async def scenario():
            dispatcher, queue, engine, job_id = await setup(engine=FakeEngine(delay=0.2))
            outcomes = await asyncio.gather(
                dispatcher.dispatch(trigger(job_id), None),
                dispatcher.dispatch(trigger(job_id), None),
            )
            return outcomes, await queue.get_job(job_id), engine

        outcomes, job, engine = run(scenario())

        assert engine.calls == 1
        assert sorted(o.skipped for o in outcomes) == [False, True]
        assert all(o.http_status == 200 for o in outcomes)
        assert job.status == JobStatus.COMPLETED
        assert job.attempts == 1

    @pytest.mark.parametrize("body", [b"not json", b"{}", b'{"jobId": 42}'])
    def test_malformed_body(self, body):
        async def scenario():
            dispatcher, _, _, _ = await setup()
            with pytest.raises(ValidationError):
                await dispatcher.dispatch(body, None)

        run(scenario())


class TestSignatures:

    @pytest.mark.parametrize("signature", [None, "", "not-a-jwt"])
    def test_rejected_signature_does_not_touch_the_job(self, signature):
        async def scenario():
            dispatcher, queue, engine, job_id = await setup(signing_keys=["current-key"])
            outcome = await dispatcher.dispatch(trigger(job_id), signature)
            return outcome, await queue.get_job(job_id), engine

        outcome, job, engine = run(scenario())

        assert outcome.state == DispatchState.REJECTED
        assert outcome.http_status == 401
        assert job.status == JobStatus.QUEUED
        assert job.progress == 0
        assert engine.calls == 0

    def test_signature_for_another_body_is_rejected(self):
        async def scenario():
            dispatcher, queue, _, job_id = await setup(signing_keys=["current-key"])
            signature = SignatureVerifier(["current-key"]).sign(trigger("other-job"), PROCESS_URL)
            outcome = await dispatcher.dispatch(trigger(job_id), signature)
            return outcome, await queue.get_job(job_id)

        outcome, job = run(scenario())

        assert outcome.state == DispatchState.REJECTED
        assert job.status == JobStatus.QUEUED

    def test_signature_for_another_endpoint_is_rejected(self):
        async def scenario():
            dispatcher, queue, _, job_id = await setup(signing_keys=["current-key"])
            body = trigger(job_id)
            signature = SignatureVerifier(["current-key"]).sign(body, "http://elsewhere/api/jobs/process")
            outcome = await dispatcher.dispatch(body, signature)
            return outcome, await queue.get_job(job_id)

        outcome, job = run(scenario())

        assert outcome.state == DispatchState.REJECTED
        assert "subject" in outcome.detail
        assert job.status == JobStatus.QUEUED

    def test_next_key_is_accepted_during_rotation(self):
        async def scenario():
            dispatcher, _, _, job_id = await setup(signing_keys=["current-key", "next-key"])
            body = trigger(job_id)
            signature = SignatureVerifier(["next-key"]).sign(body, PROCESS_URL)
            return await dispatcher.dispatch(body, signature)

        outcome = run(scenario())

        assert outcome.state == DispatchState.DELEGATED
        assert outcome.status == JobStatus.COMPLETED
