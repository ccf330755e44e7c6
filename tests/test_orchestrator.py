import asyncio

import pytest

from conftest import FakeProvider, video_doc
from videobg.errors import PollError, ProcessingFailedError
from videobg.jobs.models import JobSnapshot, JobStatus, NotificationMode, OutputFormat, ProviderVideo, UpdateSource
from videobg.jobs.notifications import NotificationRouter
from videobg.jobs.orchestrator import JobOrchestrator
from videobg.jobs.poller import StatusPoller
from videobg.jobs.push import PushReceiver
from videobg.jobs.scheduler import VirtualClock
from videobg.jobs.submitter import JobSubmitter, SubmissionRequest
from videobg.storage.job_records import JobRecordStore


def build(provider: FakeProvider, callback_base=None, wait_timeout=5.0):
    store = JobRecordStore()
    orchestrator = JobOrchestrator(
        provider,
        JobSubmitter(provider, NotificationRouter(callback_base)),
        StatusPoller(provider, VirtualClock(), interval=3.0),
        store,
        wait_timeout=wait_timeout,
    )
    return orchestrator, PushReceiver(store), store


REQUEST = SubmissionRequest(output_format=OutputFormat.GIF, video_url="https://example.com/v.mp4")


def test_pull_mode_returns_pending_job_for_client_polling(provider: FakeProvider) -> None:
    orchestrator, _, store = build(provider)

    outcome = asyncio.run(orchestrator.submit(REQUEST))

    assert not outcome.finished
    assert outcome.job.notification_mode == NotificationMode.PULL
    assert outcome.status == JobStatus.QUEUED
    assert provider.status_calls == []
    record = store.get("vid-1")
    assert record.status == JobStatus.QUEUED
    assert record.source == UpdateSource.SUBMISSION
    assert record.notification_mode == NotificationMode.PULL


def test_pull_mode_server_side_wait_polls_to_completion(provider: FakeProvider) -> None:
    provider.script("vid-1", "processing", ("done", "https://cdn.example/out.gif"))
    orchestrator, _, store = build(provider)

    outcome = asyncio.run(orchestrator.submit(REQUEST, wait=True))

    assert outcome.finished
    assert outcome.redirect_url == "https://cdn.example/out.gif"
    assert len(provider.status_calls) == 2
    assert store.get("vid-1").status == JobStatus.DONE
    assert store.get("vid-1").source == UpdateSource.POLL


def test_pull_mode_wait_surfaces_processing_failure(provider: FakeProvider) -> None:
    provider.script("vid-1", "processing", "failed")
    orchestrator, _, store = build(provider)

    with pytest.raises(ProcessingFailedError):
        asyncio.run(orchestrator.submit(REQUEST, wait=True))

    assert store.get("vid-1").status == JobStatus.FAILED


def test_pull_mode_wait_times_out_to_pending(provider: FakeProvider) -> None:
    provider.script("vid-1", "processing")
    orchestrator, _, store = build(provider, wait_timeout=0.05)

    outcome = asyncio.run(orchestrator.submit(REQUEST, wait=True))

    assert not outcome.finished
    assert outcome.status == JobStatus.PROCESSING
    assert store.get("vid-1").status == JobStatus.PROCESSING


def test_push_mode_waits_for_callback(provider: FakeProvider) -> None:
    orchestrator, receiver, store = build(provider, callback_base="https://hooks.example")

    async def run():
        submission = asyncio.create_task(orchestrator.submit(REQUEST))
        while "vid-1" not in store:
            await asyncio.sleep(0)
        await receiver.receive(video_doc("vid-1", "processing"))
        await receiver.receive(video_doc("vid-1", "done", "https://cdn.example/pushed.gif"))
        return await submission

    outcome = asyncio.run(run())

    assert outcome.finished
    assert outcome.redirect_url == "https://cdn.example/pushed.gif"
    assert provider.status_calls == []
    assert store.get("vid-1").source == UpdateSource.PUSH


def test_push_mode_timeout_falls_back_to_pending(provider: FakeProvider) -> None:
    orchestrator, _, _ = build(provider, callback_base="https://hooks.example", wait_timeout=0.01)

    outcome = asyncio.run(orchestrator.submit(REQUEST))

    assert not outcome.finished
    assert outcome.job.notification_mode == NotificationMode.PUSH


def test_push_mode_failed_callback_raises(provider: FakeProvider) -> None:
    orchestrator, receiver, store = build(provider, callback_base="https://hooks.example")

    async def run():
        submission = asyncio.create_task(orchestrator.submit(REQUEST))
        while "vid-1" not in store:
            await asyncio.sleep(0)
        await receiver.receive(video_doc("vid-1", "failed"))
        return await submission

    with pytest.raises(ProcessingFailedError):
        asyncio.run(run())


def test_notification_mode_is_fixed_at_submission(provider: FakeProvider) -> None:
    orchestrator, _, store = build(provider, callback_base="https://hooks.example")

    outcome = asyncio.run(orchestrator.submit(REQUEST, wait=False))
    orchestrator.update_callback_base(None)

    assert orchestrator.notification_mode == NotificationMode.PULL
    assert outcome.job.notification_mode == NotificationMode.PUSH
    assert store.get("vid-1").notification_mode == NotificationMode.PUSH


def test_push_and_poll_converge_on_one_record(provider: FakeProvider) -> None:
    provider.script("vid-1", "processing")
    orchestrator, receiver, store = build(provider, callback_base="https://hooks.example")

    async def run():
        await orchestrator.submit(REQUEST, wait=False)
        await receiver.receive(video_doc("vid-1", "done", "https://cdn.example/out.gif"))
        # a slower status check still reports processing
        return await orchestrator.check_status("vid-1")

    record = asyncio.run(run())

    assert record.status == JobStatus.DONE
    assert len(store) == 1


def test_check_status_propagates_poll_error(provider: FakeProvider) -> None:
    orchestrator, _, _ = build(provider)

    with pytest.raises(PollError):
        asyncio.run(orchestrator.check_status("missing"))


def test_client_record_upsert(provider: FakeProvider) -> None:
    orchestrator, _, store = build(provider)

    record = asyncio.run(orchestrator.record(JobSnapshot(
        id="client-1", status=JobStatus.DONE, result_url="https://cdn/c.mp4", source=UpdateSource.CLIENT,
    )))

    assert record.source == UpdateSource.CLIENT
    assert store.get("client-1").status == JobStatus.DONE


def test_provider_done_at_creation_redirects_immediately() -> None:
    provider = FakeProvider()

    async def create_done(request):
        provider.create_calls.append(request)
        return ProviderVideo.model_validate(video_doc("vid-1", "done", "https://cdn/fast.gif")).data

    provider.create_video = create_done
    orchestrator, _, _ = build(provider)

    outcome = asyncio.run(orchestrator.submit(REQUEST))

    assert outcome.redirect_url == "https://cdn/fast.gif"


def test_callback_during_creation_is_not_lost() -> None:
    provider = FakeProvider()
    orchestrator, receiver, store = build(provider, callback_base="https://hooks.example", wait_timeout=0.2)
    original_create = provider.create_video

    async def create_then_callback(request):
        video = await original_create(request)
        await receiver.receive(video_doc("vid-1", "done", "https://cdn.example/early.gif"))
        return video

    provider.create_video = create_then_callback

    outcome = asyncio.run(orchestrator.submit(REQUEST))

    assert outcome.finished
    assert outcome.redirect_url == "https://cdn.example/early.gif"
    record = store.get("vid-1")
    assert record.status == JobStatus.DONE
    assert record.notification_mode == NotificationMode.PUSH
    assert record.output_format == OutputFormat.GIF
