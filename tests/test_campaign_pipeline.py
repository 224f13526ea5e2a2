"""End-to-end campaign runs against fakes and an in-memory database."""

import pytest
from sqlmodel import select

from nudge.campaign.pipeline import CampaignRunner
from nudge.config import Settings
from nudge.core.exceptions import BackendError
from nudge.models.campaign_models import CampaignStatus, NotificationCampaign, NotificationLog
from nudge.models.notification_models import ScanPage

from conftest import FakeGateway, FakeLockSource, FakeRecipientSource, seed_mapping, stale_lock


@pytest.fixture
def config():
    return Settings(
        notification_threshold_days=30,
        batch_size=100,
        recipient_chunk_size=1000,
        click_tracking_base_url="http://test-url.com",
    )


def _campaigns(session):
    return session.exec(select(NotificationCampaign)).all()


class TestCampaignRunner:
    @pytest.mark.asyncio
    async def test_three_stale_locks_one_batch(self, session, config, recording_wait):
        """threshold 30, 3 stale locks, 3 tokens → 1 gateway call, 3 logs, 3 sent."""
        seed_mapping(session, [("1", 101, "token_101"), ("2", 102, "token_102"), ("3", 103, "token_103")])
        lock_source = FakeLockSource([ScanPage(items=[stale_lock("1"), stale_lock("2"), stale_lock("3")])])
        gateway = FakeGateway()

        runner = CampaignRunner.build(
            session, lock_source, gateway, wait_strategy=recording_wait, config=config
        )
        result = await runner.run()

        assert len(gateway.batches) == 1
        assert recording_wait.waits == 0
        logs = session.exec(select(NotificationLog)).all()
        assert len(logs) == 3
        assert {log.campaign_id for log in logs} == {result.campaign_id}

        (campaign,) = _campaigns(session)
        assert campaign.campaign_id == result.campaign_id
        assert campaign.status == CampaignStatus.COMPLETED
        assert (campaign.total_sent, campaign.total_failed) == (3, 0)
        assert gateway.batches[0][0].data["click_tracking_url"] == (
            f"http://test-url.com/track-click/{result.campaign_id}/101"
        )

    @pytest.mark.asyncio
    async def test_no_stale_locks_finalizes_with_zero(self, session, config, recording_wait):
        gateway = FakeGateway()
        recipients = FakeRecipientSource({})

        runner = CampaignRunner.build(
            session,
            FakeLockSource([ScanPage()]),
            gateway,
            recipient_source=recipients,
            wait_strategy=recording_wait,
            config=config,
        )
        result = await runner.run()

        assert gateway.batches == []
        assert recipients.chunks == []
        (campaign,) = _campaigns(session)
        assert campaign.status == CampaignStatus.COMPLETED
        assert (campaign.total_sent, campaign.total_failed) == (0, 0)
        assert result.stale_locks == 0

    @pytest.mark.asyncio
    async def test_no_tokens_finalizes_with_zero(self, session, config, recording_wait):
        seed_mapping(session, [("1", 101, None)])
        gateway = FakeGateway()

        runner = CampaignRunner.build(
            session,
            FakeLockSource([ScanPage(items=[stale_lock("1")])]),
            gateway,
            wait_strategy=recording_wait,
            config=config,
        )
        result = await runner.run()

        assert gateway.batches == []
        assert result.recipients == 0
        (campaign,) = _campaigns(session)
        assert (campaign.status, campaign.total_sent) == (CampaignStatus.COMPLETED, 0)

    @pytest.mark.asyncio
    async def test_scan_failure_finalizes_zero_and_reraises(self, session, config, recording_wait):
        lock_source = FakeLockSource([ScanPage()], fail_on_page=0)

        runner = CampaignRunner.build(
            session, lock_source, FakeGateway(), wait_strategy=recording_wait, config=config
        )
        with pytest.raises(BackendError):
            await runner.run()

        (campaign,) = _campaigns(session)
        assert campaign.status == CampaignStatus.COMPLETED
        assert (campaign.total_sent, campaign.total_failed) == (0, 0)

    @pytest.mark.asyncio
    async def test_resolver_failure_finalizes_zero_and_reraises(self, session, config, recording_wait):
        runner = CampaignRunner.build(
            session,
            FakeLockSource([ScanPage(items=[stale_lock("1")])]),
            FakeGateway(),
            recipient_source=FakeRecipientSource({}, fail_on_call=0),
            wait_strategy=recording_wait,
            config=config,
        )
        with pytest.raises(BackendError):
            await runner.run()

        (campaign,) = _campaigns(session)
        assert (campaign.status, campaign.total_sent, campaign.total_failed) == (
            CampaignStatus.COMPLETED,
            0,
            0,
        )

    @pytest.mark.asyncio
    async def test_partial_failures_recorded_in_totals(self, session, config, recording_wait):
        config.batch_size = 2
        seed_mapping(session, [(str(i), 100 + i, f"token_{100 + i}") for i in range(1, 6)])
        locks = [stale_lock(str(i)) for i in range(1, 6)]
        gateway = FakeGateway(outcome=lambda m: m.token != "token_103", raise_on_batch={2})

        runner = CampaignRunner.build(
            session, FakeLockSource([ScanPage(items=locks)]), gateway,
            wait_strategy=recording_wait, config=config,
        )
        result = await runner.run()

        (campaign,) = _campaigns(session)
        assert campaign.total_sent + campaign.total_failed == 5
        assert (result.total_sent, result.total_failed) == (campaign.total_sent, campaign.total_failed)
        assert recording_wait.waits == 2
