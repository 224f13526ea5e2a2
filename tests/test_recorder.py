"""Tests for the campaign lifecycle record."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from nudge.campaign.recorder import CampaignRecorder
from nudge.core.exceptions import CampaignStateError
from nudge.models.campaign_models import CampaignStatus, NotificationCampaign


class TestCampaignStatus:
    def test_only_running_to_completed_is_legal(self):
        assert CampaignStatus.RUNNING.can_transition_to(CampaignStatus.COMPLETED)
        assert not CampaignStatus.COMPLETED.can_transition_to(CampaignStatus.RUNNING)
        assert not CampaignStatus.COMPLETED.can_transition_to(CampaignStatus.COMPLETED)
        assert not CampaignStatus.RUNNING.can_transition_to(CampaignStatus.RUNNING)


class TestCampaignRecorder:
    def test_start_inserts_running_campaign(self, session):
        recorder = CampaignRecorder(session)

        campaign_id = recorder.start(30)

        row = session.get(NotificationCampaign, campaign_id)
        assert row.status == CampaignStatus.RUNNING
        assert row.threshold_days == 30
        assert row.campaign_type == "battery_reminder"
        assert row.completed_at is None

    def test_ids_are_unique_per_run(self, session):
        ids = {CampaignRecorder(session).start(30) for _ in range(20)}
        assert len(ids) == 20

    def test_start_twice_is_rejected(self, session):
        recorder = CampaignRecorder(session)
        recorder.start(30)

        with pytest.raises(CampaignStateError):
            recorder.start(30)

    def test_finalize_writes_counts_and_completes(self, session):
        recorder = CampaignRecorder(session)
        campaign_id = recorder.start(30)

        assert recorder.finalize(97, 3) is True

        row = session.get(NotificationCampaign, campaign_id)
        assert row.status == CampaignStatus.COMPLETED
        assert (row.total_sent, row.total_failed) == (97, 3)
        assert row.completed_at is not None

    def test_second_finalize_is_an_illegal_transition(self, session):
        recorder = CampaignRecorder(session)
        recorder.start(30)
        recorder.finalize(1, 0)

        with pytest.raises(CampaignStateError):
            recorder.finalize(2, 0)

    def test_finalize_before_start(self, session):
        with pytest.raises(CampaignStateError):
            CampaignRecorder(session).finalize(0, 0)

    def test_finalize_store_error_is_swallowed(self, session):
        recorder = CampaignRecorder(session)
        recorder.start(30)

        with patch.object(
            session, "commit", side_effect=OperationalError("UPDATE", {}, Exception("gone"))
        ):
            assert recorder.finalize(5, 0) is False
