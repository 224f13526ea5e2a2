"""Tests for chunked recipient resolution."""

import math

import pytest

from nudge.campaign.resolver import RecipientResolver, SqlRecipientSource, chunked
from nudge.core.exceptions import BackendError
from nudge.models.notification_models import Recipient

from conftest import FakeRecipientSource, seed_mapping


class TestChunked:
    def test_boundaries_keep_every_item_once(self):
        items = list(range(2501))
        chunks = list(chunked(items, 1000))

        assert [len(c) for c in chunks] == [1000, 1000, 501]
        assert [x for c in chunks for x in c] == items

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))


class TestRecipientResolver:
    @pytest.mark.parametrize("count,size", [(0, 1000), (1, 1000), (1000, 1000), (2345, 1000), (7, 3)])
    def test_issues_ceil_n_over_c_queries(self, count, size):
        ids = [str(i) for i in range(count)]
        mapping = {i: [Recipient(lock_id=i, user_id=int(i), fcm_token=f"t{i}")] for i in ids}
        source = FakeRecipientSource(mapping)

        recipients = RecipientResolver(source, chunk_size=size).resolve(ids)

        assert len(source.chunks) == math.ceil(count / size)
        assert [i for chunk in source.chunks for i in chunk] == ids
        assert sorted(r.lock_id for r in recipients) == sorted(ids)

    def test_lock_with_several_users_yields_several_recipients(self):
        source = FakeRecipientSource(
            {
                "1": [
                    Recipient(lock_id="1", user_id=101, fcm_token="a"),
                    Recipient(lock_id="1", user_id=102, fcm_token="b"),
                ]
            }
        )

        recipients = RecipientResolver(source).resolve(["1", "2"])

        assert {r.user_id for r in recipients} == {101, 102}

    def test_chunk_failure_aborts_whole_call(self):
        ids = [str(i) for i in range(5)]
        source = FakeRecipientSource({}, fail_on_call=1)

        with pytest.raises(BackendError) as exc_info:
            RecipientResolver(source, chunk_size=2).resolve(ids)

        assert exc_info.value.details == {"chunk_start": 2, "chunk_size": 2}
        assert len(source.chunks) == 2


class TestSqlRecipientSource:
    def test_null_tokens_are_excluded(self, session):
        seed_mapping(
            session,
            [("1", 101, "token_101"), ("2", 102, None), ("3", 103, "token_103"), ("4", 104, "x")],
        )

        recipients = RecipientResolver(SqlRecipientSource(session), chunk_size=2).resolve(
            ["1", "2", "3"]
        )

        assert sorted((r.lock_id, r.user_id, r.fcm_token) for r in recipients) == [
            ("1", 101, "token_101"),
            ("3", 103, "token_103"),
        ]
