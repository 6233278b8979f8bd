"""Tests for duplicate grouping and canonical selection (no database)."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from hotelsite.db.services.dedup_service import (
    DedupReport,
    GroupOutcome,
    GroupStatus,
    MediaRecord,
    build_hash_index,
    plan_duplicates,
    select_canonical,
)

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _record(n: int, url: str, content_hash="h1", byte_size=100, age=None, protected=False):
    return MediaRecord(
        id=UUID(int=n),
        url=url,
        content_hash=content_hash,
        byte_size=byte_size,
        created_at=T0 + timedelta(minutes=n if age is None else age),
        is_protected=protected,
    )


class TestBuildHashIndex:
    def test_groups_by_hash_and_size(self):
        records = [
            _record(1, "/a.jpg"),
            _record(2, "/b.jpg"),
            _record(3, "/c.jpg", byte_size=999),
            _record(4, "/d.jpg", content_hash="h2"),
        ]
        index = build_hash_index(records)

        assert list(index) == [("h1", 100)]
        assert [r.url for r in index[("h1", 100)]] == ["/a.jpg", "/b.jpg"]

    def test_records_without_hash_never_grouped(self):
        records = [
            _record(1, "/a.jpg", content_hash=None),
            _record(2, "/b.jpg", content_hash=None),
            _record(3, "/c.jpg", content_hash=""),
        ]
        assert build_hash_index(records) == {}

    def test_members_ordered_oldest_first(self):
        records = [_record(1, "/new.jpg", age=30), _record(2, "/old.jpg", age=5)]
        index = build_hash_index(records)
        assert [r.url for r in index[("h1", 100)]] == ["/old.jpg", "/new.jpg"]


class TestSelectCanonical:
    def test_oldest_wins(self):
        group = select_canonical(
            ("h1", 100), [_record(3, "/c.jpg"), _record(1, "/a.jpg"), _record(2, "/b.jpg")]
        )
        assert group.canonical.url == "/a.jpg"
        assert [r.url for r in group.to_delete] == ["/b.jpg", "/c.jpg"]
        assert group.retained == []

    def test_tie_broken_by_id(self):
        members = [_record(9, "/z.jpg", age=0), _record(2, "/y.jpg", age=0)]
        group = select_canonical(("h1", 100), members)
        assert group.canonical.id == UUID(int=2)

    def test_same_result_regardless_of_input_order(self):
        members = [_record(n, f"/{n}.jpg", age=0) for n in range(1, 6)]
        first = select_canonical(("h1", 100), members)
        second = select_canonical(("h1", 100), list(reversed(members)))
        assert first.canonical == second.canonical
        assert first.to_delete == second.to_delete

    def test_protected_oldest_is_canonical(self):
        group = select_canonical(
            ("h1", 100), [_record(1, "/a.jpg", protected=True), _record(2, "/b.jpg")]
        )
        assert group.canonical.url == "/a.jpg"
        assert [r.url for r in group.to_delete] == ["/b.jpg"]

    def test_protected_newer_member_becomes_canonical(self):
        group = select_canonical(
            ("h1", 100), [_record(1, "/a.jpg"), _record(2, "/b.jpg", protected=True)]
        )
        assert group.canonical.url == "/b.jpg"
        assert [r.url for r in group.to_delete] == ["/a.jpg"]
        assert group.replacements == {"/a.jpg": "/b.jpg"}

    def test_extra_protected_members_are_retained(self):
        group = select_canonical(
            ("h1", 100),
            [
                _record(1, "/a.jpg", protected=True),
                _record(2, "/b.jpg", protected=True),
                _record(3, "/c.jpg"),
            ],
        )
        assert group.canonical.url == "/a.jpg"
        assert [r.url for r in group.retained] == ["/b.jpg"]
        assert [r.url for r in group.to_delete] == ["/c.jpg"]
        assert not any(r.is_protected for r in group.to_delete)

    def test_empty_group_rejected(self):
        with pytest.raises(ValueError):
            select_canonical(("h1", 100), [])


class TestDuplicateGroup:
    def test_replacements_skip_canonical_url(self):
        group = select_canonical(
            ("h1", 100), [_record(1, "/a.jpg"), _record(2, "/a.jpg"), _record(3, "/b.jpg")]
        )
        assert group.replacements == {"/b.jpg": "/a.jpg"}

    def test_reclaimable_bytes(self):
        group = select_canonical(
            ("h1", 100), [_record(1, "/a.jpg"), _record(2, "/b.jpg"), _record(3, "/c.jpg")]
        )
        assert group.reclaimable_bytes == 200

    def test_members_include_everyone(self):
        group = select_canonical(
            ("h1", 100), [_record(2, "/b.jpg", protected=True), _record(1, "/a.jpg")]
        )
        assert [r.url for r in group.members] == ["/a.jpg", "/b.jpg"]


class TestPlanDuplicates:
    def test_groups_ordered_by_canonical_age(self):
        records = [
            _record(1, "/late-1.jpg", content_hash="late", age=50),
            _record(2, "/late-2.jpg", content_hash="late", age=51),
            _record(3, "/early-1.jpg", content_hash="early", age=1),
            _record(4, "/early-2.jpg", content_hash="early", age=2),
        ]
        groups = plan_duplicates(records)
        assert [g.content_hash for g in groups] == ["early", "late"]

    def test_all_protected_group_is_dropped(self):
        records = [_record(1, "/a.jpg", protected=True), _record(2, "/b.jpg", protected=True)]
        assert plan_duplicates(records) == []

    def test_no_duplicates(self):
        assert plan_duplicates([_record(1, "/a.jpg")]) == []


class TestDedupReport:
    def _outcome(self, content_hash, status, deleted=1, size=100):
        return GroupOutcome(
            content_hash=content_hash,
            canonical_id=UUID(int=1),
            canonical_url="/a.jpg",
            status=status,
            deleted_ids=[UUID(int=n + 10) for n in range(deleted)] if status is GroupStatus.DONE else [],
            bytes_reclaimed=size * deleted if status is GroupStatus.DONE else 0,
        )

    def test_totals_count_only_successful_groups(self):
        report = DedupReport(groups_found=2)
        report.record(self._outcome("h1", GroupStatus.DONE, deleted=2))
        report.record(self._outcome("h2", GroupStatus.VERIFY_FAILED))

        assert report.groups_merged == 1
        assert report.duplicates_removed == 2
        assert report.bytes_reclaimed == 200
        assert report.failed_groups == ["h2"]
        assert "1 groups failed" in report.summary()

    def test_failed_groups_keep_hash_and_size_apart(self):
        report = DedupReport(groups_found=2)
        for size in (100, 250):
            outcome = self._outcome("h1", GroupStatus.DELETE_FAILED)
            outcome.byte_size = size
            report.record(outcome)

        assert report.failed_groups == ["h1:100", "h1:250"]
        assert [g["byte_size"] for g in report.to_dict()["groups"]] == [100, 250]

    def test_to_dict(self):
        report = DedupReport(groups_found=1)
        report.record(self._outcome("h1", GroupStatus.DONE))
        data = report.to_dict()

        assert data["groups_merged"] == 1
        assert data["groups"][0]["status"] == "done"
        assert data["groups"][0]["deleted_ids"] == [str(UUID(int=10))]
