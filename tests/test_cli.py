"""Tests for the hotelsite CLI."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch
from uuid import UUID

from click.testing import CliRunner

from hotelsite.cli import cli
from hotelsite.db.services.backfill_service import BackfillError, BackfillResult
from hotelsite.db.services.dedup_service import (
    DedupReport,
    GroupOutcome,
    GroupStatus,
    MediaRecord,
    plan_duplicates,
)
from hotelsite.db.services.usage_service import MediaStats, UsageLocation

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _report(*statuses):
    report = DedupReport(groups_found=len(statuses))
    for n, status in enumerate(statuses):
        report.record(
            GroupOutcome(
                content_hash=f"h{n}",
                canonical_id=UUID(int=n),
                canonical_url=f"/{n}.jpg",
                status=status,
            )
        )
    return report


class TestSecretCommand:
    def test_prints_key(self):
        result = CliRunner().invoke(cli, ["secret", "--format", "hex", "--length", "16"])

        assert result.exit_code == 0
        assert len(result.output.strip()) == 32

    def test_writes_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("SECRET_KEY=old\nADMIN_TOKEN=old")

        result = CliRunner().invoke(cli, ["secret", "--write", str(env), "--name", "ADMIN_TOKEN"])

        assert result.exit_code == 0
        lines = env.read_text().splitlines()
        assert lines[0] == "SECRET_KEY=old"
        assert lines[1].startswith("ADMIN_TOKEN=") and lines[1] != "ADMIN_TOKEN=old"


class TestMediaDedupe:
    def test_success(self):
        with patch("hotelsite.cli._dedupe", new=AsyncMock(return_value=_report(GroupStatus.DONE))):
            result = CliRunner().invoke(cli, ["media", "dedupe"])

        assert result.exit_code == 0
        assert "Merged 1 of 1 duplicate groups" in result.output

    def test_failed_group_exits_nonzero(self):
        report = _report(GroupStatus.DONE, GroupStatus.REWRITE_FAILED)
        with patch("hotelsite.cli._dedupe", new=AsyncMock(return_value=report)):
            result = CliRunner().invoke(cli, ["media", "dedupe"])

        assert result.exit_code == 1
        assert "failed: h1" in result.output

    def test_json_output(self):
        with patch("hotelsite.cli._dedupe", new=AsyncMock(return_value=_report(GroupStatus.DONE))):
            result = CliRunner().invoke(cli, ["media", "dedupe", "--json"])

        data = json.loads(result.output)
        assert data["groups_merged"] == 1
        assert data["groups"][0]["status"] == "done"

    def test_dry_run_lists_groups_without_merging(self):
        records = [
            MediaRecord(UUID(int=1), "/a.jpg", "abcdef0123456789", 100, T0),
            MediaRecord(UUID(int=2), "/b.jpg", "abcdef0123456789", 100, T0.replace(minute=5)),
        ]
        dedupe = AsyncMock()
        with patch("hotelsite.cli._plan", new=AsyncMock(return_value=plan_duplicates(records))), \
             patch("hotelsite.cli._dedupe", new=dedupe):
            result = CliRunner().invoke(cli, ["media", "dedupe", "--dry-run"])

        assert result.exit_code == 0
        assert "keep /a.jpg" in result.output
        assert "remove /b.jpg (100 bytes)" in result.output
        assert "1 groups, 100 bytes reclaimable" in result.output
        dedupe.assert_not_called()

    def test_duplicates_none_found(self):
        with patch("hotelsite.cli._plan", new=AsyncMock(return_value=[])):
            result = CliRunner().invoke(cli, ["media", "duplicates"])

        assert "No duplicate media found." in result.output


class TestOtherMediaCommands:
    def test_backfill_hashes(self):
        outcome = BackfillResult(processed=2, errors=[BackfillError("id-1", "/gone.jpg", "404")])
        backfill = AsyncMock(return_value=outcome)
        with patch("hotelsite.cli._backfill", new=backfill):
            result = CliRunner().invoke(cli, ["media", "backfill-hashes", "--batch-size", "5"])

        assert result.exit_code == 0
        assert "2 processed" in result.output
        backfill.assert_called_once_with(5, False)

    def test_backfill_hashes_all(self):
        backfill = AsyncMock(return_value=BackfillResult(processed=7))
        with patch("hotelsite.cli._backfill", new=backfill):
            result = CliRunner().invoke(cli, ["media", "backfill-hashes", "--all"])

        assert result.exit_code == 0
        backfill.assert_called_once_with(None, True)

    def test_stats(self):
        with patch("hotelsite.cli._stats", new=AsyncMock(return_value=MediaStats(total=4, used=1, unused=3))):
            result = CliRunner().invoke(cli, ["media", "stats"])

        assert json.loads(result.output)["unused"] == 3

    def test_usage(self):
        locations = [UsageLocation(type="room", id="r1", title="Suite", field="gallery")]
        with patch("hotelsite.cli._usage", new=AsyncMock(return_value=locations)):
            result = CliRunner().invoke(cli, ["media", "usage", "/a.jpg"])

        assert "Suite" in result.output
        assert "gallery" in result.output

    def test_usage_unused(self):
        with patch("hotelsite.cli._usage", new=AsyncMock(return_value=[])):
            result = CliRunner().invoke(cli, ["media", "usage", "/a.jpg"])

        assert "Not used anywhere." in result.output
