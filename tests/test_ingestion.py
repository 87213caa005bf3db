"""
Tests for bounded commit ingestion.
"""

import threading
import time
from datetime import datetime, timezone

import httpx
import pytest

from repo_spark.config import IngestionLimits
from repo_spark.errors import AnalysisError, ErrorKind
from repo_spark.ingestion import fetch_commits, format_since


def _listing(fake_provider, count: int, prefix: str = "c") -> list[dict]:
    return [
        fake_provider.entry(f"{prefix}{i:04d}", f"2024-01-01T{i % 24:02d}:00:00Z")
        for i in range(count)
    ]


class TestPagination:
    def test_single_short_page(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 3)})
        records = fetch_commits(provider, "owner", "repo")
        assert len(records) == 3
        assert len(provider.list_calls) == 1
        assert provider.list_calls[0]["per_page"] == 50

    def test_stops_on_empty_page(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 100)})
        records = fetch_commits(provider, "owner", "repo")
        assert len(records) == 100
        # two full pages, then an empty one
        assert [call["page"] for call in provider.list_calls] == [1, 2, 3]

    def test_caps_total_commits(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 700)})
        records = fetch_commits(provider, "owner", "repo")
        assert len(records) == 500
        assert len(provider.list_calls) == 10

    def test_page_size_never_exceeds_max_commits(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 80)})
        limits = IngestionLimits(max_commits=25, max_detailed_commits=25)
        records = fetch_commits(provider, "owner", "repo", limits=limits)
        assert len(records) == 25
        assert provider.list_calls == [
            {"repo": "repo", "page": 1, "per_page": 25, "since": None}
        ]

    def test_since_is_forwarded(self, fake_provider):
        provider = fake_provider(commits={"repo": []})
        since = datetime(2024, 1, 1, 12, 30, tzinfo=timezone.utc)
        assert fetch_commits(provider, "owner", "repo", since=since) == []
        assert provider.list_calls[0]["since"] == "2024-01-01T12:30:00Z"

    def test_listing_order_is_preserved(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 5)})
        records = fetch_commits(provider, "owner", "repo")
        assert [r.sha for r in records] == [f"c{i:04d}" for i in range(5)]


class TestDetailFetch:
    def test_only_first_commits_are_detailed(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 150)})
        records = fetch_commits(provider, "owner", "repo")
        assert len(provider.detail_calls) == 100
        assert all(r.detail_fetched for r in records[:100])
        assert records[0].additions == 10
        assert records[0].deletions == 2
        assert records[0].changed_files == 1

    def test_records_beyond_cap_are_degraded(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 150)})
        records = fetch_commits(provider, "owner", "repo")
        for record in records[100:]:
            assert record.detail_fetched is False
            assert record.additions == 0
            assert record.deletions == 0
            assert record.changed_files == 1

    def test_detail_failure_downgrades_one_record(self, fake_provider):
        provider = fake_provider(
            commits={"repo": _listing(fake_provider, 3)}, failing_details={"c0001"}
        )
        records = fetch_commits(provider, "owner", "repo")
        assert [r.detail_fetched for r in records] == [True, False, True]
        assert records[1].changed_files == 1
        assert records[1].additions == 0

    def test_detail_transport_error_downgrades(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 2)})

        def broken(owner, repo, sha):
            raise httpx.ConnectError("connection reset")

        provider.get_commit = broken
        records = fetch_commits(provider, "owner", "repo")
        assert len(records) == 2
        assert not any(r.detail_fetched for r in records)

    def test_detail_without_files_reports_zero(self, fake_provider):
        provider = fake_provider(
            commits={"repo": _listing(fake_provider, 1)},
            details={"c0000": {"stats": {"additions": 3, "deletions": 4}}},
        )
        (record,) = fetch_commits(provider, "owner", "repo")
        assert record.detail_fetched is True
        assert record.changed_files == 0
        assert record.lines_changed == 7


class TestRecordShape:
    def test_fields_and_repository(self, fake_provider):
        entry = fake_provider.entry(
            "abc", "2024-01-02T03:04:05Z", "Add thing", "Bob", "bob@example.com"
        )
        provider = fake_provider(commits={"repo": [entry]})
        (record,) = fetch_commits(provider, "owner", "repo")
        assert record.sha == "abc"
        assert record.message == "Add thing"
        assert record.author == "Bob"
        assert record.email == "bob@example.com"
        assert record.date == "2024-01-02T03:04:05Z"
        assert record.repository == "owner/repo"

    def test_missing_author_falls_back(self, fake_provider):
        entry = {
            "sha": "abc",
            "commit": {
                "message": "x",
                "author": None,
                "committer": {"date": "2024-01-02T00:00:00Z"},
            },
        }
        provider = fake_provider(commits={"repo": [entry]})
        (record,) = fetch_commits(provider, "owner", "repo")
        assert record.author == "Unknown"
        assert record.email == ""
        assert record.date == "2024-01-02T00:00:00Z"

    def test_entry_without_any_date_is_skipped(self, fake_provider):
        provider = fake_provider(
            commits={
                "repo": [
                    fake_provider.entry("a", None),
                    fake_provider.entry("b", "2024-01-01T00:00:00Z"),
                ]
            }
        )
        records = fetch_commits(provider, "owner", "repo")
        assert [r.sha for r in records] == ["b"]


class TestListingFailure:
    def test_analysis_error_propagates_with_kind(self, fake_provider):
        provider = fake_provider(
            list_errors={
                "repo": AnalysisError(ErrorKind.RATE_LIMITED, "rate limit exceeded")
            }
        )
        with pytest.raises(AnalysisError) as exc_info:
            fetch_commits(provider, "owner", "repo")
        assert exc_info.value.kind == ErrorKind.RATE_LIMITED

    def test_transport_error_is_wrapped(self, fake_provider):
        provider = fake_provider(
            list_errors={"repo": httpx.ReadTimeout("timed out")}
        )
        with pytest.raises(AnalysisError) as exc_info:
            fetch_commits(provider, "owner", "repo")
        assert exc_info.value.kind == ErrorKind.UNKNOWN
        assert exc_info.value.message.startswith("Failed to fetch commits")


class TestStopping:
    def test_cancel_before_start_returns_empty(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 10)})
        cancel = threading.Event()
        cancel.set()
        assert fetch_commits(provider, "owner", "repo", cancel_event=cancel) == []
        assert provider.list_calls == []

    def test_cancel_during_details_degrades_the_rest(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 60)})
        cancel = threading.Event()
        original = provider.get_commit

        def get_commit(owner, repo, sha):
            if len(provider.detail_calls) == 2:
                cancel.set()
            return original(owner, repo, sha)

        provider.get_commit = get_commit
        records = fetch_commits(provider, "owner", "repo", cancel_event=cancel)
        # the first page is kept, no further pages are requested
        assert len(records) == 50
        assert len(provider.list_calls) == 1
        assert [r.detail_fetched for r in records[:4]] == [True, True, True, False]
        assert not any(r.detail_fetched for r in records[3:])

    def test_expired_deadline_stops_immediately(self, fake_provider):
        provider = fake_provider(commits={"repo": _listing(fake_provider, 10)})
        records = fetch_commits(
            provider, "owner", "repo", deadline=time.monotonic() - 1
        )
        assert records == []


def test_format_since_converts_to_utc():
    since = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc).astimezone()
    assert format_since(since) == "2024-06-01T09:00:00Z"
