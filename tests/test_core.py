"""
Tests for request parsing and the analysis orchestrator.
"""

from datetime import datetime, timedelta, timezone

import pytest

from repo_spark.core import (
    AnalysisTarget,
    Analyzer,
    detect_analysis_type,
    parse_analysis_request,
)
from repo_spark.errors import AnalysisError, ErrorKind
from repo_spark.store import AnalysisStore

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
USER = {"login": "octocat", "name": "The Octocat", "created_at": "2020-01-01T00:00:00Z"}


class TestParseAnalysisRequest:
    def test_repository_url(self):
        target = parse_analysis_request("https://github.com/psf/requests", "repository")
        assert target == AnalysisTarget(
            "https://github.com/psf/requests", "repository", "psf", "requests"
        )

    def test_trailing_slash_and_git_suffix(self):
        target = parse_analysis_request(
            "https://github.com/psf/requests.git/", "repository"
        )
        assert target.owner == "psf"
        assert target.repo == "requests"

    def test_www_host(self):
        target = parse_analysis_request("https://www.github.com/octocat", "user")
        assert target.owner == "octocat"
        assert target.repo is None

    @pytest.mark.parametrize(
        "url,analysis_type",
        [
            ("not a url", "repository"),
            ("ftp://github.com/a/b", "repository"),
            ("https://gitlab.com/a/b", "repository"),
            ("https://github.com/", "user"),
            ("https://github.com/a", "repository"),
            ("https://github.com/a/b/c", "repository"),
            ("https://github.com/a/b", "user"),
            ("https://github.com/a//b", "repository"),
            ("https://github.com/a/b", "organization"),
        ],
    )
    def test_rejected(self, url, analysis_type):
        with pytest.raises(AnalysisError) as exc_info:
            parse_analysis_request(url, analysis_type)
        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert exc_info.value.http_status == 400

    def test_detect_analysis_type(self):
        assert detect_analysis_type("https://github.com/a/b") == "repository"
        assert detect_analysis_type("https://github.com/a") == "user"
        with pytest.raises(AnalysisError):
            detect_analysis_type("https://github.com/a/b/tree/main")


@pytest.fixture
def repo_provider(fake_provider):
    return fake_provider(
        commits={
            "spark": [
                fake_provider.entry("c3", "2024-06-01T09:00:00Z", "fix crash", "Bob", "bob@x.io"),
                fake_provider.entry("c2", "2024-05-31T09:00:00Z", "add feature"),
                fake_provider.entry("c1", "2024-05-30T09:00:00Z", "update docs"),
            ],
            "empty": [],
        }
    )


class TestRepositoryAnalysis:
    def test_response_shape(self, repo_provider):
        analyzer = Analyzer(lambda: repo_provider, AnalysisStore())
        response = analyzer.analyze(
            "https://github.com/octo/spark", "repository", now=NOW
        )
        assert set(response) == {
            "id",
            "repositoryUrl",
            "repositoryName",
            "repositoryOwner",
            "analysisType",
            "doraMetrics",
            "healthMetrics",
            "contributors",
            "timeline",
            "workClassification",
            "createdAt",
        }
        assert response["analysisType"] == "repository"
        assert response["repositoryName"] == "spark"
        assert response["repositoryOwner"] == "octo"
        assert response["healthMetrics"]["totalCommits"] == 3
        assert response["healthMetrics"]["activeContributors"] == 2
        assert len(response["timeline"]) == 20
        assert response["contributors"][0]["rank"] == 1
        assert response["workClassification"] == {
            "innovation": 33,
            "bugFixes": 33,
            "maintenance": 0,
            "documentation": 33,
        }
        assert response["createdAt"] == NOW.isoformat()

    def test_commit_window_is_ninety_days(self, repo_provider):
        analyzer = Analyzer(lambda: repo_provider, AnalysisStore())
        analyzer.analyze("https://github.com/octo/spark", "repository", now=NOW)
        assert repo_provider.list_calls[0]["since"] == "2024-03-03T12:00:00Z"

    def test_empty_history_uses_degraded_metrics(self, repo_provider):
        analyzer = Analyzer(lambda: repo_provider, AnalysisStore())
        response = analyzer.analyze(
            "https://github.com/octo/empty", "repository", now=NOW
        )
        assert response["doraMetrics"]["deploymentFrequency"]["value"] == "0 commits/day"
        assert response["doraMetrics"]["overallScore"] == 0
        assert response["healthMetrics"]["lastActivity"] == "No activity"
        assert response["contributors"] == []

    def test_unknown_repository(self, repo_provider):
        analyzer = Analyzer(lambda: repo_provider, AnalysisStore())
        with pytest.raises(AnalysisError) as exc_info:
            analyzer.analyze("https://github.com/octo/missing", "repository", now=NOW)
        assert exc_info.value.kind == ErrorKind.NOT_FOUND

    def test_validation_happens_before_provider(self):
        def factory():
            raise AssertionError("provider must not be created")

        analyzer = Analyzer(factory, AnalysisStore())
        with pytest.raises(AnalysisError) as exc_info:
            analyzer.analyze("https://github.com/a/b/c", "repository")
        assert exc_info.value.kind == ErrorKind.VALIDATION


class TestResultCache:
    def test_recent_result_is_reused(self, repo_provider):
        analyzer = Analyzer(lambda: repo_provider, AnalysisStore())
        url = "https://github.com/octo/spark"
        first = analyzer.analyze(url, "repository", now=NOW)
        calls = len(repo_provider.list_calls)

        second = analyzer.analyze(url, "repository", now=NOW + timedelta(minutes=59))
        assert second == first
        assert len(repo_provider.list_calls) == calls

    def test_stale_result_is_recomputed(self, repo_provider):
        analyzer = Analyzer(lambda: repo_provider, AnalysisStore())
        url = "https://github.com/octo/spark"
        first = analyzer.analyze(url, "repository", now=NOW)
        second = analyzer.analyze(url, "repository", now=NOW + timedelta(hours=1))
        assert second["id"] != first["id"]

    def test_cache_can_be_bypassed(self, repo_provider):
        analyzer = Analyzer(lambda: repo_provider, AnalysisStore())
        url = "https://github.com/octo/spark"
        first = analyzer.analyze(url, "repository", now=NOW)
        second = analyzer.analyze(url, "repository", use_cache=False, now=NOW)
        assert second["id"] != first["id"]


class TestUserAnalysis:
    @pytest.fixture
    def user_provider(self, fake_provider):
        return fake_provider(
            user=USER,
            repos=[
                {"name": "a", "language": "Python", "stargazers_count": 4},
                {"name": "b", "language": "Go"},
            ],
            commits={
                "a": [fake_provider.entry("a1", "2024-05-30T10:00:00Z", "add cli")],
                "b": [fake_provider.entry("b1", "2024-05-31T10:00:00Z", "fix bug")],
            },
        )

    def test_response_carries_only_user_analysis(self, user_provider):
        store = AnalysisStore()
        analyzer = Analyzer(lambda: user_provider, store)
        response = analyzer.analyze("https://github.com/octocat", "user", now=NOW)
        assert set(response) == {
            "id",
            "userUrl",
            "username",
            "analysisType",
            "userAnalysis",
            "createdAt",
        }
        assert response["username"] == "octocat"
        analysis = response["userAnalysis"]
        assert analysis["activityMetrics"]["totalCommits"] == 2
        assert analysis["activityMetrics"]["reposContributedCount"] == 2
        assert analysis["portfolioSummary"]["languages"] == {"Python": 1, "Go": 1}
        assert analysis["impact"]["diversityScore"] == 20

    def test_record_keeps_metric_bundles(self, user_provider):
        store = AnalysisStore()
        analyzer = Analyzer(lambda: user_provider, store)
        response = analyzer.analyze("https://github.com/octocat", "user", now=NOW)
        record = store.get(response["id"])
        assert record["repositoryNames"] == ["a", "b"]
        assert record["doraMetrics"]["changeFailureRate"]["value"] == "50.0%"
        # user scoring: repos 20, activity 1, diversity 20, quality 100
        assert record["healthMetrics"]["overallScore"] == 35

    def test_user_without_commits(self, fake_provider):
        provider = fake_provider(user=USER, repos=[{"name": "a"}], commits={"a": []})
        analyzer = Analyzer(lambda: provider, AnalysisStore())
        with pytest.raises(AnalysisError) as exc_info:
            analyzer.analyze("https://github.com/octocat", "user", now=NOW)
        assert exc_info.value.kind == ErrorKind.EMPTY_RESULT


class TestStoredAnalyses:
    def test_get_analysis(self, repo_provider):
        analyzer = Analyzer(lambda: repo_provider, AnalysisStore())
        response = analyzer.analyze("https://github.com/octo/spark", "repository", now=NOW)
        assert analyzer.get_analysis(response["id"]) == response

    def test_get_missing_analysis(self):
        analyzer = Analyzer(lambda: None, AnalysisStore())
        with pytest.raises(AnalysisError) as exc_info:
            analyzer.get_analysis("nope")
        assert exc_info.value.kind == ErrorKind.NOT_FOUND

    def test_recent_analyses(self, repo_provider):
        analyzer = Analyzer(lambda: repo_provider, AnalysisStore())
        older = analyzer.analyze("https://github.com/octo/empty", "repository", now=NOW)
        newer = analyzer.analyze(
            "https://github.com/octo/spark",
            "repository",
            now=NOW + timedelta(minutes=5),
        )
        summaries = analyzer.recent_analyses()
        assert [s["id"] for s in summaries] == [newer["id"], older["id"]]
        assert summaries[0] == {
            "id": newer["id"],
            "analysisType": "repository",
            "url": "https://github.com/octo/spark",
            "name": "octo/spark",
            "createdAt": newer["createdAt"],
        }
        assert len(analyzer.recent_analyses(limit=1)) == 1
