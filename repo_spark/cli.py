"""
Command-line interface for repo-spark.
"""

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from repo_spark.api_stats import ApiStatsTracker
from repo_spark.config import (
    get_api_cache_ttl,
    get_ingestion_limits,
    get_repo_timeout,
    get_result_ttl,
    get_store_dir,
    set_verify_ssl,
)
from repo_spark.core import Analyzer, detect_analysis_type
from repo_spark.errors import AnalysisError, ErrorKind
from repo_spark.http_client import close_http_client
from repo_spark.memory_cache import MemoryCache
from repo_spark.store import AnalysisStore
from repo_spark.vcs import get_vcs_provider

# --- Typer App ---
app = typer.Typer(help="Engineering metrics from GitHub commit history.")
console = Console()

RATING_COLORS = {
    "elite": "green",
    "high": "cyan",
    "medium": "yellow",
    "low": "red",
    "excellent": "green",
    "good": "cyan",
    "fair": "yellow",
    "poor": "red",
}

ACTIVITY_BARS = {
    "very-high": "[green]█████[/green]",
    "high": "[green]████[/green]",
    "medium": "[yellow]███[/yellow]",
    "low": "[yellow]█[/yellow]",
    "none": "[dim]·[/dim]",
}

WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


# --- Helper Functions ---


def _colored(rating: str) -> str:
    color = RATING_COLORS.get(rating, "white")
    return f"[{color}]{rating}[/{color}]"


def _exit_code(error: AnalysisError) -> int:
    return 1 if error.kind == ErrorKind.VALIDATION else 2


def _fail(error: AnalysisError):
    console.print(f"[bold red]{error.title}:[/bold red] {error.message}")
    raise typer.Exit(code=_exit_code(error)) from None


def _print_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def build_analyzer(store: AnalysisStore) -> tuple[Analyzer, ApiStatsTracker]:
    """Wire one cache, one stats tracker and the store into an Analyzer."""
    cache = MemoryCache(default_ttl=get_api_cache_ttl())
    stats = ApiStatsTracker()

    def provider_factory():
        return get_vcs_provider("github", cache=cache, stats=stats)

    analyzer = Analyzer(
        provider_factory,
        store,
        result_ttl=get_result_ttl(),
        limits=get_ingestion_limits(),
        repo_timeout=get_repo_timeout(),
    )
    return analyzer, stats


def display_repository(response: dict[str, Any]) -> None:
    """Render a repository analysis as rich tables."""
    console.print(
        f"\n📦 [bold cyan]{response['repositoryOwner']}/{response['repositoryName']}"
        f"[/bold cyan]  [dim]{response['id']} · {response['createdAt']}[/dim]"
    )

    dora = response["doraMetrics"]
    dora_table = Table(title="DORA Metrics", show_header=True, header_style="bold magenta")
    dora_table.add_column("Metric", style="cyan", no_wrap=True)
    dora_table.add_column("Value", justify="right")
    dora_table.add_column("Score", justify="center", style="magenta")
    dora_table.add_column("Rating", justify="left")
    for label, key in (
        ("Deployment frequency", "deploymentFrequency"),
        ("Lead time", "leadTime"),
        ("Change failure rate", "changeFailureRate"),
        ("Recovery time", "recoveryTime"),
    ):
        metric = dora[key]
        dora_table.add_row(
            label, metric["value"], f"{metric['score']:.0f}", _colored(metric["rating"])
        )
    dora_table.add_row(
        "[bold]Overall[/bold]",
        "",
        f"[bold]{dora['overallScore']}[/bold]",
        _colored(dora["overallRating"]),
    )
    console.print(dora_table)

    _display_health(response["healthMetrics"])
    _display_contributors(response["contributors"])
    _display_timeline(response["timeline"])
    _display_work(response["workClassification"])


def _display_health(health: dict[str, Any]) -> None:
    table = Table(title="Repository Health", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="left")
    table.add_row(
        "Overall", f"{health['overallScore']}/100 {_colored(health['status'])}"
    )
    table.add_row("Commits", str(health["totalCommits"]))
    table.add_row("Files changed", str(health["filesChanged"]))
    table.add_row("Active contributors", str(health["activeContributors"]))
    table.add_row("Code velocity", health["codeVelocity"])
    table.add_row("Innovation ratio", f"{health['innovationRatio']}%")
    table.add_row("Technical debt", f"{health['technicalDebt']}%")
    table.add_row("Last activity", health["lastActivity"])
    console.print(table)


def _display_contributors(contributors: list[dict[str, Any]]) -> None:
    if not contributors:
        console.print("[dim]No contributors in the analysis window.[/dim]")
        return
    table = Table(title="Top Contributors", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Commits", justify="right")
    table.add_column("+Lines", justify="right", style="green")
    table.add_column("-Lines", justify="right", style="red")
    table.add_column("Files", justify="right")
    for contributor in contributors:
        table.add_row(
            str(contributor["rank"]),
            contributor["name"],
            str(contributor["commits"]),
            str(contributor["linesAdded"]),
            str(contributor["linesDeleted"]),
            str(contributor["filesChanged"]),
        )
    console.print(table)


def _display_timeline(timeline: list[dict[str, Any]]) -> None:
    table = Table(title="Activity Timeline", show_header=True, header_style="bold magenta")
    table.add_column("Day", style="cyan", no_wrap=True)
    table.add_column("Commits", justify="right")
    table.add_column("Lines", justify="right")
    table.add_column("Activity", justify="left")
    for day in timeline:
        table.add_row(
            day["date"],
            str(day["commits"]),
            str(day["linesChanged"]),
            ACTIVITY_BARS.get(day["activity"], day["activity"]),
        )
    console.print(table)


def _display_work(work: dict[str, Any]) -> None:
    table = Table(title="Work Classification", show_header=True, header_style="bold magenta")
    table.add_column("Innovation", justify="center")
    table.add_column("Bug fixes", justify="center")
    table.add_column("Maintenance", justify="center")
    table.add_column("Documentation", justify="center")
    table.add_row(
        f"{work['innovation']}%",
        f"{work['bugFixes']}%",
        f"{work['maintenance']}%",
        f"{work['documentation']}%",
    )
    console.print(table)


def display_user(response: dict[str, Any]) -> None:
    """Render a user analysis."""
    analysis = response["userAnalysis"]
    profile = analysis["userProfile"]
    portfolio = analysis["portfolioSummary"]
    activity = analysis["activityMetrics"]
    practices = analysis["bestPractices"]
    impact = analysis["impact"]

    title = profile["username"]
    if profile.get("name"):
        title += f" ({profile['name']})"
    console.print(
        f"\n👤 [bold cyan]{title}[/bold cyan]  [dim]{response['id']} · "
        f"{response['createdAt']}[/dim]"
    )
    console.print(
        f"   {profile['followers']} followers · {profile['following']} following · "
        f"{profile['publicRepos']} public repos · account age "
        f"{profile['accountAgeDays']} days"
    )
    if profile.get("bio"):
        console.print(f"   [italic]{profile['bio']}[/italic]")

    portfolio_table = Table(title="Portfolio", show_header=False)
    portfolio_table.add_column("Field", style="cyan")
    portfolio_table.add_column("Value")
    portfolio_table.add_row("Owned / forked / archived", (
        f"{portfolio['totalOwned']} / {portfolio['totalForked']} / "
        f"{portfolio['totalArchived']}"
    ))
    portfolio_table.add_row("Active in last 90 days", str(portfolio["reposActiveLast90d"]))
    portfolio_table.add_row("With releases", str(portfolio["reposWithReleases"]))
    portfolio_table.add_row("Stars / forks", f"{portfolio['totalStars']} / {portfolio['totalForks']}")
    portfolio_table.add_row(
        "Languages",
        ", ".join(f"{name} ({count})" for name, count in portfolio["languages"].items())
        or "-",
    )
    portfolio_table.add_row(
        "Top repositories",
        "\n".join(f"★ {repo['stars']} {repo['name']}" for repo in portfolio["topReposByStars"])
        or "-",
    )
    console.print(portfolio_table)

    activity_table = Table(title="Activity", show_header=False)
    activity_table.add_column("Field", style="cyan")
    activity_table.add_column("Value")
    activity_table.add_row("Commits", str(activity["totalCommits"]))
    activity_table.add_row("Active days", str(activity["activeDays"]))
    activity_table.add_row("Longest streak", f"{activity['longestStreak']} days")
    activity_table.add_row("Commits per active day", str(activity["avgCommitsPerActiveDay"]))
    activity_table.add_row(
        "By weekday",
        "  ".join(f"{day} {count}" for day, count in zip(WEEKDAYS, activity["commitsByWeekday"])),
    )
    activity_table.add_row("Repositories contributed", str(activity["reposContributedCount"]))
    activity_table.add_row(
        "First / last commit",
        f"{activity['firstCommitDate'] or '-'} / {activity['lastCommitDate'] or '-'}",
    )
    console.print(activity_table)

    practices_table = Table(title="Best Practices", show_header=True, header_style="bold magenta")
    practices_table.add_column("Practice", style="cyan")
    practices_table.add_column("Repositories", justify="right")
    for label, key in (
        ("License", "pctWithLicense"),
        ("README", "pctWithReadme"),
        ("CI", "pctWithCI"),
        ("Topics", "pctWithTopics"),
        ("Contributing", "pctWithContributing"),
        ("Description", "pctWithDescription"),
        ("Archived", "archivedRatio"),
    ):
        practices_table.add_row(label, f"{practices[key]}%")
    console.print(practices_table)

    console.print(
        f"[bold]Impact:[/bold] contribution {impact['contributionScore']}/100 · "
        f"diversity {impact['diversityScore']}/100"
    )
    if impact["popularTopics"]:
        console.print(f"   Topics: {', '.join(impact['popularTopics'])}")


def display_response(response: dict[str, Any]) -> None:
    if response["analysisType"] == "user":
        display_user(response)
    else:
        display_repository(response)


def display_api_stats(stats: dict[str, Any]) -> None:
    """Show upstream API usage for this run."""
    summary = stats["summary"]
    console.print("\n[bold cyan]API Usage[/bold cyan]")
    console.print(f"  Total calls: {summary['totalCalls']}")
    console.print(f"  API calls: {summary['totalApiCalls']}")
    console.print(
        f"  Cache hits: [green]{summary['totalCacheHits']}[/green] "
        f"({summary['cacheHitRate']:.0%})"
    )
    if stats["endpoints"]:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Endpoint", style="cyan")
        table.add_column("Calls", justify="right")
        table.add_column("Cache hits", justify="right", style="green")
        table.add_column("Avg ms", justify="right")
        for endpoint in stats["endpoints"]:
            table.add_row(
                endpoint["endpoint"],
                str(endpoint["count"]),
                str(endpoint["cacheHits"]),
                f"{endpoint['avgResponseTime']:.0f}",
            )
        console.print(table)


def _open_store(store_dir: Path | None) -> AnalysisStore:
    return AnalysisStore(store_dir if store_dir is not None else get_store_dir())


# --- Commands ---


@app.command()
def analyze(
    url: str = typer.Argument(
        ...,
        help="GitHub repository (https://github.com/owner/repo) or user (https://github.com/username) URL.",
    ),
    analysis_type: str = typer.Option(
        "auto",
        "--type",
        "-t",
        help="Analysis type: auto, repository or user.",
    ),
    output_json: bool = typer.Option(
        False,
        "--json",
        help="Print the raw JSON response instead of tables.",
    ),
    no_cache: bool = typer.Option(
        False,
        "--no-cache",
        help="Ignore stored results and analyze again.",
    ),
    store_dir: Path | None = typer.Option(
        None,
        "--store-dir",
        help="Directory holding stored analyses (default: ~/.cache/repo-spark).",
    ),
    insecure: bool = typer.Option(
        False,
        "--insecure",
        help="Disable SSL certificate verification for HTTPS requests.",
    ),
    show_stats: bool = typer.Option(
        False,
        "--stats",
        help="Show API call statistics after the analysis.",
    ),
):
    """Analyze a GitHub repository or user."""
    set_verify_ssl(not insecure)
    analyzer, stats = build_analyzer(_open_store(store_dir))

    try:
        if analysis_type == "auto":
            analysis_type = detect_analysis_type(url)
        response = analyzer.analyze(url, analysis_type, use_cache=not no_cache)
    except AnalysisError as e:
        _fail(e)
    finally:
        close_http_client()

    if output_json:
        _print_json(response)
    else:
        display_response(response)

    if show_stats:
        display_api_stats(stats.get_stats())


@app.command()
def show(
    analysis_id: str = typer.Argument(..., help="Analysis id."),
    output_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
    store_dir: Path | None = typer.Option(None, "--store-dir", help="Store directory."),
):
    """Display a stored analysis."""
    analyzer, _ = build_analyzer(_open_store(store_dir))
    try:
        response = analyzer.get_analysis(analysis_id)
    except AnalysisError as e:
        _fail(e)

    if output_json:
        _print_json(response)
    else:
        display_response(response)


@app.command()
def history(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of analyses to list."),
    store_dir: Path | None = typer.Option(None, "--store-dir", help="Store directory."),
):
    """List recent analyses."""
    analyzer, _ = build_analyzer(_open_store(store_dir))
    summaries = analyzer.recent_analyses(limit)
    if not summaries:
        console.print("No analyses stored yet.")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Type")
    table.add_column("Name", style="cyan")
    table.add_column("Created", justify="left")
    for summary in summaries:
        table.add_row(
            summary["id"], summary["analysisType"], summary["name"], summary["createdAt"]
        )
    console.print(table)


@app.command()
def clear_store(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
    store_dir: Path | None = typer.Option(None, "--store-dir", help="Store directory."),
):
    """Delete every stored analysis."""
    store = _open_store(store_dir)
    if not force and not typer.confirm("Delete all stored analyses?"):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit(code=0)

    cleared = store.clear()
    console.print(f"[green]✨ Cleared {cleared} stored analyses[/green]")


if __name__ == "__main__":
    app()
