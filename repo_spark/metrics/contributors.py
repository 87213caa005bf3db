"""Contributor ranking by commit count."""

from repo_spark.models import CommitRecord, Contributor


def calculate_contributors(
    commits: list[CommitRecord], limit: int = 10
) -> list[Contributor]:
    """
    Group commits by exact author+email and rank by descending commit count.

    Ties keep first-seen order. Only the top ``limit`` contributors are
    returned; ranks are 1-based with no gaps.
    """
    totals: dict[str, dict] = {}
    for commit in commits:
        entry = totals.setdefault(
            commit.identity,
            {
                "name": commit.author,
                "email": commit.email,
                "commits": 0,
                "lines_added": 0,
                "lines_deleted": 0,
                "files_changed": 0,
            },
        )
        entry["commits"] += 1
        entry["lines_added"] += commit.additions
        entry["lines_deleted"] += commit.deletions
        entry["files_changed"] += commit.changed_files

    # sorted() is stable, so dict insertion order breaks ties
    ranked = sorted(totals.values(), key=lambda entry: entry["commits"], reverse=True)
    return [
        Contributor(rank=index, **entry)
        for index, entry in enumerate(ranked[:limit], start=1)
    ]
