"""
Test feature clustering, status inference and next steps.
"""

from datetime import datetime, timedelta, timezone

from worklog.clustering.features import (
    analyze_features,
    generate_next_steps,
    group_by_keywords,
    infer_status,
)
from worklog.clustering.labels import feature_name
from worklog.clustering.models import (
    STATUS_IN_PROGRESS,
    STATUS_NEARLY_DONE,
    STATUS_STARTED,
)
from worklog.core.models import ActivityItem, BranchInfo, FileChange, RepoStatus

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def make_item(title, hours_ago=1.0, repo=None, source="git"):
    metadata = {"repo": repo} if repo else {}
    return ActivityItem(
        source=source,
        timestamp=NOW - timedelta(hours=hours_ago),
        title=title,
        metadata=metadata,
    )


def make_status(path="/code/app", changes=(), ahead=0):
    return RepoStatus(
        repo_path=path,
        repo_name=path.rsplit("/", 1)[-1],
        branch=BranchInfo(name="main", ahead=ahead, tracking_branch="origin/main"),
        changes=list(changes),
    )


def test_dirty_repo_feature_in_progress():
    """A feature whose repo has unstaged changes is in progress at 50%."""
    print("Testing feature with uncommitted work...")

    titles = [
        "auth login page",
        "auth login page styles",
        "auth login redirect",
        "auth login page redirect",
        "auth login styles",
        "auth login page tests",
    ]
    items = [make_item(t, hours_ago=i + 1, repo="/code/app") for i, t in enumerate(titles)]
    status = make_status(changes=[FileChange("src/login.py", "modified", staged=False)])

    analysis = analyze_features(items, [status], now=NOW)

    assert len(analysis.features) == 1, f"Expected 1 feature, got {len(analysis.features)}"
    feature = analysis.features[0]
    assert feature.status == STATUS_IN_PROGRESS
    assert feature.completion_estimate == 50
    assert feature.name == "Auth Login Page"
    assert feature.suggested_next_steps[0] == "Stage and commit pending changes"
    assert feature.keywords == ["auth", "login", "page", "styles", "redirect", "tests"]
    assert feature.recent_activity == items[0].timestamp
    assert analysis.active_feature_count == 1
    assert analysis.completed_feature_count == 0
    print(f"  ✓ {feature.name}: {feature.status} ~{feature.completion_estimate}%")


def test_stale_feature_nearly_done():
    """Four refactor commits, two days old, clean repo."""
    print("\nTesting stale feature...")

    titles = [
        "refactor: parser tokenizer",
        "refactor: parser tokenizer errors",
        "refactor: parser errors",
        "refactor: parser tokenizer cleanup",
    ]
    items = [make_item(t, hours_ago=48, repo="/code/lang") for t in titles]

    analysis = analyze_features(items, [make_status("/code/lang")], now=NOW)

    assert len(analysis.features) == 1
    feature = analysis.features[0]
    assert (feature.status, feature.completion_estimate) == (STATUS_NEARLY_DONE, 85)
    assert feature.name == "Parser Tokenizer Errors"
    assert feature.suggested_next_steps == [
        "Review and clean up code",
        "Ensure test coverage is adequate",
        "Prepare for code review/PR",
    ]
    assert analysis.completed_feature_count == 1
    assert analysis.active_feature_count == 0
    print(f"  ✓ {feature.name}: {feature.status} ~{feature.completion_estimate}%")


def test_empty_input():
    analysis = analyze_features([], now=NOW)

    assert analysis.features == []
    assert analysis.uncategorized == []
    assert analysis.active_feature_count == 0
    assert analysis.completed_feature_count == 0


def test_lone_vague_item_is_uncategorized():
    items = [make_item("readme"), make_item("billing export")]
    analysis = analyze_features(items, now=NOW)

    assert analysis.uncategorized == [items[0]]
    assert len(analysis.features) == 1
    assert analysis.features[0].items == [items[1]]
    assert analysis.features[0].status == STATUS_STARTED
    assert analysis.features[0].completion_estimate == 15


def test_every_item_accounted_for_once():
    items = [
        make_item("auth login page"),
        make_item("readme"),
        make_item("billing export csv"),
        make_item("auth login redirect"),
        make_item("billing export pdf"),
        make_item("typo"),
    ]
    analysis = analyze_features(items, now=NOW)

    placed = [id(i) for f in analysis.features for i in f.items]
    placed += [id(i) for i in analysis.uncategorized]
    assert sorted(placed) == sorted(id(i) for i in items)
    assert len(analysis.features) == 2
    assert len(analysis.uncategorized) == 2


def test_features_sorted_most_recent_first():
    items = [
        make_item("billing export csv", hours_ago=30),
        make_item("billing export pdf", hours_ago=40),
        make_item("search index rebuild", hours_ago=2),
        make_item("search index tuning", hours_ago=3),
    ]
    analysis = analyze_features(items, now=NOW)

    assert [f.name for f in analysis.features] == ["Search Index Rebuild", "Billing Export Csv"]
    times = [f.recent_activity for f in analysis.features]
    assert times == sorted(times, reverse=True)


def test_group_by_keywords_best_match_tie_goes_to_earliest():
    print("\nTesting keyword grouping...")

    groups = group_by_keywords([["aaa", "bbb"], ["ccc", "ddd"], ["aaa", "ccc"]], threshold=0.25)

    # Third list overlaps both groups at 1/3
    assert [g.members for g in groups] == [[0, 2], [1]]
    assert groups[0].keywords == ["aaa", "bbb", "ccc"]
    print("  ✓ Tie resolved to first group, keywords grown in order")


def test_group_by_keywords_threshold():
    lists = [["alpha", "beta", "gamma", "delta"], ["alpha", "xray", "yank", "zulu"]]

    # overlap 1/7
    assert len(group_by_keywords(lists, threshold=0.25)) == 2
    assert len(group_by_keywords(lists, threshold=0.1)) == 1


def test_group_keywords_only_grow():
    lists = [["alpha", "beta"], ["alpha", "beta", "gamma"], ["beta", "gamma", "delta"]]
    groups = group_by_keywords(lists, threshold=0.25)

    assert len(groups) == 1
    assert groups[0].keywords == ["alpha", "beta", "gamma", "delta"]


def test_infer_status_rules():
    print("\nTesting infer_status...")

    def batch(n, hours_ago):
        return [make_item(f"item {i}", hours_ago=hours_ago) for i in range(n)]

    # Uncommitted work wins over everything else
    assert infer_status(batch(10, 100), True, now=NOW) == (STATUS_IN_PROGRESS, 50)
    assert infer_status(batch(4, 48), False, now=NOW) == (STATUS_NEARLY_DONE, 85)
    assert infer_status(batch(2, 48), False, now=NOW) == (STATUS_STARTED, 15)
    assert infer_status(batch(2, 1), False, now=NOW) == (STATUS_STARTED, 15)
    assert infer_status(batch(3, 1), False, now=NOW) == (STATUS_IN_PROGRESS, 45)
    assert infer_status(batch(5, 1), False, now=NOW) == (STATUS_IN_PROGRESS, 45)
    assert infer_status(batch(6, 1), False, now=NOW) == (STATUS_NEARLY_DONE, 75)

    # One recent item keeps a large old feature open
    mixed = batch(4, 48) + [make_item("item new", hours_ago=2)]
    assert infer_status(mixed, False, now=NOW) == (STATUS_IN_PROGRESS, 45)
    print("  ✓ First matching rule wins")


def test_infer_status_recent_window_configurable():
    items = [make_item(f"item {i}", hours_ago=30) for i in range(4)]
    assert infer_status(items, False, now=NOW)[0] == STATUS_NEARLY_DONE
    assert infer_status(items, False, now=NOW, recent_hours=48)[0] == STATUS_IN_PROGRESS


def test_next_steps_canned():
    steps = generate_next_steps("Billing Export", STATUS_STARTED)
    assert steps == [
        "Continue implementing billing export",
        "Review initial approach and validate design",
    ]


def test_next_steps_staged_and_unpushed():
    status = make_status(
        changes=[FileChange("billing.py", "modified", staged=True)],
        ahead=2,
    )
    steps = generate_next_steps("Billing Export", STATUS_STARTED, status)

    assert steps == [
        "Commit staged changes",
        "Continue implementing billing export",
        "Review initial approach and validate design",
        "Push 2 commit(s) to remote",
    ]


def test_next_steps_truncated():
    status = make_status(
        changes=[
            FileChange("a.py", "modified", staged=True),
            FileChange("b.py", "untracked", staged=False),
        ],
        ahead=3,
    )
    steps = generate_next_steps("Parser", STATUS_NEARLY_DONE, status)

    assert len(steps) == 4
    assert steps[0] == "Stage and commit pending changes"
    assert "Push 3 commit(s) to remote" not in steps

    assert len(generate_next_steps("Parser", STATUS_NEARLY_DONE, status, max_steps=2)) == 2


def test_feature_without_known_repo_gets_canned_steps():
    items = [make_item("billing export csv", repo="/code/other"),
             make_item("billing export pdf", repo="/code/other")]
    dirty = make_status(changes=[FileChange("x.py", "modified", staged=False)])

    analysis = analyze_features(items, [dirty], now=NOW)

    feature = analysis.features[0]
    assert feature.status == STATUS_STARTED
    assert "Stage and commit pending changes" not in feature.suggested_next_steps


def test_feature_name_fallback():
    assert feature_name([make_item("a b")]) == "Miscellaneous work"
    assert feature_name([make_item("fix: cache cache warmup")]) == "Cache Warmup"


def test_naive_timestamps_treated_as_utc():
    print("\nTesting naive timestamps...")

    naive = ActivityItem("git", datetime(2026, 3, 2, 9, 0), "billing export pdf")
    assert naive.timestamp == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    items = [make_item("billing export csv", hours_ago=1), naive]
    analysis = analyze_features(items, now=NOW)

    feature = analysis.features[0]
    assert feature.items == items
    assert feature.recent_activity == items[0].timestamp

    # A naive reference time is read as UTC too
    assert infer_status(items, False, now=datetime(2026, 3, 2, 12, 0)) == (STATUS_STARTED, 15)
    print("  ✓ Naive and aware timestamps mix without errors")


def test_feature_analysis_is_deterministic():
    items = [
        make_item("auth login page", hours_ago=3),
        make_item("readme"),
        make_item("billing export csv", hours_ago=5),
        make_item("auth login redirect", hours_ago=2),
        make_item("billing export pdf", hours_ago=4),
    ]
    first = analyze_features(items, now=NOW).to_dict()
    second = analyze_features(items, now=NOW).to_dict()
    assert first == second


def test_group_count_never_falls_as_threshold_rises():
    lists = [
        ["auth", "login", "page"],
        ["auth", "login", "redirect"],
        ["billing", "export", "csv"],
        ["auth", "token", "refresh"],
        ["billing", "export", "pdf"],
        ["login", "page", "styles", "tests"],
    ]
    counts = [len(group_by_keywords(lists, threshold=t)) for t in (0.0, 0.25, 0.5, 1.0)]

    assert counts == sorted(counts), f"Group counts fell as threshold rose: {counts}"
    assert counts[-1] == len(lists)
