"""End-to-end tests for dendrocut/extraction/pipeline.py."""
from __future__ import annotations

import pytest

from dendrocut import (
    NOISE,
    ClusterCountConfig,
    HeightCutConfig,
    InvalidConfigurationError,
    StabilityConfig,
    build_merge_tree,
    extract,
    extract_by_cluster_count,
    extract_by_height,
    extract_stable_clusters,
)
from dendrocut.hierarchy import empty_hierarchy
from dendrocut.profiling import PerformanceReport


# ==============================================================================
# Dispatch
# ==============================================================================

@pytest.mark.unit
class TestExtractDispatch:
    def test_height_config(self, balanced_hierarchy):
        result = extract(balanced_hierarchy, HeightCutConfig(height=1.5))
        assert result.policy == "height"
        assert result.n_clusters == 2

    def test_count_config(self, balanced_hierarchy):
        result = extract(balanced_hierarchy, ClusterCountConfig(n_clusters=3))
        assert result.policy == "count"
        assert result.n_clusters == 3

    def test_stability_config(self, balanced_hierarchy):
        result = extract(balanced_hierarchy, StabilityConfig(min_cluster_size=2))
        assert result.policy == "stability"
        assert result.labels.tolist() == [1, 1, 0, 0]

    def test_unknown_config_rejected(self, balanced_hierarchy):
        with pytest.raises(InvalidConfigurationError, match="Unsupported"):
            extract(balanced_hierarchy, {"height": 1.0})

    def test_plain_values_accepted(self, balanced_hierarchy):
        assert extract_by_height(balanced_hierarchy, 1.0).n_clusters == 3
        assert extract_by_cluster_count(balanced_hierarchy, 1).n_clusters == 1
        assert extract_stable_clusters(balanced_hierarchy, 2).n_clusters == 2

    def test_invalid_plain_values_rejected(self, balanced_hierarchy):
        with pytest.raises(InvalidConfigurationError):
            extract_by_height(balanced_hierarchy, -1.0)
        with pytest.raises(InvalidConfigurationError):
            extract_by_cluster_count(balanced_hierarchy, 0)
        with pytest.raises(InvalidConfigurationError):
            extract_stable_clusters(balanced_hierarchy, 0)


# ==============================================================================
# Stability pipeline
# ==============================================================================

@pytest.mark.unit
class TestExtractStableClusters:
    def test_empty_hierarchy_gives_empty_result(self):
        result = extract_stable_clusters(empty_hierarchy(), 3)
        assert result.n_objects == 0
        assert result.n_clusters == 0

    def test_min_size_above_n_is_all_noise(self, line_hierarchy):
        result = extract_stable_clusters(line_hierarchy, line_hierarchy.n + 1)
        assert result.n_clusters == 0
        assert result.labels.tolist() == [NOISE] * line_hierarchy.n

    def test_single_object(self):
        from dendrocut.hierarchy import PointerHierarchy

        h = PointerHierarchy(predecessor=[0], height=[float("inf")], order=[0])
        assert extract_stable_clusters(h, 1).labels.tolist() == [NOISE]
        single = extract_stable_clusters(h, StabilityConfig(min_cluster_size=1, allow_single_cluster=True))
        assert single.labels.tolist() == [0]

    def test_allow_single_cluster_on_one_candidate(self, line_hierarchy):
        assert extract_stable_clusters(line_hierarchy, 3).n_clusters == 0
        result = extract_stable_clusters(
            line_hierarchy, StabilityConfig(min_cluster_size=3, allow_single_cluster=True)
        )
        assert result.n_clusters == 1
        assert result.clusters[0].size == 6

    def test_shared_tree_reused_across_runs(self, line_hierarchy):
        tree = build_merge_tree(line_hierarchy)
        first = extract_stable_clusters(line_hierarchy, 2, tree=tree)
        other = extract_stable_clusters(line_hierarchy, 3, tree=tree)
        again = extract_stable_clusters(line_hierarchy, 2, tree=tree)
        assert first.labels.tolist() == again.labels.tolist()
        assert first.n_clusters == 2 and other.n_clusters == 0

    def test_tree_from_other_hierarchy_rejected(self, balanced_hierarchy, line_hierarchy):
        tree = build_merge_tree(balanced_hierarchy)
        with pytest.raises(InvalidConfigurationError, match="Merge tree covers"):
            extract_stable_clusters(line_hierarchy, 2, tree=tree)

    def test_report_records_each_phase(self, line_hierarchy):
        report = PerformanceReport("test")
        extract_stable_clusters(line_hierarchy, 2, report=report)
        assert [p.name for p in report.phases] == [
            "build_merge_tree",
            "compute_stability",
            "select_clusters",
            "emit_flat_clustering",
        ]
        assert report.phases[0].metadata == {"objects": 6}

    def test_idempotent(self, blobs_hierarchy):
        first = extract_stable_clusters(blobs_hierarchy, 10)
        second = extract_stable_clusters(blobs_hierarchy, 10)
        assert first.labels.tolist() == second.labels.tolist()
        assert [c.members for c in first.clusters] == [c.members for c in second.clusters]

    def test_logs_summary(self, line_hierarchy, caplog):
        with caplog.at_level("INFO", logger="dendrocut"):
            extract_stable_clusters(line_hierarchy, 2)
        assert "2 clusters, 1 noise" in caplog.text


# ==============================================================================
# Synthetic data
# ==============================================================================

@pytest.mark.integration
def test_stable_clusters_separate_dense_groups(blobs, blobs_hierarchy):
    """No extracted cluster mixes objects from two different dense groups."""
    _, truth = blobs
    result = extract_stable_clusters(blobs_hierarchy, 20)
    assert result.n_clusters >= 3
    for cluster in result.clusters:
        groups = {int(truth[m]) for m in cluster.members} - {-1}
        assert len(groups) <= 1
        assert cluster.size >= 20


@pytest.mark.integration
def test_summary_and_frame_agree(blobs_hierarchy):
    result = extract_stable_clusters(blobs_hierarchy, 5)
    frame = result.to_frame()
    summary = result.summary()
    assert len(frame) == blobs_hierarchy.n
    assert summary["n_noise"] == int(frame["is_noise"].sum())
    assert summary["n_clusters"] == frame.loc[~frame["is_noise"], "cluster_id"].nunique()
    assert sorted(c["size"] for c in summary["clusters"]) == result.cluster_sizes()
