"""Data models for stability annotations and flat clusterings."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

NOISE = -1


@dataclass(frozen=True)
class StabilityAnnotation:
    """Per-node result of the stability pass."""

    node_id: int
    qualifying: bool  # subtree size >= min_cluster_size
    head: Optional[int] = None  # candidate cluster this node belongs to
    stability: float = 0.0  # only meaningful on head nodes
    birth_height: float = float("inf")  # height at which the candidate appears
    selected: bool = False

    @property
    def is_head(self) -> bool:
        return self.head == self.node_id


@dataclass(frozen=True)
class StabilityTable:
    """Annotations for one stability run over one merge tree.

    Each run owns its table; the tree itself is never annotated in place.
    """

    annotations: Tuple[StabilityAnnotation, ...]
    min_cluster_size: int
    candidates: Tuple[int, ...]  # head node ids, top-down left-to-right
    allow_single_cluster: bool = False

    def __getitem__(self, node_id: int) -> StabilityAnnotation:
        return self.annotations[node_id]

    def __len__(self) -> int:
        return len(self.annotations)

    @property
    def selected(self) -> Tuple[int, ...]:
        return tuple(a.node_id for a in self.annotations if a.selected)

    @property
    def total_stability(self) -> float:
        return float(sum(self.annotations[i].stability for i in self.selected))

    def with_selection(self, selected: Iterable[int]) -> "StabilityTable":
        """Return a copy whose ``selected`` flags are exactly ``selected``."""
        chosen = set(selected)
        annotations = tuple(
            dataclasses.replace(a, selected=a.node_id in chosen) for a in self.annotations
        )
        return dataclasses.replace(self, annotations=annotations)


@dataclass(frozen=True)
class FlatCluster:
    """One extracted cluster."""

    id: int
    members: Tuple[int, ...]
    height: float
    node_id: Optional[int] = None
    stability: Optional[float] = None

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class FlatClustering:
    """Label per object plus the extracted clusters, ordered by id."""

    labels: np.ndarray
    clusters: Tuple[FlatCluster, ...]
    policy: str

    def __post_init__(self) -> None:
        labels = np.array(self.labels, dtype=np.int64, copy=True)
        labels.setflags(write=False)
        object.__setattr__(self, "labels", labels)
        object.__setattr__(self, "clusters", tuple(self.clusters))

    @classmethod
    def empty(cls, policy: str) -> "FlatClustering":
        return cls(labels=np.empty(0, dtype=np.int64), clusters=(), policy=policy)

    @classmethod
    def from_clusters(cls, n_objects: int, clusters: Iterable[FlatCluster], policy: str) -> "FlatClustering":
        """Build the label array from cluster member lists; uncovered objects are noise."""
        clusters = tuple(clusters)
        labels = np.full(n_objects, NOISE, dtype=np.int64)
        for cluster in clusters:
            labels[list(cluster.members)] = cluster.id
        return cls(labels=labels, clusters=clusters, policy=policy)

    @property
    def n_objects(self) -> int:
        return int(self.labels.shape[0])

    @property
    def n_clusters(self) -> int:
        return len(self.clusters)

    @property
    def noise(self) -> Tuple[int, ...]:
        return tuple(int(i) for i in np.flatnonzero(self.labels == NOISE))

    @property
    def clusters_by_id(self) -> Dict[int, FlatCluster]:
        return {cluster.id: cluster for cluster in self.clusters}

    def cluster_sizes(self) -> List[int]:
        return sorted(cluster.size for cluster in self.clusters)

    def size_multiset(self, include_noise: bool = False) -> List[int]:
        """Sorted group sizes; with ``include_noise`` the noise set counts as one group."""
        sizes = self.cluster_sizes()
        n_noise = len(self.noise)
        if include_noise and n_noise:
            sizes = sorted(sizes + [n_noise])
        return sizes

    def to_frame(self) -> pd.DataFrame:
        """One row per object with its cluster id, size and extraction height."""
        sizes = {c.id: c.size for c in self.clusters}
        heights = {c.id: c.height for c in self.clusters}
        labels = self.labels.tolist()
        return pd.DataFrame(
            {
                "object_id": np.arange(self.n_objects, dtype=np.int64),
                "cluster_id": np.asarray(labels, dtype=np.int64),
                "cluster_size": [sizes.get(label, 0) for label in labels],
                "cluster_height": [heights.get(label, np.nan) for label in labels],
                "is_noise": [label == NOISE for label in labels],
            }
        )

    def summary(self) -> Dict[str, object]:
        """JSON-serializable description of the clusters."""
        return {
            "policy": self.policy,
            "n_objects": self.n_objects,
            "n_clusters": self.n_clusters,
            "n_noise": len(self.noise),
            "clusters": [
                {
                    "id": c.id,
                    "size": c.size,
                    "height": c.height,
                    "node_id": c.node_id,
                    "stability": c.stability,
                }
                for c in self.clusters
            ],
        }
