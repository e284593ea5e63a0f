"""Group photos by the people in them.

Faces are clustered greedily, in file order, with no second pass: each face
joins the cluster whose average descriptor is nearest, provided that
distance is below the threshold, and otherwise starts a new cluster.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from ..exceptions import FaceAnalysisError
from ..models.photo_file import PhotoFile
from ..core.rules import FACE_RULE_PREFIX, Rule, create_membership_rule
from ..core.session import OrganizerSession
from ..models.config import FaceConfig
from .model import FaceModelState

logger = logging.getLogger(__name__)

DEFAULT_DISTANCE_THRESHOLD = 0.6


@dataclass
class Face:
    photo_id: str
    descriptor: np.ndarray


@dataclass
class FaceCluster:
    """One presumed person."""
    id: str
    label: str
    faces: List[Face] = field(default_factory=list)

    @property
    def photo_ids(self) -> List[str]:
        """Ids of photos containing this person, first appearance order."""
        return list(dict.fromkeys(face.photo_id for face in self.faces))

    def average_descriptor(self) -> np.ndarray:
        if not self.faces:
            raise FaceAnalysisError(f"Cluster {self.id} has no descriptors")
        return np.mean(np.stack([face.descriptor for face in self.faces]), axis=0)

    def rename(self, label: str) -> None:
        label = label.strip()
        if not label:
            raise ValueError("Cluster label cannot be empty")
        self.label = label


def _nearest_cluster(descriptor: np.ndarray, clusters: Iterable[FaceCluster],
                     threshold: float) -> Optional[FaceCluster]:
    best: Optional[FaceCluster] = None
    min_distance = threshold
    for cluster in clusters:
        distance = float(np.linalg.norm(descriptor - cluster.average_descriptor()))
        if distance < min_distance:
            min_distance = distance
            best = cluster
    return best


def cluster_faces(
    photos: Sequence[PhotoFile],
    model: FaceModelState,
    threshold: float = DEFAULT_DISTANCE_THRESHOLD,
) -> Dict[str, FaceCluster]:
    """Cluster the faces found in ``photos``.

    Photos whose analysis fails are logged and skipped.

    Returns:
        Clusters keyed by id, in creation order
    """
    extractor = model.ensure_ready()
    clusters: Dict[str, FaceCluster] = {}

    for photo in photos:
        try:
            descriptors = extractor.describe(photo)
        except Exception as e:
            logger.warning(f"Face analysis failed for {photo.name}: {e}")
            continue

        for descriptor in descriptors:
            descriptor = np.asarray(descriptor, dtype=np.float32)
            match = _nearest_cluster(descriptor, clusters.values(), threshold)
            if match is not None:
                match.faces.append(Face(photo.id, descriptor))
            else:
                number = len(clusters) + 1
                cluster = FaceCluster(
                    id=f"person-{number}",
                    label=f"Person {number}",
                    faces=[Face(photo.id, descriptor)],
                )
                clusters[cluster.id] = cluster

    logger.info(f"Found {len(clusters)} people in {len(photos)} photos")
    return clusters


def rules_from_clusters(
    clusters: Iterable[FaceCluster],
    priority: int = 20,
    folder_prefix: str = "People",
) -> List[Rule]:
    """Synthesize one membership rule per cluster.

    A photo showing several people is matched by each of their rules, so the
    usual first-match precedence puts it in a single folder.
    """
    return [
        create_membership_rule(
            rule_id=f"{FACE_RULE_PREFIX}{cluster.id}",
            name=cluster.label,
            photo_ids=cluster.photo_ids,
            folder=f"{folder_prefix} - {cluster.label}" if folder_prefix else cluster.label,
            priority=priority,
            description=f"Photos showing {cluster.label}",
        )
        for cluster in clusters
    ]


def group_faces(
    session: OrganizerSession,
    model: FaceModelState,
    config: Optional[FaceConfig] = None,
) -> Dict[str, FaceCluster]:
    """Cluster the session's files by person and install one rule per person.

    Rules from an earlier grouping are replaced. After renaming clusters,
    pass them to :func:`rules_from_clusters` and
    :meth:`OrganizerSession.set_face_rules` to relabel the folders.
    """
    config = config or FaceConfig()
    clusters = cluster_faces(session.files, model, config.distance_threshold)
    session.set_face_rules(
        rules_from_clusters(clusters.values(), config.rule_priority, config.folder_prefix)
    )
    return clusters
