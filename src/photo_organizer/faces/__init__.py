"""Face grouping: cluster photos by person and turn people into rules."""

from .clustering import (
    DEFAULT_DISTANCE_THRESHOLD,
    Face,
    FaceCluster,
    cluster_faces,
    group_faces,
    rules_from_clusters,
)
from .model import FaceDescriptorExtractor, FaceModelState

__all__ = [
    "DEFAULT_DISTANCE_THRESHOLD",
    "Face",
    "FaceCluster",
    "FaceDescriptorExtractor",
    "FaceModelState",
    "cluster_faces",
    "group_faces",
    "rules_from_clusters",
]
