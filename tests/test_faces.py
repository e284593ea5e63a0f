"""Tests for face grouping."""

from typing import Dict, List

import numpy as np
import pytest

from photo_organizer.core.classifier import organize_files
from photo_organizer.core.rules import DEFAULT_RULES
from photo_organizer.exceptions import FaceAnalysisError
from photo_organizer.faces import (
    FaceCluster,
    FaceDescriptorExtractor,
    FaceModelState,
    cluster_faces,
    group_faces,
    rules_from_clusters,
)
from photo_organizer.core.session import OrganizerSession
from photo_organizer.models.config import FaceConfig
from photo_organizer.models.photo_file import PhotoFile


class FakeExtractor(FaceDescriptorExtractor):
    """Returns canned descriptors keyed by photo id."""

    def __init__(self, faces: Dict[str, List[List[float]]], fail_on=(),
                 error: Exception = FaceAnalysisError("unreadable image")):
        self.faces = faces
        self.fail_on = set(fail_on)
        self.error = error
        self.load_calls = 0

    def load(self) -> None:
        self.load_calls += 1

    def describe(self, photo: PhotoFile) -> List[np.ndarray]:
        if photo.id in self.fail_on:
            raise self.error
        return [np.array(d, dtype=np.float32) for d in self.faces.get(photo.id, [])]


class BrokenExtractor(FakeExtractor):
    def load(self) -> None:
        self.load_calls += 1
        raise RuntimeError("weights missing")


def photos(*ids):
    return [PhotoFile(id=photo_id, name=f"{photo_id}.jpg") for photo_id in ids]


class TestFaceModelState:
    """Lazy, at-most-once model loading."""

    def test_loads_once(self):
        extractor = FakeExtractor({})
        state = FaceModelState(extractor)
        assert not state.is_loaded
        assert state.ensure_ready() is extractor
        state.ensure_ready()
        assert extractor.load_calls == 1
        assert state.is_loaded

    def test_failed_load_is_retried(self):
        extractor = BrokenExtractor({})
        state = FaceModelState(extractor)
        with pytest.raises(FaceAnalysisError):
            state.ensure_ready()
        with pytest.raises(FaceAnalysisError):
            state.ensure_ready()
        assert extractor.load_calls == 2
        assert not state.is_loaded


class TestClusterFaces:
    """Greedy clustering in file order."""

    def test_close_faces_share_a_cluster(self):
        extractor = FakeExtractor({
            "p1": [[0.0, 0.0]],
            "p2": [[0.1, 0.0]],
            "p3": [[5.0, 5.0]],
        })
        clusters = cluster_faces(photos("p1", "p2", "p3"), FaceModelState(extractor))

        assert list(clusters) == ["person-1", "person-2"]
        assert clusters["person-1"].label == "Person 1"
        assert clusters["person-1"].photo_ids == ["p1", "p2"]
        assert clusters["person-2"].photo_ids == ["p3"]

    def test_threshold_is_strict(self):
        extractor = FakeExtractor({"p1": [[0.0]], "p2": [[0.6]]})
        clusters = cluster_faces(photos("p1", "p2"), FaceModelState(extractor), threshold=0.6)
        assert len(clusters) == 2

    def test_nearest_cluster_wins(self):
        extractor = FakeExtractor({
            "p1": [[0.0]],
            "p2": [[1.0]],
            "p3": [[0.7]],
        })
        clusters = cluster_faces(photos("p1", "p2", "p3"), FaceModelState(extractor), threshold=0.5)
        assert clusters["person-2"].photo_ids == ["p2", "p3"]

    def test_compares_against_running_average(self):
        extractor = FakeExtractor({
            "p1": [[0.0]],
            "p2": [[0.5]],
            "p3": [[0.75]],
        })
        clusters = cluster_faces(photos("p1", "p2", "p3"), FaceModelState(extractor), threshold=0.55)
        # p3 is 0.75 from p1 but 0.5 from the average of p1 and p2
        assert list(clusters) == ["person-1"]
        assert clusters["person-1"].average_descriptor() == pytest.approx([1.25 / 3])

    def test_several_faces_in_one_photo(self):
        extractor = FakeExtractor({"group": [[0.0, 0.0], [3.0, 3.0]], "solo": [[3.0, 3.1]]})
        clusters = cluster_faces(photos("group", "solo"), FaceModelState(extractor))
        assert clusters["person-2"].photo_ids == ["group", "solo"]

    def test_failed_photo_is_skipped(self):
        extractor = FakeExtractor({"p1": [[0.0]], "p2": [[0.0]]}, fail_on=["p1"])
        clusters = cluster_faces(photos("p1", "p2"), FaceModelState(extractor))
        assert clusters["person-1"].photo_ids == ["p2"]

    @pytest.mark.parametrize("error", [OSError("cannot decode image"), ValueError("bad header")])
    def test_any_photo_failure_is_skipped(self, error):
        extractor = FakeExtractor(
            {"good-1": [[0.0]], "good-2": [[0.1]]}, fail_on=["bad"], error=error,
        )
        clusters = cluster_faces(photos("good-1", "bad", "good-2"), FaceModelState(extractor))
        assert list(clusters) == ["person-1"]
        assert clusters["person-1"].photo_ids == ["good-1", "good-2"]

    def test_no_faces(self):
        assert cluster_faces(photos("p1"), FaceModelState(FakeExtractor({}))) == {}


class TestClusterRules:
    """Clusters feed the rule model."""

    def test_rename(self):
        cluster = FaceCluster(id="person-1", label="Person 1")
        cluster.rename("  Mom ")
        assert cluster.label == "Mom"
        with pytest.raises(ValueError):
            cluster.rename("   ")

    def test_average_of_empty_cluster(self):
        with pytest.raises(FaceAnalysisError):
            FaceCluster(id="person-1", label="Person 1").average_descriptor()

    def test_rules_from_clusters_route_photos(self):
        extractor = FakeExtractor({"file-0": [[0.0]], "file-2": [[0.0]]})
        files = [
            PhotoFile(id="file-0", name="IMG_1.jpg"),
            PhotoFile(id="file-1", name="IMG_2.jpg"),
            PhotoFile(id="file-2", name="shot.png"),
        ]
        clusters = cluster_faces(files, FaceModelState(extractor))
        clusters["person-1"].rename("Mom")

        face_rules = rules_from_clusters(clusters.values())
        assert face_rules[0].id == "face-person-1"
        assert face_rules[0].folder == "People - Mom"
        assert face_rules[0].priority == 20

        manifest = organize_files(files, list(DEFAULT_RULES) + face_rules)
        assert [f.id for f in manifest["People - Mom"].files] == ["file-0", "file-2"]
        assert [f.id for f in manifest["Camera Photos"].files] == ["file-1"]

    def test_rules_without_prefix(self):
        rule, = rules_from_clusters([FaceCluster(id="person-1", label="Alex")], folder_prefix="")
        assert rule.folder == "Alex"


class TestGroupFaces:
    """Face grouping driven through a session."""

    @pytest.fixture
    def session(self):
        session = OrganizerSession()
        session.add_files([
            PhotoFile(id="file-0", name="IMG_1.jpg"),
            PhotoFile(id="file-1", name="IMG_2.jpg"),
            PhotoFile(id="file-2", name="shot.png"),
        ])
        return session

    def test_installs_rules_and_reorganizes(self, session):
        model = FaceModelState(FakeExtractor({"file-0": [[0.0]], "file-2": [[0.0]]}))
        clusters = group_faces(session, model)

        assert list(clusters) == ["person-1"]
        assert "face-person-1" in [rule.id for rule in session.rules]
        assert session.manifest.names == ["People - Person 1", "Camera Photos"]
        assert session.files[2].organization_folder == "People - Person 1"

    def test_regrouping_replaces_face_rules(self, session):
        model = FaceModelState(FakeExtractor({"file-0": [[0.0]], "file-1": [[9.0]]}))
        clusters = group_faces(session, model, FaceConfig(folder_prefix="", rule_priority=12))
        assert len(session.rules) == len(DEFAULT_RULES) + 2

        clusters["person-2"].rename("Sam")
        session.set_face_rules(rules_from_clusters([clusters["person-2"]], folder_prefix=""))

        assert len(session.rules) == len(DEFAULT_RULES) + 1
        assert session.manifest.folder_of("file-1") == "Sam"
        assert session.manifest.folder_of("file-0") == "Camera Photos"

    def test_config_threshold_is_used(self, session):
        model = FaceModelState(FakeExtractor({"file-0": [[0.0]], "file-1": [[0.5]]}))
        clusters = group_faces(session, model, FaceConfig(distance_threshold=0.4))
        assert len(clusters) == 2
