"""Tests for cosine distance, agglomerative clustering and speaker-count estimation."""

import numpy as np
import pytest

from adapters.classical.clustering import (
    agglomerative_clustering, cosine_distance, cosine_distance_matrix,
    estimate_num_speakers, silhouette_score,
)
from domain.models import FeatureVector

VOICE_A = np.r_[np.ones(4), np.zeros(13)]
VOICE_B = np.r_[np.zeros(8), np.ones(9)]


def as_vectors(rows):
    return [FeatureVector(start_ms=i * 750, end_ms=i * 750 + 1500, features=np.asarray(r, dtype=float), has_voice=True)
            for i, r in enumerate(rows)]


class TestCosineDistance:
    def test_self_distance_is_zero(self):
        v = np.array([0.3, -1.2, 4.0, 0.01])
        assert cosine_distance(v, v) == pytest.approx(0.0, abs=1e-12)

    def test_zero_vector_is_maximally_distant(self):
        v = np.array([1.0, 2.0, 3.0])
        assert cosine_distance(v, np.zeros(3)) == 1.0
        assert cosine_distance(np.zeros(3), v) == 1.0
        assert cosine_distance(np.zeros(3), np.zeros(3)) == 1.0

    def test_orthogonal_and_opposite(self):
        assert cosine_distance(np.array([1.0, 0.0]), np.array([0.0, 5.0])) == pytest.approx(1.0)
        assert cosine_distance(np.array([1.0, 1.0]), np.array([-2.0, -2.0])) == pytest.approx(2.0)

    def test_matrix_matches_pairwise(self):
        rng = np.random.default_rng(3)
        rows = rng.normal(size=(6, 17))
        rows[2] = 0.0
        matrix = cosine_distance_matrix(rows)
        for i in range(6):
            for j in range(6):
                if i == 2 or j == 2:
                    assert matrix[i, j] == 1.0
                else:
                    assert matrix[i, j] == pytest.approx(cosine_distance(rows[i], rows[j]), abs=1e-12)


class TestAgglomerativeClustering:
    def test_empty(self):
        assert agglomerative_clustering([], 2) == []

    def test_single_cluster_labels_everything_the_same(self):
        rng = np.random.default_rng(11)
        labels = agglomerative_clustering(as_vectors(rng.normal(size=(12, 17))), 1)
        assert labels == [0] * 12

    def test_fewer_points_than_clusters(self):
        assert agglomerative_clustering(as_vectors([VOICE_A, VOICE_B]), 3) == [0, 1]

    def test_separates_two_voices(self):
        rows = [VOICE_B, VOICE_A, VOICE_A, VOICE_B, VOICE_B, VOICE_A]
        labels = agglomerative_clustering(as_vectors(rows), 2)
        assert labels == [0, 1, 1, 0, 0, 1]

    def test_labels_are_dense_in_first_seen_order(self):
        rng = np.random.default_rng(5)
        labels = agglomerative_clustering(as_vectors(rng.normal(size=(20, 17))), 4)
        seen = []
        for label in labels:
            if label not in seen:
                seen.append(label)
        assert seen == [0, 1, 2, 3]

    def test_accepts_raw_arrays(self):
        assert agglomerative_clustering([VOICE_A, VOICE_A, VOICE_B], 2) == [0, 0, 1]

    def test_rejects_non_positive_k(self):
        with pytest.raises(ValueError):
            agglomerative_clustering(as_vectors([VOICE_A, VOICE_B]), 0)


class TestSilhouette:
    def test_perfect_split_scores_one(self):
        rows = np.array([VOICE_A, VOICE_A, VOICE_B, VOICE_B])
        assert silhouette_score(cosine_distance_matrix(rows), [0, 0, 1, 1]) == pytest.approx(1.0)

    def test_single_cluster_scores_zero(self):
        rows = np.array([VOICE_A, VOICE_A, VOICE_A])
        assert silhouette_score(cosine_distance_matrix(rows), [0, 0, 0]) == pytest.approx(0.0, abs=1e-9)


class TestEstimateNumSpeakers:
    def test_two_constant_voices(self):
        rows = [VOICE_A] * 5 + [VOICE_B] * 5
        assert estimate_num_speakers(as_vectors(rows)) == 2

    def test_interleaved_voices(self):
        rows = [VOICE_A, VOICE_B] * 6
        assert estimate_num_speakers(as_vectors(rows)) == 2

    def test_too_few_vectors(self):
        assert estimate_num_speakers(as_vectors([VOICE_A, VOICE_B, VOICE_A])) == 1

    def test_single_voice_falls_back_to_one(self):
        assert estimate_num_speakers(as_vectors([VOICE_A] * 10)) == 1

    def test_three_voices(self):
        voice_c = np.r_[np.zeros(4), np.full(4, 2.0), np.zeros(9)]
        rows = [VOICE_A] * 4 + [voice_c] * 4 + [VOICE_B] * 4
        assert estimate_num_speakers(as_vectors(rows)) == 3

    def test_max_speakers_caps_candidates(self):
        rows = [VOICE_A] * 5 + [VOICE_B] * 5
        assert estimate_num_speakers(as_vectors(rows), max_speakers=1) == 1
