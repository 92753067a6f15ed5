"""Tests for priority weight normalisation."""

import pytest

from services.domain_weights import calculate_domain_weights


class TestDomainWeights:

    def test_weights_proportional_to_importance(self, make_priority):
        weights = calculate_domain_weights([
            make_priority("Work", importance_score=8, rank=1),
            make_priority("Health", importance_score=2, rank=2),
        ])

        assert [w.domain for w in weights] == ["Work", "Health"]
        assert weights[0].weight == pytest.approx(0.8)
        assert weights[1].weight == pytest.approx(0.2)

    @pytest.mark.parametrize("scores", [
        [1],
        [10, 10],
        [3, 7, 1, 9],
        [1, 2, 3, 4, 5, 6, 7, 8],
    ])
    def test_weights_sum_to_one(self, make_priority, scores):
        domains = ["Work", "Health", "Home", "Finance", "Social", "Personal Growth", "Admin", "Family"]
        priorities = [
            make_priority(domains[i], importance_score=s, rank=i + 1)
            for i, s in enumerate(scores)
        ]
        assert sum(w.weight for w in calculate_domain_weights(priorities)) == pytest.approx(1.0)

    def test_zero_total_importance_falls_back_to_uniform(self, make_priority):
        weights = calculate_domain_weights([
            make_priority("Work", importance_score=0, rank=1),
            make_priority("Health", importance_score=0, rank=2),
            make_priority("Home", importance_score=0, rank=3),
            make_priority("Family", importance_score=0, rank=4),
        ])
        assert all(w.weight == 0.25 for w in weights)

    def test_zero_importance_domain_gets_zero_weight(self, make_priority):
        weights = calculate_domain_weights([
            make_priority("Work", importance_score=5, rank=1),
            make_priority("Admin", importance_score=0, rank=2),
        ])
        assert weights[1].weight == 0

    def test_rank_and_importance_are_carried(self, make_priority):
        weights = calculate_domain_weights([make_priority("Finance", importance_score=6, rank=3)])
        assert weights[0].rank == 3
        assert weights[0].importance_score == 6

    def test_empty_priorities(self):
        assert calculate_domain_weights([]) == []
