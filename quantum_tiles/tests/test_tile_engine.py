"""Tests for distributions, tiles and the grid."""

import pytest
import numpy as np

from quantum_tiles.pkgs.tile_engine import (
    StateDistribution, InvalidDistribution, Tile, Relation, Grid,
    WILDCARD, UNSET, INTERFERENCE_COEFFICIENT
)


def resolver(*tiles):
    index = {t.coord: t for t in tiles}
    return lambda r, c: index.get((r, c))


class TestStateDistribution:
    """Test construction, sampling and collapse."""

    def test_uniform_construction(self):
        state = StateDistribution(4)
        assert state.outcome_count == 4
        assert state.probabilities() == [0.25, 0.25, 0.25, 0.25]
        assert not state.collapsed
        assert state.collapsed_outcome is None

    def test_zero_outcomes_rejected(self):
        with pytest.raises(InvalidDistribution):
            StateDistribution(0)

    def test_from_weights_normalizes(self):
        state = StateDistribution.from_weights([2, 6])
        assert state.probabilities() == pytest.approx([0.25, 0.75])
        assert state.weights.sum() == pytest.approx(1.0, abs=1e-9)

    def test_from_weights_empty_rejected(self):
        with pytest.raises(InvalidDistribution):
            StateDistribution.from_weights([])

    def test_from_weights_all_zero_left_unchanged(self):
        state = StateDistribution.from_weights([0.0, 0.0, 0.0])
        assert state.outcome_count == 3
        assert state.probabilities() == [0.0, 0.0, 0.0]

    def test_sampling_walks_cumulative_weights(self, scripted_rng):
        low = StateDistribution.from_weights([0.25, 0.75])
        assert low.collapse(rng=scripted_rng(0.2499)) == 0
        # The draw must be strictly below the cumulative weight
        edge = StateDistribution.from_weights([0.25, 0.75])
        assert edge.collapse(rng=scripted_rng(0.25)) == 1

    def test_sampling_falls_back_to_last_outcome(self, scripted_rng):
        state = StateDistribution(3)
        state.weights = np.array([0.3, 0.3, 0.3])
        assert state.collapse(rng=scripted_rng(0.95)) == 2

    def test_collapse_is_one_hot(self, scripted_rng):
        state = StateDistribution(3)
        outcome = state.collapse(rng=scripted_rng(0.5))
        assert outcome == 1
        assert state.collapsed
        assert state.collapsed_outcome == 1
        assert state.probabilities() == [0.0, 1.0, 0.0]

    def test_forced_collapse_skips_random_source(self, no_rng):
        state = StateDistribution(2)
        assert state.collapse(1, rng=no_rng) == 1

    def test_recollapse_is_noop(self, no_rng):
        state = StateDistribution(2)
        state.collapse(1)
        assert state.collapse(0) == 1
        assert state.collapse(rng=no_rng) == 1
        assert state.collapsed_outcome == 1

    def test_forced_outcome_out_of_range(self):
        state = StateDistribution(2)
        with pytest.raises(ValueError):
            state.collapse(2)
        with pytest.raises(ValueError):
            state.collapse(-1)
        assert not state.collapsed
        assert state.probabilities() == [0.5, 0.5]

    def test_definite(self):
        state = StateDistribution.definite(2, 3)
        assert state.collapsed
        assert state.collapsed_outcome == 2

    def test_dominant_outcome_first_max_wins(self):
        assert StateDistribution.from_weights([0.4, 0.4, 0.2]).dominant_outcome() == 0
        assert StateDistribution.from_weights([0.2, 0.4, 0.4]).dominant_outcome() == 1
        assert StateDistribution.definite(0).dominant_outcome() == 0

    def test_superposition_threshold(self):
        assert StateDistribution(2).is_superposed()
        assert not StateDistribution.from_weights([0.995, 0.005]).is_superposed()
        assert StateDistribution.from_weights([0.98, 0.011, 0.009]).is_superposed()
        assert not StateDistribution.definite(1).is_superposed()

    def test_clone_is_independent(self):
        state = StateDistribution.from_weights([0.7, 0.3])
        copy = state.clone()
        copy.collapse(1)
        assert not state.collapsed
        assert state.probabilities() == pytest.approx([0.7, 0.3])
        copy.weights[0] = 5.0
        assert state.weights[0] == pytest.approx(0.7)


class TestRelation:

    def test_same(self):
        assert Relation.SAME.apply(1, 2) == 1
        assert Relation("same") is Relation.SAME

    def test_opposite_binary(self):
        assert Relation.OPPOSITE.apply(0, 2) == 1
        assert Relation.OPPOSITE.apply(1, 2) == 0

    def test_opposite_reverses_outcome_space(self):
        assert Relation.OPPOSITE.apply(0, 3) == 2
        assert Relation.OPPOSITE.apply(1, 3) == 1
        assert Relation.OPPOSITE.apply(3, 4) == 0


class TestTile:
    """Test linking and the collapse cascade."""

    def test_link_is_bidirectional(self):
        a, b = Tile(0, 0), Tile(0, 1)
        assert a.link_to(b, "opposite")
        assert a.links == {(0, 1): Relation.OPPOSITE}
        assert b.links == {(0, 0): Relation.OPPOSITE}

    def test_relink_ignored(self):
        a, b = Tile(0, 0), Tile(0, 1)
        a.link_to(b, Relation.SAME)
        assert not b.link_to(a, Relation.OPPOSITE)
        assert a.links[(0, 1)] is Relation.SAME
        assert b.links[(0, 0)] is Relation.SAME
        assert len(a.links) == 1 and len(b.links) == 1

    def test_no_self_link(self):
        a = Tile(1, 1)
        assert not a.link_to(a)
        assert a.links == {}

    def test_cascade_same(self, scripted_rng):
        a, b = Tile(0, 0), Tile(0, 1)
        a.link_to(b, "same")
        assert a.measure(resolver(a, b), scripted_rng(0.9)) == 1
        assert b.collapsed and b.outcome == 1

    def test_cascade_opposite(self, scripted_rng):
        a, b = Tile(0, 0), Tile(0, 1)
        a.link_to(b, "opposite")
        assert a.measure(resolver(a, b), scripted_rng(0.1)) == 0
        assert b.outcome == 1

        c, d = Tile(0, 0), Tile(0, 1)
        c.link_to(d, "opposite")
        assert c.measure(resolver(c, d), scripted_rng(0.9)) == 1
        assert d.outcome == 0

    def test_cascade_terminates_on_cycle(self, scripted_rng):
        a, b, c = Tile(0, 0), Tile(0, 1), Tile(0, 2)
        a.link_to(b)
        b.link_to(c)
        c.link_to(a)
        outcome = b.measure(resolver(a, b, c), scripted_rng(0.6))
        assert outcome == 1
        assert [t.outcome for t in (a, b, c)] == [1, 1, 1]

    def test_cascade_is_depth_first(self, scripted_rng):
        # a-b same, b-c same, a-c opposite: c is reached through b first
        a, b, c = Tile(0, 0), Tile(0, 1), Tile(0, 2)
        a.link_to(b, "same")
        a.link_to(c, "opposite")
        b.link_to(c, "same")
        a.measure(resolver(a, b, c), scripted_rng(0.1))
        assert [t.outcome for t in (a, b, c)] == [0, 0, 0]

    def test_cascade_returns_collapsed_coords(self):
        a, b, c = Tile(0, 0), Tile(0, 1), Tile(0, 2)
        a.link_to(b)
        b.link_to(c)
        a.state.collapse(0)
        assert a.cascade(resolver(a, b, c)) == [(0, 1), (0, 2)]
        assert a.cascade(resolver(a, b, c)) == []

    def test_measure_collapsed_tile_is_noop(self, no_rng):
        a, b = Tile(0, 0), Tile(0, 1)
        a.link_to(b)
        a.state.collapse(1)
        assert a.measure(resolver(a, b), no_rng) == 1
        assert not b.collapsed

    def test_links_to_missing_tiles_are_skipped(self, scripted_rng):
        a, b = Tile(0, 0), Tile(0, 1)
        a.link_to(b)
        assert a.measure(resolver(a), scripted_rng(0.2)) == 0
        assert not b.collapsed

    def test_clone_drops_links(self):
        a, b = Tile(2, 3, StateDistribution.from_weights([0.9, 0.1])), Tile(0, 0)
        a.link_to(b)
        copy = a.clone()
        assert copy.coord == (2, 3)
        assert copy.links == {}
        assert copy.state is not a.state
        assert copy.state.probabilities() == pytest.approx([0.9, 0.1])


class TestGrid:
    """Test grid queries, interference, wiring and cloning."""

    def test_construction(self):
        grid = Grid(2, 3)
        tiles = list(grid)
        assert len(tiles) == 6
        assert [t.coord for t in tiles] == [(r, c) for r in range(2) for c in range(3)]
        assert all(t.state.probabilities() == [0.5, 0.5] for t in tiles)

    def test_invalid_shape(self):
        with pytest.raises(ValueError):
            Grid(0, 3)
        with pytest.raises(InvalidDistribution):
            Grid(2, 2, outcome_count=0)

    def test_tile_at_out_of_bounds(self):
        grid = Grid(2, 2)
        assert grid.tile_at(1, 1).coord == (1, 1)
        assert grid.tile_at(-1, 0) is None
        assert grid.tile_at(0, 2) is None
        assert grid.tile_at(5, 5) is None

    def test_measure_out_of_bounds(self, no_rng):
        grid = Grid(2, 2, rng=no_rng)
        assert grid.measure_tile(2, 0) is None
        assert grid.collapsed_count() == 0

    def test_measure_collapsed_tile_does_not_cascade(self, no_rng):
        grid = Grid(1, 2, rng=no_rng)
        grid.link_entanglement(0, 0, 0, 1)
        grid.tile_at(0, 0).state.collapse(0)
        assert grid.measure_tile(0, 0) == 0
        assert not grid.tile_at(0, 1).collapsed

    def test_measure_twice_same_outcome(self, scripted_rng):
        grid = Grid(2, 2, rng=scripted_rng(0.7))
        first = grid.measure_tile(1, 0)
        assert grid.measure_tile(1, 0) == first == 1
        assert grid.tile_at(1, 0).collapsed

    def test_neighbor_order(self):
        grid = Grid(3, 3)
        assert [t.coord for t in grid.neighbors_of(1, 1)] == [(0, 1), (1, 0), (1, 2), (2, 1)]
        assert [t.coord for t in grid.neighbors_of(0, 0)] == [(0, 1), (1, 0)]
        assert [t.coord for t in grid.neighbors_of(1, 1, include_diagonals=True)] == [
            (0, 0), (0, 1), (0, 2), (1, 0), (1, 2), (2, 0), (2, 1), (2, 2)
        ]
        assert [t.coord for t in grid.neighbors_of(2, 2, include_diagonals=True)] == [
            (1, 1), (1, 2), (2, 1)
        ]

    def test_interference_accumulates_then_normalizes(self):
        grid = Grid(1, 3)
        grid.set_distribution(0, 0, [0.8, 0.2])
        grid.set_distribution(0, 2, [0.6, 0.4])
        assert grid.apply_interference(0, 1)
        expected = np.array([0.5 + 0.08 + 0.06, 0.5 + 0.02 + 0.04])
        assert grid.tile_at(0, 1).state.probabilities() == pytest.approx(
            (expected / expected.sum()).tolist()
        )
        assert INTERFERENCE_COEFFICIENT == 0.1

    def test_interference_increases_favoured_outcome(self):
        grid = Grid(1, 2)
        grid.set_distribution(0, 0, [0.2, 0.8])
        before = grid.tile_at(0, 1).state.weights.copy()
        grid.apply_interference(0, 1)
        after = grid.tile_at(0, 1).state.weights
        assert after[1] > before[1]
        assert after.sum() == pytest.approx(1.0, abs=1e-9)

    def test_interference_without_superposed_neighbors(self):
        grid = Grid(2, 2)
        grid.tile_at(0, 1).state.collapse(0)
        grid.tile_at(1, 0).state.collapse(1)
        before = grid.tile_at(0, 0).state.probabilities()
        assert not grid.apply_interference(0, 0)
        assert grid.tile_at(0, 0).state.probabilities() == before

    def test_interference_ignores_near_definite_and_diagonal_neighbors(self):
        grid = Grid(2, 2)
        grid.set_distribution(0, 1, [1.0, 0.0])
        grid.set_distribution(1, 0, [0.999, 0.001])
        # (1, 1) is only a diagonal neighbour of (0, 0)
        assert not grid.apply_interference(0, 0)
        assert grid.tile_at(0, 0).state.probabilities() == [0.5, 0.5]

    def test_interference_noop_cases(self):
        grid = Grid(1, 2)
        assert not grid.apply_interference(0, 5)
        grid.tile_at(0, 0).state.collapse(1)
        assert not grid.apply_interference(0, 0)
        assert grid.tile_at(0, 0).state.probabilities() == [0.0, 1.0]

    def test_normalization_invariant(self):
        rng = np.random.default_rng(3)
        grid = Grid(4, 4, rng=rng.random)
        for tile in grid:
            grid.set_distribution(tile.row, tile.col, rng.random(2) + 0.01)
        for _ in range(50):
            r, c = int(rng.integers(4)), int(rng.integers(4))
            if rng.random() < 0.2:
                grid.measure_tile(r, c)
            else:
                grid.apply_interference(r, c)
            for tile in grid:
                if not tile.collapsed:
                    assert abs(tile.state.weights.sum() - 1.0) < 1e-9

    def test_set_distribution(self):
        grid = Grid(2, 2)
        assert grid.set_distribution(0, 0, [3, 1])
        assert grid.tile_at(0, 0).state.probabilities() == pytest.approx([0.75, 0.25])
        assert not grid.set_distribution(3, 3, [1, 1])
        with pytest.raises(InvalidDistribution):
            grid.set_distribution(0, 1, [1, 1, 1])
        grid.tile_at(1, 1).state.collapse(0)
        assert not grid.set_distribution(1, 1, [0.5, 0.5])
        assert grid.tile_at(1, 1).outcome == 0

    def test_link_entanglement_out_of_bounds(self):
        grid = Grid(2, 2)
        assert not grid.link_entanglement(0, 0, 2, 2, "same")
        assert grid.tile_at(0, 0).links == {}
        assert grid.link_entanglement(0, 0, 1, 1, "opposite")
        assert grid.linked_tiles(1, 1) == [(grid.tile_at(0, 0), Relation.OPPOSITE)]

    def test_matches_pattern_with_wildcards(self):
        grid = Grid(2, 2)
        pattern = [[0, WILDCARD], [WILDCARD, 1]]
        assert not grid.matches_pattern(pattern)
        grid.tile_at(0, 0).state.collapse(0)
        assert not grid.matches_pattern(pattern)
        grid.tile_at(1, 1).state.collapse(1)
        assert grid.matches_pattern(pattern)
        grid.tile_at(0, 1).state.collapse(1)
        assert grid.matches_pattern(pattern)

    def test_matches_pattern_wrong_outcome(self):
        grid = Grid(2, 2)
        grid.tile_at(0, 0).state.collapse(1)
        grid.tile_at(1, 1).state.collapse(1)
        assert not grid.matches_pattern([[0, -1], [-1, 1]])

    def test_matches_pattern_shape_mismatch(self):
        grid = Grid(2, 2)
        for tile in grid:
            tile.state.collapse(0)
        assert grid.matches_pattern([[0, 0], [0, 0]])
        assert not grid.matches_pattern([[0, 0]])
        assert not grid.matches_pattern([[0], [0]])
        assert not grid.matches_pattern([[0, 0], [0]])

    def test_is_solved(self):
        grid = Grid(1, 2)
        grid.tile_at(0, 0).state.collapse(0)
        assert not grid.is_solved()
        assert grid.is_solved([[0, WILDCARD]])
        grid.tile_at(0, 1).state.collapse(1)
        assert grid.is_solved()
        assert not grid.is_solved([[0, 0]])

    def test_current_pattern_is_snapshot(self):
        grid = Grid(2, 2)
        grid.tile_at(0, 1).state.collapse(1)
        pattern = grid.current_pattern()
        assert pattern == [[UNSET, 1], [UNSET, UNSET]]
        grid.tile_at(1, 0).state.collapse(0)
        assert pattern == [[None, 1], [None, None]]
        pattern[0][0] = 7
        assert grid.current_pattern() == [[None, 1], [0, None]]

    def test_probability_map(self):
        grid = Grid(2, 3, outcome_count=3)
        probs = grid.probability_map()
        assert probs.shape == (2, 3, 3)
        assert np.allclose(probs.sum(axis=2), 1.0)

    def test_long_chain_does_not_recurse(self, scripted_rng):
        grid = Grid(1, 3000, rng=scripted_rng(0.1))
        for c in range(2999):
            grid.link_entanglement(0, c, 0, c + 1)
        assert grid.measure_tile(0, 0) == 0
        assert grid.is_fully_collapsed()
        assert all(t.outcome == 0 for t in grid)

    def test_opposite_chain_with_three_outcomes(self, scripted_rng):
        grid = Grid(1, 3, outcome_count=3, rng=scripted_rng(0.0))
        grid.link_entanglement(0, 0, 0, 1, "opposite")
        grid.link_entanglement(0, 1, 0, 2, "opposite")
        assert grid.measure_tile(0, 0) == 0
        assert grid.current_pattern() == [[0, 2, 0]]

    def test_opposite_chain_middle_outcome_is_fixed_point(self, scripted_rng):
        grid = Grid(1, 3, outcome_count=3, rng=scripted_rng(0.5))
        grid.link_entanglement(0, 0, 0, 1, "opposite")
        grid.link_entanglement(0, 1, 0, 2, "opposite")
        assert grid.measure_tile(0, 1) == 1
        assert grid.current_pattern() == [[1, 1, 1]]

    def test_prebuilt_tiles_must_fill_grid(self):
        with pytest.raises(ValueError):
            Grid(2, 2, tiles=[Tile(0, 0)])


class TestGridClone:
    """Test clone independence and link re-wiring."""

    def make_grid(self):
        grid = Grid(2, 2)
        grid.set_distribution(0, 0, [0.9, 0.1])
        grid.link_entanglement(0, 0, 0, 1, "same")
        grid.link_entanglement(1, 0, 1, 1, "opposite")
        grid.tile_at(1, 1).state.collapse(1)
        return grid

    def test_clone_copies_values(self):
        grid = self.make_grid()
        copy = grid.clone()
        assert (copy.rows, copy.cols, copy.outcome_count) == (2, 2, 2)
        assert copy.current_pattern() == grid.current_pattern()
        assert copy.tile_at(0, 0).state.probabilities() == pytest.approx([0.9, 0.1])
        assert copy.tile_at(1, 1).outcome == 1

    def test_clone_links_reference_clone_tiles(self):
        grid = self.make_grid()
        copy = grid.clone()
        originals = {id(t) for t in grid}
        for tile in copy:
            assert tile.links == grid.tile_at(*tile.coord).links
            for partner, _ in copy.linked_tiles(*tile.coord):
                assert partner is copy.tile_at(*partner.coord)
                assert id(partner) not in originals

    def test_measuring_original_leaves_clone_untouched(self, scripted_rng):
        grid = self.make_grid()
        copy = grid.clone()
        grid.rng = scripted_rng(0.95)
        assert grid.measure_tile(0, 0) == 1
        assert grid.tile_at(0, 1).outcome == 1
        assert not copy.tile_at(0, 0).collapsed
        assert not copy.tile_at(0, 1).collapsed

    def test_measuring_clone_leaves_original_untouched(self, scripted_rng):
        grid = self.make_grid()
        copy = grid.clone()
        copy.rng = scripted_rng(0.05)
        assert copy.measure_tile(0, 0) == 0
        assert copy.tile_at(0, 1).outcome == 0
        assert not grid.tile_at(0, 0).collapsed
        assert not grid.tile_at(0, 1).collapsed

    def test_clone_shares_random_source(self, scripted_rng):
        grid = Grid(1, 2, rng=scripted_rng(0.1, 0.9))
        copy = grid.clone()
        assert copy.rng is grid.rng
        assert copy.measure_tile(0, 0) == 0
        # The clone consumed the first draw
        assert grid.measure_tile(0, 0) == 1


class TestScenario:
    """End-to-end two-pair scenario."""

    def test_two_independent_pairs(self, scripted_rng):
        grid = Grid(2, 2, outcome_count=2, rng=scripted_rng(0.9, 0.1))
        grid.link_entanglement(0, 0, 0, 1, "same")
        grid.link_entanglement(1, 0, 1, 1, "same")

        assert grid.measure_tile(0, 0) == 1
        assert grid.current_pattern() == [[1, 1], [None, None]]
        assert not grid.is_fully_collapsed()

        assert grid.measure_tile(1, 0) == 0
        assert grid.current_pattern() == [[1, 1], [0, 0]]
        assert grid.is_fully_collapsed()


if __name__ == "__main__":
    pytest.main([__file__])
