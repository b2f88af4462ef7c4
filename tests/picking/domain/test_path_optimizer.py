"""Tests for PathOptimizationService — algorithm selection, heuristics, estimates."""

import pytest
from picking.routing.optimizer import (
    HEURISTICS,
    NEAREST_NEIGHBOR_THRESHOLD,
    PathOptimizationService,
    estimate_duration,
    select_algorithm,
)
from picking.routing.path import RoutingAlgorithm
from picking.session.instruction import PickInstruction
from picking.shared.location import Location
from protean.exceptions import ValidationError


def _ins(instruction_id, aisle, bay, level="01"):
    return PickInstruction(
        instruction_id=instruction_id,
        sku=f"SKU-{instruction_id}",
        expected_quantity=1,
        location=Location(aisle=aisle, bay=bay, level=level),
    )


def _order(path):
    return [node.instruction_id for node in path.path_nodes]


@pytest.fixture()
def service():
    return PathOptimizationService()


class TestAlgorithmSelection:
    def test_threshold_uses_nearest_neighbor(self):
        assert select_algorithm(NEAREST_NEIGHBOR_THRESHOLD) == RoutingAlgorithm.NEAREST_NEIGHBOR

    def test_above_threshold_uses_s_shape(self):
        assert select_algorithm(NEAREST_NEIGHBOR_THRESHOLD + 1) == RoutingAlgorithm.S_SHAPE

    def test_heuristics_registered_for_both_algorithms(self):
        assert set(HEURISTICS) == {RoutingAlgorithm.NEAREST_NEIGHBOR, RoutingAlgorithm.S_SHAPE}

    def test_small_list_optimized_with_nearest_neighbor(self, service):
        instructions = [_ins(f"i{n}", "A", f"{n:02d}") for n in range(1, 11)]
        assert service.optimize_path(instructions).algorithm == RoutingAlgorithm.NEAREST_NEIGHBOR.value

    def test_large_list_optimized_with_s_shape(self, service):
        instructions = [_ins(f"i{n}", "A", f"{n:02d}") for n in range(1, 12)]
        assert service.optimize_path(instructions).algorithm == RoutingAlgorithm.S_SHAPE.value

    def test_empty_list_rejected(self, service):
        with pytest.raises(ValidationError):
            service.optimize_path([], Location.parse("A-01-01"))


class TestNearestNeighbor:
    def test_greedy_order_from_start(self, service):
        instructions = [_ins("far", "A", "05"), _ins("near", "A", "02"), _ins("mid", "A", "03")]
        path = service.optimize_with_nearest_neighbor(instructions, Location.parse("A-01-01"))

        assert _order(path) == ["near", "mid", "far"]
        assert [node.distance_from_previous for node in path.path_nodes] == [10.0, 10.0, 20.0]
        assert path.total_distance == 40.0
        # 40 / 1.4 + 3 * 15 = 73.57
        assert path.estimated_duration == 74

    def test_ties_go_to_input_order(self, service):
        instructions = [_ins("left", "A", "02"), _ins("right", "A", "04")]
        path = service.optimize_with_nearest_neighbor(instructions, Location.parse("A-03-01"))
        assert _order(path) == ["left", "right"]

    def test_without_start_first_pick_is_free(self, service):
        instructions = [_ins("first", "A", "09"), _ins("second", "A", "01")]
        path = service.optimize_with_nearest_neighbor(instructions, None)

        assert _order(path) == ["first", "second"]
        assert path.first_node.distance_from_previous == 0.0
        assert path.total_distance == 80.0

    def test_sequence_numbers_start_at_zero(self, service):
        instructions = [_ins("a", "A", "03"), _ins("b", "A", "01")]
        path = service.optimize_with_nearest_neighbor(instructions, Location.parse("A-01-01"))
        assert [node.sequence_number for node in path.path_nodes] == [0, 1]

    def test_visits_every_instruction_once(self, service):
        instructions = [_ins(f"i{n}", f"A{n % 3}", f"{n:02d}") for n in range(1, 9)]
        path = service.optimize_with_nearest_neighbor(instructions, Location.parse("A0-01-01"))
        assert sorted(_order(path)) == sorted(i.instruction_id for i in instructions)


class TestSShape:
    def test_alternates_direction_per_aisle(self, service):
        instructions = [
            _ins("a3", "A", "03"),
            _ins("b1", "B", "01"),
            _ins("c5", "C", "05"),
            _ins("a1", "A", "01"),
            _ins("b4", "B", "04"),
            _ins("c2", "C", "02"),
        ]
        path = service.optimize_with_s_shape(instructions, None)
        assert _order(path) == ["a1", "a3", "b4", "b1", "c2", "c5"]
        assert path.algorithm == RoutingAlgorithm.S_SHAPE.value

    def test_aisles_sort_as_text(self, service):
        instructions = [_ins("two", "A2", "01"), _ins("ten", "A10", "01")]
        path = service.optimize_with_s_shape(instructions, None)
        # "A10" sorts before "A2"
        assert _order(path) == ["ten", "two"]

    def test_equal_bays_keep_input_order(self, service):
        instructions = [
            _ins("a-x", "A", "01", level="01"),
            _ins("a-y", "A", "01", level="02"),
            _ins("b-x", "B", "02", level="01"),
            _ins("b-y", "B", "02", level="03"),
        ]
        path = service.optimize_with_s_shape(instructions, None)
        assert _order(path) == ["a-x", "a-y", "b-x", "b-y"]

    def test_distances_from_start_location(self, service):
        instructions = [_ins("a1", "A1", "01"), _ins("a2", "A2", "01")]
        path = service.optimize_with_s_shape(instructions, Location.parse("A1-01-01"))
        assert [node.distance_from_previous for node in path.path_nodes] == [0.0, 100.0]
        assert path.estimated_duration == 101  # 100 / 1.4 + 30 = 101.43


class TestSequentialAndSavings:
    def test_sequential_keeps_input_order(self, service):
        instructions = [_ins("c", "A", "05"), _ins("a", "A", "01"), _ins("b", "A", "04")]
        path = service.create_sequential_path(instructions)

        assert _order(path) == ["c", "a", "b"]
        assert path.algorithm == RoutingAlgorithm.SEQUENTIAL.value
        assert path.first_node.distance_from_previous == 0.0
        assert path.total_distance == 70.0

    def test_savings_against_sequential(self, service):
        instructions = [_ins("c", "A", "05"), _ins("a", "A", "01"), _ins("b", "A", "04")]
        optimized = service.optimize_with_nearest_neighbor(instructions, None)

        assert _order(optimized) == ["c", "b", "a"]
        assert service.calculate_savings(optimized, instructions) == pytest.approx(30 / 70 * 100)

    def test_savings_zero_when_sequential_is_zero(self, service):
        instructions = [_ins("a", "A", "01"), _ins("b", "A", "01")]
        optimized = service.optimize_with_nearest_neighbor(instructions, None)
        assert service.calculate_savings(optimized, instructions) == 0.0


class TestDurationEstimate:
    def test_picks_only(self):
        assert estimate_duration(0.0, 3) == 45

    def test_rounds_half_up(self):
        # 0.7 / 1.4 = 0.5 exactly
        assert estimate_duration(0.7, 1) == 16


class TestPathProperties:
    def test_nearest_neighbor_walks_bays_in_order(self, service):
        instructions = [_ins("b04", "A", "04"), _ins("b02", "A", "02"), _ins("b03", "A", "03")]
        path = service.optimize_path(instructions, Location.parse("A-01-01"))

        assert _order(path) == ["b02", "b03", "b04"]
        distances = [node.distance_from_previous for node in path.path_nodes]
        assert distances == sorted(distances)

    def test_s_shape_across_two_aisles(self, service):
        instructions = [_ins(f"b{bay}", "B", f"{bay:02d}") for bay in (3, 6, 1, 5, 2, 4)]
        instructions += [_ins(f"a{bay}", "A", f"{bay:02d}") for bay in (6, 2, 4, 1, 3, 5)]
        path = service.optimize_path(instructions, Location.parse("A-01-01"))

        assert path.algorithm == RoutingAlgorithm.S_SHAPE.value
        assert _order(path) == ["a1", "a2", "a3", "a4", "a5", "a6", "b6", "b5", "b4", "b3", "b2", "b1"]
