"""Path optimization — orders a session's instructions to cut walking distance.

Two heuristics share one call signature and are looked up by algorithm:

- Nearest neighbor for short lists: greedy, always walk to the closest
  remaining pick. Ties go to the instruction that came first in the input.
- S-shape for longer lists: traverse aisles one after another, alternating
  the walking direction along the bays in each aisle.

Neither is optimal. Both are deterministic for a given input order.
"""

import math

import structlog
from protean.exceptions import ValidationError

from picking.routing.path import PathNode, PickPath, RoutingAlgorithm
from picking.shared.location import Location, numeric_part

logger = structlog.get_logger(__name__)

NEAREST_NEIGHBOR_THRESHOLD = 10
WALKING_SPEED = 1.4  # distance units per second
SECONDS_PER_PICK = 15


def estimate_duration(total_distance: float, pick_count: int) -> int:
    """Walking time plus handling time, rounded half up to whole seconds."""
    seconds = total_distance / WALKING_SPEED + pick_count * SECONDS_PER_PICK
    return math.floor(seconds + 0.5)


def _leg_distance(location: Location, previous: Location | None) -> float:
    """Distance walked to reach ``location``; the first leg is free without a start point."""
    if previous is None:
        return 0.0
    return location.distance_from(previous)


def _build_path(ordered: list, start_location: Location | None, algorithm: RoutingAlgorithm) -> PickPath:
    nodes = []
    total_distance = 0.0
    previous = start_location
    for sequence_number, instruction in enumerate(ordered):
        distance = _leg_distance(instruction.location, previous)
        nodes.append(
            PathNode(
                instruction_id=instruction.instruction_id,
                location=instruction.location,
                sequence_number=sequence_number,
                distance_from_previous=distance,
            )
        )
        total_distance += distance
        previous = instruction.location

    return PickPath.build(
        nodes=nodes,
        total_distance=total_distance,
        estimated_duration=estimate_duration(total_distance, len(nodes)),
        algorithm=algorithm,
    )


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------
def nearest_neighbor(instructions: list, start_location: Location | None) -> PickPath:
    remaining = list(instructions)
    ordered = []
    current = start_location

    while remaining:
        best_index = 0
        best_distance = math.inf
        for index, instruction in enumerate(remaining):
            distance = _leg_distance(instruction.location, current)
            # Strict comparison keeps the earliest instruction on ties
            if distance < best_distance:
                best_index = index
                best_distance = distance
        nearest = remaining.pop(best_index)
        ordered.append(nearest)
        current = nearest.location

    return _build_path(ordered, start_location, RoutingAlgorithm.NEAREST_NEIGHBOR)


def s_shape(instructions: list, start_location: Location | None) -> PickPath:
    by_aisle: dict[str, list] = {}
    for instruction in instructions:
        by_aisle.setdefault(instruction.location.aisle, []).append(instruction)

    ordered = []
    # Aisle labels sort as plain strings, so "A10" comes before "A2"
    for aisle_index, aisle in enumerate(sorted(by_aisle)):
        direction = -1 if aisle_index % 2 else 1
        # Negating the key instead of reversing keeps equal bays in input order
        ordered.extend(sorted(by_aisle[aisle], key=lambda i: direction * numeric_part(i.location.bay)))

    return _build_path(ordered, start_location, RoutingAlgorithm.S_SHAPE)


HEURISTICS = {
    RoutingAlgorithm.NEAREST_NEIGHBOR: nearest_neighbor,
    RoutingAlgorithm.S_SHAPE: s_shape,
}


def select_algorithm(instruction_count: int) -> RoutingAlgorithm:
    if instruction_count <= NEAREST_NEIGHBOR_THRESHOLD:
        return RoutingAlgorithm.NEAREST_NEIGHBOR
    return RoutingAlgorithm.S_SHAPE


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------
class PathOptimizationService:
    """Stateless domain service that turns instructions into a PickPath.

    Instructions only need ``instruction_id`` and ``location`` attributes, so
    both PickInstruction entities and lightweight stand-ins work.
    """

    def optimize_path(self, instructions: list, start_location: Location | None = None) -> PickPath:
        if not instructions:
            raise ValidationError({"instructions": ["Cannot optimize an empty instruction list"]})

        algorithm = select_algorithm(len(instructions))
        path = HEURISTICS[algorithm](instructions, start_location)
        logger.debug(
            "Pick path optimized",
            algorithm=algorithm.value,
            picks=path.total_picks,
            total_distance=path.total_distance,
            estimated_duration=path.estimated_duration,
        )
        return path

    def optimize_with_nearest_neighbor(self, instructions: list, start_location: Location | None = None) -> PickPath:
        return nearest_neighbor(instructions, start_location)

    def optimize_with_s_shape(self, instructions: list, start_location: Location | None = None) -> PickPath:
        return s_shape(instructions, start_location)

    def create_sequential_path(self, instructions: list) -> PickPath:
        """Visit instructions in the order given. Baseline for savings."""
        if not instructions:
            raise ValidationError({"instructions": ["Cannot build a path for an empty instruction list"]})
        return _build_path(list(instructions), None, RoutingAlgorithm.SEQUENTIAL)

    def calculate_savings(self, optimized_path: PickPath, instructions: list) -> float:
        """Percentage of walking distance saved against the sequential order."""
        sequential = self.create_sequential_path(instructions)
        if sequential.total_distance == 0:
            return 0.0
        return (sequential.total_distance - optimized_path.total_distance) / sequential.total_distance * 100.0
