"""Pick path value objects — the optimizer's output.

A PickPath is computed once, before the session starts, and never changes
afterwards. Its nodes are kept as a JSON list inside the value object so the
whole path travels with the PickSession aggregate as a single embedded value.
"""

import json
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, Integer, String, Text, ValueObject

from picking.domain import picking
from picking.shared.location import Location


class RoutingAlgorithm(Enum):
    NEAREST_NEIGHBOR = "NEAREST_NEIGHBOR"
    S_SHAPE = "S_SHAPE"
    SEQUENTIAL = "SEQUENTIAL"


@picking.value_object
class PathNode:
    """One stop on the pick path."""

    instruction_id = String(required=True, max_length=100)
    location = ValueObject(Location, required=True)
    sequence_number = Integer(required=True, min_value=0)
    distance_from_previous = Float(required=True, min_value=0.0)

    def to_payload(self) -> dict:
        return {
            "instruction_id": self.instruction_id,
            "location": self.location.to_payload(),
            "sequence_number": self.sequence_number,
            "distance_from_previous": self.distance_from_previous,
        }

    @classmethod
    def from_payload(cls, data: dict) -> "PathNode":
        return cls(
            instruction_id=data["instruction_id"],
            location=Location(**data["location"]),
            sequence_number=data["sequence_number"],
            distance_from_previous=data["distance_from_previous"],
        )


@picking.value_object
class PickPath:
    """Ordered visit plan for a session's instructions.

    ``estimated_duration`` is in whole seconds: walking time at a fixed pace
    plus a fixed handling time per pick.
    """

    algorithm = String(required=True, choices=RoutingAlgorithm)
    total_distance = Float(required=True, min_value=0.0)
    estimated_duration = Integer(required=True, min_value=0)
    nodes = Text(required=True)  # JSON list of PathNode payloads

    @invariant.post
    def path_must_have_at_least_one_node(self):
        if self.nodes is not None and not json.loads(self.nodes):
            raise ValidationError({"nodes": ["Path must have at least one node"]})

    @classmethod
    def build(
        cls,
        nodes: list[PathNode],
        total_distance: float,
        estimated_duration: int,
        algorithm: RoutingAlgorithm,
    ) -> "PickPath":
        return cls(
            algorithm=algorithm.value,
            total_distance=total_distance,
            estimated_duration=estimated_duration,
            nodes=json.dumps([node.to_payload() for node in nodes]),
        )

    @property
    def path_nodes(self) -> list[PathNode]:
        return [PathNode.from_payload(data) for data in json.loads(self.nodes)]

    @property
    def first_node(self) -> PathNode:
        return self.path_nodes[0]

    def node_at(self, index: int) -> PathNode:
        path_nodes = self.path_nodes
        if index < 0 or index >= len(path_nodes):
            raise IndexError(f"Invalid node index: {index}")
        return path_nodes[index]

    @property
    def total_picks(self) -> int:
        return len(json.loads(self.nodes))

    @property
    def instruction_order(self) -> list[str]:
        """Instruction ids in visiting order."""
        return [node.instruction_id for node in sorted(self.path_nodes, key=lambda n: n.sequence_number)]

    @property
    def is_optimized(self) -> bool:
        return self.algorithm != RoutingAlgorithm.SEQUENTIAL.value

    def calculate_progress(self, current_node_index: int) -> float:
        return current_node_index / self.total_picks * 100.0
