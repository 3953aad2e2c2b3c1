"""
Force-directed layout for the partner network graph.

Runs a fixed number of iterations of three forces over every node:
pairwise repulsion falling off with the squared distance, attraction along
each connection toward a rest length that shrinks as the connection gets
stronger, and a weak pull toward the canvas centre. There is no convergence
check; the result only has to look reasonable.
"""
import math
import random
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

ITERATIONS = 100
CANVAS_WIDTH = 1200.0
CANVAS_HEIGHT = 700.0

REPULSION = 12000.0
SPRING_K = 0.02
LINK_DISTANCE = 140.0
GRAVITY = 0.01
MIN_DISTANCE = 1.0
MAX_STEP = 40.0

Point = Tuple[float, float]


@dataclass
class LayoutEdge:
    source: str
    target: str
    strength: int = 3


def rest_length(strength: int) -> float:
    """Connection strength 1..5 maps onto 110%..70% of LINK_DISTANCE"""
    strength = min(max(int(strength or 3), 1), 5)
    return LINK_DISTANCE * (1.2 - 0.1 * strength)


def _seed_positions(node_ids: Sequence[str], positions: Mapping[str, Point],
                    center: Point, rng: random.Random) -> Dict[str, list]:
    """Saved positions where known; the rest spread on a circle around the centre"""
    placed = {}
    missing = [node_id for node_id in node_ids if node_id not in positions]
    radius = max(LINK_DISTANCE, len(missing) * 12.0)
    for idx, node_id in enumerate(missing):
        angle = 2 * math.pi * idx / max(len(missing), 1)
        placed[node_id] = [
            center[0] + radius * math.cos(angle) + rng.uniform(-1, 1),
            center[1] + radius * math.sin(angle) + rng.uniform(-1, 1),
        ]
    for node_id in node_ids:
        if node_id in positions:
            x, y = positions[node_id]
            placed[node_id] = [float(x), float(y)]
    return placed


def force_layout(node_ids: Iterable[str], edges: Iterable[LayoutEdge],
                 positions: Optional[Mapping[str, Point]] = None,
                 width: float = CANVAS_WIDTH, height: float = CANVAS_HEIGHT,
                 iterations: int = ITERATIONS, seed: Optional[int] = None) -> Dict[str, Point]:
    """
    Lay out the graph and return the final ``{node_id: (x, y)}``.

    Edges that reference unknown nodes or connect a node to itself are
    ignored. ``seed`` makes the jitter used to separate coincident nodes
    reproducible.
    """
    node_ids = list(dict.fromkeys(node_ids))
    if not node_ids:
        return {}

    rng = random.Random(seed)
    center = (width / 2.0, height / 2.0)
    pos = _seed_positions(node_ids, positions or {}, center, rng)
    known = set(node_ids)
    links = [
        (e.source, e.target, min(max(int(e.strength or 3), 1), 5))
        for e in edges
        if e.source in known and e.target in known and e.source != e.target
    ]

    for step in range(iterations):
        disp = {node_id: [0.0, 0.0] for node_id in node_ids}

        for i, a in enumerate(node_ids):
            for b in node_ids[i + 1:]:
                dx = pos[a][0] - pos[b][0]
                dy = pos[a][1] - pos[b][1]
                if dx == 0 and dy == 0:
                    dx, dy = rng.uniform(-1, 1), rng.uniform(-1, 1)
                dist = max(math.hypot(dx, dy), MIN_DISTANCE)
                force = REPULSION / (dist * dist)
                fx, fy = dx / dist * force, dy / dist * force
                disp[a][0] += fx
                disp[a][1] += fy
                disp[b][0] -= fx
                disp[b][1] -= fy

        for source, target, strength in links:
            dx = pos[target][0] - pos[source][0]
            dy = pos[target][1] - pos[source][1]
            dist = max(math.hypot(dx, dy), MIN_DISTANCE)
            force = SPRING_K * (strength / 3.0) * (dist - rest_length(strength))
            fx, fy = dx / dist * force, dy / dist * force
            disp[source][0] += fx
            disp[source][1] += fy
            disp[target][0] -= fx
            disp[target][1] -= fy

        # cools linearly so late iterations only fine-tune
        max_step = MAX_STEP * (1.0 - step / float(iterations)) + 1.0
        for node_id in node_ids:
            dx = disp[node_id][0] + (center[0] - pos[node_id][0]) * GRAVITY
            dy = disp[node_id][1] + (center[1] - pos[node_id][1]) * GRAVITY
            length = math.hypot(dx, dy)
            if length > max_step:
                dx, dy = dx / length * max_step, dy / length * max_step
            pos[node_id][0] += dx
            pos[node_id][1] += dy

    return {node_id: (round(p[0], 2), round(p[1], 2)) for node_id, p in pos.items()}
