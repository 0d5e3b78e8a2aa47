"""
Michi Vector
============
The runtime value type of the Michi language: four float lanes plus a
dimension tag. Dimension 1 to 4 is a real vector; dimension 0 is "void"
(a symbolic value that has not resolved to a literal).

The dimension is authoritative. A zero-valued vector of dimension 2 is a
legitimate value; lanes beyond the dimension are ignored and kept at zero.
"""
import math
from dataclasses import dataclass
from typing import Iterable

LANES = 4
LANE_NAMES = ("x", "y", "z", "w")


def _pad(values: Iterable[float]) -> tuple[float, float, float, float]:
    lanes = [float(v) for v in values][:LANES]
    lanes.extend([0.0] * (LANES - len(lanes)))
    return (lanes[0], lanes[1], lanes[2], lanes[3])


@dataclass(frozen=True)
class Vector:
    """A dimension-tagged 4-lane value."""
    lanes: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    dim: int = 0

    def __post_init__(self):
        if not 0 <= self.dim <= LANES:
            raise ValueError(f"Vector dimension must be 0..{LANES}, got {self.dim}")
        # Lanes past the dimension never carry data
        object.__setattr__(self, "lanes", _pad(self.lanes[:self.dim]))

    @classmethod
    def of(cls, *values: float) -> "Vector":
        """Build a vector whose dimension is the number of values given."""
        return cls(_pad(values), len(values))

    @classmethod
    def scalar(cls, value: float) -> "Vector":
        return cls((value, 0.0, 0.0, 0.0), 1)

    @property
    def is_void(self) -> bool:
        return self.dim == 0

    @property
    def x(self) -> float:
        return self.lanes[0]

    def components(self) -> tuple[float, ...]:
        """The active lanes only."""
        return self.lanes[:self.dim]

    # ─────────────────────────────────────────────────────────
    #  Algebra
    # ─────────────────────────────────────────────────────────

    def __add__(self, other: "Vector") -> "Vector":
        return Vector(tuple(a + b for a, b in zip(self.lanes, other.lanes)), self.dim)

    def __sub__(self, other: "Vector") -> "Vector":
        return Vector(tuple(a - b for a, b in zip(self.lanes, other.lanes)), self.dim)

    def __neg__(self) -> "Vector":
        return Vector(tuple(-a for a in self.lanes), self.dim)

    def scale(self, factor: float) -> "Vector":
        return Vector(tuple(a * factor for a in self.lanes), self.dim)

    def dot(self, other: "Vector") -> float:
        return sum(a * b for a, b in zip(self.components(), other.components()))

    def concat(self, other: "Vector") -> "Vector":
        """Pack this vector's lanes first, then the other's.

        Raises ValueError when the combined dimension exceeds four lanes.
        """
        dim = self.dim + other.dim
        if dim > LANES:
            raise ValueError(f"Combined dimension {dim} exceeds {LANES}")
        return Vector(_pad(self.components() + other.components()), dim)

    def lerp(self, other: "Vector", t: float) -> "Vector":
        return Vector(tuple(a * (1.0 - t) + b * t for a, b in zip(self.lanes, other.lanes)), self.dim)

    def is_close(self, other: "Vector", tol: float = 1e-6) -> bool:
        if self.dim != other.dim:
            return False
        return all(math.isclose(a, b, rel_tol=tol, abs_tol=tol)
                   for a, b in zip(self.lanes, other.lanes))

    # ─────────────────────────────────────────────────────────
    #  Display
    # ─────────────────────────────────────────────────────────

    def format(self, label: str) -> str:
        """HUD rendering: `Output: v2 1.0000 2.0000`, `Output: null` for void."""
        parts = " ".join(f"{v:.4f}" for v in self.components())
        match self.dim:
            case 0:
                return f"{label}: null"
            case 1:
                return f"{label}: {parts}"
            case _:
                return f"{label}: v{self.dim} {parts}"

    def __str__(self) -> str:
        if self.dim == 0:
            return "null"
        return "(" + ", ".join(f"{v:g}" for v in self.components()) + ")"


VOID = Vector()
