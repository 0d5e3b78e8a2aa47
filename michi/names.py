"""
Michi Name Registry
===================
The three fixed namespaces of the Michi language and the resolution order
between them. Names are exact and case-sensitive.

    Actions:    verbs that take an argument through `:` (move, exit, ...)
    Variables:  identifiers bound to live world-state fields
    Constants:  nullary identifiers with a fixed meaning (on, off, ...)

The tables are not required to be disjoint. A name is looked up in the
Action table, then the Variable table, then the Constant table; the first
match wins.
"""
from enum import Enum


class Action(Enum):
    """Reserved verbs, in display order."""
    MOVE    = "move"
    ROTATE  = "rotate"
    ENLARGE = "enlarge"
    CHANGE  = "change"
    FOLLOW  = "follow"
    DRAW    = "draw"
    DISP    = "disp"
    EXIT    = "exit"


class VariableKind(Enum):
    """Reserved variable names, in display order."""
    OUTPUT   = "output"
    ACTOR    = "actor"
    SPEED    = "speed"
    POSITION = "position"
    ROTATION = "rotation"
    SCALE    = "scale"
    COLOR    = "color"
    X        = "x"
    Y        = "y"
    Z        = "z"
    W        = "w"


class ConstantKind(Enum):
    """Reserved constant names, in display order."""
    ON   = "on"
    OFF  = "off"
    HELP = "help"
    EXPR = "expr"


# Lane selectors, indexed by lane number
LANE_KINDS = (VariableKind.X, VariableKind.Y, VariableKind.Z, VariableKind.W)

ACTION_NAMES: dict[str, Action] = {a.value: a for a in Action}
VARIABLE_NAMES: dict[str, VariableKind] = {v.value: v for v in VariableKind}
CONSTANT_NAMES: dict[str, ConstantKind] = {c.value: c for c in ConstantKind}

# Resolution order; do not reorder
NAMESPACES = (ACTION_NAMES, VARIABLE_NAMES, CONSTANT_NAMES)


def resolve_name(name: str) -> Action | VariableKind | ConstantKind | None:
    """Look a name up in Action, Variable then Constant order."""
    for table in NAMESPACES:
        kind = table.get(name)
        if kind is not None:
            return kind
    return None


def lane_index(kind: VariableKind) -> int | None:
    """Lane number for x/y/z/w, None for any other variable."""
    try:
        return LANE_KINDS.index(kind)
    except ValueError:
        return None


def describe_all() -> list[str]:
    """The help overlay: one line per namespace."""
    return [
        "Action: " + ", ".join(a.value for a in Action),
        "Variables: " + ", ".join(v.value for v in VariableKind),
        "Constants: " + ", ".join(c.value for c in ConstantKind),
    ]
