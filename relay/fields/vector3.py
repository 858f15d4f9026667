"""
Pydantic field type for 3D vectors exchanged with the editor.

Editors send positions and rotations either as ``[x, y, z]`` lists or as
``{"x": .., "y": .., "z": ..}`` objects. Both are stored as a tuple of
finite floats and always serialized back as a list.

Example:
    >>> from pydantic import TypeAdapter
    >>> TypeAdapter(Vector3).validate_python({"x": 1, "y": 2, "z": 3})
    (1.0, 2.0, 3.0)
"""

from typing import Any

from pydantic import BeforeValidator, FiniteFloat, PlainSerializer
from typing_extensions import Annotated

_AXES = ("x", "y", "z")


def _coerce_vector(value: Any) -> Any:
    """
    Convert an ``{x, y, z}`` mapping into a 3-item sequence.

    Anything else is returned untouched so the tuple validator can accept
    or reject it.

    Raises:
        ValueError: If a mapping is missing one of the axes.
    """
    if isinstance(value, dict):
        missing = [axis for axis in _AXES if axis not in value]
        if missing:
            raise ValueError(f"vector is missing axes: {', '.join(missing)}")
        return tuple(value[axis] for axis in _AXES)
    return value


def _serialize_vector(value: tuple[float, float, float]) -> list[float]:
    return list(value)


Vector3 = Annotated[
    tuple[FiniteFloat, FiniteFloat, FiniteFloat],
    BeforeValidator(_coerce_vector),
    PlainSerializer(_serialize_vector, return_type=list[float]),
]
