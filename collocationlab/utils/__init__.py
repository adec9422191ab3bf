from .constants import (
    DEFAULT_NUM_MESH_POINTS,
    MESH_TOLERANCE,
    MINIMUM_TIME_INTERVAL,
)


__all__ = [
    "DEFAULT_NUM_MESH_POINTS",
    "MESH_TOLERANCE",
    "MINIMUM_TIME_INTERVAL",
]
