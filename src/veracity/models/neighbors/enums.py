# ============================================
# Veracity - src/veracity/models/neighbors/enums.py
# Distance metric and neighbor weighting options
# ============================================

from enum import Enum
from typing import Union

from ...utils.exceptions import InvalidParameterError

class _CoercibleEnum(Enum):
    """Enum that can be resolved from a member, its value or its name"""

    @classmethod
    def coerce(cls, value: Union['_CoercibleEnum', str]):
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace('-', '_')
            for member in cls:
                if key in (member.value, member.name.lower()):
                    return member
        raise InvalidParameterError(
            f"Unknown {cls.__name__} {value!r}; expected one of {[member.value for member in cls]}",
            parameter_name=cls.__name__,
            provided_value=value
        )

class DistanceMetric(_CoercibleEnum):
    """Distance between a query row and a training row"""
    COSINE = "cosine"
    # squared Euclidean, no square root
    EUCLIDEAN = "euclidean"
    MANHATTAN = "manhattan"
    MINKOWSKI = "minkowski"
    NAN_EUCLIDEAN = "nan_euclidean"

class KNeighborsWeights(_CoercibleEnum):
    """How the k nearest neighbors are combined"""
    UNIFORM = "uniform"
    DISTANCE = "distance"
