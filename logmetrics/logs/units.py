import logging
from enum import Enum
from typing import Union

from logmetrics.errors import ValidationError

logger = logging.getLogger(__name__)


class MetricFilterUnits(str, Enum):
    """Units a metric filter may attach to the values it emits."""

    BITS = "Bits"
    BITS_PER_SECOND = "Bits/Second"
    BYTES = "Bytes"
    BYTES_PER_SECOND = "Bytes/Second"
    KILOBITS = "Kilobits"
    KILOBITS_PER_SECOND = "Kilobits/Second"
    KILOBYTES = "Kilobytes"
    KILOBYTES_PER_SECOND = "Kilobytes/Second"
    MEGABITS = "Megabits"
    MEGABITS_PER_SECOND = "Megabits/Second"
    MEGABYTES = "Megabytes"
    MEGABYTES_PER_SECOND = "Megabytes/Second"
    GIGABITS = "Gigabits"
    GIGABITS_PER_SECOND = "Gigabits/Second"
    GIGABYTES = "Gigabytes"
    GIGABYTES_PER_SECOND = "Gigabytes/Second"
    TERABITS = "Terabits"
    TERABITS_PER_SECOND = "Terabits/Second"
    TERABYTES = "Terabytes"
    TERABYTES_PER_SECOND = "Terabytes/Second"

    MICROSECONDS = "Microseconds"
    MILLISECONDS = "Milliseconds"
    SECONDS = "Seconds"

    COUNT = "Count"
    COUNT_PER_SECOND = "Count/Second"

    PERCENT = "Percent"

    NONE = "None"
    """No unit. Used when a filter does not specify one."""


UNIT_LABELS = tuple(unit.value for unit in MetricFilterUnits)


def to_unit(value: Union[MetricFilterUnits, str]) -> MetricFilterUnits:
    """
    Validate a unit given as an enum member or as its label.

    Args:
        value: A MetricFilterUnits member or a label such as "Bytes/Second".

    Returns:
        MetricFilterUnits: The matching member.

    Raises:
        ValidationError: If `value` is not one of the supported unit labels.
    """
    if isinstance(value, MetricFilterUnits):
        return value
    try:
        return MetricFilterUnits(value)
    except ValueError:
        raise ValidationError(
            f"Unsupported metric filter unit {value!r}. Expected one of: {', '.join(UNIT_LABELS)}",
        ) from None
