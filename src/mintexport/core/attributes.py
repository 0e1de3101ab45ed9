"""Merging of attribute sources into one ordered, deduplicated set."""

from collections.abc import Iterable, Mapping
from typing import Union

from mintexport.core.models import Attribute, AttributeValue, attribute_pairs
from mintexport.core.normalize import escape_attribute_value, normalize_attribute_key

AttributeSource = Union[Mapping[str, AttributeValue], Iterable[Attribute]]


def merge_attributes(
    per_metric: AttributeSource,
    defaults: AttributeSource = (),
    static: AttributeSource = (),
) -> dict[str, str]:
    """Merge attribute lists by precedence.

    Static attributes win over per-metric ones, which win over defaults.
    Each source may be a sequence of pairs or a mapping. Keys are compared
    after normalization. A key keeps the position where it was first seen
    (defaults first, then per-metric, then static) even when a later source
    overrides its value.

    Args:
        per_metric: Attributes attached to the measurement.
        defaults: Process-wide configured attributes.
        static: Host metadata attributes.

    Returns:
        Mapping of normalized key to escaped value, in output order.
    """
    merged: dict[str, str] = {}
    for source in (defaults, per_metric, static):
        for key, value in attribute_pairs(source):
            normalized = normalize_attribute_key(key)
            if not normalized:
                continue
            merged[normalized] = escape_attribute_value(value)
    return merged
