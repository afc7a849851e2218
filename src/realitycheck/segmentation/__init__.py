"""Intent segmentation: split spec and plan documents into line-accurate Items."""

from realitycheck.segmentation.documents import (
    PLAN_SEGMENTER,
    SPEC_SEGMENTER,
    is_plan_step,
    parse_plan,
    parse_spec,
    strip_plan_prefix,
)
from realitycheck.segmentation.segmenter import (
    Segmenter,
    is_bullet,
    is_decorator,
    is_heading,
    is_indented,
    is_numbered_item,
    split_lines,
    strip_list_prefix,
)

__all__ = [
    "PLAN_SEGMENTER",
    "SPEC_SEGMENTER",
    "Segmenter",
    "is_bullet",
    "is_decorator",
    "is_heading",
    "is_indented",
    "is_numbered_item",
    "is_plan_step",
    "parse_plan",
    "parse_spec",
    "split_lines",
    "strip_list_prefix",
    "strip_plan_prefix",
]
