"""
Validation for record layouts.

Checks that a RecordLayout is internally consistent before any bytes are
decoded with it: fields must tile the record exactly and the sample run must
match the declared image dimensions.
"""

from __future__ import annotations

from dataclasses import dataclass

from .layouts import RecordLayout

_UINT_WIDTHS = (1, 2, 4, 8)


@dataclass(frozen=True)
class LayoutIssue:
    """
    Represents a layout problem.

    Attributes:
        path: Location of the problem (e.g., "fields[3]")
        message: Human-readable description of the issue
    """

    path: str
    message: str


def validate_layout(layout: RecordLayout) -> list[LayoutIssue]:
    """
    Validate a record layout.

    Checks that:
    - Fields are contiguous, starting at offset 0
    - Field widths sum to record_size
    - Integer fields are 1, 2, 4 or 8 bytes wide
    - There is exactly one samples field, sized width*height/2
    - The last file holds between 1 and records_per_file records

    Parameters:
        layout: Layout to validate

    Returns:
        List of validation issues (empty if valid)

    Example:
        >>> issues = validate_layout(ETL9G)
        >>> assert not issues
    """
    issues: list[LayoutIssue] = []

    if layout.record_size <= 0:
        issues.append(LayoutIssue("record_size", "Record size must be positive."))

    if layout.sample_width <= 0 or layout.sample_height <= 0:
        issues.append(LayoutIssue("sample_width", "Sample dimensions must be positive."))
    elif layout.sample_pixel_count % 2:
        issues.append(
            LayoutIssue(
                "sample_width",
                "Sample pixel count must be even (two pixels per packed byte).",
            )
        )

    expected_offset = 0
    sample_fields = 0
    for i, field in enumerate(layout.fields):
        if field.offset != expected_offset:
            issues.append(
                LayoutIssue(
                    f"fields[{i}].offset",
                    f"Field {field.name!r} starts at {field.offset}, expected {expected_offset}.",
                )
            )
        if field.width <= 0:
            issues.append(LayoutIssue(f"fields[{i}].width", "Field width must be positive."))
        if field.kind == "uint" and field.width not in _UINT_WIDTHS:
            issues.append(
                LayoutIssue(
                    f"fields[{i}].width",
                    f"Integer field {field.name!r} has unsupported width {field.width}.",
                )
            )
        if field.kind == "samples":
            sample_fields += 1
            if field.width != layout.sample_byte_count:
                issues.append(
                    LayoutIssue(
                        f"fields[{i}].width",
                        f"Samples run is {field.width} bytes, expected {layout.sample_byte_count}.",
                    )
                )
        expected_offset = field.offset + field.width

    if expected_offset != layout.record_size:
        issues.append(
            LayoutIssue(
                "fields",
                f"Fields cover {expected_offset} bytes, record size is {layout.record_size}.",
            )
        )

    if sample_fields != 1:
        issues.append(
            LayoutIssue("fields", f"Expected exactly one samples field, found {sample_fields}.")
        )

    if not 1 <= layout.last_file_record_count <= layout.records_per_file:
        issues.append(
            LayoutIssue(
                "last_file_record_count",
                "Last file record count must be between 1 and records_per_file.",
            )
        )

    if layout.file_count <= 0:
        issues.append(LayoutIssue("file_count", "File count must be positive."))

    return issues
