"""Frame ("plane") construction, repair and alignment.

Exports:
- Frame
- orthogonal_vector, normalize_axes, is_orthonormal
- world_frame, xy_frame, xz_frame, yz_frame
- from_normal, from_axes, from_three_points, from_line_and_point, from_two_lines
- plane_coordinates, point_from_frame_coordinates, closest_point
- offset, with_origin, flip, rotate, align_to_direction, adjust
- align, align_frames
"""

from .basis import (
    Frame,
    orthogonal_vector,
    normalize_axes,
    world_frame,
    xy_frame,
    xz_frame,
    yz_frame,
    from_normal,
    from_axes,
    from_three_points,
    from_line_and_point,
    from_two_lines,
    plane_coordinates,
    point_from_frame_coordinates,
    closest_point,
    offset,
    with_origin,
    flip,
    rotate,
    align_to_direction,
    adjust,
    align,
    align_frames,
    is_orthonormal,
)

__all__ = [
    "Frame",
    "orthogonal_vector",
    "normalize_axes",
    "world_frame",
    "xy_frame",
    "xz_frame",
    "yz_frame",
    "from_normal",
    "from_axes",
    "from_three_points",
    "from_line_and_point",
    "from_two_lines",
    "plane_coordinates",
    "point_from_frame_coordinates",
    "closest_point",
    "offset",
    "with_origin",
    "flip",
    "rotate",
    "align_to_direction",
    "adjust",
    "align",
    "align_frames",
    "is_orthonormal",
]
