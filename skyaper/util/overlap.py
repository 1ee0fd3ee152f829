"""
Licensed under a 3-clause BSD style license.

Exact area of overlap between a pixel box and a circle or a rotated ellipse.

:func:`~circoverlap()`: overlap of an axis-aligned box with a circle centered at the origin.
:func:`~ellipoverlap()`: overlap of an axis-aligned box with an ellipse centered at the origin.

Both are the pixel overlap primitives used by the aperture engine for pixels straddling the aperture boundary.
"""

import numpy as np
from numba import njit


__all__ = ['circoverlap', 'ellipoverlap', 'njitc']


# Marker coordinate for "no intersection"; any value outside the unit circle works
NO_POINT = 2.0


def njitc(*args, **kws):
    """
    Equivalent to njit(..., nogil=True, cache=True, error_model='numpy')
    """
    kws.setdefault('nogil', True)
    kws.setdefault('cache', True)
    kws.setdefault('error_model', 'numpy')
    return njit(*args, **kws)


@njitc
def area_arc(x1: float, y1: float, x2: float, y2: float, r: float) -> float:
    """
    Area of the circular segment cut off by the chord (x1, y1)-(x2, y2) of a circle of radius r
    """
    if r <= 0:
        return 0.0
    chord = np.hypot(x2 - x1, y2 - y1)
    theta = 2*np.arcsin(min(0.5*chord/r, 1.0))
    return 0.5*r*r*(theta - np.sin(theta))


@njitc
def area_triangle(x1: float, y1: float, x2: float, y2: float, x3: float, y3: float) -> float:
    """Unsigned area of a triangle"""
    return 0.5*abs((x2 - x1)*(y3 - y1) - (x3 - x1)*(y2 - y1))


@njitc
def _quadrant_overlap(xmin: float, ymin: float, xmax: float, ymax: float, r: float) -> float:
    """
    Overlap of a circle of radius r with a box lying entirely in the first quadrant (0 <= xmin <= xmax,
    0 <= ymin <= ymax)
    """
    r2 = r*r
    xmin2, ymin2 = xmin*xmin, ymin*ymin
    if xmin2 + ymin2 >= r2:
        # Nearest corner outside
        return 0.0

    xmax2, ymax2 = xmax*xmax, ymax*ymax
    if xmax2 + ymax2 <= r2:
        # Farthest corner inside
        return (xmax - xmin)*(ymax - ymin)

    lower_right_in = xmax2 + ymin2 < r2
    upper_left_in = xmin2 + ymax2 < r2

    if lower_right_in and upper_left_in:
        # Only the far corner is cut off
        xa, ya = np.sqrt(r2 - ymax2), ymax
        xb, yb = xmax, np.sqrt(r2 - xmax2)
        return (xmax - xmin)*(ymax - ymin) - area_triangle(xa, ya, xb, yb, xmax, ymax) + area_arc(xa, ya, xb, yb, r)

    if lower_right_in:
        # Circle crosses both vertical edges
        xa, ya = xmin, np.sqrt(r2 - xmin2)
        xb, yb = xmax, np.sqrt(r2 - xmax2)
        return (area_arc(xa, ya, xb, yb, r) +
                area_triangle(xa, ya, xa, ymin, xmax, ymin) +
                area_triangle(xa, ya, xb, ymin, xb, yb))

    if upper_left_in:
        # Circle crosses both horizontal edges
        xa, ya = np.sqrt(r2 - ymin2), ymin
        xb, yb = np.sqrt(r2 - ymax2), ymax
        return (area_arc(xa, ya, xb, yb, r) +
                area_triangle(xa, ya, xmin, ya, xmin, ymax) +
                area_triangle(xa, ya, xmin, yb, xb, yb))

    # Only the near corner is inside
    xa, ya = np.sqrt(r2 - ymin2), ymin
    xb, yb = xmin, np.sqrt(r2 - xmin2)
    return area_arc(xa, ya, xb, yb, r) + area_triangle(xa, ya, xb, yb, xmin, ymin)


@njitc
def _fold(lo: float, hi: float) -> tuple[float, float, float, float]:
    """
    Mirror an interval [lo, hi] into the non-negative half-axis; returns up to two intervals, the second one being
    empty (0, 0) unless the input interval contains the origin
    """
    if lo >= 0:
        return lo, hi, 0.0, 0.0
    if hi <= 0:
        return -hi, -lo, 0.0, 0.0
    return 0.0, -lo, 0.0, hi


@njitc
def circoverlap(xmin: float, ymin: float, xmax: float, ymax: float, r: float) -> float:
    """
    Exact area of overlap between the box [xmin, xmax] x [ymin, ymax] and a circle of radius r centered at the origin

    :param xmin: box left edge
    :param ymin: box bottom edge
    :param xmax: box right edge
    :param ymax: box top edge
    :param r: circle radius; zero overlap is returned for r <= 0

    :return: overlap area
    """
    if r <= 0:
        return 0.0

    x1, x2, x3, x4 = _fold(xmin, xmax)
    y1, y2, y3, y4 = _fold(ymin, ymax)
    area = _quadrant_overlap(x1, y1, x2, y2, r)
    if x4 > x3:
        area += _quadrant_overlap(x3, y1, x4, y2, r)
    if y4 > y3:
        area += _quadrant_overlap(x1, y3, x2, y4, r)
        if x4 > x3:
            area += _quadrant_overlap(x3, y3, x4, y4, r)
    return area


# *****************************************************************************
# ellipse overlap: everything below works in the frame where the ellipse is the unit circle

@njitc
def in_triangle(x: float, y: float, x1: float, y1: float, x2: float, y2: float, x3: float, y3: float) -> bool:
    """Crossing-number test for a point inside a triangle"""
    inside = False
    if (y1 > y) != (y2 > y) and x - x1 < (x2 - x1)*(y - y1)/(y2 - y1):
        inside = not inside
    if (y2 > y) != (y3 > y) and x - x2 < (x3 - x2)*(y - y2)/(y3 - y2):
        inside = not inside
    if (y3 > y) != (y1 > y) and x - x3 < (x1 - x3)*(y - y3)/(y1 - y3):
        inside = not inside
    return inside


@njitc
def circle_line(x1: float, y1: float, x2: float, y2: float) -> tuple[float, float, float, float]:
    """
    Both intersections of the infinite line through (x1, y1) and (x2, y2) with the unit circle; NO_POINT coordinates
    are returned if there are none
    """
    tol = 1e-10
    dx = x2 - x1
    dy = y2 - y1
    if abs(dx) < tol and abs(dy) < tol:
        return NO_POINT, NO_POINT, NO_POINT, NO_POINT

    # Parametrize along the dominant direction to keep the slope bounded
    swap = abs(dx) <= abs(dy)
    if swap:
        k = dx/dy
        c = x1 - k*y1
    else:
        k = dy/dx
        c = y1 - k*x1

    delta = 1 + k*k - c*c
    if delta <= 0:
        return NO_POINT, NO_POINT, NO_POINT, NO_POINT

    delta = np.sqrt(delta)
    u1 = (-k*c - delta)/(1 + k*k)
    u2 = (-k*c + delta)/(1 + k*k)
    if swap:
        return k*u1 + c, u1, k*u2 + c, u2
    return u1, k*u1 + c, u2, k*u2 + c


@njitc
def circle_segment_single2(x1: float, y1: float, x2: float, y2: float) -> tuple[float, float]:
    """
    Intersection of the line through (x1, y1) and (x2, y2) with the unit circle that is closest to (x2, y2)
    """
    p1x, p1y, p2x, p2y = circle_line(x1, y1, x2, y2)
    d1x = abs(p1x - x2)
    d1y = abs(p1y - y2)
    if d1x > d1y:
        if d1x > abs(p2x - x2):
            return p2x, p2y
        return p1x, p1y
    if d1y > abs(p2y - y2):
        return p2x, p2y
    return p1x, p1y


@njitc
def _outside_segment(px: float, py: float, x1: float, y1: float, x2: float, y2: float) -> bool:
    return px > x1 and px > x2 or px < x1 and px < x2 or py > y1 and py > y2 or py < y1 and py < y2


@njitc
def circle_segment(x1: float, y1: float, x2: float, y2: float) -> tuple[float, float, float, float]:
    """
    Intersections of the segment (x1, y1)-(x2, y2) with the unit circle; solutions off the segment are replaced by
    NO_POINT, and the first returned point is valid only if both are
    """
    p1x, p1y, p2x, p2y = circle_line(x1, y1, x2, y2)
    if _outside_segment(p1x, p1y, x1, y1, x2, y2):
        p1x = p1y = NO_POINT
    if _outside_segment(p2x, p2y, x1, y1, x2, y2):
        p2x = p2y = NO_POINT

    if p1x > 1 and p2x < NO_POINT:
        return p1x, p1y, p2x, p2y
    return p2x, p2y, p1x, p1y


@njitc
def triangle_unitcircle_overlap(x1: float, y1: float, x2: float, y2: float, x3: float, y3: float) -> float:
    """
    Area of overlap of the triangle (x1, y1), (x2, y2), (x3, y3) with the unit circle
    """
    # Sort vertices by distance from the origin
    d1 = x1*x1 + y1*y1
    d2 = x2*x2 + y2*y2
    d3 = x3*x3 + y3*y3
    if d1 > d2:
        x1, y1, d1, x2, y2, d2 = x2, y2, d2, x1, y1, d1
    if d2 > d3:
        x2, y2, d2, x3, y3, d3 = x3, y3, d3, x2, y2, d2
    if d1 > d2:
        x1, y1, d1, x2, y2, d2 = x2, y2, d2, x1, y1, d1

    on1 = abs(d1 - 1) < 1e-10
    on2 = abs(d2 - 1) < 1e-10
    in1 = d1 < 1
    in2 = d2 < 1
    in3 = d3 < 1 or abs(d3 - 1) < 1e-10

    if in3:
        # All vertices within the circle
        return area_triangle(x1, y1, x2, y2, x3, y3)

    if in2 or on2:
        # Two nearest vertices inside or on the circle; a vertex on the circle only produces an intersection
        # if the edge to vertex 3 points inwards
        cross13 = not on1 or x1*(x3 - x1) + y1*(y3 - y1) < 0
        cross23 = not on2 or x2*(x3 - x2) + y2*(y3 - y2) < 0
        if cross13 and cross23:
            ax, ay = circle_segment_single2(x1, y1, x3, y3)
            bx, by = circle_segment_single2(x2, y2, x3, y3)
            return (area_triangle(x1, y1, x2, y2, ax, ay) +
                    area_triangle(x2, y2, ax, ay, bx, by) +
                    area_arc(ax, ay, bx, by, 1))
        if cross13:
            ax, ay = circle_segment_single2(x1, y1, x3, y3)
            return area_triangle(x1, y1, x2, y2, ax, ay) + area_arc(x2, y2, ax, ay, 1)
        if cross23:
            bx, by = circle_segment_single2(x2, y2, x3, y3)
            return area_triangle(x1, y1, x2, y2, bx, by) + area_arc(x1, y1, bx, by, 1)
        return area_arc(x1, y1, x2, y2, 1)

    if in1:
        # Only the nearest vertex inside
        p1x, p1y, p2x, p2y = circle_segment(x2, y2, x3, y3)
        p3x, p3y = circle_segment_single2(x1, y1, x2, y2)
        p4x, p4y = circle_segment_single2(x1, y1, x3, y3)

        if p1x > 1:
            # Far edge misses the circle; the arc spans more than pi if vertex 1 and the origin lie on different
            # sides of the chord p3-p4
            origin_left = -p3y*(p4x - p3x) > -p3x*(p4y - p3y)
            vertex_left = (y1 - p3y)*(p4x - p3x) > (x1 - p3x)*(p4y - p3y)
            if origin_left != vertex_left:
                return area_triangle(x1, y1, p3x, p3y, p4x, p4y) + np.pi - area_arc(p3x, p3y, p4x, p4y, 1)
            return area_triangle(x1, y1, p3x, p3y, p4x, p4y) + area_arc(p3x, p3y, p4x, p4y, 1)

        # Make p1 the intersection closest to vertex 2
        if (p2x - x2)**2 + (p2y - y2)**2 < (p1x - x2)**2 + (p1y - y2)**2:
            p1x, p1y, p2x, p2y = p2x, p2y, p1x, p1y

        return (area_triangle(x1, y1, p3x, p3y, p1x, p1y) +
                area_triangle(x1, y1, p1x, p1y, p2x, p2y) +
                area_triangle(x1, y1, p2x, p2y, p4x, p4y) +
                area_arc(p1x, p1y, p3x, p3y, 1) +
                area_arc(p2x, p2y, p4x, p4y, 1))

    # No vertices inside: split the triangle at the midpoint of any edge chord and recurse
    p1x, p1y, p2x, p2y = circle_segment(x1, y1, x2, y2)
    if p1x <= 1:
        xp, yp = 0.5*(p1x + p2x), 0.5*(p1y + p2y)
        return triangle_unitcircle_overlap(x1, y1, x3, y3, xp, yp) + triangle_unitcircle_overlap(x2, y2, x3, y3, xp, yp)

    p1x, p1y, p2x, p2y = circle_segment(x2, y2, x3, y3)
    if p1x <= 1:
        xp, yp = 0.5*(p1x + p2x), 0.5*(p1y + p2y)
        return triangle_unitcircle_overlap(x3, y3, x1, y1, xp, yp) + triangle_unitcircle_overlap(x2, y2, x1, y1, xp, yp)

    p1x, p1y, p2x, p2y = circle_segment(x3, y3, x1, y1)
    if p1x <= 1:
        xp, yp = 0.5*(p1x + p2x), 0.5*(p1y + p2y)
        return triangle_unitcircle_overlap(x1, y1, x2, y2, xp, yp) + triangle_unitcircle_overlap(x3, y3, x2, y2, xp, yp)

    # No intersections at all: either the circle is inside the triangle or they are disjoint
    if in_triangle(0, 0, x1, y1, x2, y2, x3, y3):
        return np.pi
    return 0.0


@njitc
def ellipoverlap(xmin: float, ymin: float, xmax: float, ymax: float, a: float, b: float, theta: float) -> float:
    """
    Exact area of overlap between the box [xmin, xmax] x [ymin, ymax] and an ellipse centered at the origin

    :param xmin: box left edge
    :param ymin: box bottom edge
    :param xmax: box right edge
    :param ymax: box top edge
    :param a: ellipse semi-major axis
    :param b: ellipse semi-minor axis
    :param theta: position angle of the major axis in radians, counter-clockwise from the X axis

    :return: overlap area
    """
    if a <= 0 or b <= 0:
        return 0.0

    c = np.cos(theta)
    s = np.sin(theta)

    # Rotate by -theta and scale so that the ellipse becomes the unit circle
    x1 = (xmin*c + ymin*s)/a
    y1 = (ymin*c - xmin*s)/b
    x2 = (xmax*c + ymin*s)/a
    y2 = (ymin*c - xmax*s)/b
    x3 = (xmax*c + ymax*s)/a
    y3 = (ymax*c - xmax*s)/b
    x4 = (xmin*c + ymax*s)/a
    y4 = (ymax*c - xmin*s)/b

    # The box becomes a parallelogram; split it into two triangles and scale the unit-circle areas back
    return a*b*(triangle_unitcircle_overlap(x1, y1, x2, y2, x3, y3) +
                triangle_unitcircle_overlap(x1, y1, x4, y4, x3, y3))
