import numpy as np
from utils import Vector


class SceneError(ValueError):
    """Raised when a scene is built from geometry that cannot be rendered."""


class Sphere:

    def __init__(self, center, radius):
        """Create a sphere with the given center and radius.

        Parameters:
          center : Vector -- a 3D point specifying the sphere's center
          radius : float -- a Python float specifying the sphere's radius, > 0
        """
        if not isinstance(center, Vector):
            center = Vector.from_array(center)
        radius = float(radius)
        if not radius > 0:
            raise SceneError(f"sphere radius must be positive, got {radius}")
        self.center = center
        self.radius = radius

    def contains(self, point):
        """True if the point lies inside the sphere or on its surface."""
        return point.distance(self.center) <= self.radius

    def intersect_distances(self, ray):
        """Computes the distances along the ray at which it meets this sphere.

        The ray direction must be unit length.  Hits behind the ray origin are
        discarded, a grazing (tangent) hit included.

        Parameters:
          ray : Ray -- the ray to intersect with the sphere
        Return:
          list of float -- 0, 1 or 2 distances, nearest first
        """
        oc = ray.origin - self.center
        b = ray.direction.dot(oc)
        discriminant = b * b - (oc.dot(oc) - self.radius * self.radius)
        if discriminant < 0:
            return []
        if discriminant == 0:
            return [-b] if -b >= 0 else []
        disc_sqrt = np.sqrt(discriminant)
        far = -b + disc_sqrt
        near = -b - disc_sqrt
        return [float(t) for t in (near, far) if t >= 0]

    def intersect(self, ray):
        """Computes the world-space points where the ray meets this sphere.

        Parameters:
          ray : Ray -- the ray to intersect with the sphere
        Return:
          list of Vector -- 0, 1 or 2 hit points, nearest first
        """
        return [ray.point_at(t) for t in self.intersect_distances(ray)]

    def __repr__(self):
        return f"Sphere({self.center!r}, {self.radius})"
