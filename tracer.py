import logging
import math

from canvas import Canvas, WHITE
from geometry import SceneError, Sphere
from utils import Vector

"""
Core implementation of the ray caster.  This module contains the classes (Ray, PointLight,
Camera, Scene) used in the rendering algorithm; Scene.render is the main entry point.

Arguments documented as Vector are utils.Vector values.  Geometry handed to these classes is
validated when a Scene is built, so rendering itself never raises for a well-formed scene.
"""

logger = logging.getLogger(__name__)

EPSILON = 1e-4  # shadow rays ignore hits closer than this
BACKGROUND = WHITE
FALLOFF = 25  # intensity lost per whole scene unit of distance to the light


class Ray:

    def __init__(self, origin, direction):
        """Create a ray with the given origin and direction.

        Parameters:
          origin : Vector -- the start point of the ray
          direction : Vector -- the direction of the ray; callers normalize it
        """
        self.origin = origin
        self.direction = direction

    def point_at(self, distance):
        return self.origin + self.direction * distance


class PointLight:

    def __init__(self, position, intensity=1.0):
        """Create a point light at given position and with given intensity"""
        if not isinstance(position, Vector):
            position = Vector.from_array(position)
        self.position = position
        self.intensity = float(intensity)

    def __repr__(self):
        return f"PointLight({self.position!r}, {self.intensity})"


def falloff(distance):
    """Intensity of an unoccluded light at the given distance."""
    return min(max(WHITE - FALLOFF * math.floor(distance), 0), WHITE)


class Camera:

    def __init__(self, plane_basis_x=Vector(1, 0, 0), plane_basis_z=Vector(0, 0, 1),
                 image_plane_width=1.0, image_plane_height=1.0,
                 pixel_width=100, pixel_height=100, position=(0.0, 0.0)):
        """Create an orthographic camera.

        Every primary ray travels along plane_basis_z; rays differ only in their
        origin, which steps across the image plane spanned by plane_basis_x and
        cross(plane_basis_z, plane_basis_x).

        Parameters:
          plane_basis_x : Vector -- the image plane's horizontal axis, used as given; its
            length scales the horizontal step between pixel origins
          plane_basis_z : Vector -- the viewing direction shared by all rays, normalized here
          image_plane_width, image_plane_height : float -- world-space extent of the plane
          pixel_width, pixel_height : int -- resolution of the rendered canvas
          position : (2,) -- offset of the plane origin along its x and y axes
        """
        if pixel_width <= 0 or pixel_height <= 0:
            raise SceneError(f"camera resolution must be positive, got {pixel_width}x{pixel_height}")
        if not (image_plane_width > 0 and image_plane_height > 0):
            raise SceneError("camera image plane must have a positive extent")
        if plane_basis_x.magnitude == 0 or plane_basis_z.magnitude == 0:
            raise SceneError("camera basis vectors must be non-zero")
        self.plane_basis_x = plane_basis_x
        self.plane_basis_z = plane_basis_z.normalize()
        self.image_plane_width = float(image_plane_width)
        self.image_plane_height = float(image_plane_height)
        self.pixel_width = int(pixel_width)
        self.pixel_height = int(pixel_height)
        self.position = (float(position[0]), float(position[1]))

    @property
    def plane_basis_y(self):
        return self.plane_basis_z.cross(self.plane_basis_x)

    def generate_ray(self, col, row, basis_y=None):
        """Compute the primary ray for pixel (col, row)."""
        if basis_y is None:
            basis_y = self.plane_basis_y
        width_step = self.image_plane_width / self.pixel_width
        height_step = self.image_plane_height / self.pixel_height
        u = self.position[0] + col * width_step
        v = self.position[1] + row * height_step
        origin = self.plane_basis_x * u + basis_y * v
        return Ray(origin, self.plane_basis_z)

    def closest_hit(self, ray, spheres):
        """Return the nearest hit point over all spheres, or None."""
        closest = None
        closest_t = math.inf
        for sphere in spheres:
            ts = sphere.intersect_distances(ray)
            if ts and ts[0] < closest_t:
                closest_t = ts[0]
                closest = ray.point_at(closest_t)
        return closest

    def is_occluded(self, point, light, spheres):
        """True if any sphere lies between point and the light."""
        to_light = light.position - point
        light_distance = to_light.magnitude
        shadow_ray = Ray(point, to_light.normalize())
        for sphere in spheres:
            for t in sphere.intersect_distances(shadow_ray):
                if EPSILON < t < light_distance:
                    return True
        return False

    def shade(self, point, spheres, lights):
        """Compute the intensity at a surface point.

        Each unoccluded light contributes a value that falls off linearly with
        distance; the brightest contribution wins.  No lights gives 0.
        """
        intensity = 0
        for light in lights:
            if self.is_occluded(point, light, spheres):
                continue
            intensity = max(intensity, falloff(point.distance(light.position)))
        return intensity

    def trace(self, ray, spheres, lights):
        """Return the intensity seen along a primary ray, or None on a miss."""
        hit = self.closest_hit(ray, spheres)
        if hit is None:
            return None
        return self.shade(hit, spheres, lights)

    def render(self, spheres, lights, progress=False):
        """Render the given geometry to a new Canvas of the camera's resolution."""
        canvas = Canvas(self.pixel_width, self.pixel_height, fill=BACKGROUND)
        basis_y = self.plane_basis_y
        for row in range(self.pixel_height):
            if progress:
                logger.debug("rendering row %d/%d", row + 1, self.pixel_height)
            for col in range(self.pixel_width):
                value = self.trace(self.generate_ray(col, row, basis_y), spheres, lights)
                if value is not None:
                    canvas.set(col, row, value)
        return canvas


class Scene:

    def __init__(self, camera, spheres=(), lights=()):
        """Create a scene containing the given objects.

        Scenes are immutable: add_sphere and add_light return a new Scene.
        """
        self.camera = camera
        self.spheres = tuple(spheres)
        self.lights = tuple(lights)
        # lights must lie outside every sphere
        for light in self.lights:
            for sphere in self.spheres:
                if sphere.contains(light.position):
                    raise SceneError(f"{light!r} lies inside {sphere!r}")

    def add_sphere(self, sphere):
        return Scene(self.camera, self.spheres + (sphere,), self.lights)

    def add_light(self, light):
        return Scene(self.camera, self.spheres, self.lights + (light,))

    def render(self, progress=True):
        """Render the scene through its camera."""
        logger.info("Rendering %d sphere(s), %d light(s) at %dx%d",
                    len(self.spheres), len(self.lights),
                    self.camera.pixel_width, self.camera.pixel_height)
        canvas = self.camera.render(self.spheres, self.lights, progress=progress)
        logger.info("Render finished")
        return canvas
