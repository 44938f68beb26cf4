import logging

from geometry import SceneError, Sphere
from tracer import Camera, PointLight, Scene
from utils import Vector

"""
Reader for the plain-text scene description format.  One object per line:

    cam  bx_x bx_y bx_z  bz_x bz_y bz_z  plane_w plane_h  pixels_w pixels_h  [pos_x pos_y]
    sph  cx cy cz radius
    lgt  px py pz intensity

Blank lines and lines starting with '#' are ignored.
"""

logger = logging.getLogger(__name__)

ARG_COUNTS = {
    "cam": (10, 12),
    "sph": (4,),
    "lgt": (4,),
}


def _parse_camera(params):
    camera = Camera(
        plane_basis_x=Vector(*params[0:3]),
        plane_basis_z=Vector(*params[3:6]),
        image_plane_width=params[6],
        image_plane_height=params[7],
        pixel_width=_as_int(params[8]),
        pixel_height=_as_int(params[9]),
        position=tuple(params[10:12]) if len(params) == 12 else (0.0, 0.0),
    )
    return camera


def _as_int(value):
    if not value.is_integer():
        raise SceneError(f"expected a whole number, got {value}")
    return int(value)


def parse_scene(lines):
    """Build a Scene from an iterable of text lines.

    Raises SceneError naming the offending line when the text is malformed or
    describes invalid geometry.
    """
    camera = None
    spheres = []
    lights = []
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        obj_type = parts[0]
        if obj_type not in ARG_COUNTS:
            raise SceneError(f"line {lineno}: unknown object type {obj_type!r}")
        if len(parts) - 1 not in ARG_COUNTS[obj_type]:
            expected = " or ".join(str(n) for n in ARG_COUNTS[obj_type])
            raise SceneError(f"line {lineno}: {obj_type} takes {expected} values, got {len(parts) - 1}")
        try:
            params = [float(p) for p in parts[1:]]
        except ValueError as e:
            raise SceneError(f"line {lineno}: {e}") from e

        try:
            if obj_type == "cam":
                if camera is not None:
                    raise SceneError("only one camera is allowed")
                camera = _parse_camera(params)
            elif obj_type == "sph":
                spheres.append(Sphere(Vector(*params[0:3]), params[3]))
            elif obj_type == "lgt":
                lights.append(PointLight(Vector(*params[0:3]), params[3]))
        except SceneError as e:
            raise SceneError(f"line {lineno}: {e}") from e

    if camera is None:
        raise SceneError("scene has no camera ('cam' line)")
    logger.debug("Parsed %d sphere(s) and %d light(s)", len(spheres), len(lights))
    return Scene(camera, spheres, lights)


def load_scene(path):
    """Read a scene description file."""
    logger.info("Loading scene from %s", path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            return parse_scene(f)
        except UnicodeDecodeError as e:
            raise SceneError(f"{path}: not a UTF-8 text file ({e.reason})") from e
