import argparse
import logging
import sys

from geometry import SceneError, Sphere
from logging_config import setup_logging
from scenefile import load_scene
from tracer import Camera, PointLight, Scene
from utils import Vector

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "out.pgm"


def example_scene():
    """Two spheres in front of an 80x80 camera, lit from the viewer's side."""
    camera = Camera(
        plane_basis_x=Vector(1, 0, 0),
        plane_basis_z=Vector(0, 0, 1),
        image_plane_width=8.0,
        image_plane_height=8.0,
        pixel_width=80,
        pixel_height=80,
    )
    return (Scene(camera)
            .add_sphere(Sphere(Vector(4, 4, 6), 2.0))
            .add_sphere(Sphere(Vector(6, 6, 3), 0.75))
            .add_light(PointLight(Vector(6, 1, 1), 1.0)))


def build_parser():
    parser = argparse.ArgumentParser(description='Orthographic sphere ray caster')
    parser.add_argument('scene_file', nargs='?', default=None,
                        help='Path to a scene description file (default: built-in example)')
    parser.add_argument('-o', '--output', default=None,
                        help=f'Output image path; .pgm, .pbm or any Pillow format (default: {DEFAULT_OUTPUT})')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log per-row progress')
    parser.add_argument('--log-file', default=None, help='Also write the log to this file')
    return parser


def render(scene, output_path=None, argv=None):
    """Render a scene and write it out; used by the example scene scripts.

    Command line flags (-o, -v, --log-file) are read from argv, or from
    sys.argv when argv is None.  An explicit output_path wins over -o.
    """
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)
    path = output_path or args.output or DEFAULT_OUTPUT
    canvas = scene.render(progress=args.verbose)
    canvas.write(path)
    return canvas


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)
    try:
        if args.scene_file is None:
            logger.info("No scene file given, rendering the example scene")
            scene = example_scene()
        else:
            scene = load_scene(args.scene_file)
        canvas = scene.render(progress=args.verbose)
        canvas.write(args.output or DEFAULT_OUTPUT)
    except SceneError as e:
        logger.error("Invalid scene: %s", e)
        return 1
    except OSError as e:
        logger.error("I/O error: %s", e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
