import logging
import math
import os
import tempfile
import unittest

import numpy as np
from PIL import Image

from canvas import Canvas
from cli import example_scene, main, render
from geometry import SceneError, Sphere
from logging_config import setup_logging
from scenefile import load_scene, parse_scene
from tracer import *
from utils import Vector, normalize


def assert_direction_matches(v, w):
    np.testing.assert_almost_equal(normalize(np.asarray(v)), normalize(np.asarray(w)))


def one_pixel_camera():
    # A single primary ray from the origin along +z
    return Camera(image_plane_width=1.0, image_plane_height=1.0, pixel_width=1, pixel_height=1)


class TestVector(unittest.TestCase):

    def assert_magnitude_consistent(self, v):
        self.assertAlmostEqual(v.magnitude, np.linalg.norm(np.asarray(v)))

    def test_magnitude_after_every_operation(self):
        a = Vector(1, 2, 3)
        b = Vector(-4, 0.5, 2)
        for v in [a, a + b, a - b, a.add(b), a.subtract(b), a * 2.5, a.scale(-3),
                  -a, 0.5 * b, a.cross(b), a.normalize()]:
            self.assert_magnitude_consistent(v)
        self.assertAlmostEqual(a.magnitude, math.sqrt(14))

    def test_normalize(self):
        for v in [Vector(3, 4, 0), Vector(-1e-3, 2e-3, 5e-4), Vector(1e6, -2e6, 3)]:
            n = v.normalize()
            self.assertAlmostEqual(n.magnitude, 1.0, delta=1e-9)
            assert_direction_matches(n, v)

    def test_normalize_zero_gives_nan(self):
        n = Vector(0, 0, 0).normalize()
        self.assertTrue(all(math.isnan(c) for c in n))

    def test_cross_is_orthogonal(self):
        a = Vector(1, 2, 3)
        b = Vector(-4, 0.5, 2)
        c = a.cross(b)
        self.assertAlmostEqual(c.dot(a), 0.0)
        self.assertAlmostEqual(c.dot(b), 0.0)
        # right-handed
        self.assertEqual(Vector(0, 0, 1).cross(Vector(1, 0, 0)), Vector(0, 1, 0))

    def test_operations_do_not_modify_operands(self):
        a = Vector(1, 2, 3)
        a.scale(10)
        a + Vector(1, 1, 1)
        a.normalize()
        self.assertEqual(a, Vector(1, 2, 3))
        self.assertAlmostEqual(a.magnitude, math.sqrt(14))

    def test_components(self):
        v = Vector(1.5, -2, 7)
        self.assertEqual((v.x, v.y, v.z), (1.5, -2.0, 7.0))
        self.assertEqual(list(v), [1.5, -2.0, 7.0])
        self.assertAlmostEqual(Vector(1, 1, 1).distance(Vector(1, 4, 5)), 5.0)


class TestRay(unittest.TestCase):

    def test_point_at(self):
        ray = Ray(Vector(1, 2, 3), Vector(0, 0, 1))
        self.assertEqual(ray.point_at(2), Vector(1, 2, 5))
        self.assertEqual(ray.point_at(0), Vector(1, 2, 3))


class TestSphereIntersect(unittest.TestCase):

    def confirm_hits(self, sphere, ray, count):
        # make sure hits are self-consistent, then return them
        hits = sphere.intersect(ray)
        self.assertEqual(len(hits), count)
        for point in hits:
            self.assertAlmostEqual(point.distance(sphere.center), sphere.radius)
        distances = [point.distance(ray.origin) for point in hits]
        self.assertEqual(distances, sorted(distances))
        return hits

    def test_straight_through(self):
        sphere = Sphere(Vector(0, 0, 5), 1.0)
        ray = Ray(Vector(0, 0, 0), Vector(0, 0, 1))
        hits = self.confirm_hits(sphere, ray, 2)
        self.assertEqual(hits, [Vector(0, 0, 4), Vector(0, 0, 6)])
        self.assertEqual(sphere.intersect_distances(ray), [4.0, 6.0])

    def test_miss(self):
        sphere = Sphere(Vector(0, 0, 5), 1.0)
        self.assertEqual(sphere.intersect(Ray(Vector(0, 0, 0), Vector(1, 0, 0))), [])

    def test_aimed_away(self):
        sphere = Sphere(Vector(0, 0, 5), 1.0)
        self.assertEqual(sphere.intersect(Ray(Vector(0, 0, 0), Vector(0, 0, -1))), [])

    def test_symmetric_about_closest_approach(self):
        center = Vector(3, 4, 12)
        sphere = Sphere(center, 2.0)
        ray = Ray(Vector(0, 0, 0), center.normalize())
        self.confirm_hits(sphere, ray, 2)
        near, far = sphere.intersect_distances(ray)
        self.assertAlmostEqual(near, 11.0)
        self.assertAlmostEqual(far, 15.0)
        self.assertAlmostEqual((near + far) / 2, center.magnitude)

    def test_tangent(self):
        sphere = Sphere(Vector(0, 0, 5), 1.0)
        hits = self.confirm_hits(sphere, Ray(Vector(1, 0, 0), Vector(0, 0, 1)), 1)
        self.assertEqual(hits[0], Vector(1, 0, 5))

    def test_tangent_behind_origin(self):
        sphere = Sphere(Vector(0, 0, -5), 1.0)
        ray = Ray(Vector(1, 0, 0), Vector(0, 0, 1))
        self.assertEqual(sphere.intersect_distances(ray), [])
        self.assertEqual(sphere.intersect(ray), [])

    def test_sphere_behind_camera_not_drawn(self):
        cam = Camera(image_plane_width=4.0, image_plane_height=4.0, pixel_width=4, pixel_height=4)
        scene = Scene(cam, [Sphere(Vector(0, 0, -5), 1.0)], [PointLight(Vector(0, 0, 0))])
        self.assertTrue((scene.render(progress=False).as_array() == BACKGROUND).all())

    def test_origin_inside(self):
        sphere = Sphere(Vector(0, 0, 5), 1.0)
        hits = self.confirm_hits(sphere, Ray(Vector(0, 0, 5), Vector(0, 0, 1)), 1)
        self.assertEqual(hits[0], Vector(0, 0, 6))

    def test_nonunit_sphere(self):
        # scaled by 3 and shifted by (-1, -5, -7)
        sphere = Sphere(Vector(-1, -5, -7), 3.0)
        ray = Ray(Vector(5, -5, -7), Vector(-1, 0, 0))
        self.confirm_hits(sphere, ray, 2)
        np.testing.assert_allclose(sphere.intersect_distances(ray), [3.0, 9.0])

    def test_invalid_radius(self):
        for radius in [0, -1.0, float("nan")]:
            with self.assertRaises(SceneError):
                Sphere(Vector(0, 0, 0), radius)

    def test_contains(self):
        sphere = Sphere(Vector(0, 0, 5), 1.0)
        self.assertTrue(sphere.contains(Vector(0, 0, 5.5)))
        self.assertTrue(sphere.contains(Vector(0, 0, 6)))
        self.assertFalse(sphere.contains(Vector(0, 0, 6.5)))


class TestCamera(unittest.TestCase):

    def test_default_basis(self):
        cam = Camera()
        self.assertEqual(cam.plane_basis_y, Vector(0, 1, 0))

    def test_ray_grid(self):
        cam = Camera(image_plane_width=2.0, image_plane_height=1.0, pixel_width=4, pixel_height=2)
        ray = cam.generate_ray(0, 0)
        np.testing.assert_allclose(np.asarray(ray.origin), [0, 0, 0])
        ray = cam.generate_ray(3, 1)
        np.testing.assert_allclose(np.asarray(ray.origin), [1.5, 0.5, 0])
        # every ray shares the viewing direction
        self.assertEqual(ray.direction, Vector(0, 0, 1))
        self.assertEqual(cam.generate_ray(1, 0).direction, ray.direction)

    def test_position_offset(self):
        cam = Camera(image_plane_width=2.0, image_plane_height=1.0, pixel_width=4, pixel_height=2,
                     position=(10, 20))
        np.testing.assert_allclose(np.asarray(cam.generate_ray(3, 1).origin), [11.5, 20.5, 0])

    def test_arbitrary_frame(self):
        # plane spanned by y and z, looking down -x; only the viewing direction is normalized
        cam = Camera(plane_basis_x=Vector(0, 2, 0), plane_basis_z=Vector(-3, 0, 0),
                     image_plane_width=4.0, image_plane_height=4.0, pixel_width=4, pixel_height=4)
        ray = cam.generate_ray(1, 2)
        np.testing.assert_allclose(np.asarray(ray.direction), [-1, 0, 0])
        self.assertAlmostEqual(ray.direction.magnitude, 1.0)
        basis_y = cam.plane_basis_y
        np.testing.assert_allclose(np.asarray(basis_y), [0, 0, -2])
        np.testing.assert_allclose(np.asarray(ray.origin), [0, 2, -4])

    def test_basis_x_length_scales_step(self):
        cam = Camera(plane_basis_x=Vector(3, 0, 0), image_plane_width=2.0, image_plane_height=2.0,
                     pixel_width=2, pixel_height=2)
        self.assertEqual(cam.plane_basis_x, Vector(3, 0, 0))
        np.testing.assert_allclose(np.asarray(cam.generate_ray(1, 1).origin), [3, 3, 0])

    def test_invalid_configuration(self):
        with self.assertRaises(SceneError):
            Camera(pixel_width=0)
        with self.assertRaises(SceneError):
            Camera(image_plane_height=-1.0)
        with self.assertRaises(SceneError):
            Camera(plane_basis_z=Vector(0, 0, 0))


class TestShading(unittest.TestCase):

    def setUp(self):
        self.camera = one_pixel_camera()
        self.target = Sphere(Vector(0, 0, 5), 1.0)
        # light up and to the side of the hit point (0, 0, 4), 2*sqrt(2) away
        self.light = PointLight(Vector(0, 2, 2), 1.0)
        self.blocker = Sphere(Vector(0, 1, 3), 0.3)

    def test_falloff(self):
        self.assertEqual(falloff(0.5), 255)
        self.assertEqual(falloff(3.0), 180)
        self.assertEqual(falloff(10.2), 5)
        self.assertEqual(falloff(11.0), 0)
        self.assertEqual(falloff(100.0), 0)

    def test_unoccluded_light(self):
        scene = Scene(self.camera, [self.target], [self.light])
        self.assertEqual(scene.render().get(0, 0), 255 - 25 * 2)

    def test_shadowed_light(self):
        scene = Scene(self.camera, [self.target, self.blocker], [self.light])
        self.assertEqual(scene.render().get(0, 0), 0)

    def test_self_intersection_ignored(self):
        hit = Vector(0, 0, 4)
        self.assertFalse(self.camera.is_occluded(hit, self.light, [self.target]))

    def test_no_lights_is_black(self):
        scene = Scene(self.camera, [self.target])
        self.assertEqual(scene.render().get(0, 0), 0)

    def test_brightest_light_wins(self):
        far_light = PointLight(Vector(0, 0, -5), 1.0)  # 9 units away
        for lights in ([self.light, far_light], [far_light, self.light]):
            scene = Scene(self.camera, [self.target], lights)
            self.assertEqual(scene.render().get(0, 0), 205)
        # with the near light blocked only the far one contributes
        scene = Scene(self.camera, [self.target, self.blocker], [self.light, far_light])
        self.assertEqual(scene.render().get(0, 0), 255 - 25 * 9)

    def test_nearest_sphere_wins(self):
        # the farther sphere is listed first but must not hide the nearer one
        far = Sphere(Vector(0, 0, 10), 1.0)
        near = Sphere(Vector(0, 0, 3), 1.0)
        light = PointLight(Vector(0, 2, 0), 1.0)
        scene = Scene(self.camera, [far, near], [light])
        self.assertEqual(self.camera.closest_hit(self.camera.generate_ray(0, 0), scene.spheres),
                         Vector(0, 0, 2))
        self.assertEqual(scene.render().get(0, 0), 205)

    def test_miss_keeps_background(self):
        scene = Scene(self.camera, [Sphere(Vector(5, 5, 5), 1.0)], [self.light])
        self.assertEqual(scene.render().get(0, 0), BACKGROUND)
        self.assertIsNone(self.camera.trace(self.camera.generate_ray(0, 0), scene.spheres, scene.lights))


class TestScene(unittest.TestCase):

    def test_builder_returns_new_scene(self):
        empty = Scene(one_pixel_camera())
        one = empty.add_sphere(Sphere(Vector(0, 0, 5), 1.0))
        two = one.add_light(PointLight(Vector(0, 0, 0)))
        self.assertEqual(empty.spheres, ())
        self.assertEqual(len(one.spheres), 1)
        self.assertEqual(one.lights, ())
        self.assertEqual(len(two.lights), 1)
        self.assertIs(two.camera, empty.camera)

    def test_light_inside_geometry_rejected(self):
        sphere = Sphere(Vector(0, 0, 5), 1.0)
        inside = PointLight(Vector(0, 0, 5.5))
        with self.assertRaises(SceneError):
            Scene(one_pixel_camera(), [sphere], [inside])
        with self.assertRaises(SceneError):
            Scene(one_pixel_camera()).add_light(inside).add_sphere(sphere)

    def test_canvas_matches_camera(self):
        cam = Camera(image_plane_width=3.0, image_plane_height=2.0, pixel_width=7, pixel_height=5)
        canvas = Scene(cam, [Sphere(Vector(1.5, 1, 4), 0.8)], [PointLight(Vector(1.5, 1, 0))]).render()
        self.assertEqual((canvas.width, canvas.height), (7, 5))
        pixels = canvas.as_array()
        self.assertEqual(pixels.shape, (5, 7))
        self.assertTrue(((pixels >= 0) & (pixels <= 255)).all())

    def test_disk_silhouette_area(self):
        # 40x40 pixels over a 4x4 plane: a unit sphere covers pi / 0.1**2 pixels
        cam = Camera(image_plane_width=4.0, image_plane_height=4.0, pixel_width=40, pixel_height=40)
        scene = Scene(cam, [Sphere(Vector(2, 2, 5), 1.0)], [PointLight(Vector(2, 2, 0))])
        covered = int((scene.render().as_array() != BACKGROUND).sum())
        expected = math.pi / 0.1 ** 2
        self.assertLess(abs(covered - expected) / expected, 0.05)

    def test_render_is_repeatable(self):
        scene = example_scene()
        first = scene.render(progress=False)
        second = scene.render(progress=False)
        np.testing.assert_array_equal(first.as_array(), second.as_array())


class TestCanvas(unittest.TestCase):

    def test_defaults_to_white(self):
        canvas = Canvas(3, 2)
        self.assertTrue((canvas.as_array() == 255).all())

    def test_bounds(self):
        canvas = Canvas(3, 2)
        self.assertIsNone(canvas.get(3, 0))
        self.assertIsNone(canvas.get(0, 2))
        self.assertIsNone(canvas.get(-1, 0))
        self.assertFalse(canvas.set(5, 5, 10))
        self.assertTrue(canvas.set(2, 1, 10))
        self.assertEqual(canvas.get(2, 1), 10)
        self.assertTrue(canvas.ink(0, 1))
        self.assertEqual(canvas.get(0, 1), 0)

    def test_values_clamped(self):
        canvas = Canvas(1, 1)
        canvas.set(0, 0, 300)
        self.assertEqual(canvas.get(0, 0), 255)
        canvas.set(0, 0, -4)
        self.assertEqual(canvas.get(0, 0), 0)

    def test_pgm_text(self):
        canvas = Canvas(2, 2)
        canvas.set(1, 0, 7)
        self.assertEqual(canvas.to_pgm(), "P2\n2 2\n255\n255 7\n255 255\n")

    def test_pbm_text(self):
        canvas = Canvas(2, 2)
        canvas.set(1, 0, 7)
        self.assertEqual(canvas.to_pbm(), "P1\n2 2\n0 1\n0 0\n")

    def test_write(self):
        canvas = Canvas(4, 3)
        canvas.set(1, 2, 42)
        with tempfile.TemporaryDirectory() as d:
            pgm = os.path.join(d, "out.pgm")
            canvas.write(pgm)
            with open(pgm) as f:
                self.assertEqual(f.read(), canvas.to_pgm())
            png = os.path.join(d, "out.png")
            canvas.write(png)
            with Image.open(png) as im:
                np.testing.assert_array_equal(np.array(im), canvas.as_array())

    def test_write_unsupported_extension(self):
        canvas = Canvas(2, 2)
        with tempfile.TemporaryDirectory() as d:
            for name in ["out.xyz", "out"]:
                with self.assertRaises(OSError):
                    canvas.write(os.path.join(d, name))


SCENE_TEXT = """
# comment
cam  1 0 0  0 0 1  4 4  8 8  0.5 0.5
sph  2 2 5  1
lgt  2 2 0  0.8
"""


class TestSceneFile(unittest.TestCase):

    def test_parse(self):
        scene = parse_scene(SCENE_TEXT.splitlines())
        self.assertEqual((scene.camera.pixel_width, scene.camera.pixel_height), (8, 8))
        self.assertEqual(scene.camera.position, (0.5, 0.5))
        self.assertEqual(scene.spheres[0].center, Vector(2, 2, 5))
        self.assertEqual(scene.lights[0].intensity, 0.8)

    def test_errors(self):
        cam = "cam 1 0 0 0 0 1 4 4 8 8"
        bad = [
            ([cam, "box 1 2 3"], "line 2: unknown"),
            ([cam, "sph 1 2 3"], "line 2: sph takes 4"),
            ([cam, "sph 1 2 x 1"], "line 2"),
            ([cam, "sph 1 2 3 0"], "line 2: sphere radius"),
            ([cam, cam], "line 2: only one camera"),
            (["cam 1 0 0 0 0 1 4 4 8.5 8"], "line 1: expected a whole number"),
            (["sph 1 2 3 1"], "no camera"),
            ([cam, "sph 0 0 5 1", "lgt 0 0 5 1"], "lies inside"),
        ]
        for lines, message in bad:
            with self.assertRaisesRegex(SceneError, message):
                parse_scene(lines)


class TestCli(unittest.TestCase):

    def test_render_scene_file(self):
        with tempfile.TemporaryDirectory() as d:
            scene_path = os.path.join(d, "test.scene")
            with open(scene_path, "w") as f:
                f.write(SCENE_TEXT)
            out = os.path.join(d, "out.pgm")
            self.assertEqual(main([scene_path, "-o", out]), 0)
            with open(out) as f:
                self.assertEqual(f.readline().strip(), "P2")
                self.assertEqual(f.readline().strip(), "8 8")

    def test_bad_scene_file(self):
        with tempfile.TemporaryDirectory() as d:
            scene_path = os.path.join(d, "bad.scene")
            with open(scene_path, "w") as f:
                f.write("sph 0 0 5 1\n")
            self.assertEqual(main([scene_path, "-o", os.path.join(d, "out.pgm")]), 1)
            self.assertEqual(main([os.path.join(d, "missing.scene")]), 1)

    def test_unsupported_output_extension(self):
        with tempfile.TemporaryDirectory() as d:
            scene_path = os.path.join(d, "test.scene")
            with open(scene_path, "w") as f:
                f.write(SCENE_TEXT)
            self.assertEqual(main([scene_path, "-o", os.path.join(d, "out.xyz")]), 1)

    def test_non_utf8_scene_file(self):
        with tempfile.TemporaryDirectory() as d:
            scene_path = os.path.join(d, "latin1.scene")
            with open(scene_path, "wb") as f:
                f.write(b"# caf\xe9\n" + SCENE_TEXT.encode("ascii"))
            with self.assertRaisesRegex(SceneError, "not a UTF-8 text file"):
                load_scene(scene_path)
            self.assertEqual(main([scene_path, "-o", os.path.join(d, "out.pgm")]), 1)

    def test_render_with_progress_log(self):
        # scene scripts call render(); -v logs every row, --log-file copies the log
        self.addCleanup(setup_logging, logging.WARNING)
        with tempfile.TemporaryDirectory() as d:
            out = os.path.join(d, "scene.png")
            log = os.path.join(d, "render.log")
            canvas = render(example_scene(), out, argv=["-v", "--log-file", log])
            setup_logging(logging.WARNING)
            self.assertTrue(os.path.exists(out))
            with Image.open(out) as im:
                np.testing.assert_array_equal(np.array(im), canvas.as_array())
            with open(log, encoding="utf-8") as f:
                text = f.read()
            self.assertIn("rendering row 1/80", text)
            self.assertIn("rendering row 80/80", text)


if __name__ == '__main__':
    unittest.main()
