from utils import *
from tracer import *
from cli import render

camera = Camera(
    plane_basis_x=Vector(1, 0, 0),
    plane_basis_z=Vector(0, 0, 1),
    image_plane_width=12.0,
    image_plane_height=6.0,
    pixel_width=160,
    pixel_height=80,
)

# Nearest sphere listed last: it still hides the one behind it
scene = Scene(camera, [
    Sphere(Vector(3, 3, 8), 2.0),
    Sphere(Vector(9, 3, 8), 2.0),
    Sphere(Vector(6, 3, 4), 1.5),
], [
    PointLight(Vector(6, -2, 0), 1.0),
    PointLight(Vector(12, 6, 2), 1.0),
])

render(scene)
