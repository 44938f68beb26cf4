from utils import *
from tracer import *
from cli import render

# One sphere centered in the frame, light just in front of it
camera = Camera(image_plane_width=2.0, image_plane_height=2.0, pixel_width=64, pixel_height=64)

scene = (Scene(camera)
         .add_sphere(Sphere(Vector(1, 1, 3), 0.5))
         .add_light(PointLight(Vector(1, 1, 1), 1.0)))

render(scene)
