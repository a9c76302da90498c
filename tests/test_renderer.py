import unittest

import trimesh

from scenecraft.camera import PerspectiveCamera
from scenecraft.descriptors import AmbientLightDescriptor, BoxDescriptor
from scenecraft.factory import ObjectFactory
from scenecraft.renderer import HeadlessBackend, Renderer, SHADOW_MAP_PCF_SOFT
from scenecraft.scene import Scene


class TestRenderer(unittest.TestCase):

    def setUp(self):
        self.backend = HeadlessBackend()
        self.renderer = Renderer(self.backend, device_pixel_ratio=3.0)
        self.scene = Scene()
        self.camera = PerspectiveCamera()
        self.box = ObjectFactory.build(BoxDescriptor(color=0x00FF00, position=(1.0, 0.0, 0.0)))
        self.scene.add(self.box, ObjectFactory.build(AmbientLightDescriptor()))

    def test_settings(self):
        self.assertEqual(self.renderer.pixel_ratio, 2.0)
        self.assertEqual(Renderer(device_pixel_ratio=1.5).pixel_ratio, 1.5)
        self.assertTrue(self.renderer.shadow_map_enabled)
        self.assertEqual(self.renderer.shadow_map_type, SHADOW_MAP_PCF_SOFT)

    def test_set_size(self):
        self.assertTrue(self.renderer.set_size(640, 480))
        self.assertFalse(self.renderer.set_size(640, 480))
        self.assertEqual((self.backend.width, self.backend.height, self.backend.pixel_ratio), (640, 480, 2.0))
        with self.assertRaises(ValueError):
            self.renderer.set_size(-1, 10)

    def test_render_records_frame(self):
        frame = self.renderer.render(self.scene, self.camera)
        self.assertEqual(frame.background, 0x87CEEB)
        self.assertEqual(len(frame.draw_calls), 1)
        call = frame.draw_calls[0]
        self.assertEqual(call.color, 0x00FF00)
        self.assertEqual(call.world_matrix[0][3], 1.0)
        self.assertTrue(call.cast_shadow)
        self.assertEqual(len(frame.lights), 1)
        self.assertEqual(frame.to_dict()["draw_calls"][0]["geometry_type"], "box")

    def test_buffers_cached_and_released(self):
        self.renderer.render(self.scene, self.camera)
        buffer = self.backend.buffers[self.box.mesh.id]
        self.renderer.render(self.scene, self.camera)
        self.assertIs(self.backend.buffers[self.box.mesh.id], buffer)
        self.assertEqual(self.backend.frames_rendered, 2)

        self.renderer.release(self.box.dispose_resources())
        self.assertNotIn(self.box.mesh.id, self.backend.buffers)
        frame = self.renderer.render(self.scene, self.camera)
        self.assertEqual(frame.draw_calls, [])

    def test_hidden_nodes_are_skipped(self):
        self.box.visible = False
        frame = self.renderer.render(self.scene, self.camera)
        self.assertEqual(frame.draw_calls, [])

    def test_snapshot(self):
        self.assertEqual(len(self.backend.snapshot().geometry), 0)
        self.renderer.render(self.scene, self.camera)
        snapshot = self.backend.snapshot()
        self.assertIsInstance(snapshot, trimesh.Scene)
        self.assertEqual(len(snapshot.geometry), 1)

    def test_dispose(self):
        self.renderer.render(self.scene, self.camera)
        self.renderer.dispose()
        self.renderer.dispose()
        self.assertTrue(self.backend.disposed)
        self.assertEqual(self.backend.buffers, {})
        self.renderer.release(["anything"])
        with self.assertRaises(RuntimeError):
            self.renderer.render(self.scene, self.camera)


class TestCamera(unittest.TestCase):

    def test_projection(self):
        camera = PerspectiveCamera(fov=90, aspect=2.0, near=1.0, far=100.0)
        matrix = camera.projection_matrix
        self.assertAlmostEqual(float(matrix[0, 0]), 0.5)
        self.assertAlmostEqual(float(matrix[1, 1]), 1.0)
        self.assertAlmostEqual(float(matrix[3, 2]), -1.0)

    def test_unproject_center(self):
        camera = PerspectiveCamera()
        point = camera.unproject((0.0, 0.0, -1.0))
        self.assertAlmostEqual(float(point[2]), -camera.near)

    def test_invalid_parameters(self):
        with self.assertRaises(ValueError):
            PerspectiveCamera(fov=0)
        with self.assertRaises(ValueError):
            PerspectiveCamera(near=10, far=1)


if __name__ == "__main__":
    unittest.main()
