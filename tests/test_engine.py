import asyncio
import json
import os
import tempfile
import unittest

from scenecraft.camera import PerspectiveCamera
from scenecraft.config import EngineConfig
from scenecraft.descriptors import BoxDescriptor, SphereDescriptor
from scenecraft.document import DirectoryDelivery, SceneDocumentError
from scenecraft.engine import Engine
from scenecraft.scene import Scene
from scenecraft.scene_object import NodeKind

EXAMPLE_DOCUMENT = {
    "background": 0x87CEEB,
    "objects": [
        {"type": "box", "width": 1, "height": 1, "depth": 1, "color": 0xFF0000,
         "position": {"x": 0, "y": 0, "z": 0}},
    ],
}


def kinds(engine):
    return [child.kind for child in engine.scene_manager.children]


class TestEngine(unittest.TestCase):

    def setUp(self):
        self.engine = Engine()

    def test_defaults(self):
        self.assertEqual(self.engine.scene_manager.background, 0x87CEEB)
        self.assertEqual(kinds(self.engine), [NodeKind.AMBIENT_LIGHT, NodeKind.DIRECTIONAL_LIGHT])
        ambient, sun = self.engine.scene_manager.children
        self.assertAlmostEqual(float(ambient.light.intensity), 0.5)
        self.assertEqual(sun.transform.position.tolist(), [5.0, 5.0, 5.0])
        self.assertTrue(sun.cast_shadow)

        camera = self.engine.camera
        self.assertEqual(camera.fov, 75.0)
        self.assertEqual(camera.near, 0.1)
        self.assertEqual(camera.far, 1000.0)
        self.assertEqual(camera.position.tolist(), [3.0, 3.0, 5.0])
        self.assertAlmostEqual(camera.aspect, 800 / 600)
        self.assertTrue(self.engine.renderer.shadow_map_enabled)

    def test_batch_build_isolates_failures(self):
        self.engine.add_object("first", {"type": "box", "name": "first"})
        self.engine.add_object("broken", {"type": "box", "width": "abc"})
        self.engine.add_object("huge", {"type": "box", "width": 10 ** 400})
        self.engine.add_object("far", {"type": "sphere", "position": [10 ** 400, 0, 0]})
        self.engine.add_object("third", SphereDescriptor(name="third"))

        with self.assertLogs("scenecraft.engine", level="ERROR") as logs:
            added = self.engine.load_scene_from_data()
        self.assertIn("broken", logs.output[0])
        self.assertIn("huge", logs.output[1])
        self.assertIn("far", logs.output[2])
        self.assertEqual([node.name for node in added], ["first", "third"])
        names = [child.name for child in self.engine.scene_manager.children]
        self.assertEqual(names[2:], ["first", "third"])

    def test_batch_build_skips_unknown_types(self):
        self.engine.add_object("torus", {"type": "torus"})
        self.engine.add_object("box", {"type": "box"})
        with self.assertLogs("scenecraft", level="WARNING"):
            added = self.engine.load_scene_from_data()
        self.assertEqual(len(added), 1)

    def test_clear_scene_is_idempotent(self):
        self.engine.add_object("box", {"type": "box"})
        self.engine.load_scene_from_data()
        self.engine.on_scene_click(400, 300)
        self.assertIsNotNone(self.engine.selected_object)

        self.engine.clear_scene()
        state = (kinds(self.engine), len(self.engine.world), self.engine.selected_object)
        self.engine.clear_scene()
        self.assertEqual((kinds(self.engine), len(self.engine.world), self.engine.selected_object), state)
        self.assertEqual(state, ([NodeKind.AMBIENT_LIGHT, NodeKind.DIRECTIONAL_LIGHT], 0, None))

    def test_import_export_scenario(self):
        nodes = self.engine.load_scene_from_json(json.dumps(EXAMPLE_DOCUMENT))
        self.assertEqual(len(nodes), 1)
        children = kinds(self.engine)
        self.assertEqual(children.count(NodeKind.MESH), 1)
        self.assertEqual(children.count(NodeKind.AMBIENT_LIGHT), 1)
        self.assertEqual(children.count(NodeKind.DIRECTIONAL_LIGHT), 1)

        exported = json.loads(self.engine.save_scene_to_json())
        self.assertEqual(exported["background"], 0x87CEEB)
        self.assertEqual(len(exported["objects"]), 3)
        boxes = [obj for obj in exported["objects"] if obj["type"] == "box"]
        self.assertEqual(len(boxes), 1)
        self.assertEqual(boxes[0]["color"], 0xFF0000)

    def test_import_replaces_scene(self):
        self.engine.add_object("old", BoxDescriptor(name="old"))
        old_box, = self.engine.load_scene_from_data()
        old_scene = self.engine.scene

        self.engine.load_scene_from_json(json.dumps({"background": 0x000000, "objects": []}))
        self.assertIsNot(self.engine.scene, old_scene)
        self.assertTrue(old_box.mesh.disposed)
        self.assertTrue(old_box.material.disposed)
        self.assertEqual(self.engine.scene_manager.background, 0)
        self.assertEqual(len(self.engine.scene_manager.children), 2)

    def test_malformed_import_leaves_scene_untouched(self):
        self.engine.add_object("box", {"type": "box"})
        self.engine.load_scene_from_data()
        before = [child.id for child in self.engine.scene_manager.children]
        scene = self.engine.scene

        malformed = [
            "not json",
            json.dumps([1, 2, 3]),
            json.dumps({"background": 0x87CEEB, "objects": {}}),
            json.dumps({"background": "blue", "objects": []}),
            json.dumps({"background": 0x87CEEB, "objects": [42]}),
            json.dumps({"background": 0x87CEEB, "objects": [{"type": "box", "width": "abc"}]}),
            json.dumps({"background": 0x87CEEB, "objects": [{"type": "box", "width": 10 ** 400}]}),
            json.dumps({"background": 0x87CEEB,
                        "objects": [{"type": "box", "position": {"x": 10 ** 400, "y": 0, "z": 0}}]}),
        ]
        for text in malformed:
            with self.assertRaises(SceneDocumentError):
                self.engine.load_scene_from_json(text)

        with self.assertRaises(ValueError):
            self.engine.load_scene_from_json(json.dumps(
                {"background": 0, "objects": [{"type": "box", "width": -2}]}))

        self.assertIs(self.engine.scene, scene)
        self.assertEqual([child.id for child in self.engine.scene_manager.children], before)
        self.assertFalse(self.engine.scene_manager.children[2].mesh.disposed)

    def test_import_skips_unknown_types(self):
        document = {"background": 0x87CEEB, "objects": [{"type": "torus"}, {"type": "sphere"}]}
        with self.assertLogs("scenecraft", level="WARNING"):
            nodes = self.engine.load_scene_from_json(json.dumps(document))
        self.assertEqual(len(nodes), 1)

    def test_save_delivers_file(self):
        with tempfile.TemporaryDirectory() as directory:
            text = self.engine.save_scene_to_json(DirectoryDelivery(directory))
            path = os.path.join(directory, "scene.json")
            with open(path) as f:
                self.assertEqual(f.read(), text)
        self.assertIn('\n  "background": 8900331', text)

    def test_resize_is_idempotent(self):
        self.assertTrue(self.engine.on_window_resize(1024, 768))
        self.assertFalse(self.engine.on_window_resize(1024, 768))
        self.assertAlmostEqual(self.engine.camera.aspect, 1024 / 768)
        self.assertEqual((self.engine.renderer.width, self.engine.renderer.height), (1024, 768))

    def test_set_camera_syncs_aspect(self):
        camera = PerspectiveCamera(fov=50)
        self.engine.set_camera(camera)
        self.assertIs(self.engine.camera, camera)
        self.assertAlmostEqual(camera.aspect, 800 / 600)

    def test_set_scene(self):
        self.engine.add_object("box", {"type": "box"})
        self.engine.load_scene_from_data()
        self.assertIsNotNone(self.engine.on_scene_click(400, 300))

        scene = Scene(background=0x222222)
        self.engine.set_scene(scene)
        self.assertIs(self.engine.scene, scene)
        self.assertEqual(self.engine.scene_manager.children, [])
        self.assertIsNone(self.engine.selected_object)

    def test_tick_and_dispose(self):
        self.engine.add_object("box", {"type": "box"})
        box, = self.engine.load_scene_from_data()
        frame = self.engine.tick()
        self.assertEqual(len(frame.draw_calls), 1)
        self.assertEqual(len(frame.lights), 2)
        self.assertIn(box.mesh.id, self.engine.renderer.backend.buffers)

        self.engine.dispose()
        self.assertTrue(box.mesh.disposed)
        with self.assertRaises(RuntimeError):
            self.engine.tick()

    def test_cleared_resources_are_released_from_renderer(self):
        self.engine.add_object("box", {"type": "box"})
        box, = self.engine.load_scene_from_data()
        self.engine.tick()
        self.engine.clear_scene()
        self.assertNotIn(box.mesh.id, self.engine.renderer.backend.buffers)

    def test_render_loop(self):
        async def scenario():
            self.engine.start(fps=200)
            await asyncio.sleep(0.05)
            self.assertTrue(self.engine.running)
            await self.engine.stop()

        asyncio.run(scenario())
        self.assertFalse(self.engine.running)
        self.assertGreater(self.engine.renderer.backend.frames_rendered, 0)

    def test_config(self):
        config = EngineConfig.from_dict({
            "background": "#000000",
            "camera": {"fov": 60, "position": [0, 0, 10]},
            "renderer": {"width": 320, "height": 240, "device_pixel_ratio": 3},
            "lighting": {"ambient_intensity": 0.25},
        })
        engine = Engine(config)
        self.assertEqual(engine.scene_manager.background, 0)
        self.assertEqual(engine.camera.fov, 60)
        self.assertEqual(engine.renderer.pixel_ratio, 2)
        self.assertAlmostEqual(float(engine.scene_manager.children[0].light.intensity), 0.25)


if __name__ == "__main__":
    unittest.main()
