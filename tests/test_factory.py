import math
import unittest
from unittest import mock

import torch

from scenecraft.components import TransformComponent
from scenecraft.components.light import AMBIENT, DIRECTIONAL
from scenecraft.components.mesh import BOX, SPHERE, SPHERE_SEGMENTS
from scenecraft.descriptors import BoxDescriptor, SphereDescriptor
from scenecraft.factory import COMMON_PROPERTY_ORDER, ObjectFactory
from scenecraft.scene_object import NodeKind


class TestObjectFactory(unittest.TestCase):

    def test_box(self):
        node = ObjectFactory.build({
            "type": "box", "width": 2, "height": 1, "depth": 0.5,
            "color": 0xFF0000, "name": "crate",
            "position": {"x": 1, "y": 2, "z": 3},
        })
        self.assertEqual(node.kind, NodeKind.MESH)
        self.assertEqual(node.name, "crate")
        self.assertEqual(node.mesh.geometry_type, BOX)
        self.assertEqual(node.mesh.parameters["width"], 2.0)
        self.assertEqual(node.mesh.faces.shape[1], 3)
        extent = node.mesh.vertices.max(0).values - node.mesh.vertices.min(0).values
        self.assertTrue(torch.allclose(extent, torch.tensor([2.0, 1.0, 0.5])))
        self.assertEqual(node.material.get_hex(), 0xFF0000)
        self.assertAlmostEqual(float(node.material.metalness), 0.0)
        self.assertAlmostEqual(float(node.material.roughness), 1.0)
        self.assertTrue(node.cast_shadow)
        self.assertTrue(node.receive_shadow)
        self.assertEqual(node.transform.position.tolist(), [1.0, 2.0, 3.0])
        self.assertEqual(node.transform.scale.tolist(), [1.0, 1.0, 1.0])

    def test_sphere(self):
        node = ObjectFactory.build(SphereDescriptor(radius=0.5, color=0x00FF00))
        self.assertEqual(node.mesh.geometry_type, SPHERE)
        self.assertEqual(node.mesh.parameters["width_segments"], SPHERE_SEGMENTS)
        self.assertEqual(node.mesh.parameters["height_segments"], SPHERE_SEGMENTS)
        radii = torch.linalg.norm(node.mesh.vertices, dim=1)
        self.assertTrue(torch.allclose(radii, torch.full_like(radii, 0.5), atol=1e-5))
        self.assertEqual(node.name, "")

    def test_ambient_light(self):
        node = ObjectFactory.build({"type": "ambientLight", "color": 0x404040, "intensity": 0.5,
                                    "rotation": [1, 1, 1], "scale": [2, 2, 2]})
        self.assertEqual(node.kind, NodeKind.AMBIENT_LIGHT)
        self.assertEqual(node.light.light_type, AMBIENT)
        self.assertEqual(node.light.get_hex(), 0x404040)
        self.assertAlmostEqual(float(node.light.intensity), 0.5)
        self.assertEqual(node.transform.rotation.tolist(), [0.0, 0.0, 0.0])
        self.assertEqual(node.transform.scale.tolist(), [1.0, 1.0, 1.0])
        self.assertIsNone(node.mesh)

    def test_directional_light(self):
        node = ObjectFactory.build({"type": "directionalLight", "name": "sun",
                                    "position": {"x": 5, "y": 5, "z": 5},
                                    "rotation": [1, 1, 1], "scale": [2, 2, 2]})
        self.assertEqual(node.kind, NodeKind.DIRECTIONAL_LIGHT)
        self.assertEqual(node.light.light_type, DIRECTIONAL)
        self.assertEqual(node.name, "sun")
        self.assertEqual(node.transform.position.tolist(), [5.0, 5.0, 5.0])
        self.assertEqual(node.transform.rotation.tolist(), [0.0, 0.0, 0.0])
        self.assertEqual(node.transform.scale.tolist(), [1.0, 1.0, 1.0])
        self.assertTrue(node.cast_shadow)
        self.assertTrue(node.light.cast_shadows)

        node = ObjectFactory.build({"type": "directionalLight"})
        self.assertEqual(node.transform.position.tolist(), [0.0, 1.0, 0.0])

    def test_unknown_type(self):
        with self.assertLogs("scenecraft", level="WARNING"):
            self.assertIsNone(ObjectFactory.build({"type": "cylinder"}))

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            ObjectFactory.build({"type": "box", "width": -1})
        with self.assertRaises(ValueError):
            ObjectFactory.build({"type": "sphere", "radius": float("inf")})
        with self.assertRaises(ValueError):
            ObjectFactory.build({"type": "ambientLight", "intensity": -0.5})
        with self.assertRaises(ValueError):
            ObjectFactory.build({"type": "box", "position": {"x": 1}})
        with self.assertRaises(ValueError):
            ObjectFactory.build(BoxDescriptor(color=0x1000000))
        with self.assertRaises(ValueError):
            ObjectFactory.build(BoxDescriptor(width=10 ** 400))
        with self.assertRaises(TypeError):
            ObjectFactory.build({"type": "box", "depth": False})

    def test_common_property_order(self):
        self.assertEqual(COMMON_PROPERTY_ORDER, ("name", "position", "rotation", "scale"))

        applied = []
        original = TransformComponent._set_field_value

        def recording(self, field_name, value, notify=True):
            if notify:
                applied.append(field_name)
            return original(self, field_name, value, notify)

        with mock.patch.object(TransformComponent, "_set_field_value", recording):
            node = ObjectFactory.build({
                "type": "box",
                "scale": [2, 2, 2],
                "rotation": [0, math.pi / 2, 0],
                "position": [1, 0, 0],
            })

        self.assertEqual(applied, ["position", "rotation", "scale"])
        self.assertEqual(node.transform.scale.tolist(), [2.0, 2.0, 2.0])

    def test_omitted_properties_keep_identity(self):
        node = ObjectFactory.build({"type": "box", "rotation": [0.1, 0.2, 0.3]})
        self.assertEqual(node.transform.position.tolist(), [0.0, 0.0, 0.0])
        self.assertEqual(node.transform.scale.tolist(), [1.0, 1.0, 1.0])
        self.assertTrue(torch.allclose(node.transform.rotation, torch.tensor([0.1, 0.2, 0.3])))


if __name__ == "__main__":
    unittest.main()
