import base64
import json
import struct

import pytest

from glslscene.gltf import load_gltf, load_gltf_document
from glslscene.mat4 import Mat4
from glslscene.scene import AlphaMode, Material, RenderOptions, Scene, SceneLoadError
from glslscene.vectors import Vec4

POSITIONS = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]
INDICES = [0, 1, 2]


def _buffer():
    data = b"".join(struct.pack("<3f", *p) for p in POSITIONS)
    data += struct.pack("<3H", *INDICES) + b"\x00\x00"
    return data


def _document(extra_node=None, material=True):
    node = {"mesh": 0, "translation": [0.0, 2.0, 0.0]}
    if extra_node:
        node.update(extra_node)
    prim = {"attributes": {"POSITION": 0}, "indices": 1}
    if material:
        prim["material"] = 0
    doc = {
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [node],
        "meshes": [{"name": "tri", "primitives": [prim]}],
        "accessors": [
            {"bufferView": 0, "componentType": 5126, "count": 3, "type": "VEC3"},
            {"bufferView": 1, "componentType": 5123, "count": 3, "type": "SCALAR"},
        ],
        "bufferViews": [
            {"buffer": 0, "byteOffset": 0, "byteLength": 36},
            {"buffer": 0, "byteOffset": 36, "byteLength": 6},
        ],
        "buffers": [{"byteLength": 44}],
    }
    if material:
        doc["materials"] = [{
            "pbrMetallicRoughness": {"baseColorFactor": [0.5, 0.25, 1.0, 0.75],
                                     "roughnessFactor": 0.25, "metallicFactor": 0.0},
            "alphaMode": "BLEND",
            "extensions": {"KHR_materials_transmission": {"transmissionFactor": 0.5}},
        }]
    return doc


def test_document_mesh_and_instance():
    scene = Scene()
    load_gltf_document(_document(), [_buffer()], [], scene, Mat4())
    mesh = scene.meshes[0]
    assert mesh.name == "tri"
    assert mesh.vertices_uvx[1] == Vec4(1.0, 0.0, 0.0, 0.0)
    inst = scene.mesh_instances[0]
    assert inst.name == "Mesh 0 Prim0"
    assert inst.material_id == 0
    assert inst.transform[3][1] == 2.0
    mat = scene.materials[0]
    assert mat.alpha_mode is AlphaMode.BLEND
    assert mat.opacity == 0.75
    assert mat.roughness == pytest.approx(0.5)
    assert mat.spec_trans == 0.5


def test_material_offset_by_existing_materials():
    scene = Scene()
    scene.add_material(Material())
    load_gltf_document(_document(extra_node={"name": "Tri"}), [_buffer()], [], scene, Mat4())
    assert scene.mesh_instances[0].material_id == 1
    assert scene.mesh_instances[0].name == "Tri"
    assert len(scene.materials) == 2


def test_default_material_added():
    scene = Scene()
    load_gltf_document(_document(material=False), [_buffer()], [], scene, Mat4())
    assert len(scene.materials) == 1
    assert scene.mesh_instances[0].material_id == 0


def test_parent_transform_applied():
    scene = Scene()
    parent = Mat4.translate((5.0, 0.0, 0.0))
    load_gltf_document(_document(), [_buffer()], [], scene, parent)
    assert scene.mesh_instances[0].transform[3][:3] == [5.0, 2.0, 0.0]


def test_missing_indices_raises():
    doc = _document()
    del doc["meshes"][0]["primitives"][0]["indices"]
    with pytest.raises(SceneLoadError):
        load_gltf_document(doc, [_buffer()], [], Scene(), Mat4())


def test_load_text_file(tmp_path):
    doc = _document()
    doc["buffers"][0]["uri"] = "data:application/octet-stream;base64," + base64.b64encode(_buffer()).decode()
    path = tmp_path / "tri.gltf"
    path.write_text(json.dumps(doc))
    scene = Scene()
    load_gltf(path, scene, RenderOptions(), Mat4(), False)
    assert len(scene.meshes[0].vertices_uvx) == 3


def test_load_binary_file(tmp_path):
    body = json.dumps(_document()).encode()
    body += b" " * (-len(body) % 4)
    binary = _buffer()
    chunks = struct.pack("<II", len(body), 0x4E4F534A) + body
    chunks += struct.pack("<II", len(binary), 0x004E4942) + binary
    blob = b"glTF" + struct.pack("<II", 2, 12 + len(chunks)) + chunks
    path = tmp_path / "tri.glb"
    path.write_bytes(blob)
    scene = Scene()
    load_gltf(path, scene, RenderOptions(), Mat4(), True)
    assert scene.meshes[0].vertices_uvx[2] == Vec4(0.0, 1.0, 0.0, 0.0)


def test_bad_binary_raises(tmp_path):
    path = tmp_path / "bad.glb"
    path.write_bytes(b"nope")
    with pytest.raises(SceneLoadError):
        load_gltf(path, Scene(), RenderOptions(), Mat4(), True)