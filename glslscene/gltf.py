"""Loading glTF 2.0 documents (text or binary) into a Scene."""

from __future__ import annotations

import base64
import io
import json
import logging
import math
import struct
from dataclasses import dataclass
from pathlib import Path

from glslscene.mat4 import Mat4
from glslscene.scene import (
    AlphaMode,
    Material,
    Mesh,
    MeshInstance,
    RenderOptions,
    Scene,
    SceneLoadError,
    Texture,
    load_texture_image,
)
from glslscene.vectors import Vec3, Vec4

log = logging.getLogger(__name__)

_MODE_TRIANGLES = 4
_COMPONENT_SIZES = {5120: 1, 5121: 1, 5122: 2, 5123: 2, 5125: 4, 5126: 4}
_TYPE_COUNTS = {"SCALAR": 1, "VEC2": 2, "VEC3": 3, "VEC4": 4, "MAT2": 4, "MAT3": 9, "MAT4": 16}
_GLB_MAGIC = b"glTF"
_CHUNK_JSON = 0x4E4F534A
_CHUNK_BIN = 0x004E4942


@dataclass
class _Primitive:
    mesh_id: int
    material_id: int


@dataclass
class _View:
    data: bytes
    base: int
    stride: int
    count: int


def _view(document: dict, buffers: list[bytes], accessor_index: int, use_view_stride: bool) -> _View:
    try:
        accessor = document["accessors"][accessor_index]
        view = document["bufferViews"][accessor["bufferView"]]
        data = buffers[view["buffer"]]
        stride = _COMPONENT_SIZES[accessor["componentType"]] * _TYPE_COUNTS[accessor["type"]]
    except (KeyError, IndexError, TypeError) as exc:
        raise SceneLoadError(f"bad accessor {accessor_index}") from exc
    if use_view_stride and view.get("byteStride", 0) > 0:
        stride = view["byteStride"]
    base = view.get("byteOffset", 0) + accessor.get("byteOffset", 0)
    return _View(data, base, stride, accessor["count"])


def _read(view: _View, fmt: str, index: int) -> tuple:
    return struct.unpack_from(fmt, view.data, view.base + index * view.stride)


def _load_meshes(document: dict, buffers: list[bytes], scene: Scene) -> dict[int, list[_Primitive]]:
    prims_by_mesh: dict[int, list[_Primitive]] = {}
    for mesh_index, gltf_mesh in enumerate(document.get("meshes", [])):
        for prim in gltf_mesh.get("primitives", []):
            if prim.get("mode", _MODE_TRIANGLES) != _MODE_TRIANGLES:
                continue
            attributes = prim.get("attributes", {})
            if "POSITION" not in attributes:
                raise SceneLoadError(f"mesh {mesh_index} has a primitive without positions")
            if "indices" not in prim:
                raise SceneLoadError(f"mesh {mesh_index} has a primitive without indices")

            positions = _view(document, buffers, attributes["POSITION"], True)
            normals = _view(document, buffers, attributes["NORMAL"], True) if "NORMAL" in attributes else None
            uvs = _view(document, buffers, attributes["TEXCOORD_0"], True) if "TEXCOORD_0" in attributes else None

            vertices = []
            for i in range(positions.count):
                p = _read(positions, "<3f", i)
                n = _read(normals, "<3f", i) if normals else (0.0, 0.0, 0.0)
                t = _read(uvs, "<2f", i) if uvs else (0.0, 0.0)
                vertices.append((p, n, t))

            index_view = _view(document, buffers, prim["indices"], False)
            fmt = {1: "B", 2: "H"}.get(index_view.stride, "i")
            indices = struct.unpack_from(
                f"<{index_view.count}{fmt}", index_view.data, index_view.base
            )

            mesh = Mesh(name=gltf_mesh.get("name", ""))
            for index in indices:
                (px, py, pz), (nx, ny, nz), (u, v) = vertices[index]
                mesh.vertices_uvx.append(Vec4(px, py, pz, u))
                mesh.normals_uvy.append(Vec4(nx, ny, nz, v))
            scene.meshes.append(mesh)
            material_id = prim.get("material", -1) + len(scene.materials)
            prims_by_mesh.setdefault(mesh_index, []).append(
                _Primitive(len(scene.meshes) - 1, material_id)
            )
    return prims_by_mesh


def _load_textures(document: dict, images: list[Texture], scene: Scene) -> None:
    for gltf_tex in document.get("textures", []):
        image = images[gltf_tex["source"]]
        name = gltf_tex.get("name", "") or image.name
        scene.textures.append(
            Texture(name, image.data, image.width, image.height, image.components)
        )


def _load_materials(document: dict, scene: Scene) -> None:
    tex_offset = len(scene.textures)
    for gltf_mat in document.get("materials", []):
        pbr = gltf_mat.get("pbrMetallicRoughness", {})
        color = pbr.get("baseColorFactor", [1.0, 1.0, 1.0, 1.0])
        material = Material()
        material.base_color = Vec3(*color[:3])
        if "baseColorTexture" in pbr:
            material.base_color_tex_id = pbr["baseColorTexture"]["index"] + tex_offset
        material.opacity = float(color[3])
        material.alpha_cutoff = float(gltf_mat.get("alphaCutoff", 0.5))
        mode = gltf_mat.get("alphaMode", "OPAQUE")
        if mode in ("OPAQUE", "BLEND", "MASK"):
            material.alpha_mode = AlphaMode[mode]
        # Roughness here is not squared by the shading model.
        material.roughness = math.sqrt(pbr.get("roughnessFactor", 1.0))
        material.metallic = float(pbr.get("metallicFactor", 1.0))
        if "metallicRoughnessTexture" in pbr:
            material.metallic_roughness_tex_id = pbr["metallicRoughnessTexture"]["index"] + tex_offset
        material.normalmap_tex_id = gltf_mat.get("normalTexture", {}).get("index", -1) + tex_offset
        material.emission = Vec3(*gltf_mat.get("emissiveFactor", [0.0, 0.0, 0.0]))
        if "emissiveTexture" in gltf_mat:
            material.emissionmap_tex_id = gltf_mat["emissiveTexture"]["index"] + tex_offset
        transmission = gltf_mat.get("extensions", {}).get("KHR_materials_transmission")
        if transmission is not None and "transmissionFactor" in transmission:
            material.spec_trans = float(transmission["transmissionFactor"])
        scene.add_material(material)

    if not scene.materials:
        scene.materials.append(Material())


def _local_matrix(node: dict) -> Mat4:
    if node.get("matrix"):
        m = node["matrix"]
        return Mat4.from_rows([m[0:4], m[4:8], m[8:12], m[12:16]])
    translate, rot, scale = Mat4(), Mat4(), Mat4()
    if node.get("translation"):
        translate = Mat4.translate(node["translation"])
    if node.get("rotation"):
        rot = Mat4.from_quaternion(*node["rotation"])
    if node.get("scale"):
        scale = Mat4.scale(node["scale"])
    return scale * rot * translate


def _traverse(document, node_index, parent, prims_by_mesh, scene) -> None:
    node = document["nodes"][node_index]
    xform = _local_matrix(node) * parent
    children = node.get("children", [])
    mesh_index = node.get("mesh", -1)
    if not children and mesh_index != -1:
        for prim in prims_by_mesh.get(mesh_index, []):
            name = node.get("name", "") or f"Mesh {mesh_index} Prim{prim.mesh_id}"
            scene.add_mesh_instance(
                MeshInstance(name, prim.mesh_id, xform, max(prim.material_id, 0))
            )
    for child in children:
        _traverse(document, child, xform, prims_by_mesh, scene)


def load_gltf_document(document: dict, buffers: list[bytes], images: list[Texture],
                       scene: Scene, transform: Mat4) -> None:
    """Add the meshes, materials, textures and instances of a parsed document."""
    prims_by_mesh = _load_meshes(document, buffers, scene)
    _load_materials(document, scene)
    _load_textures(document, images, scene)
    scenes = document.get("scenes", [])
    if not scenes:
        return
    root = scenes[document.get("scene", 0)]
    for node_index in root.get("nodes", []):
        _traverse(document, node_index, transform, prims_by_mesh, scene)


def _read_uri(uri: str, base_dir: Path) -> bytes:
    if uri.startswith("data:"):
        header, _, payload = uri.partition(",")
        if not header.endswith(";base64"):
            raise SceneLoadError("only base64 data URIs are supported")
        return base64.b64decode(payload)
    return (base_dir / uri).read_bytes()


def _split_glb(blob: bytes) -> tuple[dict, bytes | None]:
    if len(blob) < 12 or blob[:4] != _GLB_MAGIC:
        raise SceneLoadError("not a binary glTF file")
    _, total = struct.unpack_from("<II", blob, 4)
    document, binary = None, None
    offset = 12
    while offset + 8 <= min(total, len(blob)):
        length, kind = struct.unpack_from("<II", blob, offset)
        chunk = blob[offset + 8:offset + 8 + length]
        if kind == _CHUNK_JSON and document is None:
            document = json.loads(chunk.decode("utf-8"))
        elif kind == _CHUNK_BIN and binary is None:
            binary = bytes(chunk)
        offset += 8 + length
    if document is None:
        raise SceneLoadError("binary glTF file has no JSON chunk")
    return document, binary


def load_gltf(path, scene: Scene, render_options: RenderOptions, transform: Mat4,
              binary: bool) -> None:
    """Load a .gltf (``binary`` false) or .glb file into ``scene``."""
    path = Path(path)
    log.info("Loading GLTF %s", path)
    try:
        raw = path.read_bytes()
        if binary:
            document, glb_data = _split_glb(raw)
        else:
            document, glb_data = json.loads(raw.decode("utf-8")), None
        buffers = []
        for buf in document.get("buffers", []):
            if "uri" in buf:
                buffers.append(_read_uri(buf["uri"], path.parent))
            elif glb_data is not None:
                buffers.append(glb_data)
            else:
                raise SceneLoadError("buffer without data")
        images = []
        for img in document.get("images", []):
            uri = img.get("uri", "")
            if uri:
                blob = _read_uri(uri, path.parent)
            else:
                view = document["bufferViews"][img["bufferView"]]
                start = view.get("byteOffset", 0)
                blob = buffers[view["buffer"]][start:start + view["byteLength"]]
            images.append(load_texture_image(uri, io.BytesIO(blob)))
    except SceneLoadError as exc:
        raise SceneLoadError(f"Unable to load file {path}. Error: {exc}") from exc
    except (OSError, ValueError, KeyError, IndexError, struct.error) as exc:
        raise SceneLoadError(f"Unable to load file {path}. Error: {exc}") from exc
    load_gltf_document(document, buffers, images, scene, transform)