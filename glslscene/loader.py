"""Reading the line-oriented ``.scene`` description format into a Scene."""

from __future__ import annotations

import dataclasses
import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from glslscene.gltf import load_gltf
from glslscene.mat4 import Mat4
from glslscene.scene import (
    AlphaMode,
    Light,
    LightType,
    Material,
    MediumType,
    RenderOptions,
    Scene,
    SceneLoadError,
)
from glslscene.vectors import IVec2, Vec3, Vec4

log = logging.getLogger(__name__)

# Used when a camera block gives no field of view.
_DEFAULT_FOV = 60.0
_NONE = "none"

_FLOAT = re.compile(
    r"\s*([-+]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)
_INT = re.compile(r"\s*([-+]?\d+)")
_WORD = re.compile(r"\s*(\S+)")

_MATERIAL_FLOATS = {
    "opacity": "opacity",
    "alphacutoff": "alpha_cutoff",
    "metallic": "metallic",
    "roughness": "roughness",
    "subsurface": "subsurface",
    "speculartint": "specular_tint",
    "anisotropic": "anisotropic",
    "sheen": "sheen",
    "sheentint": "sheen_tint",
    "clearcoat": "clearcoat",
    "clearcoatgloss": "clearcoat_gloss",
    "spectrans": "spec_trans",
    "ior": "ior",
    "mediumdensity": "medium_density",
    "mediumanisotropy": "medium_anisotropy",
}
_MATERIAL_VECTORS = {
    "color": "base_color",
    "emission": "emission",
    "mediumcolor": "medium_color",
}
_MATERIAL_TEXTURES = {
    "albedotexture": "base_color_tex_id",
    "metallicroughnesstexture": "metallic_roughness_tex_id",
    "normaltexture": "normalmap_tex_id",
    "emissiontexture": "emissionmap_tex_id",
}
_ALPHA_MODES = {"opaque": AlphaMode.OPAQUE, "blend": AlphaMode.BLEND, "mask": AlphaMode.MASK}
_MEDIUM_TYPES = {
    "absorb": MediumType.ABSORB,
    "scatter": MediumType.SCATTER,
    "emissive": MediumType.EMISSIVE,
}

_RENDER_INTS = {
    "maxdepth": "max_depth",
    "maxspp": "max_spp",
    "tilewidth": "tile_width",
    "tileheight": "tile_height",
    "rrdepth": "rr_depth",
    "texarraywidth": "tex_array_width",
    "texarrayheight": "tex_array_height",
}
_RENDER_RESOLUTIONS = {
    "resolution": "render_resolution",
    "windowresolution": "window_resolution",
}
_RENDER_FLOATS = {
    "envmapintensity": "env_map_intensity",
    "envmaprotation": "env_map_rot",
    "roughnessmollificationamt": "roughness_mollification_amt",
}
_RENDER_VECTORS = {
    "backgroundcolor": "background_col",
    "uniformlightcolor": "uniform_light_col",
}
_RENDER_FLAGS = {
    "enablerr": "enable_rr",
    "enabletonemap": "enable_tonemap",
    "enableaces": "enable_aces",
    "openglnormalmap": "open_gl_normal_map",
    "hideemitters": "hide_emitters",
    "enablebackground": "enable_background",
    "transparentbackground": "transparent_background",
    "independentrendersize": "independent_render_size",
    "enableroughnessmollification": "enable_roughness_mollification",
    "enablevolumemis": "enable_volume_mis",
    "enableuniformlight": "enable_uniform_light",
}


def _scan(line: str, keyword: str, pattern: re.Pattern, count: int) -> list[str]:
    """Values after ``keyword`` at the start of ``line``, stopping at the first mismatch."""
    head = re.match(r"\s*" + re.escape(keyword), line)
    if head is None:
        return []
    pos = head.end()
    found = []
    for _ in range(count):
        m = pattern.match(line, pos)
        if m is None:
            break
        found.append(m.group(1))
        pos = m.end()
    return found


def _floats(line: str, keyword: str, count: int = 1) -> list[float]:
    return [float(v) for v in _scan(line, keyword, _FLOAT, count)]


def _ints(line: str, keyword: str, count: int = 1) -> list[int]:
    return [int(v) for v in _scan(line, keyword, _INT, count)]


def _word(line: str, keyword: str) -> str | None:
    found = _scan(line, keyword, _WORD, 1)
    return found[0] if found else None


def _rest_of_line(line: str, keyword: str) -> str | None:
    m = re.match(r"\s*" + re.escape(keyword) + r"\s*([^\t\n]+)", line)
    return m.group(1) if m else None


def _update(vec, values):
    """Replace the leading components of an immutable vector."""
    return type(vec)(*values, *tuple(vec)[len(values):])


def _read_matrix(line: str, matrix: Mat4) -> bool:
    """Fill ``matrix`` from a ``matrix`` line given column by column."""
    values = _floats(line, "matrix", 16)
    for k, value in enumerate(values):
        matrix[k % 4, k // 4] = value
    return bool(values)


@dataclass
class _Placement:
    """Transform settings shared by mesh and glTF blocks."""

    matrix: Mat4 = field(default_factory=Mat4)
    translate: Mat4 = field(default_factory=Mat4)
    rotation: Mat4 = field(default_factory=Mat4)
    scale: Mat4 = field(default_factory=Mat4)
    quaternion: Vec4 = field(default_factory=Vec4)
    matrix_provided: bool = False

    def feed(self, line: str) -> None:
        if _read_matrix(line, self.matrix):
            self.matrix_provided = True
        for i, value in enumerate(_floats(line, "position", 3)):
            self.translate[3, i] = value
        for i, value in enumerate(_floats(line, "scale", 3)):
            self.scale[i, i] = value
        quat = _floats(line, "rotation", 4)
        if quat:
            self.quaternion = _update(self.quaternion, quat)
            self.rotation = Mat4.from_quaternion(*self.quaternion)

    def transform(self) -> Mat4:
        if self.matrix_provided:
            return self.matrix
        return self.scale * self.rotation * self.translate


class _Lines:
    """Line source that remembers the last line read, as the format relies on it."""

    def __init__(self, text: str) -> None:
        self._lines = iter(text.splitlines(keepends=True))
        self.line = ""

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        self.line = next(self._lines)
        return self.line

    def block(self) -> list[str]:
        """Lines up to, not including, the next one holding a closing brace."""
        body = []
        for line in self:
            if "}" in line:
                break
            if line.strip():
                body.append(line)
        return body


class _SceneParser:
    def __init__(self, base_dir, scene: Scene, options: RenderOptions) -> None:
        self.base = Path(base_dir)
        self.scene = scene
        self.options = options
        self.materials: dict[str, int] = {}

    def resolve(self, name: str) -> str:
        return str(self.base / name)

    def parse(self, text: str) -> None:
        self.scene.add_material(Material())
        lines = _Lines(text)
        for line in lines:
            if line.startswith("#"):
                continue
            name = _word(line, "material")
            if name is not None:
                self.material(name, lines.block())
            if "light" in lines.line:
                self.light(lines.block())
            if "camera" in lines.line:
                self.camera(lines.block())
            if "renderer" in lines.line:
                self.renderer(lines.block())
            if "mesh" in lines.line:
                self.mesh(lines.block())
            if "gltf" in lines.line:
                self.gltf(lines.block())

    def material(self, name: str, body: list[str]) -> None:
        material = Material()
        words = {key: _NONE for key in (*_MATERIAL_TEXTURES, "alphamode", "mediumtype")}
        for line in body:
            for key, attr in _MATERIAL_FLOATS.items():
                if values := _floats(line, key):
                    setattr(material, attr, values[0])
            for key, attr in _MATERIAL_VECTORS.items():
                if values := _floats(line, key, 3):
                    setattr(material, attr, _update(getattr(material, attr), values))
            for key in words:
                if (word := _word(line, key)) is not None:
                    words[key] = word

        for key, attr in _MATERIAL_TEXTURES.items():
            if words[key] != _NONE:
                setattr(material, attr, self.scene.add_texture(self.resolve(words[key])))
        if words["alphamode"] in _ALPHA_MODES:
            material.alpha_mode = _ALPHA_MODES[words["alphamode"]]
        if words["mediumtype"] in _MEDIUM_TYPES:
            material.medium_type = _MEDIUM_TYPES[words["mediumtype"]]

        if name not in self.materials:
            self.materials[name] = self.scene.add_material(material)

    def light(self, body: list[str]) -> None:
        light = Light()
        v1 = v2 = Vec3()
        kind = _NONE
        for line in body:
            if values := _floats(line, "position", 3):
                light.position = _update(light.position, values)
            if values := _floats(line, "emission", 3):
                light.emission = _update(light.emission, values)
            if values := _floats(line, "radius"):
                light.radius = values[0]
            if values := _floats(line, "v1", 3):
                v1 = _update(v1, values)
            if values := _floats(line, "v2", 3):
                v2 = _update(v2, values)
            if (word := _word(line, "type")) is not None:
                kind = word

        if kind == "quad":
            light.type = LightType.RECT_LIGHT
            light.u = v1 - light.position
            light.v = v2 - light.position
            light.area = light.u.cross(light.v).length()
        elif kind == "sphere":
            light.type = LightType.SPHERE_LIGHT
            light.area = 4.0 * math.pi * light.radius * light.radius
        elif kind == "distant":
            light.type = LightType.DISTANT_LIGHT
            light.area = 0.0
        self.scene.add_light(light)

    def camera(self, body: list[str]) -> None:
        matrix = Mat4()
        position = look_at = Vec3()
        fov = _DEFAULT_FOV
        aperture, focal_dist = 0.0, 1.0
        matrix_provided = False
        for line in body:
            if values := _floats(line, "position", 3):
                position = _update(position, values)
            if values := _floats(line, "lookat", 3):
                look_at = _update(look_at, values)
            if values := _floats(line, "aperture"):
                aperture = values[0]
            if values := _floats(line, "focaldist"):
                focal_dist = values[0]
            if values := _floats(line, "fov"):
                fov = values[0]
            if _read_matrix(line, matrix):
                matrix_provided = True

        if matrix_provided:
            forward = Vec3(*matrix[2][:3])
            position = Vec3(*matrix[3][:3])
            look_at = position + forward

        camera = self.scene.add_camera(position, look_at, fov)
        camera.aperture = aperture
        camera.focal_dist = focal_dist

    def renderer(self, body: list[str]) -> None:
        options = self.options
        env_map = _NONE
        flags = {key: _NONE for key in _RENDER_FLAGS}
        for line in body:
            if (word := _word(line, "envmapfile")) is not None:
                env_map = word
            for key, attr in _RENDER_RESOLUTIONS.items():
                if values := _ints(line, key, 2):
                    setattr(options, attr, _update(getattr(options, attr), values))
            for key, attr in _RENDER_INTS.items():
                if values := _ints(line, key):
                    setattr(options, attr, values[0])
            for key, attr in _RENDER_FLOATS.items():
                if values := _floats(line, key):
                    setattr(options, attr, values[0])
            for key, attr in _RENDER_VECTORS.items():
                if values := _floats(line, key, 3):
                    setattr(options, attr, _update(getattr(options, attr), values))
            for key in flags:
                if (word := _word(line, key)) is not None:
                    flags[key] = word

        if env_map != _NONE:
            self.scene.add_env_map(self.resolve(env_map))
            options.enable_env_map = True
        else:
            options.enable_env_map = False

        for key, attr in _RENDER_FLAGS.items():
            if flags[key] == "true":
                setattr(options, attr, True)
            elif flags[key] == "false":
                setattr(options, attr, False)

        if not options.independent_render_size:
            options.window_resolution = dataclasses.replace(options.render_resolution)

    def mesh(self, body: list[str]) -> None:
        placement = _Placement()
        filename = ""
        material_id = 0
        mesh_name = _NONE
        for line in body:
            if (name := _rest_of_line(line, "name")) is not None:
                mesh_name = name
            if (file := _word(line, "file")) is not None:
                filename = self.resolve(file)
            if (mat_name := _word(line, "material")) is not None:
                if mat_name in self.materials:
                    material_id = self.materials[mat_name]
                else:
                    log.warning("Could not find material %s", mat_name)
            placement.feed(line)

        if not filename:
            return
        try:
            mesh_id = self.scene.add_mesh(filename)
        except SceneLoadError as exc:
            log.error("%s", exc)
            return
        if mesh_name != _NONE:
            instance_name = mesh_name
        else:
            instance_name = re.split(r"[/\\]", filename)[-1]
        from glslscene.scene import MeshInstance

        self.scene.add_mesh_instance(
            MeshInstance(instance_name, mesh_id, placement.transform(), material_id)
        )

    def gltf(self, body: list[str]) -> None:
        placement = _Placement()
        filename = ""
        for line in body:
            if (file := _word(line, "file")) is not None:
                filename = self.resolve(file)
            placement.feed(line)

        if not filename:
            return
        ext = filename.rsplit(".", 1)[-1]
        if ext not in ("gltf", "glb"):
            raise SceneLoadError(f"Unable to load gltf {filename}")
        try:
            load_gltf(filename, self.scene, self.options, placement.transform(), ext == "glb")
        except SceneLoadError as exc:
            raise SceneLoadError(f"Unable to load gltf {filename}") from exc


def load_scene_text(text: str, base_dir, scene: Scene, render_options: RenderOptions) -> None:
    """Add the contents of a scene description to ``scene`` and ``render_options``.

    Relative file names in the description are resolved against ``base_dir``.
    """
    _SceneParser(base_dir, scene, render_options).parse(text)


def load_scene_file(path, scene: Scene, render_options: RenderOptions) -> None:
    """Load a scene description file; its assets are found next to it."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SceneLoadError(f"Couldn't open {path} for reading") from exc
    log.info("Loading Scene..")
    load_scene_text(text, path.parent, scene, render_options)