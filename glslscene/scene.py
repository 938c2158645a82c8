"""Scene description: materials, lights, camera, meshes, textures and instances."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from PIL import Image

from glslscene.mat4 import Mat4
from glslscene.vectors import IVec2, Vec2, Vec3, Vec4


class SceneLoadError(Exception):
    """A scene or one of its assets could not be loaded."""


class AlphaMode(Enum):
    OPAQUE = 0
    BLEND = 1
    MASK = 2


class MediumType(Enum):
    NONE = 0
    ABSORB = 1
    SCATTER = 2
    EMISSIVE = 3


class LightType(Enum):
    RECT_LIGHT = 0
    SPHERE_LIGHT = 1
    DISTANT_LIGHT = 2


@dataclass
class Material:
    """Disney-style surface and medium parameters."""

    base_color: Vec3 = Vec3(1.0, 1.0, 1.0)
    opacity: float = 1.0
    alpha_mode: AlphaMode = AlphaMode.OPAQUE
    alpha_cutoff: float = 0.0
    emission: Vec3 = Vec3(0.0, 0.0, 0.0)
    metallic: float = 0.0
    roughness: float = 0.5
    subsurface: float = 0.0
    specular_tint: float = 0.0
    anisotropic: float = 0.0
    sheen: float = 0.0
    sheen_tint: float = 0.0
    clearcoat: float = 0.0
    clearcoat_gloss: float = 0.0
    spec_trans: float = 0.0
    ior: float = 1.5
    medium_type: MediumType = MediumType.NONE
    medium_density: float = 0.0
    medium_color: Vec3 = Vec3(1.0, 1.0, 1.0)
    medium_anisotropy: float = 0.0
    base_color_tex_id: int = -1
    metallic_roughness_tex_id: int = -1
    normalmap_tex_id: int = -1
    emissionmap_tex_id: int = -1


@dataclass
class Light:
    position: Vec3 = Vec3()
    emission: Vec3 = Vec3()
    u: Vec3 = Vec3()
    v: Vec3 = Vec3()
    radius: float = 0.0
    area: float = 0.0
    type: LightType = LightType.RECT_LIGHT


@dataclass
class Camera:
    """A pinhole or thin-lens camera; ``fov`` is in degrees."""

    position: Vec3
    look_at: Vec3
    fov: float
    aperture: float = 0.0
    focal_dist: float = 1.0

    @property
    def forward(self) -> Vec3:
        return (self.look_at - self.position).normalize()


@dataclass
class Mesh:
    """Triangle soup: three entries per triangle, uv packed into the w slots."""

    name: str = ""
    vertices_uvx: list[Vec4] = field(default_factory=list)
    normals_uvy: list[Vec4] = field(default_factory=list)

    @property
    def triangle_count(self) -> int:
        return len(self.vertices_uvx) // 3


@dataclass
class Texture:
    name: str
    data: bytes
    width: int
    height: int
    components: int


@dataclass
class MeshInstance:
    name: str
    mesh_id: int
    transform: Mat4 = field(default_factory=Mat4)
    material_id: int = 0


@dataclass
class RenderOptions:
    render_resolution: IVec2 = IVec2(1280, 720)
    window_resolution: IVec2 = IVec2(1280, 720)
    max_depth: int = 2
    max_spp: int = -1
    rr_depth: int = 2
    tile_width: int = 100
    tile_height: int = 100
    tex_array_width: int = 2048
    tex_array_height: int = 2048
    env_map_intensity: float = 1.0
    env_map_rot: float = 0.0
    enable_env_map: bool = False
    enable_rr: bool = True
    enable_tonemap: bool = True
    enable_aces: bool = False
    open_gl_normal_map: bool = True
    hide_emitters: bool = False
    enable_background: bool = False
    transparent_background: bool = False
    independent_render_size: bool = False
    enable_roughness_mollification: bool = False
    roughness_mollification_amt: float = 0.0
    enable_volume_mis: bool = False
    enable_uniform_light: bool = False
    background_col: Vec3 = Vec3(1.0, 1.0, 1.0)
    uniform_light_col: Vec3 = Vec3(0.3, 0.3, 0.3)


def _parse_obj(path: Path) -> Mesh:
    positions: list[Vec3] = []
    uvs: list[Vec2] = []
    normals: list[Vec3] = []
    mesh = Mesh(name=str(path))

    def resolve(token: str, count: int) -> int:
        i = int(token)
        return i - 1 if i > 0 else count + i

    with path.open(encoding="utf-8") as handle:
        for line in handle:
            parts = line.split()
            if not parts:
                continue
            key, args = parts[0], parts[1:]
            if key == "v":
                positions.append(Vec3(*map(float, args[:3])))
            elif key == "vt":
                uvs.append(Vec2(*map(float, args[:2])))
            elif key == "vn":
                normals.append(Vec3(*map(float, args[:3])))
            elif key == "f":
                corners = []
                for arg in args:
                    fields = arg.split("/") + ["", ""]
                    p = positions[resolve(fields[0], len(positions))]
                    t = uvs[resolve(fields[1], len(uvs))] if fields[1] else Vec2()
                    n = normals[resolve(fields[2], len(normals))] if fields[2] else Vec3()
                    corners.append((p, t, n))
                for a, b, c in zip([corners[0]] * len(corners), corners[1:], corners[2:]):
                    for p, t, n in (a, b, c):
                        mesh.vertices_uvx.append(Vec4(p.x, p.y, p.z, t.x))
                        mesh.normals_uvy.append(Vec4(n.x, n.y, n.z, t.y))
    return mesh


def load_texture_image(name: str, source) -> Texture:
    """Decode an image file or binary stream into RGBA texture data."""
    try:
        with Image.open(source) as img:
            rgba = img.convert("RGBA")
    except (OSError, ValueError) as exc:
        raise SceneLoadError(f"unable to load texture {name}: {exc}") from exc
    return Texture(name, rgba.tobytes(), rgba.width, rgba.height, 4)


class Scene:
    """All objects that make up a renderable scene."""

    def __init__(self) -> None:
        self.materials: list[Material] = []
        self.textures: list[Texture] = []
        self.meshes: list[Mesh] = []
        self.lights: list[Light] = []
        self.mesh_instances: list[MeshInstance] = []
        self.camera: Camera | None = None
        self.env_map: str | None = None

    def add_material(self, material: Material) -> int:
        self.materials.append(material)
        return len(self.materials) - 1

    def add_texture(self, path) -> int:
        """Load a texture, reusing one already loaded from the same path."""
        name = str(path)
        for index, texture in enumerate(self.textures):
            if texture.name == name:
                return index
        self.textures.append(load_texture_image(name, name))
        return len(self.textures) - 1

    def add_mesh(self, path) -> int:
        """Load an OBJ mesh, reusing one already loaded from the same path."""
        name = str(path)
        for index, mesh in enumerate(self.meshes):
            if mesh.name == name:
                return index
        try:
            mesh = _parse_obj(Path(name))
        except (OSError, ValueError, IndexError) as exc:
            raise SceneLoadError(f"unable to load mesh {name}: {exc}") from exc
        self.meshes.append(mesh)
        return len(self.meshes) - 1

    def add_light(self, light: Light) -> int:
        self.lights.append(light)
        return len(self.lights) - 1

    def add_camera(self, position: Vec3, look_at: Vec3, fov: float) -> Camera:
        self.camera = Camera(position, look_at, fov)
        return self.camera

    def add_mesh_instance(self, instance: MeshInstance) -> int:
        self.mesh_instances.append(instance)
        return len(self.mesh_instances) - 1

    def add_env_map(self, path) -> None:
        self.env_map = str(path)