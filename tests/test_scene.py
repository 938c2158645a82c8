import math

import pytest
from PIL import Image

from glslscene.mat4 import Mat4
from glslscene.scene import (
    Light,
    LightType,
    Material,
    MeshInstance,
    RenderOptions,
    Scene,
    SceneLoadError,
)
from glslscene.vectors import IVec2, Vec3

OBJ = "v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\nvn 0 0 1\nf 1//1 2//1 3//1 4//1\n"


@pytest.fixture
def obj_path(tmp_path):
    path = tmp_path / "ajax.obj"
    path.write_text(OBJ)
    return path


def test_ajax_scene(obj_path):
    scene = Scene()
    opts = RenderOptions()
    opts.max_depth = 2
    opts.env_map_intensity = 5.0
    scene.add_camera(Vec3(0.0, 0.125, -0.45), Vec3(0.0, 0.125, 0.0), 60.0)
    mesh_id = scene.add_mesh(obj_path)
    black = Material(base_color=Vec3(0.1, 0.1, 0.1), roughness=0.01, metallic=1.0)
    red = Material(base_color=Vec3(1.0, 0.0, 0.0), roughness=0.01, metallic=0.0)
    gold = Material(base_color=Vec3(1.0, 0.71, 0.29), roughness=0.2, metallic=1.0)
    ids = [scene.add_material(m) for m in (black, red, gold)]
    assert ids == [0, 1, 2]
    xform1 = Mat4.scale(Vec3(0.25, 0.25, 0.25)) * Mat4.translate(Vec3(0.2, 0.0, 0.0))
    scene.add_mesh_instance(MeshInstance("Ajax Black", mesh_id, Mat4.scale(Vec3(0.25, 0.25, 0.25)), ids[0]))
    idx = scene.add_mesh_instance(MeshInstance("Ajax Gold", mesh_id, xform1, ids[2]))
    scene.add_env_map("./assets/HDR/sunset.hdr")
    assert idx == 1
    assert scene.mesh_instances[1].transform[3, 0] == pytest.approx(0.2)
    assert scene.mesh_instances[1].transform[0, 0] == pytest.approx(0.25)
    assert scene.camera.fov == 60.0
    assert scene.camera.forward == Vec3(0.0, 0.0, 1.0)
    assert scene.env_map == "./assets/HDR/sunset.hdr"
    assert scene.meshes[mesh_id].triangle_count == 2


def test_add_mesh_reuses_path(obj_path):
    scene = Scene()
    assert scene.add_mesh(obj_path) == scene.add_mesh(obj_path) == 0
    assert len(scene.meshes) == 1


def test_add_mesh_missing_raises(tmp_path):
    with pytest.raises(SceneLoadError):
        Scene().add_mesh(tmp_path / "nope.obj")


def test_boy_lights_and_camera():
    scene = Scene()
    opts = RenderOptions(render_resolution=IVec2(1280, 720), tile_width=144, tile_height=256)
    cam = scene.add_camera(Vec3(0.3, 0.11, 0.0), Vec3(0.2, 0.095, 0.0), 60.0)
    cam.aperture = 1e-6
    cam.focal_dist = 0.262
    pos = Vec3(-0.103555, 0.284840, 0.606827)
    u = Vec3(-0.103555, 0.465656, 0.521355) - pos
    v = Vec3(0.096445, 0.284840, 0.606827) - pos
    light = Light(position=pos, u=u, v=v, area=u.cross(v).length(),
                  emission=Vec3(40, 41, 41), type=LightType.RECT_LIGHT)
    assert scene.add_light(light) == 0
    assert scene.add_light(Light()) == 1
    assert scene.camera.focal_dist == 0.262
    assert opts.render_resolution == IVec2(1280, 720)
    assert scene.lights[0].area > 0
    head = Mat4.translate(Vec3(0.017, 0.107, 0)) * Mat4.translate(Vec3(0, 0, -0.05))
    assert head[3][:3] == pytest.approx([0.017, 0.107, -0.05])


def test_add_texture(tmp_path):
    path = tmp_path / "t.png"
    Image.new("RGB", (2, 3), (255, 0, 0)).save(path)
    scene = Scene()
    assert scene.add_texture(path) == 0
    assert scene.add_texture(path) == 0
    tex = scene.textures[0]
    assert (tex.width, tex.height, tex.components) == (2, 3, 4)
    assert tex.data[:4] == bytes([255, 0, 0, 255])


def test_add_texture_missing(tmp_path):
    with pytest.raises(SceneLoadError):
        Scene().add_texture(tmp_path / "none.png")


def test_material_defaults():
    m = Material()
    assert m.base_color_tex_id == -1
    assert math.isclose(m.ior, 1.5)