# glslscene

glslscene reads scene descriptions for a physically based path tracer and
turns them into plain Python objects: materials, lights, a camera, meshes,
mesh instances with their transforms, textures and render options.

It understands three kinds of input:

- **Scene files**: a small brace-delimited text format naming materials,
  lights, the camera, renderer settings, OBJ meshes and glTF models
  (`glslscene.loader`).
- **glTF 2.0 models**: both `.gltf` (JSON) and `.glb` (binary)
  (`glslscene.gltf`). Every triangle primitive becomes its own mesh,
  metallic-roughness materials are converted, images are decoded into
  textures, and the node hierarchy is walked to place mesh instances.
- **Wavefront OBJ meshes**: read by `Scene.add_mesh` (positions, texture
  coordinates, normals and faces; polygons are split into triangle fans).

Textures are decoded with Pillow into RGBA bytes.

## Installing

```
pip install .
pip install .[test]   # with pytest, to run the tests
```

## Loading a scene file

```python
from glslscene.scene import Scene, RenderOptions
from glslscene.loader import load_scene_file

scene = Scene()
options = RenderOptions()
load_scene_file("scenes/cornell_box.scene", scene, options)

for instance in scene.mesh_instances:
    print(instance.name, instance.mesh_id, instance.material_id)
```

Files named inside a scene file are looked up relative to the scene file's
directory. Scene text can also be parsed directly; relative file names in it
are resolved against `base_dir`:

```python
from glslscene.loader import load_scene_text
from glslscene.scene import Scene, RenderOptions

text = """
material white
{
    color 0.725 0.71 0.68
}

light
{
    position 0.343 0.548 0.227
    v1 0.343 0.548 0.332
    v2 0.213 0.548 0.227
    emission 17 12 4
    type quad
}

camera
{
    position 0.276 0.275 -0.75
    lookat 0.276 0.275 0
    fov 40
}
"""

scene = Scene()
options = RenderOptions()
load_scene_text(text, "scenes", scene, options)
print(scene.lights[0].area, scene.camera.fov)
```

### Scene file blocks

| Block      | Keys |
|------------|------|
| `material NAME` | `color`, `opacity`, `alphamode` (`opaque`/`blend`/`mask`), `alphacutoff`, `emission`, `metallic`, `roughness`, `subsurface`, `speculartint`, `anisotropic`, `sheen`, `sheentint`, `clearcoat`, `clearcoatgloss`, `spectrans`, `ior`, `albedotexture`, `metallicroughnesstexture`, `normaltexture`, `emissiontexture`, `mediumtype` (`absorb`/`scatter`/`emissive`), `mediumdensity`, `mediumcolor`, `mediumanisotropy` |
| `light`    | `position`, `emission`, `radius`, `v1`, `v2`, `type` (`quad`/`sphere`/`distant`) |
| `camera`   | `position`, `lookat`, `fov`, `aperture`, `focaldist`, `matrix` |
| `renderer` | `envmapfile`, `resolution`, `windowresolution`, `envmapintensity`, `maxdepth`, `maxspp`, `tilewidth`, `tileheight`, `enablerr`, `rrdepth`, `enabletonemap`, `enableaces`, `texarraywidth`, `texarrayheight`, `openglnormalmap`, `hideemitters`, `enablebackground`, `transparentbackground`, `backgroundcolor`, `independentrendersize`, `envmaprotation`, `enableroughnessmollification`, `roughnessmollificationamt`, `enablevolumemis`, `enableuniformlight`, `uniformlightcolor` |
| `mesh`     | `name`, `file`, `material`, `matrix`, `position`, `scale`, `rotation` |
| `gltf`     | `file`, `matrix`, `position`, `scale`, `rotation` |

Notes on how blocks are read:

- Lines starting with `#` are comments. A block ends at the first line that
  contains `}`.
- The scene always starts with a default material at index 0. A material
  whose name was already defined is ignored. A mesh that names an unknown
  material keeps material 0 and a warning is logged.
- A quad light's `u` and `v` are `v1` and `v2` minus its position and its
  area is `|u × v|`; a sphere light's area is `4πr²`; a distant light's is 0.
- A camera without `fov` gets 60 degrees. If a camera `matrix` is given,
  the position comes from its last row and the look-at point is the position
  plus its third row.
- A `matrix` is sixteen numbers given column by column. Otherwise a mesh or
  glTF transform is built as scale × rotation × translation, with `rotation`
  a quaternion `x y z w`.
- In a `renderer` block, flags take `true` or `false`. `enable_env_map` is
  set only when `envmapfile` is given, and unless `independentrendersize`
  is `true` the window resolution is made equal to the render resolution.
- Without `name`, a mesh instance is named after its file.

### Errors

`SceneLoadError` (from `glslscene.scene`) is raised when the scene file
cannot be read, when a texture cannot be decoded, and when a glTF model
cannot be loaded or its file does not end in `.gltf` or `.glb`. An OBJ mesh
that cannot be read is logged and its instance skipped.

## Loading a glTF model on its own

```python
from glslscene.gltf import load_gltf
from glslscene.mat4 import Mat4
from glslscene.scene import Scene, RenderOptions

scene = Scene()
options = RenderOptions()
load_gltf("models/helmet.glb", scene, options, Mat4(), binary=True)
```

Buffers and images may be external files, base64 `data:` URIs, or (for
images) buffer views. Only triangle primitives are loaded, and each must have
positions and indices. Instances are created for leaf nodes that carry a
mesh. If the model has no materials and the scene has none yet, a default
material is added.

An already parsed document can be loaded with
`load_gltf_document(document, buffers, images, scene, transform)`, where
`buffers` is a list of `bytes` and `images` a list of `Texture` objects.

## Building a scene in code

```python
from glslscene.mat4 import Mat4
from glslscene.scene import Scene, Material, MeshInstance
from glslscene.vectors import Vec3

scene = Scene()
scene.add_camera(Vec3(0.0, 0.125, -0.45), Vec3(0.0, 0.125, 0.0), 60.0)
gold = scene.add_material(Material(base_color=Vec3(1.0, 0.71, 0.29), roughness=0.2, metallic=1.0))
mesh_id = scene.add_mesh("assets/ajax.obj")
xform = Mat4.scale(Vec3(0.25, 0.25, 0.25)) * Mat4.translate(Vec3(0.2, 0.0, 0.0))
scene.add_mesh_instance(MeshInstance("Ajax Gold", mesh_id, xform, gold))
```

`add_mesh` and `add_texture` return the index of an already loaded mesh or
texture with the same path instead of loading it again. `add_env_map` only
records the path.

## Math helpers

- `glslscene.mathutils`: `degrees`, `radians`, `clamp`.
- `glslscene.vectors`: immutable `IVec2`, `Vec2`, `Vec3`, `Vec4`. `Vec3`
  supports `+`, `-`, component-wise `*` and scaling by a number, plus
  `cross`, `dot`, `length`, `distance`, `normalize`, `minimum`, `maximum`,
  `clamp`, `pow` and `Vec3.from_vec4`.
- `glslscene.mat4`: `Mat4`, identity by default, with `Mat4.translate`,
  `Mat4.scale`, `Mat4.from_quaternion`, `Mat4.from_rows` and `rows()`.
  `m[i]` is a row, `m[i, j]` an element; `a * b` (or `a @ b`) multiplies.

Matrices are row-major with translation in the last row, so transforms
compose left to right: `local * parent`.

## What this package does not do

It loads and describes scenes only. It does not render images, build
acceleration structures, open a window, or load environment map images.