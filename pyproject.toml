[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "glslscene"
version = "0.1.0"
description = "Scene description loading for a path tracer: text scene files, glTF models, OBJ meshes, materials, lights, cameras and transforms."
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = [
    "path tracing",
    "rendering",
    "scene",
    "gltf",
    "obj",
    "materials",
    "3d",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["glslscene"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
