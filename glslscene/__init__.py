"""Scene description loading for a path tracer: scene files, glTF and OBJ models, and the math they use."""

__version__ = "0.1.0"

__all__ = ["gltf", "loader", "mat4", "mathutils", "scene", "vectors"]