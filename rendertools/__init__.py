"""OBJ/MTL loading, vertex records, scene math helpers and a small logger."""

__version__ = "0.1.0"
__all__ = ["logger", "util", "vertex", "mtl", "obj", "obj_callback"]