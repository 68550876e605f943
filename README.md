# rendertools

Pure-Python building blocks for small 3D rendering tools. It needs nothing beyond the standard library.

- `rendertools.obj` reads Wavefront `.obj` meshes into attributes, shapes and meshes. It can triangulate faces and look up `.mtl` materials. The entry points are `load_obj` and `load_obj_file`.
- `rendertools.obj_callback` reports each `.obj` line to your own callbacks instead of building shapes. The entry points are `load_obj_with_callback` and `ObjCallbacks`.
- `rendertools.mtl` parses `.mtl` material libraries, texture options included. It provides `load_mtl`, `parse_texture_name_and_option`, `try_parse_double`, `MaterialFileReader` and `MaterialStreamReader`.
- `rendertools.vertex` defines the frozen `Vertex` and `Material` records:
  - `pack` and `unpack` convert them to and from little-endian float32 bytes.
  - `Vertex.binding_description()` and `Vertex.attribute_descriptions()` describe the vertex layout.
- `rendertools.util` has scene and file helpers:
  - `decompose_transform` splits a transform into parts.
  - `world_to_screen` projects a point to the screen.
  - `is_inside_quadrilateral` tests whether a point lies inside a quadrilateral.
  - `find_highest_element_if_not_unique` finds the largest value.
  - `generate_uuid` makes a short random identifier.
  - `clear_slash` strips a file name from a path.
  - `read_file` reads a whole file.
- `rendertools.logger` is a console and file logger with severities, scopes and progress bars.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Loading a mesh

```python
from rendertools.obj import load_obj_file

data = load_obj_file("models/cube.obj", "models/", True)
for shape in data.shapes:
    print(shape.name, len(shape.mesh.indices))
print(len(data.attrib.vertices) // 3, "vertices")
print(data.warnings)
```

Problems with material libraries are collected in `data.warnings` and are not raised. A missing `.mtl` file is one such problem. An `.obj` file that cannot be opened raises `OSError`.

`load_obj` does the same job for a text stream or a string. It takes an optional material reader, for example `MaterialStreamReader(stream)`.

## Reading materials

```python
import io
from rendertools.mtl import load_mtl

materials, material_map, warnings = load_mtl(io.StringIO("newmtl red\nKd 1 0 0\n"))
print(materials[material_map["red"]].diffuse)   # (1.0, 0.0, 0.0)
```

## Streaming with callbacks

```python
import io
from rendertools.obj_callback import ObjCallbacks, load_obj_with_callback

positions = []
callbacks = ObjCallbacks(vertex=lambda x, y, z, w: positions.append((x, y, z)))
warnings = load_obj_with_callback(io.StringIO("v 1 2 3\n"), callbacks, None)
```

The other callbacks are `normal`, `texcoord`, `index`, `usemtl`, `mtllib`, `group` and `object`. Face indices are passed as written in the file, not converted to zero-based indices.

## Logging

```python
from rendertools.logger import Logger, FileOutput, Severity

logger = Logger(scope="scene")
logger.info("loading scene")
logger.hide_severity(Severity.DEBUG)

with FileOutput("render.log") as out:
    logger.add_output(out)
    bar = logger.progress(100)
    bar.update(50)
    logger.remove_output(out)
```

The module-level functions `info`, `warning`, `error` and the others write through `global_logger()`.

On the console, warnings and errors go to stderr. Everything else goes to stdout.

Colour output is turned off when the `NO_COLOR` environment variable is set and not empty.

## What it does not do

This package does not render anything. It opens no window, talks to no GPU and plays no audio. It also has no scene editor or command-line program. It only loads mesh and material data, does the math around it and logs.