"""Format readers and writers.

- cem: binary runtime model codec
- obj: Wavefront OBJ parser and emitter
- collada: COLLADA document reader and emitter
"""
