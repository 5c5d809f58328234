"""JSON Schema files, loaded through importlib.resources."""
