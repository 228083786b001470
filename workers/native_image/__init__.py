"""
native_image — Ahead-of-time native compilation of JVM applications.

Compose the native-image command line, gate the compile behind a content
cache key, compress the produced binary and relocate it into the
application directory.
"""

__version__ = "0.1.0"
PACKAGE_NAME = "native_image"
SCHEMA_VERSION = "0.1"
DEFAULT_LAYER_NAME = "native-image"
