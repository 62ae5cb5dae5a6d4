"""Key and stream helpers shared by the adapter and clients."""

from bucketfs.io.keys import (
    SEPARATOR,
    PathPrefixer,
    directory_key,
    is_directory_key,
    normalize_path_prefix,
    strip_slashes,
)
from bucketfs.io.streams import (
    backing_file,
    ensure_seekable,
    is_stream,
    md5_from_bytes,
    md5_from_stream,
    stream_size,
)

__all__ = [
    "SEPARATOR",
    "PathPrefixer",
    "backing_file",
    "directory_key",
    "ensure_seekable",
    "is_directory_key",
    "is_stream",
    "md5_from_bytes",
    "md5_from_stream",
    "normalize_path_prefix",
    "stream_size",
    "strip_slashes",
]
