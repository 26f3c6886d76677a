"""Value objects - immutable domain primitives."""

from media_pipeline.domain.value_objects.object_name import (
    KIND_FOLDERS,
    ObjectName,
    safe_filename,
)

__all__ = [
    "ObjectName",
    "KIND_FOLDERS",
    "safe_filename",
]
