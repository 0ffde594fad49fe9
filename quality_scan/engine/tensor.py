from __future__ import annotations

from typing import Any

import numpy as np

from quality_scan.errors import UnsupportedElementType
from quality_scan.models import TensorDescriptor

DTYPE_TAGS: dict[type, str] = {
    np.uint8: "uint8_t",
    np.int8: "int8_t",
    np.uint16: "uint16_t",
    np.int16: "int16_t",
    np.int32: "int32_t",
    np.float32: "float",
    np.float64: "double",
}


def to_tensor(image: Any, force_copy: bool = False) -> TensorDescriptor:
    """Describe ``image`` as an engine tensor, sharing its memory when possible.

    Non-contiguous arrays are always copied; contiguous ones only when
    ``force_copy`` is set.
    """

    if not isinstance(image, np.ndarray) or image.ndim not in (2, 3):
        raise ValueError("Expected a 2-D or 3-D pixel array.")

    dtype_tag = DTYPE_TAGS.get(image.dtype.type)
    if dtype_tag is None:
        raise UnsupportedElementType(f"Unsupported pixel element type: {image.dtype}")

    must_copy = force_copy or not image.flags["C_CONTIGUOUS"]
    buffer = np.array(image, order="C", copy=True) if must_copy else image

    channels = buffer.shape[2] if buffer.ndim == 3 else 1
    shape = tuple(int(size) for size in buffer.shape[:2]) + (int(channels),)

    return TensorDescriptor(shape=shape, dtype=dtype_tag, buffer=buffer, owns_buffer=must_copy)
