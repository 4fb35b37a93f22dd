"""Tiled element-wise truncation toward zero, with unified-buffer tiling plans."""

__version__ = "0.1.0"
__all__ = ["kernel", "tiling"]