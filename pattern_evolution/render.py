"""
pattern_evolution/render.py - Turn trees and noise fields into grayscale images
"""
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from .ast_nodes import ASTNode
from .growth import require_complete
from .noise_field import NoiseField


def coordinate_grids(width: int, height: int,
                     extent: Optional[Tuple[float, float]] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Create float32 coordinate grids of shape (height, width)

    Without ``extent`` the coordinates are integer pixel positions; with
    ``extent=(lo, hi)`` both axes span that interval evenly.
    """
    if extent is None:
        x = np.arange(width, dtype=np.float32)
        y = np.arange(height, dtype=np.float32)
    else:
        x = np.linspace(extent[0], extent[1], width, dtype=np.float32)
        y = np.linspace(extent[0], extent[1], height, dtype=np.float32)
    X, Y = np.meshgrid(x, y)
    return X, Y


def evaluate_tree_grid(tree: ASTNode, width: int, height: int,
                       extent: Optional[Tuple[float, float]] = None) -> np.ndarray:
    """Evaluate a complete tree once per pixel"""
    require_complete(tree)
    X, Y = coordinate_grids(width, height, extent)
    return tree.evaluate(X, Y)


def normalize_to_uint8(data: np.ndarray, data_min: Optional[float] = None,
                       data_max: Optional[float] = None) -> np.ndarray:
    """Map values onto 0-255

    The range defaults to the finite extremes of ``data``. NaN maps to 0,
    infinities clip to the ends; a flat range renders mid gray.
    """
    data = np.asarray(data, dtype=np.float64)
    finite = data[np.isfinite(data)]
    if data_min is None:
        data_min = finite.min() if finite.size else 0.0
    if data_max is None:
        data_max = finite.max() if finite.size else 0.0

    if not data_max > data_min:
        return np.full(data.shape, 128, dtype=np.uint8)

    with np.errstate(invalid='ignore'):
        normalized = (data - data_min) / (data_max - data_min)
    normalized = np.nan_to_num(normalized, nan=0.0, posinf=1.0, neginf=0.0)
    return (np.clip(normalized, 0, 1) * 255).astype(np.uint8)


def tree_image(tree: ASTNode, size: Tuple[int, int] = (256, 256),
               extent: Optional[Tuple[float, float]] = None,
               filename: str = None) -> Image.Image:
    """Render a tree as a grayscale image"""
    width, height = size
    values = evaluate_tree_grid(tree, width, height, extent)
    img = Image.fromarray(normalize_to_uint8(values), 'L')
    if filename:
        img.save(filename)
    return img


def noise_image(field: NoiseField, filename: str = None) -> Image.Image:
    """Render a noise field as a grayscale image using its own range"""
    gray = normalize_to_uint8(field.as_grid(), field.min, field.max)
    img = Image.fromarray(gray, 'L')
    if filename:
        img.save(filename)
    return img
