# ==============================================================================
# File: tests/test_render.py
# Purpose: coordinate grids, normalisation and grayscale image output.
# ==============================================================================
import os
import tempfile
import unittest

import numpy as np

from pattern_evolution.ast_nodes import BinaryOp, Constant, UnaryOp, Variable
from pattern_evolution.errors import IncompleteTreeError
from pattern_evolution.noise_field import make_noise
from pattern_evolution.render import (
    coordinate_grids, evaluate_tree_grid, noise_image, normalize_to_uint8, tree_image
)


class TestCoordinateGrids(unittest.TestCase):

    def test_pixel_coordinates(self):
        X, Y = coordinate_grids(4, 3)
        self.assertEqual(X.shape, (3, 4))
        self.assertEqual(X.dtype, np.float32)
        self.assertEqual(X[2, 3], 3.0)
        self.assertEqual(Y[2, 3], 2.0)

    def test_extent(self):
        X, Y = coordinate_grids(5, 5, extent=(-1, 1))
        self.assertEqual(X[0, 0], -1.0)
        self.assertEqual(X[0, -1], 1.0)
        self.assertEqual(Y[-1, 0], 1.0)


class TestNormalize(unittest.TestCase):

    def test_linear_mapping(self):
        np.testing.assert_array_equal(normalize_to_uint8(np.array([0.0, 5.0, 10.0])), [0, 127, 255])

    def test_explicit_range_clips(self):
        gray = normalize_to_uint8(np.array([-5.0, 0.0, 20.0]), 0.0, 10.0)
        np.testing.assert_array_equal(gray, [0, 0, 255])

    def test_non_finite_values(self):
        gray = normalize_to_uint8(np.array([np.nan, np.inf, -np.inf, 0.0, 1.0]))
        np.testing.assert_array_equal(gray, [0, 255, 0, 0, 255])

    def test_flat_input_is_mid_gray(self):
        np.testing.assert_array_equal(normalize_to_uint8(np.full(4, 3.0)), [128] * 4)
        np.testing.assert_array_equal(normalize_to_uint8(np.full(2, np.nan)), [128] * 2)


class TestImages(unittest.TestCase):

    def test_evaluate_tree_grid(self):
        values = evaluate_tree_grid(BinaryOp('add', Variable('x'), Variable('y')), 4, 3)
        self.assertEqual(values.shape, (3, 4))
        self.assertEqual(values[2, 3], 5.0)

    def test_incomplete_tree_rejected(self):
        with self.assertRaises(IncompleteTreeError):
            evaluate_tree_grid(BinaryOp('add', Variable('x')), 4, 4)

    def test_tree_image(self):
        tree = UnaryOp('sin', BinaryOp('mul', Variable('x'), Constant(0.2)))
        img = tree_image(tree, size=(16, 8))
        self.assertEqual(img.size, (16, 8))
        self.assertEqual(img.mode, 'L')

    def test_tree_image_with_division_by_zero(self):
        tree = BinaryOp('div', Constant(1), Variable('x'))
        gray = np.asarray(tree_image(tree, size=(8, 8)))
        # Column x == 0 is +inf and clips to white
        self.assertTrue(np.all(gray[:, 0] == 255))

    def test_noise_image_saved(self):
        field = make_noise('fbm', 0.1, 2.0, 0.5, 3, 12, 10, workers=2)
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = os.path.join(tmp_dir, 'noise.png')
            img = noise_image(field, filename=path)
            self.assertTrue(os.path.exists(path))
        self.assertEqual(img.size, (12, 10))


if __name__ == '__main__':
    unittest.main()
