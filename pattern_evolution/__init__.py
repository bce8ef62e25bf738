"""
pattern_evolution - Procedural pattern synthesis core

Genetic expression trees that map coordinates (x, y) to a scalar, grown by
random arity-aware insertion, plus parallel fBm / turbulence noise fields.
"""

__version__ = "0.1.0"
__author__ = "Pattern Evolution Project"

from .ast_nodes import (
    ASTNode, Variable, Constant, UnaryOp, BinaryOp, NoiseOp, LerpOp,
    parse_expression, as_noise_function
)
from .growth import (
    add_random, node_counts, is_complete, require_complete,
    random_operator, random_leaf, create_random_tree
)
from .noise_field import NoiseType, NoiseParams, NoiseField, make_noise, fbm2, turbulence
from .simplex import snoise2
from .errors import (
    PatternEvolutionError, IncompleteTreeError, ExpressionSyntaxError,
    NoiseConfigError, InvariantViolation
)

__all__ = [
    'ASTNode', 'Variable', 'Constant', 'UnaryOp', 'BinaryOp', 'NoiseOp', 'LerpOp',
    'parse_expression', 'as_noise_function',
    'add_random', 'node_counts', 'is_complete', 'require_complete',
    'random_operator', 'random_leaf', 'create_random_tree',
    'NoiseType', 'NoiseParams', 'NoiseField', 'make_noise', 'fbm2', 'turbulence',
    'snoise2',
    'PatternEvolutionError', 'IncompleteTreeError', 'ExpressionSyntaxError',
    'NoiseConfigError', 'InvariantViolation'
]
