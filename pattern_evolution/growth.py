"""
pattern_evolution/growth.py - Random node factories and tree growth

All randomness comes from an ``rng`` argument exposing ``randrange`` and
``random`` (a ``random.Random`` instance, or the ``random`` module itself
when omitted). Seed the instance for reproducible trees.
"""
import logging
import math
import random
from typing import Optional, Tuple

from .ast_nodes import (ASTNode, Variable, Constant, UnaryOp, BinaryOp, NoiseOp,
                        LerpOp, NoiseFunction)
from .errors import IncompleteTreeError, InvariantViolation

logger = logging.getLogger(__name__)

# Number of distinct operator kinds offered by random_operator
NUM_OPERATORS = 10


def random_operator(rng=None, noise2d: Optional[NoiseFunction] = None) -> ASTNode:
    """Select a random node with 1 or more empty child slots"""
    rng = rng or random
    r = rng.randrange(NUM_OPERATORS)
    if r == 0:
        return BinaryOp('add')
    elif r == 1:
        return BinaryOp('sub')
    elif r == 2:
        return BinaryOp('mul')
    elif r == 3:
        return BinaryOp('div')
    elif r == 4:
        return BinaryOp('atan2')
    elif r == 5:
        return UnaryOp('atan')
    elif r == 6:
        return UnaryOp('cos')
    elif r == 7:
        return UnaryOp('sin')
    elif r == 8:
        return NoiseOp(noise2d=noise2d)
    elif r == 9:
        return LerpOp()
    raise InvariantViolation(f"operator selector out of range: {r}")


def random_leaf(rng=None) -> ASTNode:
    """Select a random leaf: X, Y or a constant in [-1, 1)"""
    rng = rng or random
    r = rng.randrange(3)
    if r == 0:
        return Variable('x')
    elif r == 1:
        return Variable('y')
    elif r == 2:
        # Snap to the float32 grid so rounding cannot reach 1.0
        return Constant(math.floor(rng.random() * (1 << 24)) / (1 << 23) - 1)
    raise InvariantViolation(f"leaf selector out of range: {r}")


def _choose_slot(arity: int, rng) -> int:
    if arity == 1:
        return 0
    elif arity in (2, 3):
        return rng.randrange(arity)
    raise InvariantViolation(f"no slot selection rule for arity {arity}")


def add_random(root: ASTNode, node: ASTNode, rng=None) -> bool:
    """Insert ``node`` into the first empty slot on a random path from ``root``

    Each step picks one slot uniformly; an empty slot takes the node, a
    filled one is descended into. Only that single path is tried, so the
    insertion is dropped when the path ends at a leaf. Returns whether the
    node was placed.
    """
    rng = rng or random
    current = root
    while current.arity:
        slot = _choose_slot(current.arity, rng)
        child = current.children[slot]
        if child is None:
            current.children[slot] = node
            return True
        current = child
    return False


def node_counts(root: ASTNode) -> Tuple[int, int]:
    """Return (nodes present, empty slots) for the tree under ``root``"""
    filled, empty = 1, 0
    for child in root.children:
        if child is None:
            empty += 1
        else:
            child_filled, child_empty = node_counts(child)
            filled += child_filled
            empty += child_empty
    return filled, empty


def is_complete(root: ASTNode) -> bool:
    """True when no slot reachable from ``root`` is empty"""
    return node_counts(root)[1] == 0


def require_complete(root: ASTNode) -> None:
    filled, empty = node_counts(root)
    if empty:
        raise IncompleteTreeError(f"tree has {empty} empty slot(s) among {filled} node(s): {root}")


def create_random_tree(num_operators: int = 5, rng=None,
                       noise2d: Optional[NoiseFunction] = None) -> ASTNode:
    """Grow a complete random tree

    Operators go in first so every insertion finds an empty slot, then
    leaves are supplied until the tree has no empty slot left. Leaf
    insertions whose random path ends at another leaf are dropped and
    retried with a fresh leaf.
    """
    if num_operators < 1:
        raise ValueError("num_operators must be at least 1")
    rng = rng or random

    root = random_operator(rng, noise2d)
    for _ in range(num_operators - 1):
        add_random(root, random_operator(rng, noise2d), rng)

    rejected = 0
    _, empty = node_counts(root)
    while empty:
        if add_random(root, random_leaf(rng), rng):
            empty -= 1
        else:
            rejected += 1

    logger.debug("Grew tree with %d operators (%d leaf insertions rejected): %s",
                 num_operators, rejected, root)
    return root
