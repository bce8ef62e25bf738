"""
pattern_evolution/ast_nodes.py - Expression tree nodes, evaluation and text form
"""
import numpy as np
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

from .errors import ExpressionSyntaxError, IncompleteTreeError
from .simplex import snoise2

NoiseFunction = Callable[[np.ndarray, np.ndarray], np.ndarray]

F32 = np.float32

# Printed in place of an unfilled child slot
EMPTY_SLOT = '_'


def as_noise_function(noise2d: Optional[NoiseFunction] = None) -> NoiseFunction:
    """Make a noise primitive callable on whole float32 arrays

    numpy ufuncs (including the default simplex noise) already are; plain
    scalar functions of (x, y) are wrapped with ``np.vectorize``.
    """
    if noise2d is None:
        return snoise2
    if isinstance(noise2d, np.ufunc):
        return noise2d
    return np.vectorize(noise2d, otypes=[F32])


class ASTNode(ABC):
    """Base class for all expression tree nodes

    Every node owns a fixed-size list of child slots sized by its arity.
    A slot holding None is empty: it is a growth point for
    ``growth.add_random`` and makes the tree incomplete.
    """

    arity = 0

    def __init__(self, *children: Optional['ASTNode']):
        self.children: List[Optional[ASTNode]] = list(children) + [None] * (self.arity - len(children))

    def evaluate(self, x, y):
        """Evaluate the tree at coordinates (x, y)

        Scalars give a float32 scalar back; arrays are broadcast together and
        give a float32 array. Floating point faults (division by zero, domain
        errors) propagate as inf/NaN and are not reported.
        """
        x, y = np.broadcast_arrays(np.asarray(x, dtype=F32), np.asarray(y, dtype=F32))
        with np.errstate(divide='ignore', invalid='ignore', over='ignore', under='ignore'):
            result = self._eval(x, y)
        return np.array(result, dtype=F32)[()]

    @abstractmethod
    def _eval(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Evaluate this subtree on already broadcast float32 inputs"""
        pass

    @abstractmethod
    def copy(self) -> 'ASTNode':
        """Create a deep copy of this node"""
        pass

    def _eval_child(self, index: int, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        child = self.children[index]
        if child is None:
            raise IncompleteTreeError(
                f"cannot evaluate {self.symbol()}: child slot {index} is empty")
        return child._eval(x, y)

    def _copy_children(self) -> List[Optional['ASTNode']]:
        return [None if child is None else child.copy() for child in self.children]

    def symbol(self) -> str:
        return type(self).__name__

    def get_depth(self) -> int:
        """Get maximum depth of this subtree (empty slots add nothing)"""
        filled = [child for child in self.children if child is not None]
        if not filled:
            return 1
        return 1 + max(child.get_depth() for child in filled)

    def __str__(self):
        parts = [EMPTY_SLOT if child is None else str(child) for child in self.children]
        return "( " + " ".join([self.symbol()] + parts) + " )"

    def __repr__(self):
        return f"<{type(self).__name__} {self}>"


class Variable(ASTNode):
    """Input coordinate: x or y"""

    NAMES = ('x', 'y')

    def __init__(self, name: str):
        super().__init__()
        if name not in self.NAMES:
            raise ValueError(f"Unknown variable: {name}")
        self.name = name

    def _eval(self, x, y):
        return x if self.name == 'x' else y

    def copy(self) -> 'Variable':
        return Variable(self.name)

    def __str__(self):
        return self.name.upper()


class Constant(ASTNode):
    """Numeric constant, stored as float32"""

    def __init__(self, value: float):
        super().__init__()
        self.value = F32(value)

    def _eval(self, x, y):
        return np.full_like(x, self.value)

    def copy(self) -> 'Constant':
        return Constant(self.value)

    def __str__(self):
        return f"{float(self.value):.9f}"


class UnaryOp(ASTNode):
    """Trigonometric operations of one child: sin, cos, atan"""

    arity = 1
    SYMBOLS = {'sin': 'Sine', 'cos': 'Cos', 'atan': 'Atan'}

    def __init__(self, op: str, child: Optional[ASTNode] = None):
        if op not in self.SYMBOLS:
            raise ValueError(f"Unknown unary operator: {op}")
        super().__init__(child)
        self.op = op

    @property
    def child(self) -> Optional[ASTNode]:
        return self.children[0]

    def _eval(self, x, y):
        child_val = self._eval_child(0, x, y)

        if self.op == 'sin':
            return np.sin(child_val)
        elif self.op == 'cos':
            return np.cos(child_val)
        else:
            return np.arctan(child_val)

    def copy(self) -> 'UnaryOp':
        return UnaryOp(self.op, *self._copy_children())

    def symbol(self) -> str:
        return self.SYMBOLS[self.op]


class BinaryOp(ASTNode):
    """Binary operations: add, sub, mul, div, atan2

    Division is unprotected; atan2 takes the left child as its first
    (ordinate) argument.
    """

    arity = 2
    SYMBOLS = {'add': '+', 'sub': '-', 'mul': '*', 'div': '/', 'atan2': 'Atan2'}

    def __init__(self, op: str, left: Optional[ASTNode] = None, right: Optional[ASTNode] = None):
        if op not in self.SYMBOLS:
            raise ValueError(f"Unknown binary operator: {op}")
        super().__init__(left, right)
        self.op = op

    @property
    def left(self) -> Optional[ASTNode]:
        return self.children[0]

    @property
    def right(self) -> Optional[ASTNode]:
        return self.children[1]

    def _eval(self, x, y):
        left_val = self._eval_child(0, x, y)
        right_val = self._eval_child(1, x, y)

        if self.op == 'add':
            return left_val + right_val
        elif self.op == 'sub':
            return left_val - right_val
        elif self.op == 'mul':
            return left_val * right_val
        elif self.op == 'div':
            return left_val / right_val
        else:
            return np.arctan2(left_val, right_val)

    def copy(self) -> 'BinaryOp':
        return BinaryOp(self.op, *self._copy_children())

    def symbol(self) -> str:
        return self.SYMBOLS[self.op]


class NoiseOp(ASTNode):
    """Coherent noise sampled at the values of its two children

    The result is ``80 * noise2d(left, right) - 2``. The scale is not
    corrected back to [-1, 1]; trees grown against this mapping depend on it.
    """

    arity = 2
    SCALE = F32(80.0)
    OFFSET = F32(2.0)

    def __init__(self, left: Optional[ASTNode] = None, right: Optional[ASTNode] = None,
                 noise2d: Optional[NoiseFunction] = None):
        super().__init__(left, right)
        self.noise2d = noise2d or snoise2
        self._sample = as_noise_function(self.noise2d)

    def _eval(self, x, y):
        left_val = self._eval_child(0, x, y)
        right_val = self._eval_child(1, x, y)
        sample = np.asarray(self._sample(left_val, right_val), dtype=F32)
        return self.SCALE * sample - self.OFFSET

    def copy(self) -> 'NoiseOp':
        return NoiseOp(*self._copy_children(), noise2d=self.noise2d)

    def symbol(self) -> str:
        return 'SimplexNoise'


class LerpOp(ASTNode):
    """Blend of two children weighted by the third

    Computes ``b1 + |w| * (b1 - b2)``. This extrapolates away from the
    middle child rather than clamping between the two.
    """

    arity = 3

    def __init__(self, left: Optional[ASTNode] = None, middle: Optional[ASTNode] = None,
                 right: Optional[ASTNode] = None):
        super().__init__(left, middle, right)

    def _eval(self, x, y):
        b1 = self._eval_child(0, x, y)
        b2 = self._eval_child(1, x, y)
        pct = np.abs(self._eval_child(2, x, y))
        return b1 + pct * (b1 - b2)

    def copy(self) -> 'LerpOp':
        return LerpOp(*self._copy_children())

    def symbol(self) -> str:
        return 'Lerp'



_UNARY_BY_SYMBOL = {symbol: op for op, symbol in UnaryOp.SYMBOLS.items()}
_BINARY_BY_SYMBOL = {symbol: op for op, symbol in BinaryOp.SYMBOLS.items()}


def _tokenize(text: str) -> List[str]:
    return text.replace('(', ' ( ').replace(')', ' ) ').split()


def _parse_leaf(token: str) -> Optional[ASTNode]:
    if token == EMPTY_SLOT:
        return None
    if token in ('X', 'Y'):
        return Variable(token.lower())
    try:
        return Constant(float(token))
    except ValueError:
        raise ExpressionSyntaxError(f"Unexpected token: {token!r}") from None


def _make_operator(symbol: str, noise2d: Optional[NoiseFunction]) -> ASTNode:
    if symbol in _UNARY_BY_SYMBOL:
        return UnaryOp(_UNARY_BY_SYMBOL[symbol])
    elif symbol in _BINARY_BY_SYMBOL:
        return BinaryOp(_BINARY_BY_SYMBOL[symbol])
    elif symbol == 'SimplexNoise':
        return NoiseOp(noise2d=noise2d)
    elif symbol == 'Lerp':
        return LerpOp()
    raise ExpressionSyntaxError(f"Unknown operator: {symbol!r}")


def _parse(tokens: List[str], pos: int, noise2d: Optional[NoiseFunction]) -> Tuple[Optional[ASTNode], int]:
    if pos >= len(tokens):
        raise ExpressionSyntaxError("Unexpected end of expression")

    token = tokens[pos]
    if token == ')':
        raise ExpressionSyntaxError(f"Unexpected ')' at token {pos}")
    if token != '(':
        return _parse_leaf(token), pos + 1

    if pos + 1 >= len(tokens):
        raise ExpressionSyntaxError("Unexpected end of expression")
    node = _make_operator(tokens[pos + 1], noise2d)
    pos += 2
    for slot in range(node.arity):
        node.children[slot], pos = _parse(tokens, pos, noise2d)

    if pos >= len(tokens) or tokens[pos] != ')':
        raise ExpressionSyntaxError(
            f"Expected ')' closing {node.symbol()} with {node.arity} operand(s)")
    return node, pos + 1


def parse_expression(text: str, noise2d: Optional[NoiseFunction] = None) -> Optional[ASTNode]:
    """Parse the prefix notation produced by ``str(node)``

    ``_`` stands for an empty slot, so incomplete trees survive a round
    trip; a bare ``_`` parses to None.
    """
    tokens = _tokenize(text)
    if not tokens:
        raise ExpressionSyntaxError("Empty expression")
    node, pos = _parse(tokens, 0, noise2d)
    if pos != len(tokens):
        raise ExpressionSyntaxError(f"Trailing tokens after expression: {' '.join(tokens[pos:])}")
    return node
