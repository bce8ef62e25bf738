"""
pattern_evolution/errors.py - Exception types raised by the synthesis core
"""


class PatternEvolutionError(Exception):
    """Base class for all package errors"""


class IncompleteTreeError(PatternEvolutionError):
    """An expression tree with an empty child slot was evaluated"""


class ExpressionSyntaxError(PatternEvolutionError, ValueError):
    """Malformed prefix-notation expression text"""


class NoiseConfigError(PatternEvolutionError, ValueError):
    """Invalid noise field parameters"""


class InvariantViolation(PatternEvolutionError, AssertionError):
    """A branch that correct selector ranges can never reach was taken"""
