"""
pattern_evolution/noise_field.py - Parallel fBm / turbulence noise fields

A W x H grid is split into contiguous cell ranges, one per worker thread.
Workers write disjoint slices of a shared float32 buffer and report the
(min, max) of their own cells; the caller folds those into the global range.
"""
import logging
import math
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np

from .ast_nodes import NoiseFunction, as_noise_function
from .errors import NoiseConfigError

logger = logging.getLogger(__name__)

F32 = np.float32


def _is_integer(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, np.integer))


def _is_real(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float, np.integer, np.floating))


def available_workers() -> int:
    """Number of CPUs this process is allowed to run on"""
    if hasattr(os, 'sched_getaffinity'):
        return len(os.sched_getaffinity(0))
    return os.cpu_count() or 1


class NoiseType(Enum):
    """Which fractal sum to accumulate per cell"""
    FBM = 'fbm'
    TURBULENCE = 'turbulence'

    @classmethod
    def parse(cls, value: Union['NoiseType', str]) -> 'NoiseType':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise NoiseConfigError(
                f"Unknown noise type {value!r}, expected one of: "
                f"{', '.join(t.value for t in cls)}") from None


@dataclass
class NoiseParams:
    """Parameters of one noise field"""
    noise_type: NoiseType = NoiseType.FBM
    frequency: float = 0.01
    lacunarity: float = 2.0
    gain: float = 0.5
    octaves: int = 4
    width: int = 256
    height: int = 256

    def validate(self) -> None:
        """Raise NoiseConfigError unless the field can be computed"""
        self.noise_type = NoiseType.parse(self.noise_type)
        for name in ('octaves', 'width', 'height'):
            value = getattr(self, name)
            if not _is_integer(value):
                raise NoiseConfigError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise NoiseConfigError(f"{name} must be at least 1, got {value}")
        for name in ('frequency', 'lacunarity', 'gain'):
            value = getattr(self, name)
            if not _is_real(value) or not math.isfinite(value):
                raise NoiseConfigError(f"{name} must be a finite number, got {value!r}")

    @property
    def size(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class NoiseField:
    """Row-major samples of a noise field and their observed range

    Cell ``j`` sits at ``x = j % width``, ``y = j // width``.
    """
    values: np.ndarray
    min: float
    max: float
    width: int
    height: int

    def as_grid(self) -> np.ndarray:
        """View the samples as a (height, width) array"""
        return self.values.reshape(self.height, self.width)


def _accumulate(x, y, frequency, lacunarity, gain, octaves, absolute, noise2d):
    x = np.asarray(x, dtype=F32)
    y = np.asarray(y, dtype=F32)
    total = np.zeros(np.broadcast(x, y).shape, dtype=F32)
    freq = F32(frequency)
    amplitude = F32(1.0)
    for _ in range(octaves):
        sample = np.asarray(noise2d(x * freq, y * freq), dtype=F32)
        if absolute:
            sample = np.abs(sample)
        total += sample * amplitude
        freq = F32(freq * F32(lacunarity))
        amplitude = F32(amplitude * F32(gain))
    return total[()]


def fbm2(x, y, frequency: float, lacunarity: float, gain: float, octaves: int,
         noise2d: Optional[NoiseFunction] = None):
    """Fractional Brownian motion: sum of noise octaves"""
    return _accumulate(x, y, frequency, lacunarity, gain, octaves, False, as_noise_function(noise2d))


def turbulence(x, y, frequency: float, lacunarity: float, gain: float, octaves: int,
               noise2d: Optional[NoiseFunction] = None):
    """Turbulent fractal noise: sum of absolute noise octaves"""
    return _accumulate(x, y, frequency, lacunarity, gain, octaves, True, as_noise_function(noise2d))


def partition_ranges(total: int, parts: int) -> List[Tuple[int, int]]:
    """Split [0, total) into ``parts`` contiguous half-open ranges

    Ranges have equal length except the last, which absorbs the remainder.
    When ``total < parts`` the leading ranges are empty.
    """
    if parts < 1:
        raise NoiseConfigError(f"parts must be at least 1, got {parts}")
    batch = total // parts
    ranges = [(i * batch, (i + 1) * batch) for i in range(parts - 1)]
    ranges.append(((parts - 1) * batch, total))
    return ranges


def _fill_range(out: np.ndarray, start: int, stop: int, params: NoiseParams,
                noise2d: NoiseFunction) -> Tuple[float, float]:
    """Compute cells [start, stop) into ``out`` and return their (min, max)"""
    if start >= stop:
        return math.inf, -math.inf

    cells = np.arange(start, stop)
    xs = (cells % params.width).astype(F32)
    ys = (cells // params.width).astype(F32)
    absolute = params.noise_type is NoiseType.TURBULENCE
    values = _accumulate(xs, ys, params.frequency, params.lacunarity, params.gain,
                         params.octaves, absolute, noise2d)
    out[start:stop] = values
    # fmin/fmax skip NaN cells
    return float(np.fmin.reduce(values)), float(np.fmax.reduce(values))


def make_noise(noise_type: Union[NoiseType, str], frequency: float, lacunarity: float,
               gain: float, octaves: int, width: int, height: int,
               noise2d: Optional[NoiseFunction] = None,
               workers: Optional[int] = None) -> NoiseField:
    """Generate a width x height block of fractal noise in parallel

    ``workers`` defaults to the CPUs available to this process. Parameters are validated
    before any worker starts.
    """
    params = NoiseParams(noise_type, frequency, lacunarity, gain, octaves, width, height)
    params.validate()
    if workers is None:
        workers = available_workers()
    elif not _is_integer(workers) or workers < 1:
        raise NoiseConfigError(f"workers must be a positive integer, got {workers!r}")
    noise2d = as_noise_function(noise2d)

    values = np.empty(params.size, dtype=F32)
    ranges = partition_ranges(params.size, workers)
    logger.debug("Computing %s noise %dx%d (%d octaves) on %d workers, batch %d",
                 params.noise_type.value, width, height, octaves, workers,
                 ranges[0][1] - ranges[0][0])

    lo, hi = math.inf, -math.inf
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_fill_range, values, start, stop, params, noise2d)
                   for start, stop in ranges]
        # Results arrive in completion order; min/max folding is order-free
        for future in as_completed(futures):
            local_lo, local_hi = future.result()
            lo = float(np.fmin(lo, local_lo))
            hi = float(np.fmax(hi, local_hi))

    values.flags.writeable = False
    logger.debug("Noise range: [%f, %f]", lo, hi)
    return NoiseField(values, F32(lo), F32(hi), width, height)
