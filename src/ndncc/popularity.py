from typing import Optional

import numpy as np

from .exceptions import ConfigurationError


class ZipfMandelbrotSampler:
    """
    Draws catalog indices in ``[1, n]`` following a Zipf-Mandelbrot
    distribution, where item ``i`` has weight ``1 / (i + q) ** s``.

    The cumulative table is rebuilt from scratch whenever `n`, `q` or `s`
    changes.
    """

    def __init__(
        self,
        *,
        n: int = 1000,
        q: float = 0.0,
        s: float = 0.75,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self._n = n
        self._q = q
        self._s = s
        self._rng = rng if rng is not None else np.random.default_rng()
        self._build()

    @property
    def cumulative(self) -> np.ndarray:
        """
        Cumulative probabilities, ``cumulative[0] == 0`` and
        ``cumulative[n] == 1``.
        """
        return self._cumulative

    @property
    def n(self) -> int:
        return self._n

    @n.setter
    def n(self, value: int) -> None:
        self._n = value
        self._build()

    @property
    def q(self) -> float:
        return self._q

    @q.setter
    def q(self, value: float) -> None:
        self._q = value
        self._build()

    @property
    def s(self) -> float:
        return self._s

    @s.setter
    def s(self, value: float) -> None:
        self._s = value
        self._build()

    def draw(self) -> int:
        r = self._rng.random()
        while r == 0.0:
            r = self._rng.random()
        return self.index_for(r)

    def index_for(self, r: float) -> int:
        """
        Return the smallest index `i` such that ``cumulative[i] >= r``.
        """
        return int(np.searchsorted(self._cumulative, r, side="left"))

    def _build(self) -> None:
        if self._n < 1:
            raise ConfigurationError(
                "Catalog size must be at least 1, got %d" % self._n
            )
        if self._s <= 0:
            raise ConfigurationError(
                "Zipf exponent must be positive, got %r" % self._s
            )
        if self._q < 0:
            raise ConfigurationError(
                "Zipf offset must not be negative, got %r" % self._q
            )

        # relative to the first item, so large offsets and exponents cannot overflow
        weights = np.power(
            (1.0 + self._q) / (np.arange(1, self._n + 1) + self._q), self._s
        )
        cumulative = np.concatenate(([0.0], np.cumsum(weights)))
        cumulative /= cumulative[-1]
        cumulative[-1] = 1.0
        self._cumulative = cumulative
