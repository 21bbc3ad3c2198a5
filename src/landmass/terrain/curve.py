"""Height response curves sampled on [0, 1]."""

from enum import Enum
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.interpolate import PchipInterpolator


class CurveMode(str, Enum):
    """Interpolation between curve keys."""

    LINEAR = "linear"
    SMOOTH = "smooth"  # monotone cubic, no overshoot between keys


class HeightCurve:
    """Piecewise 1D function built from (time, value) keys.

    Inputs outside the first/last key hold the end values. Instances are
    immutable, so one curve can be evaluated from several worker threads.
    """

    def __init__(
        self,
        keys: Sequence[tuple[float, float]],
        mode: CurveMode = CurveMode.SMOOTH,
    ):
        if len(keys) == 0:
            raise ValueError("HeightCurve needs at least one key")

        ordered = sorted((float(t), float(v)) for t, v in keys)
        times = np.array([t for t, _ in ordered], dtype=np.float64)
        values = np.array([v for _, v in ordered], dtype=np.float64)
        if np.any(np.diff(times) == 0):
            raise ValueError("HeightCurve keys must have distinct times")

        times.flags.writeable = False
        values.flags.writeable = False
        self._times = times
        self._values = values
        self.mode = CurveMode(mode)

        self._interpolator: PchipInterpolator | None = None
        if self.mode == CurveMode.SMOOTH and len(times) >= 2:
            self._interpolator = PchipInterpolator(times, values, extrapolate=False)

    @classmethod
    def linear(cls) -> "HeightCurve":
        """Identity curve: evaluate(t) == t on [0, 1]."""
        return cls([(0.0, 0.0), (1.0, 1.0)], mode=CurveMode.LINEAR)

    @property
    def keys(self) -> list[tuple[float, float]]:
        """Curve keys in time order."""
        return list(zip(self._times.tolist(), self._values.tolist()))

    def evaluate(self, t: ArrayLike) -> NDArray[np.float64]:
        """Evaluate the curve at ``t`` (scalar or array)."""
        t = np.clip(np.asarray(t, dtype=np.float64), self._times[0], self._times[-1])

        if len(self._times) == 1:
            return np.full_like(t, self._values[0])
        if self._interpolator is None:
            return np.interp(t, self._times, self._values)
        # PCHIP stays within the key values; the clip removes rounding at the end keys
        return np.clip(self._interpolator(t), self._values.min(), self._values.max())

    def __repr__(self) -> str:
        return f"HeightCurve(keys={self.keys!r}, mode={self.mode.value!r})"
