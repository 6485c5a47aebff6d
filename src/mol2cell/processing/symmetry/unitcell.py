"""Crystallographic unit cell.

Holds the six cell parameters and the derived fractional <-> cartesian
transforms. The orthogonalisation convention places a along x and b in
the xy plane:

    frac_to_cart columns = (a, 0, 0),
                           (b cos(gamma), b sin(gamma), 0),
                           (c cos(beta), -c sin(beta) cos(alpha*), 1 / c*)

with c* = a b sin(gamma) / V and
cos(alpha*) = (cos(beta) cos(gamma) - cos(alpha)) / (sin(beta) sin(gamma)).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np


logger = logging.getLogger(__name__)


@dataclass
class UnitCell:
    """Unit cell parameters with derived transforms.

    Attributes:
        a, b, c: Cell lengths in Angstroms
        alpha, beta, gamma: Cell angles in degrees
        space_group: Hermann-Mauguin name, if known
        volume: Cell volume in cubic Angstroms
        frac_to_cart: 4x4 fractional -> cartesian transform
        cart_to_frac: 4x4 cartesian -> fractional transform
    """
    a: float
    b: float
    c: float
    alpha: float
    beta: float
    gamma: float
    space_group: Optional[str] = None
    volume: float = field(init=False)
    frac_to_cart: np.ndarray = field(init=False, repr=False)
    cart_to_frac: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        cos_alpha = math.cos(math.radians(self.alpha))
        cos_beta = math.cos(math.radians(self.beta))
        cos_gamma = math.cos(math.radians(self.gamma))
        sin_beta = math.sin(math.radians(self.beta))
        sin_gamma = math.sin(math.radians(self.gamma))

        self.volume = self.a * self.b * self.c * math.sqrt(
            1.0
            - cos_alpha * cos_alpha
            - cos_beta * cos_beta
            - cos_gamma * cos_gamma
            + 2.0 * cos_alpha * cos_beta * cos_gamma
        )

        c_star = (self.a * self.b * sin_gamma) / self.volume
        cos_alpha_star = (cos_beta * cos_gamma - cos_alpha) / (sin_beta * sin_gamma)

        frac_to_cart = np.eye(4, dtype=np.float64)
        frac_to_cart[:3, 0] = (self.a, 0.0, 0.0)
        frac_to_cart[:3, 1] = (self.b * cos_gamma, self.b * sin_gamma, 0.0)
        frac_to_cart[:3, 2] = (
            self.c * cos_beta,
            -self.c * sin_beta * cos_alpha_star,
            1.0 / c_star,
        )
        self.frac_to_cart = frac_to_cart
        self.cart_to_frac = np.linalg.inv(frac_to_cart)

    @classmethod
    def from_values(
        cls,
        values: Sequence[float],
        space_group: Optional[str] = None,
    ) -> Optional["UnitCell"]:
        """Create a unit cell from (a, b, c, alpha, beta, gamma).

        Returns None, with a warning, unless all six values are finite and
        describe a cell with positive volume.
        """
        if len(values) < 6:
            logger.warning(f"Unit cell needs 6 parameters, got {len(values)}")
            return None

        params = [float(v) for v in values[:6]]
        if not all(math.isfinite(v) for v in params):
            logger.warning(f"Unit cell parameters are not all numeric: {params}")
            return None
        if min(params[:3]) <= 0:
            logger.warning(f"Unit cell lengths must be positive: {params[:3]}")
            return None

        try:
            cell = cls(*params, space_group=space_group)
        except (ValueError, ZeroDivisionError, np.linalg.LinAlgError):
            logger.warning(f"Unit cell angles {params[3:]} give no valid volume")
            return None
        if not math.isfinite(cell.volume) or cell.volume <= 0:
            logger.warning(f"Unit cell angles {params[3:]} give no valid volume")
            return None
        return cell

    @classmethod
    def from_string(cls, text: str, space_group: Optional[str] = None) -> Optional["UnitCell"]:
        """Create a unit cell from a whitespace-separated "a b c alpha beta gamma" string."""
        fields = text.replace(",", " ").split() if text else []
        if len(fields) != 6:
            logger.warning(f"Cell dimension string '{text}' does not hold 6 numbers")
            return None
        try:
            values = [float(f) for f in fields]
        except ValueError:
            logger.warning(f"Cell dimension string '{text}' is not numeric")
            return None
        return cls.from_values(values, space_group=space_group)

    @property
    def parameters(self) -> tuple:
        """The six cell parameters."""
        return (self.a, self.b, self.c, self.alpha, self.beta, self.gamma)

    def to_fractional(self, coords: np.ndarray) -> np.ndarray:
        """Convert cartesian coordinates, shape (3,) or (N, 3), to fractional."""
        coords = np.asarray(coords, dtype=np.float64)
        return coords @ self.cart_to_frac[:3, :3].T + self.cart_to_frac[:3, 3]

    def to_cartesian(self, coords: np.ndarray) -> np.ndarray:
        """Convert fractional coordinates, shape (3,) or (N, 3), to cartesian."""
        coords = np.asarray(coords, dtype=np.float64)
        return coords @ self.frac_to_cart[:3, :3].T + self.frac_to_cart[:3, 3]
