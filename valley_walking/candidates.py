"""
Candidate point tables.

Upstream loaders hand over candidate critical points as a DataFrame whose
coordinates live in columns ``x1, x2, ...`` next to arbitrary metadata
(objective value, labels, ...). This module turns such a frame into a
fixed-width sequence of :class:`CandidatePoint` rows, validating the
coordinate columns once.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence

import numpy as np
import pandas as pd

from valley_walking.exceptions import DimensionMismatchError, MissingCoordinatesError

COORDINATE_COLUMN = re.compile(r"^x(\d+)$")


@dataclass(frozen=True, eq=False)
class CandidatePoint:
    """A candidate critical point: coordinates plus whatever came with it."""
    coordinates: np.ndarray
    metadata: Dict = field(default_factory=dict)
    index: object = None

    @property
    def dimension(self) -> int:
        return int(self.coordinates.size)


def find_coordinate_columns(columns: Sequence) -> List[str]:
    """
    Coordinate columns ``x<k>`` sorted by their numeric suffix (x2 before x10).
    """
    matched = []
    for name in columns:
        m = COORDINATE_COLUMN.match(str(name))
        if m is not None:
            matched.append((int(m.group(1)), name))
    return [name for _, name in sorted(matched)]


class CandidateTable:
    """
    Immutable sequence of candidate points sharing one coordinate layout.

    Build with :meth:`from_dataframe` or :meth:`from_points`.
    """

    def __init__(self, rows: Sequence[CandidatePoint], coordinate_columns: Sequence[str]):
        self.coordinate_columns = tuple(coordinate_columns)
        self._rows = tuple(rows)

        for row in self._rows:
            if row.dimension != self.dimension:
                raise DimensionMismatchError(
                    f"Row {row.index!r} has {row.dimension} coordinates, "
                    f"table expects {self.dimension}"
                )

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, coordinate_columns: Optional[Sequence[str]] = None):
        """
        Args:
            df: Candidate points, one per row
            coordinate_columns: Explicit coordinate columns in order
                                (default: all ``x<k>`` columns)

        Raises:
            MissingCoordinatesError: no coordinate columns, or requested ones absent
        """
        if coordinate_columns is None:
            coordinate_columns = find_coordinate_columns(df.columns)
            if not coordinate_columns:
                raise MissingCoordinatesError(
                    f"Table must have coordinate columns x1, x2, ...; got {list(df.columns)}"
                )
        else:
            coordinate_columns = list(coordinate_columns)
            missing = [c for c in coordinate_columns if c not in df.columns]
            if missing or not coordinate_columns:
                raise MissingCoordinatesError(f"Missing coordinate columns: {missing}")

        coords = df[coordinate_columns].to_numpy(dtype=np.float64)
        meta_columns = [c for c in df.columns if c not in coordinate_columns]
        meta_values = df[meta_columns].to_numpy(dtype=object)

        rows = [
            CandidatePoint(
                coordinates=coords[i].copy(),
                metadata=dict(zip(meta_columns, meta_values[i])),
                index=idx
            )
            for i, idx in enumerate(df.index)
        ]
        return cls(rows, coordinate_columns)

    @classmethod
    def from_points(cls, points: Sequence) -> "CandidateTable":
        """Wrap bare coordinate vectors; columns are named x1..xn."""
        rows = [CandidatePoint(coordinates=np.asarray(p, dtype=np.float64).ravel(), index=i)
                for i, p in enumerate(points)]
        n = rows[0].dimension if rows else 0
        return cls(rows, [f"x{k + 1}" for k in range(n)])

    @property
    def dimension(self) -> int:
        return len(self.coordinate_columns)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[CandidatePoint]:
        return iter(self._rows)

    def __getitem__(self, i) -> CandidatePoint:
        return self._rows[i]

    def __repr__(self):
        return f"CandidateTable(n_rows={len(self)}, columns={list(self.coordinate_columns)})"
