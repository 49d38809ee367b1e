"""
Directed distances between connected segments of a river network.

The distance table is read with one row per "from" segment and one column per
"to" segment. Each cell holds a signed distance in meters: a positive value
means the "to" segment is downstream of the "from" segment, a negative value
means it is upstream. Non-finite cells (Inf, NaN or text that does not parse
as a number) mark segment pairs that are not connected by flow.

Neighbors of a segment S are read from the column of S, i.e. the distances
d(X, S) from every other segment X to S:

- d(X, S) > 0 means S lies downstream of X, so X is upstream of S,
- d(X, S) < 0 means X is downstream of S.

Only connected pairs are kept, in a scipy sparse matrix, so that large
networks do not need a dense in-memory table once loaded.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Union

import numpy as np
import pandas as pd
from scipy import sparse

from ..config import DISTANCE_FROM_COL
from ..exceptions import check_columns, check_neighbors

logger = logging.getLogger(__name__)


class ReachDistanceMatrix:
    """Sparse signed-distance lookup between segments of a river network."""

    def __init__(self, segment_ids: Iterable, distances: sparse.spmatrix):
        """
        Args:
            segment_ids: Segment identifiers labelling both the rows and the
                columns of `distances`
            distances: Square sparse matrix of signed distances (m), rows
                "from" and columns "to". Stored entries, zeros included, are
                connected pairs; absent entries are unconnected.
        """
        self.segment_ids: List[str] = [str(s) for s in segment_ids]
        self._distances = sparse.csr_matrix(distances)
        # Row i holds d(X, segment i) for every X
        self._distances_to = self._distances.transpose().tocsr()
        n = len(self.segment_ids)
        if self._distances.shape != (n, n):
            raise ValueError(f"Distance matrix shape {self._distances.shape} does not "
                             f"match {n} segment identifiers")
        self._position: Dict[str, int] = {seg: i for i, seg in enumerate(self.segment_ids)}
        if len(self._position) != n:
            raise ValueError("Segment identifiers in the distance matrix must be unique")

    @classmethod
    def from_dataframe(
        cls,
        reach_distances: pd.DataFrame,
        from_col: str = DISTANCE_FROM_COL
    ) -> "ReachDistanceMatrix":
        """
        Build the matrix from a wide table of distances.

        Args:
            reach_distances: Table with a `from_col` column of segment
                identifiers and one column per target segment
            from_col: Name of the column with the "from" identifiers

        Returns:
            ReachDistanceMatrix covering every identifier found in the rows
            or the columns of the table
        """
        check_columns(reach_distances.columns, [from_col], "reach distance data")

        row_ids = reach_distances[from_col].astype(str).tolist()
        col_ids = [str(c) for c in reach_distances.columns if c != from_col]

        duplicated_rows = sorted(pd.Index(row_ids)[pd.Index(row_ids).duplicated()].unique())
        if duplicated_rows:
            raise ValueError(f"Duplicate '{from_col}' segments in reach distance data: {duplicated_rows}")
        duplicated_cols = sorted(pd.Index(col_ids)[pd.Index(col_ids).duplicated()].unique())
        if duplicated_cols:
            raise ValueError(f"Duplicate target segment columns in reach distance data: {duplicated_cols}")

        segment_ids = list(dict.fromkeys(row_ids + col_ids))
        position = {seg: i for i, seg in enumerate(segment_ids)}

        values = (reach_distances.drop(columns=from_col)
                  .apply(pd.to_numeric, errors='coerce')
                  .to_numpy(dtype=float))
        rows, cols = np.nonzero(np.isfinite(values))

        row_index = np.array([position[s] for s in row_ids], dtype=int)
        col_index = np.array([position[s] for s in col_ids], dtype=int)
        n = len(segment_ids)
        matrix = sparse.coo_matrix(
            (values[rows, cols], (row_index[rows], col_index[cols])),
            shape=(n, n)
        )

        logger.info(f"Loaded distances among {n} segments "
                    f"({len(rows)} connected pairs)")
        return cls(segment_ids, matrix)

    @classmethod
    def from_csv(cls, filepath: Union[str, Path], from_col: str = DISTANCE_FROM_COL) -> "ReachDistanceMatrix":
        """Read a wide distance table from CSV."""
        logger.info(f"Loading reach distances from {filepath}")
        df = pd.read_csv(filepath, dtype={from_col: str})
        return cls.from_dataframe(df, from_col=from_col)

    def __len__(self) -> int:
        return len(self.segment_ids)

    def __contains__(self, segment_id) -> bool:
        return str(segment_id) in self._position

    def transpose(self) -> "ReachDistanceMatrix":
        """Swap "from" and "to", e.g. for tables stored with the opposite orientation."""
        return ReachDistanceMatrix(self.segment_ids, self._distances.transpose())

    def neighbors(self, segment_id) -> pd.Series:
        """
        Signed distances d(X, segment_id) from every segment X connected to `segment_id`.

        The segment itself is not included. Unknown segments have no neighbors.

        Returns:
            Series of distances (m) indexed by neighboring segment identifier
        """
        i = self._position.get(str(segment_id))
        if i is None:
            return pd.Series(dtype=float)

        start, end = self._distances_to.indptr[i], self._distances_to.indptr[i + 1]
        cols = self._distances_to.indices[start:end]
        data = self._distances_to.data[start:end]
        keep = cols != i
        return pd.Series(
            data[keep],
            index=pd.Index([self.segment_ids[c] for c in cols[keep]], dtype=object),
            dtype=float
        )

    def candidates(self, segment_id, neighbors: str = "upstream") -> pd.Series:
        """
        Connected segments in the requested direction, nearest first.

        Args:
            segment_id: Segment whose column is read
            neighbors: "upstream" (positive distances, ascending),
                "downstream" (negative distances, descending) or
                "nearest" (any sign, ascending absolute distance)

        Returns:
            Series of signed distances indexed by neighboring segment identifier.
            Equal distances are ordered by neighbor identifier.
        """
        check_neighbors(neighbors)
        row = self.neighbors(segment_id)

        if neighbors == "upstream":
            row = row[row > 0]
            sort_key = row.to_numpy()
        elif neighbors == "downstream":
            row = row[row < 0]
            sort_key = -row.to_numpy()
        else:
            sort_key = np.abs(row.to_numpy())

        order = np.lexsort((row.index.to_numpy(dtype=str), sort_key))
        return row.iloc[order]
