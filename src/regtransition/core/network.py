"""
Labelled matrix containers for regulatory transition analysis.

Three data structures flow through the package:

1. ScoredNetwork: a bipartite regulator-target network for one condition,
   stored as a targets x regulators matrix of real-valued edge scores.
2. TransitionMatrix: a square regulator x regulator matrix describing how
   each regulator's targeting pattern in state 1 maps onto state 2.
3. NullEnsemble: an ordered, read-only collection of TransitionMatrix
   instances computed under permuted condition labels.

Biological Context:
    Networks come from an upstream inference step (e.g. motif priors
    combined with condition-specific co-expression). Rows are target genes,
    columns are candidate regulators (transcription factors). The transition
    matrix compares two such networks, so both must be scored over the same
    regulator axis (or, for a target-level comparison, the same target axis).

Engineering Design:
    - Immutable: data is copied on construction and exposed read-only
    - Validated: constructors reject non-numeric, non-finite and mislabelled input
    - Pandas for labels, NumPy for the algebra

Examples:
    >>> import numpy as np
    >>> from regtransition.core.network import ScoredNetwork
    >>>
    >>> net = ScoredNetwork.from_array(
    ...     np.array([[0.1, 0.9], [0.4, 0.2], [0.7, 0.3]]),
    ...     targets=["YAL001C", "YAL002W", "YAL003W"],
    ...     regulators=["ABF1", "REB1"],
    ... )
    >>> net.n_regulators
    2
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from regtransition.core.errors import InvalidInputError

__all__ = [
    'ScoredNetwork',
    'TransitionMatrix',
    'NullEnsemble',
    'coerce_network',
]


def _readonly(values: np.ndarray) -> np.ndarray:
    arr = np.array(values, dtype=np.float64, copy=True)
    arr.flags.writeable = False
    return arr


def _check_labels(labels: pd.Index, axis_name: str, owner: str) -> None:
    if labels.has_duplicates:
        dupes = labels[labels.duplicated()].unique().tolist()
        raise InvalidInputError(
            f"{owner} has duplicated {axis_name} labels: {dupes[:5]}"
        )


class ScoredNetwork:
    """
    Immutable targets x regulators matrix of edge scores for one condition.

    Attributes:
        scores: DataFrame copy of the scores (index = targets, columns = regulators)
        targets: Row labels
        regulators: Column labels
        values: Read-only float64 array of the scores

    Shape Invariants:
        - scores is 2-D with at least one target and one regulator
        - every entry is a finite number
        - target and regulator labels are unique
    """

    def __init__(self, scores: pd.DataFrame):
        """
        Initialize ScoredNetwork with validation.

        Args:
            scores: DataFrame with targets as index and regulators as columns.

        Raises:
            InvalidInputError: If scores is not a DataFrame, is empty, holds
                non-numeric columns, contains missing/non-finite values, or
                has duplicated labels.
        """
        if not isinstance(scores, pd.DataFrame):
            raise InvalidInputError(
                f"scores must be pd.DataFrame, got {type(scores).__name__}"
            )
        if scores.shape[0] == 0 or scores.shape[1] == 0:
            raise InvalidInputError(f"network must not be empty, got shape {scores.shape}")

        non_numeric = [
            col for col, dtype in scores.dtypes.items()
            if not pd.api.types.is_numeric_dtype(dtype) or pd.api.types.is_bool_dtype(dtype)
        ]
        if non_numeric:
            raise InvalidInputError(
                f"network scores must be numeric; non-numeric regulators: {non_numeric[:5]}"
            )

        _check_labels(scores.index, "target", "network")
        _check_labels(scores.columns, "regulator", "network")

        values = scores.to_numpy(dtype=np.float64, copy=True)
        if not np.all(np.isfinite(values)):
            n_bad = int(np.sum(~np.isfinite(values)))
            raise InvalidInputError(
                f"network contains {n_bad} missing or non-finite scores"
            )

        self._values = _readonly(values)
        self._targets = scores.index.copy()
        self._regulators = scores.columns.copy()

    @classmethod
    def from_array(
        cls,
        values: NDArray[np.float64],
        targets: Sequence | None = None,
        regulators: Sequence | None = None,
    ) -> ScoredNetwork:
        """Build a network from a 2-D array, defaulting labels to positions."""
        arr = np.asarray(values)
        if arr.ndim != 2:
            raise InvalidInputError(f"network must be 2-D, got shape {arr.shape}")
        if not np.issubdtype(arr.dtype, np.number) or arr.dtype == np.bool_:
            raise InvalidInputError(f"network must be numeric, got dtype {arr.dtype}")
        return cls(pd.DataFrame(arr, index=targets, columns=regulators))

    @property
    def values(self) -> np.ndarray:
        """Read-only score matrix (targets x regulators)."""
        return self._values

    @property
    def targets(self) -> pd.Index:
        return self._targets

    @property
    def regulators(self) -> pd.Index:
        return self._regulators

    @property
    def scores(self) -> pd.DataFrame:
        """Copy of the scores as a labelled DataFrame."""
        return pd.DataFrame(
            np.array(self._values), index=self._targets, columns=self._regulators
        )

    @property
    def shape(self) -> tuple[int, int]:
        return self._values.shape

    @property
    def n_targets(self) -> int:
        return self._values.shape[0]

    @property
    def n_regulators(self) -> int:
        return self._values.shape[1]

    def oriented(self, by_regulator: bool = True) -> tuple[np.ndarray, pd.Index]:
        """
        Working matrix for transition estimation.

        The comparison axis always ends up as the columns of the returned
        matrix, so the transition matrix is indexed by those column labels.

        Args:
            by_regulator: If True, regulators are the columns (targets x
                regulators, the stored orientation). If False, the matrix is
                transposed so targets are the columns.

        Returns:
            (matrix, column_labels) where matrix is a fresh float64 array.
        """
        if by_regulator:
            return np.array(self._values), self._regulators
        return np.array(self._values.T), self._targets

    def __repr__(self) -> str:
        return (
            f"ScoredNetwork(n_targets={self.n_targets}, "
            f"n_regulators={self.n_regulators})"
        )


def coerce_network(network: object, name: str = "network") -> ScoredNetwork:
    """
    Accept a ScoredNetwork, DataFrame or 2-D ndarray and return a ScoredNetwork.

    Raises:
        InvalidInputError: For any other input type.
    """
    if isinstance(network, ScoredNetwork):
        return network
    if isinstance(network, pd.DataFrame):
        return ScoredNetwork(network)
    if isinstance(network, np.ndarray):
        return ScoredNetwork.from_array(network)
    raise InvalidInputError(
        f"{name} must be a ScoredNetwork, DataFrame or 2-D ndarray, "
        f"got {type(network).__name__}"
    )


class TransitionMatrix:
    """
    Square regulator x regulator matrix with identical row and column labels.

    Entry (i, j) quantifies the contribution of regulator i's state-1
    targeting pattern to regulator j's state-2 pattern.

    Non-finite entries are allowed: degenerate estimation problems (e.g. a
    singular state-2 network in the pseudoinverse method) propagate as
    inf/nan rather than being masked.
    """

    def __init__(self, values: NDArray[np.float64], labels: Iterable):
        arr = np.asarray(values, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
            raise InvalidInputError(
                f"transition matrix must be square, got shape {arr.shape}"
            )
        labels = pd.Index(labels)
        if len(labels) != arr.shape[0]:
            raise InvalidInputError(
                f"labels length ({len(labels)}) must match matrix size ({arr.shape[0]})"
            )
        _check_labels(labels, "regulator", "transition matrix")

        self._values = _readonly(arr)
        self._labels = labels.copy()

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> TransitionMatrix:
        """Build from a DataFrame whose index and columns are identical."""
        if not frame.index.equals(frame.columns):
            raise InvalidInputError(
                "transition matrix rows and columns must carry identical labels"
            )
        return cls(frame.to_numpy(dtype=np.float64), frame.index)

    @classmethod
    def coerce(cls, matrix: object) -> TransitionMatrix:
        """Accept a TransitionMatrix, square DataFrame or square ndarray."""
        if isinstance(matrix, TransitionMatrix):
            return matrix
        if isinstance(matrix, pd.DataFrame):
            return cls.from_frame(matrix)
        if isinstance(matrix, np.ndarray):
            return cls(matrix, pd.RangeIndex(matrix.shape[0]) if matrix.ndim == 2 else [])
        raise InvalidInputError(
            f"expected a transition matrix, got {type(matrix).__name__}"
        )

    @property
    def values(self) -> np.ndarray:
        """Read-only matrix values."""
        return self._values

    @property
    def labels(self) -> pd.Index:
        """Shared row/column labels."""
        return self._labels

    @property
    def shape(self) -> tuple[int, int]:
        return self._values.shape

    @property
    def n_regulators(self) -> int:
        return self._values.shape[0]

    @property
    def diagonal_is_zero(self) -> bool:
        return bool(np.all(np.diag(self._values) == 0.0))

    def row_ssodm(self) -> pd.Series:
        """Squared L2 norm of every row (outgoing transition mass)."""
        return pd.Series(np.sum(self._values ** 2, axis=1), index=self._labels)

    def column_ssodm(self) -> pd.Series:
        """Squared L2 norm of every column (incoming transition mass)."""
        return pd.Series(np.sum(self._values ** 2, axis=0), index=self._labels)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            np.array(self._values), index=self._labels, columns=self._labels
        )

    def same_labels(self, other: TransitionMatrix) -> bool:
        return self.shape == other.shape and self._labels.equals(other.labels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransitionMatrix):
            return NotImplemented
        return self.same_labels(other) and np.array_equal(
            self._values, other.values, equal_nan=True
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"TransitionMatrix(n_regulators={self.n_regulators})"


class NullEnsemble:
    """
    Ordered, read-only sequence of null transition matrices.

    All members share one label set and dimension. The ensemble is built by
    an upstream permutation procedure; this class only validates and reads it.
    """

    def __init__(self, matrices: Iterable[object]):
        members = tuple(TransitionMatrix.coerce(m) for m in matrices)
        if not members:
            raise InvalidInputError("null ensemble must contain at least one matrix")

        reference = members[0]
        for idx, member in enumerate(members[1:], start=1):
            if not member.same_labels(reference):
                raise InvalidInputError(
                    f"null matrix {idx} does not share the labels/shape of null matrix 0"
                )
        self._members = members

    @classmethod
    def coerce(cls, ensemble: object) -> NullEnsemble:
        if isinstance(ensemble, NullEnsemble):
            return ensemble
        if isinstance(ensemble, (TransitionMatrix, pd.DataFrame, np.ndarray)):
            raise InvalidInputError(
                "null ensemble must be a sequence of matrices, not a single matrix"
            )
        return cls(ensemble)

    @property
    def labels(self) -> pd.Index:
        return self._members[0].labels

    @property
    def n_permutations(self) -> int:
        return len(self._members)

    def validate_against(self, observed: TransitionMatrix) -> None:
        """
        Check that the ensemble matches the observed matrix.

        Raises:
            InvalidInputError: If labels or dimension differ.
        """
        if not self._members[0].same_labels(observed):
            raise InvalidInputError(
                f"null ensemble labels/shape {self._members[0].shape} do not match "
                f"observed transition matrix {observed.shape}"
            )

    def stack(self) -> np.ndarray:
        """Stacked values with shape (n_permutations, n_regulators, n_regulators)."""
        return np.stack([m.values for m in self._members])

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[TransitionMatrix]:
        return iter(self._members)

    def __getitem__(self, idx: int) -> TransitionMatrix:
        return self._members[idx]

    def __repr__(self) -> str:
        return (
            f"NullEnsemble(n_permutations={self.n_permutations}, "
            f"n_regulators={self._members[0].n_regulators})"
        )
