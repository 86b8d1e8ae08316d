from dataclasses import dataclass
from typing import Tuple

import numpy as np
import torch


@dataclass
class CooMatrix:
    """
    Sparse matrix in coordinate format.
    indices[0] holds row indices, indices[1] column indices, one per value.
    """

    values: np.ndarray  # (nnz,)
    indices: np.ndarray  # (2, nnz) int64
    shape: Tuple[int, int]

    @classmethod
    def empty(cls, shape: Tuple[int, int]) -> "CooMatrix":
        return cls(
            values=np.zeros(0, dtype=np.float64),
            indices=np.zeros((2, 0), dtype=np.int64),
            shape=shape,
        )

    @property
    def nnz(self) -> int:
        return int(self.values.shape[0])

    def to_dense(self) -> np.ndarray:
        dense = np.zeros(self.shape, dtype=self.values.dtype)
        # duplicates are summed, as in any COO format
        np.add.at(dense, (self.indices[0], self.indices[1]), self.values)
        return dense

    def to_torch(self) -> torch.Tensor:
        return torch.sparse_coo_tensor(
            indices=torch.as_tensor(self.indices, dtype=torch.long),
            values=torch.as_tensor(self.values, dtype=torch.float32),
            size=self.shape,
        ).coalesce()
