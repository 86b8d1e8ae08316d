from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import torch
import torch_geometric

from data.collectors import load_sample
from observation.node_bipartite import NodeBipartiteObs


class BipartiteNodeData(torch_geometric.data.Data):
    """
    Node‑bipartite graph for MILP problems.
    This class encodes a node bipartite graph observation as returned by
    `observation.node_bipartite.NodeBipartite` in a format understood by the
    pytorch geometric data handlers.
    Must support zero‑arg construction so that PyG's Batch can create
    a template object internally.
    """

    def __init__(
        self,
        constraint_features: Optional[torch.Tensor] = None,
        edge_indices: Optional[torch.Tensor] = None,
        edge_features: Optional[torch.Tensor] = None,
        variable_features: Optional[torch.Tensor] = None,
        candidates: Optional[torch.Tensor] = None,
    ):
        super().__init__()

        # allow empty init (template object)
        if constraint_features is None:
            return

        self.constraint_features = constraint_features
        self.edge_index = edge_indices
        self.edge_attr = edge_features
        self.variable_features = variable_features
        if candidates is not None:
            self.candidates = candidates
            self.nb_candidates = int(candidates.numel())

        m = constraint_features.size(0)
        n = variable_features.size(0)

        self.is_var_node = torch.cat(
            [torch.zeros(m, dtype=torch.bool), torch.ones(n, dtype=torch.bool)]
        )

        self.is_constr_node = ~self.is_var_node

    def __inc__(self, key, value, store, *args, **kwargs):
        """
        We overload the pytorch geometric method that tells how to increment indices when concatenating graphs
        for those entries (edge index, candidates) for which this is not obvious.
        """
        if key == "edge_index":
            return torch.tensor(
                [[self.constraint_features.size(0)], [self.variable_features.size(0)]]
            )
        elif key == "candidates":
            return self.variable_features.size(0)
        else:
            return super().__inc__(key, value, *args, **kwargs)

    def __str__(self):
        return (
            f"BipartiteNodeData(num_constraint_nodes={self.constraint_features.size(0)}, "
            f"num_variable_nodes={self.variable_features.size(0)}, "
            f"num_edges={self.edge_index.size(1)})"
        )


def obs_to_graph(
    obs: NodeBipartiteObs, candidates: Optional[np.ndarray] = None
) -> BipartiteNodeData:
    # NaN marks "no incumbent yet"; the policy networks need finite inputs
    variable_features = torch.as_tensor(
        np.nan_to_num(obs.variable_features, nan=0.0), dtype=torch.float32
    )
    constraint_features = torch.as_tensor(np.array(obs.row_features), dtype=torch.float32)
    edges = obs.edge_features

    graph = BipartiteNodeData(
        constraint_features=constraint_features,
        edge_indices=torch.as_tensor(np.array(edges.indices), dtype=torch.long),
        edge_features=torch.as_tensor(np.array(edges.values), dtype=torch.float32).unsqueeze(1),
        variable_features=variable_features,
        candidates=(
            torch.as_tensor(candidates, dtype=torch.long) if candidates is not None else None
        ),
    )
    graph.num_nodes = constraint_features.size(0) + variable_features.size(0)
    return graph


class GraphDataset(torch_geometric.data.Dataset):
    """
    This class encodes a collection of recorded observations, as well as a method to load them from the disk.
    It can be used in turn by the data loaders provided by pytorch geometric.
    """

    def __init__(self, sample_files: List[Union[str, Path]]):
        super().__init__(root=None, transform=None, pre_transform=None)
        self.sample_files = sample_files

    def len(self):
        return len(self.sample_files)

    def get(self, index: int):
        sample = load_sample(self.sample_files[index])
        graph = obs_to_graph(sample["obs"], sample.get("candidates"))
        graph.sample_path = str(self.sample_files[index])
        return graph
