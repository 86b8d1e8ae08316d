"""
Unit tests for converting observations to PyTorch Geometric graphs.

Run with: pytest src/tests/test_datasets.py -v
"""

import pickle
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pytest
import torch
from torch_geometric.data import Batch

from data.datasets import BipartiteNodeData, GraphDataset, obs_to_graph
from observation.common import N_ROW_FEATURES, N_VARIABLE_FEATURES, VariableFeature
from observation.node_bipartite import NodeBipartiteObs
from observation.sparse import CooMatrix


def make_obs(n_columns=3, n_rows=2):
    obs = NodeBipartiteObs(
        variable_features=np.arange(n_columns * N_VARIABLE_FEATURES, dtype=np.float64).reshape(
            n_columns, N_VARIABLE_FEATURES
        ),
        row_features=np.ones((n_rows, N_ROW_FEATURES)),
        edge_features=CooMatrix(
            values=np.array([1.0, -1.0, 2.0]),
            indices=np.array([[0, 0, 1], [0, 2, 1]], dtype=np.int64),
            shape=(n_rows, n_columns),
        ),
    )
    obs.variable_features[:, VariableFeature.INCUMBENT_VALUE] = np.nan
    return obs.freeze()


class TestObsToGraph:
    """Test the observation to graph conversion"""

    def test_shapes(self):
        """Node and edge tensors follow the observation's shapes"""
        graph = obs_to_graph(make_obs())
        assert isinstance(graph, BipartiteNodeData)
        assert tuple(graph.variable_features.shape) == (3, N_VARIABLE_FEATURES)
        assert tuple(graph.constraint_features.shape) == (2, N_ROW_FEATURES)
        assert tuple(graph.edge_index.shape) == (2, 3)
        assert tuple(graph.edge_attr.shape) == (3, 1)
        assert graph.num_nodes == 5
        assert graph.edge_attr.squeeze(1).tolist() == [1.0, -1.0, 2.0]

    def test_dtypes(self):
        """Features are float32 and indices int64"""
        graph = obs_to_graph(make_obs())
        assert graph.variable_features.dtype == torch.float32
        assert graph.edge_attr.dtype == torch.float32
        assert graph.edge_index.dtype == torch.long

    def test_nan_replaced(self):
        """Missing incumbent values become zeros"""
        graph = obs_to_graph(make_obs())
        assert not torch.isnan(graph.variable_features).any()
        assert (graph.variable_features[:, VariableFeature.INCUMBENT_VALUE] == 0).all()

    def test_node_masks(self):
        """Constraint nodes come first, then variable nodes"""
        graph = obs_to_graph(make_obs())
        assert graph.is_constr_node.tolist() == [True, True, False, False, False]
        assert (graph.is_var_node == ~graph.is_constr_node).all()

    def test_candidates(self):
        """Branching candidates are stored with their count"""
        graph = obs_to_graph(make_obs(), np.array([0, 2]))
        assert graph.candidates.tolist() == [0, 2]
        assert graph.nb_candidates == 2

    def test_template_construction(self):
        """The graph can be built without arguments, as PyG batching requires"""
        BipartiteNodeData()


class TestBatching:
    """Test concatenating graphs"""

    def test_edge_index_offsets(self):
        """Edge indices of the second graph are shifted by the first graph's node counts"""
        batch = Batch.from_data_list([obs_to_graph(make_obs()), obs_to_graph(make_obs())])
        edge_index = batch.edge_index
        assert tuple(edge_index.shape) == (2, 6)
        assert edge_index[:, 3:].tolist() == [[2, 2, 3], [3, 5, 4]]

    def test_candidate_offsets(self):
        """Candidates of the second graph are shifted by the first graph's variable count"""
        graphs = [
            obs_to_graph(make_obs(), np.array([1])),
            obs_to_graph(make_obs(), np.array([0, 2])),
        ]
        batch = Batch.from_data_list(graphs)
        assert batch.candidates.tolist() == [1, 3, 5]


class TestGraphDataset:
    """Test loading recorded samples"""

    def test_get(self, tmp_path):
        """Samples written to disk load back as graphs"""
        path = tmp_path / "decision-00000.obs"
        with open(path, "wb") as f:
            pickle.dump({"obs": make_obs(), "candidates": np.array([1]), "decision": 0}, f)

        dataset = GraphDataset([path])
        assert len(dataset) == 1
        graph = dataset[0]
        assert graph.sample_path == str(path)
        assert graph.candidates.tolist() == [1]

    def test_bad_sample(self, tmp_path):
        """Files without an observation are rejected"""
        path = tmp_path / "bad.obs"
        with open(path, "wb") as f:
            pickle.dump({"something": "else"}, f)
        with pytest.raises(RuntimeError):
            GraphDataset([path])[0]
