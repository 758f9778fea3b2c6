"""Tests for the feed-forward scorer and its adapter."""

import json

import numpy as np
import pytest

from autentica.errors import ModelUnavailableError
from autentica.inference import (
    FeedForwardNetwork,
    InferenceAdapter,
    get_adapter,
    load_network,
)


def _constant_network(input_size, bias):
    """Zero weights, so the output is sigmoid(bias) for any input."""
    return FeedForwardNetwork([
        (np.zeros((1, input_size)), np.array([bias])),
    ])


class TestFeedForwardNetwork:
    def test_zero_network_outputs_half(self):
        net = _constant_network(3, 0.0)
        assert net.activate([0.1, 0.2, 0.3]) == pytest.approx(0.5)

    def test_layer_sizes(self):
        net = FeedForwardNetwork.untrained(10, 7)
        assert net.layer_sizes == [10, 7, 1]
        assert net.input_size == 10

    def test_untrained_is_deterministic(self):
        a = FeedForwardNetwork.untrained(10, 5)
        b = FeedForwardNetwork.untrained(10, 5)
        vec = [0.3] * 10
        assert a.activate(vec) == b.activate(vec)

    def test_output_in_unit_interval(self):
        net = FeedForwardNetwork.untrained(10, 5)
        rng = np.random.default_rng(2)
        for _ in range(20):
            out = net.activate(rng.random(10))
            assert 0.0 <= out <= 1.0

    def test_wrong_arity(self):
        with pytest.raises(ValueError):
            FeedForwardNetwork.untrained(10, 5).activate([0.5] * 9)

    def test_rejects_multiple_outputs(self):
        with pytest.raises(ValueError):
            FeedForwardNetwork([(np.zeros((2, 3)), np.zeros(2))])

    def test_rejects_unchained_layers(self):
        with pytest.raises(ValueError):
            FeedForwardNetwork([
                (np.zeros((4, 3)), np.zeros(4)),
                (np.zeros((1, 5)), np.zeros(1)),
            ])

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError):
            FeedForwardNetwork([(np.array([[np.nan]]), np.zeros(1))])

    def test_parameters_read_only(self):
        net = FeedForwardNetwork.untrained(3, 2)
        weights, _ = net._layers[0]
        with pytest.raises(ValueError):
            weights[0, 0] = 1.0

    def test_save_and_load(self, tmp_path):
        net = FeedForwardNetwork.untrained(4, 3, seed=9)
        path = tmp_path / "net.json"
        net.save(path)
        loaded = load_network(path, 4)
        assert loaded.activate([0.2, 0.4, 0.6, 0.8]) == pytest.approx(
            net.activate([0.2, 0.4, 0.6, 0.8])
        )


class TestLoadNetwork:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ModelUnavailableError):
            load_network(tmp_path / "absent.json", 10)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("")
        with pytest.raises(ModelUnavailableError):
            load_network(path, 10)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ModelUnavailableError):
            load_network(path, 10)

    def test_deeply_nested_json(self, tmp_path):
        path = tmp_path / "nested.json"
        path.write_text("[" * 100000)
        with pytest.raises(ModelUnavailableError):
            load_network(path, 10)

    def test_missing_layers_key(self, tmp_path):
        path = tmp_path / "nolayers.json"
        path.write_text(json.dumps({"input_size": 10}))
        with pytest.raises(ModelUnavailableError):
            load_network(path, 10)

    def test_arity_mismatch(self, tmp_path):
        path = tmp_path / "small.json"
        FeedForwardNetwork.untrained(4, 3).save(path)
        with pytest.raises(ModelUnavailableError):
            load_network(path, 10)

    def test_declared_input_size_mismatch(self, tmp_path):
        data = _constant_network(3, 0.0).to_dict()
        data["input_size"] = 5
        path = tmp_path / "declared.json"
        path.write_text(json.dumps(data))
        with pytest.raises(ModelUnavailableError):
            load_network(path, 3)


class TestInferenceAdapter:
    def test_loaded_weights(self, tmp_path):
        path = tmp_path / "w.json"
        _constant_network(10, 0.0).save(path)
        adapter = InferenceAdapter(path, 10)
        assert adapter.model_loaded is True
        assert adapter.load_error is None
        assert adapter.predict([0.5] * 10) == (pytest.approx(0.5), None)

    def test_missing_weights_fall_back(self, tmp_path):
        adapter = InferenceAdapter(tmp_path / "absent.json", 10)
        assert adapter.model_loaded is False
        assert "absent.json" in adapter.load_error
        assert adapter.network.layer_sizes == [10, 5, 1]
        assert 0.0 <= adapter.infer([0.5] * 10) <= 1.0

    def test_corrupt_weights_fall_back(self, tmp_path):
        path = tmp_path / "corrupt.json"
        path.write_text('{"layers": [{"weights": "oops"}]}')
        adapter = InferenceAdapter(path, 10, fallback_hidden=7)
        assert adapter.model_loaded is False
        assert adapter.network.layer_sizes == [10, 7, 1]
        assert 0.0 <= adapter.infer([0.1] * 10) <= 1.0

    def test_deeply_nested_weights_fall_back(self, tmp_path):
        path = tmp_path / "nested.json"
        path.write_text("[" * 100000)
        adapter = InferenceAdapter(path, 10)
        assert adapter.model_loaded is False
        assert adapter.load_error
        assert 0.0 <= adapter.infer([0.5] * 10) <= 1.0

    def test_no_path(self):
        adapter = InferenceAdapter(None, 10)
        assert adapter.model_loaded is False
        assert adapter.weights_path is None

    def test_arity_failure_returns_sentinel(self):
        adapter = InferenceAdapter(None, 10)
        output, error = adapter.predict([0.5] * 3)
        assert output == 0.0
        assert error.startswith("Inference failed")

    def test_fallback_is_reproducible(self, tmp_path):
        a = InferenceAdapter(tmp_path / "x.json", 10)
        b = InferenceAdapter(tmp_path / "y.json", 10)
        vec = [0.2, 0.9, 0.4, 0.4, 0.1, 0.0, 1.0, 0.5, 0.5, 0.3]
        assert a.infer(vec) == b.infer(vec)


class TestAdapterRegistry:
    def test_same_key_same_instance(self, tmp_path):
        path = tmp_path / "w.json"
        assert get_adapter(path, 10) is get_adapter(path, 10)

    def test_different_arity_different_instance(self, tmp_path):
        path = tmp_path / "w.json"
        assert get_adapter(path, 10) is not get_adapter(path, 5)
