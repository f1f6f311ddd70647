import types

import numpy as np
import onnxruntime as ort
import pytest

from nekotts.engine.model import OnnxModel, clear_model_cache, get_model


class _DummySession:
    def get_inputs(self):
        return [types.SimpleNamespace(name="input_ids"), types.SimpleNamespace(name="style")]

    def get_outputs(self):
        return [types.SimpleNamespace(name="waveform")]

    def run(self, output_names, feeds):
        self.feeds = feeds
        return [np.zeros(4, dtype=np.float32)]


def _capture_providers(monkeypatch, available):
    captured = {"sessions": 0}

    def fake_get_available_providers():
        return list(available)

    def fake_session(path, providers=None, sess_options=None):
        captured["providers"] = providers
        captured["sess_options"] = sess_options
        captured["sessions"] += 1
        return _DummySession()

    monkeypatch.setattr(ort, "get_available_providers", fake_get_available_providers)
    monkeypatch.setattr(ort, "InferenceSession", fake_session)
    return captured


def test_cuda_provider_used_when_available(monkeypatch, tmp_path):
    model_path = tmp_path / "model.onnx"
    model_path.write_bytes(b"dummy")
    captured = _capture_providers(monkeypatch, available=["CUDAExecutionProvider", "CPUExecutionProvider"])
    OnnxModel(model_path, device="cuda")
    assert captured["providers"][0] == "CUDAExecutionProvider"
    assert "CPUExecutionProvider" in captured["providers"]


def test_cuda_provider_falls_back(monkeypatch, tmp_path):
    model_path = tmp_path / "model.onnx"
    model_path.write_bytes(b"dummy")
    captured = _capture_providers(monkeypatch, available=["CPUExecutionProvider"])
    OnnxModel(model_path, device="cuda")
    assert captured["providers"] == ["CPUExecutionProvider"]


def test_coreml_provider_used_when_available(monkeypatch, tmp_path):
    model_path = tmp_path / "model.onnx"
    model_path.write_bytes(b"dummy")
    captured = _capture_providers(monkeypatch, available=["CoreMLExecutionProvider", "CPUExecutionProvider"])
    OnnxModel(model_path, device="coreml")
    assert captured["providers"] == ["CoreMLExecutionProvider", "CPUExecutionProvider"]


def test_thread_env_overrides_apply(monkeypatch, tmp_path):
    model_path = tmp_path / "model.onnx"
    model_path.write_bytes(b"dummy")
    monkeypatch.setenv("ORT_INTRA_OP_NUM_THREADS", "3")
    monkeypatch.setenv("ORT_INTER_OP_NUM_THREADS", "1")
    captured = _capture_providers(monkeypatch, available=["CPUExecutionProvider"])
    OnnxModel(model_path)
    assert captured["sess_options"].intra_op_num_threads == 3
    assert captured["sess_options"].inter_op_num_threads == 1


def test_missing_model_raises(tmp_path):
    with pytest.raises(FileNotFoundError, match="missing.onnx"):
        OnnxModel(tmp_path / "missing.onnx")


def test_run_filters_undeclared_inputs(monkeypatch, tmp_path):
    model_path = tmp_path / "model.onnx"
    model_path.write_bytes(b"dummy")
    _capture_providers(monkeypatch, available=["CPUExecutionProvider"])
    model = OnnxModel(model_path)
    outputs = model.run(
        {
            "input_ids": np.zeros((1, 3), dtype=np.int64),
            "style": np.zeros((1, 256), dtype=np.float32),
            "pitch": np.ones(1, dtype=np.float32),
        }
    )
    assert set(model.session.feeds) == {"input_ids", "style"}
    assert list(outputs) == ["waveform"]


def test_get_model_caches_by_path(monkeypatch, tmp_path):
    model_path = tmp_path / "model.onnx"
    model_path.write_bytes(b"dummy")
    captured = _capture_providers(monkeypatch, available=["CPUExecutionProvider"])
    clear_model_cache()
    try:
        first = get_model(model_path)
        second = get_model(str(model_path))
        assert first is second
        assert captured["sessions"] == 1
    finally:
        clear_model_cache()
