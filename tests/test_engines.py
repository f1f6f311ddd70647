import numpy as np
import pytest

from nekotts.engine.inference import ContextWindowEngine, SingleShotEngine, build_engine
from nekotts.engine.model import OnnxModel
from nekotts.errors import InferenceFailure, ModelUnavailable
from nekotts.voices import EngineFamily, VoiceStore


@pytest.fixture
def store():
    return VoiceStore.builtin()


def _engine(engine_class, session):
    return engine_class(OnnxModel(session=session))


def test_single_shot_tensor_layout(store, session_factory):
    session = session_factory()
    engine = _engine(SingleShotEngine, session)
    voice = store.require("expr-voice-2-f")
    waveform = engine.synthesize_chunk([5, 6, 7], voice, store, speed=1.5, pitch=1.2)

    feeds = session.calls[0]
    assert feeds["input_ids"].dtype == np.int64
    assert feeds["input_ids"].tolist() == [[5, 6, 7]]
    assert feeds["style"].shape == (1, 256)
    assert feeds["speed"].tolist() == pytest.approx([1.5])
    # The session does not declare pitch, so it is not sent.
    assert "pitch" not in feeds
    assert waveform.dtype == np.float32
    assert waveform.ndim == 1
    assert engine.applies_speed_in_model is True


def test_single_shot_sends_pitch_when_declared(store, session_factory):
    session = session_factory(input_names=("input_ids", "style", "speed", "pitch"))
    engine = _engine(SingleShotEngine, session)
    engine.synthesize_chunk([1, 2], store.require("expr-voice-2-m"), store, pitch=0.8)
    assert session.calls[0]["pitch"].tolist() == pytest.approx([0.8])


def test_context_window_tensor_layout(store, session_factory):
    session = session_factory()
    engine = _engine(ContextWindowEngine, session)
    voice = store.require("af_heart")
    engine.synthesize_chunk([9, 8, 7], voice, store, speed=2.0)

    feeds = session.calls[0]
    assert feeds["input_ids"].tolist() == [[0, 9, 8, 7, 0]]
    assert feeds["style"].shape == (510, 1, 256)
    assert feeds["style"].dtype == np.float32
    np.testing.assert_array_equal(feeds["style"][0, 0], voice.embedding[768:1024])
    np.testing.assert_array_equal(feeds["style"][509, 0], voice.embedding[768:1024])
    assert feeds["speed"].tolist() == [1.0]
    assert engine.applies_speed_in_model is False


def test_token_input_is_renamed_for_tokens_exports(store, session_factory):
    session = session_factory(input_names=("tokens", "style", "speed"))
    engine = _engine(ContextWindowEngine, session)
    engine.synthesize_chunk([3], store.require("af_bella"), store)
    assert "tokens" in session.calls[0]
    assert "input_ids" not in session.calls[0]


def test_context_limits(store, session_factory):
    family_b = _engine(ContextWindowEngine, session_factory())
    with pytest.raises(InferenceFailure):
        family_b.synthesize_chunk([1] * 511, store.require("af_heart"), store)
    family_b.synthesize_chunk([1] * 510, store.require("af_heart"), store)

    family_a = _engine(SingleShotEngine, session_factory())
    assert family_a.max_chunk_tokens == 256
    family_a.synthesize_chunk([1] * 256, store.require("expr-voice-4-f"), store)
    with pytest.raises(InferenceFailure):
        family_a.synthesize_chunk([1] * 257, store.require("expr-voice-4-f"), store)


def test_empty_chunk_is_rejected(store, session_factory):
    engine = _engine(SingleShotEngine, session_factory())
    with pytest.raises(InferenceFailure):
        engine.synthesize_chunk([], store.require("expr-voice-2-f"), store)


def test_session_errors_become_inference_failures(store, session_factory):
    session = session_factory(errors=[RuntimeError("bad graph")])
    engine = _engine(ContextWindowEngine, session)
    with pytest.raises(InferenceFailure) as excinfo:
        engine.synthesize_chunk([1, 2], store.require("af_heart"), store)
    assert "bad graph" in excinfo.value.detail


def test_missing_model_is_unavailable(store):
    engine = SingleShotEngine(None)
    assert engine.is_available is False
    with pytest.raises(ModelUnavailable):
        engine.synthesize_chunk([1], store.require("expr-voice-2-f"), store)


@pytest.mark.parametrize(
    "output",
    [
        np.zeros(10, dtype=np.float64),
        np.zeros((2, 10), dtype=np.float32),
        np.zeros(0, dtype=np.float32),
        np.array([0.1, np.nan], dtype=np.float32),
        [0.1, 0.2],
    ],
)
def test_invalid_waveforms_are_rejected(store, session_factory, output):
    engine = _engine(SingleShotEngine, session_factory(outputs=[output]))
    with pytest.raises(InferenceFailure):
        engine.synthesize_chunk([1], store.require("expr-voice-2-f"), store)


def test_batched_waveform_is_flattened(store, session_factory):
    output = np.full((1, 32), 0.25, dtype=np.float32)
    engine = _engine(SingleShotEngine, session_factory(output_names=("audio",), outputs=[output]))
    waveform = engine.synthesize_chunk([1], store.require("expr-voice-2-f"), store)
    assert waveform.shape == (32,)
    # The engine returns its own copy.
    waveform[0] = 1.0
    assert output[0, 0] == pytest.approx(0.25)


def test_named_waveform_output_is_preferred(store, session_factory):
    durations = np.array([4.0], dtype=np.float32)
    waveform = np.full(16, 0.1, dtype=np.float32)
    session = session_factory(output_names=("durations", "waveform"), outputs=[durations, waveform])
    engine = _engine(ContextWindowEngine, session)
    result = engine.synthesize_chunk([1], store.require("af_heart"), store)
    assert result.shape == (16,)


def test_build_engine_variants(tmp_path, session_factory):
    assert build_engine("A").is_available is False
    assert build_engine(EngineFamily.B, tmp_path / "missing.onnx").is_available is False

    broken = tmp_path / "broken.onnx"
    broken.write_bytes(b"not a model")
    assert build_engine("kokoro", broken).is_available is False

    engine = build_engine("B", session=session_factory())
    assert isinstance(engine, ContextWindowEngine)
    assert engine.is_available is True
    assert engine.max_chunk_tokens == 510
    assert engine.sample_rate == 24000
    assert build_engine("A").sample_rate == 22050
