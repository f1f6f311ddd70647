import numpy as np
import pytest

from nekotts.engine.fallback import SyntheticFallbackGenerator
from nekotts.voices import VoiceStore


@pytest.fixture
def embedding():
    return VoiceStore.builtin().get("af_heart").embedding


def test_short_text_gets_minimum_duration(embedding):
    audio = SyntheticFallbackGenerator().generate_for_text("Test", embedding, 24000)
    assert audio.size >= 24000
    assert audio.dtype == np.float32
    assert np.all(np.abs(audio) <= 1.0)
    assert np.max(np.abs(audio)) > 0.0


def test_duration_is_capped():
    assert SyntheticFallbackGenerator.duration_for(5000) == pytest.approx(10.0)
    assert SyntheticFallbackGenerator.duration_for(25) == pytest.approx(2.5)
    assert SyntheticFallbackGenerator.duration_for(0) == pytest.approx(1.0)


def test_output_is_deterministic(embedding):
    first = SyntheticFallbackGenerator(seed=7).generate(30, embedding, 22050)
    second = SyntheticFallbackGenerator(seed=7).generate(30, embedding, 22050)
    np.testing.assert_array_equal(first, second)


def test_fundamental_is_clamped():
    high = np.full(256, 10.0, dtype=np.float32)
    low = np.full(256, -10.0, dtype=np.float32)
    assert SyntheticFallbackGenerator.fundamental_for(high) == pytest.approx(300.0)
    assert SyntheticFallbackGenerator.fundamental_for(low) == pytest.approx(80.0)
    assert SyntheticFallbackGenerator.fundamental_for(None) == pytest.approx(150.0)
    assert SyntheticFallbackGenerator.fundamental_for(None, pitch=1.5) == pytest.approx(225.0)


def test_envelope_starts_and_ends_quietly(embedding):
    audio = SyntheticFallbackGenerator().generate(10, embedding, 16000)
    assert abs(audio[0]) < 0.01
    assert np.max(np.abs(audio[-10:])) < 0.05


def test_invalid_sample_rate():
    with pytest.raises(ValueError):
        SyntheticFallbackGenerator().generate(10, None, 0)
