import dataclasses
import os
import types

import numpy as np
import pytest

from nekotts.config import Settings
from nekotts.engine.inference import ContextWindowEngine, SingleShotEngine
from nekotts.engine.model import OnnxModel
from nekotts.pipeline import build_context
from nekotts.voices.catalog import EngineFamily
from nekotts.voices.store import VoiceStore


class FakeSession:
    """Stands in for an onnxruntime InferenceSession."""

    def __init__(
        self,
        input_names=("input_ids", "style", "speed"),
        output_names=("waveform",),
        outputs=None,
        errors=None,
        gate=None,
    ):
        self._inputs = [types.SimpleNamespace(name=name) for name in input_names]
        self._outputs = [types.SimpleNamespace(name=name) for name in output_names]
        self.outputs = outputs
        self.errors = list(errors or [])
        self.gate = gate
        self.calls = []

    def get_inputs(self):
        return self._inputs

    def get_outputs(self):
        return self._outputs

    def run(self, output_names, feeds):
        self.calls.append(feeds)
        if self.gate is not None:
            self.gate.wait(5)
        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error
        if self.outputs is not None:
            return list(self.outputs)
        tokens = next(iter(feeds.values()))
        count = max(int(tokens.shape[-1]) * 400, 1)
        t = np.arange(count, dtype=np.float32) / 22050.0
        return [(0.5 * np.sin(2 * np.pi * 220.0 * t)).astype(np.float32)]


def single_shot(session):
    return SingleShotEngine(OnnxModel(session=session))


def context_windowed(session):
    return ContextWindowEngine(OnnxModel(session=session))


@pytest.fixture
def settings(monkeypatch):
    for name in list(os.environ):
        if name.startswith("NEKOTTS_") or name.startswith("ORT_"):
            monkeypatch.delenv(name, raising=False)
    return Settings.from_env()


@pytest.fixture
def make_context(settings):
    def _make(engines=None, voice_store=None, **overrides):
        active = dataclasses.replace(settings, **overrides) if overrides else settings
        return build_context(
            active,
            voice_store=voice_store or VoiceStore.builtin(),
            engines=engines,
        )

    return _make


@pytest.fixture
def fake_engines():
    """Factory for {family: engine} backed by fake sessions."""

    def _make(session_a=None, session_b=None):
        engines = {
            EngineFamily.A: SingleShotEngine(None),
            EngineFamily.B: ContextWindowEngine(None),
        }
        if session_a is not None:
            engines[EngineFamily.A] = single_shot(session_a)
        if session_b is not None:
            engines[EngineFamily.B] = context_windowed(session_b)
        return engines

    return _make


@pytest.fixture
def session_factory():
    return FakeSession
