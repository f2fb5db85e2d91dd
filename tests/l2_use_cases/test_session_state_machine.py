"""Tests for SessionStateMachine — transitions over an explicit Session."""

import numpy as np

from hotword_scribe.l1_entities.session import Session, SessionState
from hotword_scribe.l1_entities.session_events import (
    ChunkSkipped,
    CycleStarted,
    FinalizeCycle,
    RecognizeChunk,
)
from hotword_scribe.l1_entities.voice_activity import VoiceActivity
from hotword_scribe.l2_use_cases.session_state_machine import SessionStateMachine
from tests.conftest import silence_frame, speech_frame

SPEECH = VoiceActivity.SPEECH
SILENCE = VoiceActivity.SILENCE


def _listening(machine: SessionStateMachine) -> Session:
    s = Session()
    machine.on_idle_frame(s, triggered=True)
    return s


class TestIdle:
    def test_no_trigger_stays_idle(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = Session()
        assert machine.on_idle_frame(s, triggered=False) == []
        assert s.state is SessionState.IDLE

    def test_trigger_starts_fresh_cycle(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = Session()
        s.silence_run = 9
        s.chunk_index = 3
        s.transcript = ['stale']

        actions = machine.on_idle_frame(s, triggered=True)

        assert actions == [CycleStarted()]
        assert s.is_listening
        assert s.silence_run == 0
        assert s.chunk_index == 0
        assert s.transcript == []


class TestCounters:
    def test_silence_counts_and_speech_resets(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        for _ in range(5):
            machine.on_listening_frame(s, silence_frame(), SILENCE)
        assert s.silence_run == 5

        machine.on_listening_frame(s, speech_frame(), SPEECH)
        assert s.silence_run == 0
        assert s.speech_run == 1

    def test_indeterminate_counts_as_speech(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        machine.on_listening_frame(s, silence_frame(), SILENCE)
        machine.on_listening_frame(s, silence_frame(), SILENCE)
        machine.on_listening_frame(s, silence_frame(), VoiceActivity.INDETERMINATE)
        assert s.silence_run == 0
        assert s.speech_run == 1

    def test_indeterminate_frames_hold_off_finalization(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        actions = []
        for i in range(3 * streaming_config.silence_frames):
            activity = VoiceActivity.INDETERMINATE if i % 2 else SILENCE
            actions += machine.on_listening_frame(s, silence_frame(), activity)
        assert not any(isinstance(a, FinalizeCycle) for a in actions)
        assert s.is_listening

    def test_every_frame_is_buffered(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        machine.on_listening_frame(s, speech_frame(), SPEECH)
        machine.on_listening_frame(s, silence_frame(), SILENCE)
        assert s.total_samples == 2 * 1280
        assert len(s.audio_buffer) == 2 * 1280


class TestExtraction:
    def test_first_chunk_emitted_once_buffer_full(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        emitted = []
        for i in range(38):
            actions = machine.on_listening_frame(s, speech_frame(), SPEECH)
            emitted.extend((i, a) for a in actions if isinstance(a, RecognizeChunk))

        # 37 frames = 47360 samples, 38 frames = 48640 >= 48000
        assert len(emitted) == 1
        frame_index, action = emitted[0]
        assert frame_index == 37
        assert action.chunk_index == 0
        assert len(action.audio) == 48000
        assert s.chunk_index == 1
        assert len(s.audio_buffer) == 48640 - 48000 + 3000

    def test_silence_classified_audio_still_drains(self, streaming_config):
        """Buffer size alone triggers extraction, whatever the classifier says."""
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        actions = []
        for _ in range(38):
            actions += machine.on_listening_frame(s, speech_frame(), SILENCE)
        assert sum(isinstance(a, RecognizeChunk) for a in actions) == 1

    def test_quiet_chunk_skipped_with_large_overlap(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        actions = []
        for _ in range(38):
            actions += machine.on_listening_frame(s, silence_frame(), VoiceActivity.INDETERMINATE)

        skipped = [a for a in actions if isinstance(a, ChunkSkipped)]
        assert len(skipped) == 1
        assert not any(isinstance(a, RecognizeChunk) for a in actions)
        assert s.skipped_chunks == 1
        assert s.chunk_index == 0
        assert len(s.audio_buffer) == 48640 - 48000 + 12000

    def test_overlap_shrinks_after_first_chunk(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        chunks = []
        for _ in range(120):
            for a in machine.on_listening_frame(s, speech_frame(), SPEECH):
                if isinstance(a, RecognizeChunk):
                    chunks.append(a)
        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
        assert len(chunks) >= 3
        # chunk 1 opens with 3000 samples of chunk 0, chunk 2 with 1500 of chunk 1
        np.testing.assert_array_equal(chunks[1].audio[:3000], chunks[0].audio[-3000:])
        np.testing.assert_array_equal(chunks[2].audio[:1500], chunks[1].audio[-1500:])


class TestFinalization:
    def test_silence_threshold_finalizes(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        for _ in range(24):
            assert not any(
                isinstance(a, FinalizeCycle) for a in machine.on_listening_frame(s, silence_frame(), SILENCE)
            )
        actions = machine.on_listening_frame(s, silence_frame(), SILENCE)
        assert actions[-1] == FinalizeCycle(reason='silence')

    def test_safety_cutoff_without_any_silence(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        frames = 0
        while True:
            frames += 1
            actions = machine.on_listening_frame(s, silence_frame(), SPEECH)
            if any(isinstance(a, FinalizeCycle) for a in actions):
                break
            assert frames < 2000

        assert actions[-1] == FinalizeCycle(reason='max_duration')
        assert s.silence_run == 0
        assert frames == 750  # 750 * 1280 == 60 s at 16 kHz

    def test_safety_cutoff_on_undrained_buffer(self, streaming_config):
        cfg = streaming_config.model_copy(update={'chunk_samples': 2_000_000})
        machine = SessionStateMachine(cfg)
        s = _listening(machine)
        for _ in range(749):
            machine.on_listening_frame(s, speech_frame(), SPEECH)
        actions = machine.on_listening_frame(s, speech_frame(), SPEECH)
        assert actions == [FinalizeCycle(reason='max_duration')]
        assert len(s.audio_buffer) == 960_000


class TestFinalPass:
    def test_nothing_recognized_means_no_final_pass(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        s.append(np.full(30000, 1000, dtype=np.int16))
        assert machine.final_pass_audio(s) is None

    def test_started_with_long_tail(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        s.started = True
        s.append(np.full(30000, 1000, dtype=np.int16))
        tail = machine.final_pass_audio(s)
        assert tail is not None
        assert len(tail) == 30000

    def test_short_tail_discarded(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        s.started = True
        s.append(np.full(23999, 1000, dtype=np.int16))
        assert machine.final_pass_audio(s) is None

    def test_finish_cycle_returns_to_idle(self, streaming_config):
        machine = SessionStateMachine(streaming_config)
        s = _listening(machine)
        s.append(speech_frame())
        machine.finish_cycle(s)
        assert s.state is SessionState.IDLE
        assert len(s.audio_buffer) == 0
