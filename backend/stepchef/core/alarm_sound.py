"""
Synthesizes the alert sounds (alarm burst, step chime) as 16-bit PCM WAV
so clients need no bundled audio files.
"""

import io
from functools import lru_cache
from typing import Dict, Optional

import numpy as np
import soundfile as sf

from .config import get_settings

ALARM = "alarm"
CHIME = "chime"


class SoundBank:
    def __init__(self, sample_rate: Optional[int] = None) -> None:
        self.sample_rate = sample_rate or get_settings().sample_rate

    def _timeline(self, seconds: float) -> np.ndarray:
        return np.zeros(int(round(seconds * self.sample_rate)), dtype=np.float32)

    def _tone(self, freq: float, duration: float, gain: float, square: bool = False, attack: float = 0.0) -> np.ndarray:
        t = np.arange(int(round(duration * self.sample_rate)), dtype=np.float32) / self.sample_rate
        wave = np.sin(2 * np.pi * freq * t)
        if square:
            wave = np.sign(wave)

        # exponential decay from `gain` down to 0.001 over the tone
        envelope = gain * np.power(0.001 / gain, t / duration)
        if attack > 0:
            envelope = envelope * np.clip(t / attack, 0.0, 1.0)
        return (wave * envelope).astype(np.float32)

    def _mix(self, out: np.ndarray, tone: np.ndarray, at: float) -> None:
        start = int(round(at * self.sample_rate))
        end = min(len(out), start + len(tone))
        out[start:end] += tone[: end - start]

    def alarm_burst(self) -> np.ndarray:
        """Two short 880 Hz square beeps, a quarter second apart."""
        out = self._timeline(0.45)
        for at in (0.0, 0.25):
            self._mix(out, self._tone(880.0, 0.18, 0.25, square=True), at)
        return out

    def chime(self) -> np.ndarray:
        """Ascending C5, E5, G5 with a soft bell-like decay."""
        out = self._timeline(0.95)
        self._mix(out, self._tone(523.25, 0.55, 0.28, attack=0.01), 0.0)
        self._mix(out, self._tone(659.25, 0.6, 0.22, attack=0.01), 0.12)
        self._mix(out, self._tone(783.99, 0.7, 0.16, attack=0.01), 0.24)
        return out

    def to_wav(self, audio: np.ndarray) -> bytes:
        buf = io.BytesIO()
        sf.write(buf, np.clip(audio, -1.0, 1.0), self.sample_rate, format="WAV", subtype="PCM_16")
        return buf.getvalue()

    def render(self) -> Dict[str, bytes]:
        return {
            ALARM: self.to_wav(self.alarm_burst()),
            CHIME: self.to_wav(self.chime()),
        }


@lru_cache()
def get_sounds() -> Dict[str, bytes]:
    """Rendered WAV bytes keyed by sound name."""
    return SoundBank().render()
