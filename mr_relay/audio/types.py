from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class DecodedAudio:
    """Interleaved float32 samples normalized to [-1, 1]."""

    samples: np.ndarray
    channels: int
    sample_rate: int

    @property
    def frames(self) -> int:
        return len(self.samples) // self.channels

    @property
    def duration_seconds(self) -> float:
        return self.frames / self.sample_rate if self.sample_rate else 0.0
