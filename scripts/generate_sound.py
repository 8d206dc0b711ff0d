#!/usr/bin/env python3
"""
Generate the default "FAAAH" failure sound as a WAV file.

A descending horn-like tone: layered harmonics under an attack/sustain/decay
envelope, a percussive hit at the start and tanh soft clipping.

Usage:
    python scripts/generate_sound.py [output.wav]
"""

import math
import random
import struct
import sys
import wave
from pathlib import Path

SAMPLE_RATE = 44100
DURATION = 1.8  # seconds
NUM_SAMPLES = int(SAMPLE_RATE * DURATION)

DEFAULT_OUTPUT = Path(__file__).parent.parent / "src" / "faaah" / "media" / "faaah.wav"


def envelope(t: float) -> float:
    """Quick attack, short peak, slow decay, then fade out."""
    if t < 0.05:
        return t / 0.05
    if t < 0.15:
        return 1.0
    if t < DURATION - 0.3:
        return 1.0 - 0.3 * ((t - 0.15) / (DURATION - 0.45))
    return max(0.0, 0.7 * (1 - (t - (DURATION - 0.3)) / 0.3))


def sample_at(i: int, rng: random.Random) -> int:
    """Compute one 16-bit sample."""
    t = i / SAMPLE_RATE
    progress = t / DURATION

    # Descending fundamental, roughly F3 down to D3
    base = 175 - 30 * progress

    harmonics = [
        (0.35, 1.0),   # fundamental
        (0.25, 2.0),   # octave
        (0.15, 1.5),   # fifth
        (0.12, 3.0),
        (0.08, 4.0),   # brass character
        (0.15, 0.5),   # sub-bass
    ]
    sample = sum(amp * math.sin(2 * math.pi * base * mult * t) for amp, mult in harmonics)

    # Vibrato
    sample *= 1 + 0.008 * math.sin(2 * math.pi * 5.5 * t)

    # Percussive hit with a noise burst
    if t < 0.08:
        hit = math.exp(-t * 40)
        sample += 0.4 * hit * math.sin(2 * math.pi * 100 * t)
        sample += 0.3 * hit * math.sin(2 * math.pi * 200 * t)
        sample += 0.25 * hit * (rng.random() * 2 - 1)

    sample = math.tanh(sample * 1.3) * envelope(t)
    return max(-32768, min(32767, int(math.floor(sample * 30000))))


def generate(seed: int = 0) -> bytes:
    """Render the whole sound as little-endian 16-bit PCM."""
    rng = random.Random(seed)
    return b"".join(struct.pack("<h", sample_at(i, rng)) for i in range(NUM_SAMPLES))


def main() -> None:
    output = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_OUTPUT
    output.parent.mkdir(parents=True, exist_ok=True)

    with wave.open(str(output), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(generate())

    print(f"Wrote {output} ({NUM_SAMPLES} samples, {DURATION}s)")


if __name__ == "__main__":
    main()
