"""BRR (SNES ADPCM) sample encoding, decoding, WAV and DSP helpers, and ELF output."""

__version__ = "0.1.0"