# spcbrr

Tools for BRR (Bit Rate Reduced), the ADPCM sample format played back by the
SNES S-SMP sound chip. The package encodes 16-bit PCM audio into BRR blocks,
decodes BRR data back into PCM, emulates the hardware Gaussian filter, reads
and writes WAV files, and can place already-assembled data into an ELF image.

## Installation

```
pip install .
```

Python 3.10 or later is required; there are no third-party dependencies.
The tests use pytest (`pip install .[test]`).

## Command line

Installing the package provides the `brr` command.

Convert a WAV file to BRR (the output defaults to the input name with a
`.brr` extension):

```
brr encode input.wav output.brr
```

Options for `encode`:

- `--compression`/`-c` `0|1|2`: 0 uses filter 0 only, 1 uses all filters with
  an estimated shift, 2 (the default) searches all filters and shifts.
- `--filter`/`-f` `[treble|brrtools]`: apply a pre-emphasis treble boost that
  counteracts the hardware low-pass filter (`treble` if no name is given).
- `--loop-point`/`-l` `N`: mark the sample as looping; the block containing
  sample `N` (rounded down to a multiple of 16) is encoded with filter 0 and
  the last block gets the loop flag.

Sample counts that are not a multiple of 16 are padded with leading zeros.
WAV input may be 8-, 16- or 24-bit integer PCM or 32-bit float, with any
number of channels (they are averaged to mono). The sample rate is not
converted; use 32 kHz input to avoid a pitch shift.

Convert BRR back to a mono 16-bit 32 kHz WAV file (the output defaults to the
input name with a `.wav` extension), optionally emulating the hardware
Gaussian filter:

```
brr decode input.brr output.wav --filter
```

Decoding always decodes every block; loop and end flags are ignored.

Experiment with single blocks:

```
brr encode-block 0 1 2 3 4 5 6 7 8 9 10 11 12 13 14 15
brr decode-block 144 0 1 100 174 118 70 66 62
```

`encode-block` takes exactly 16 samples and prints, for every filter and
every shift from -1 to 11, the encoded nybbles, the decoded result and the
error, followed by the best choice. `decode-block` takes exactly nine byte
values in decimal and prints the header fields and decoded samples. Both
accept `--warm-up`/`-w` followed by the two previous samples. Sample and
warm-up values may be given in decimal or as `0x`/`-0x` hexadecimal, and
wrap around to 16 bits. Put `--verbose`/`-v` before the subcommand to have
`encode` report the sample count, output size and time taken.

## Library use

```python
from spcbrr.block import Block, CompressionLevel, LoopEndFlags
from spcbrr.stream import encode_to_brr, decode_from_brr
from spcbrr.wav import read_wav_for_brr, write_wav

with open("input.wav", "rb") as wav_file:
    samples = read_wav_for_brr(wav_file)

encoded = encode_to_brr(samples, None, CompressionLevel.MAX)
decoded = decode_from_brr(encoded)

with open("roundtrip.wav", "wb") as wav_file:
    write_wav(wav_file, decoded)
```

A single nine-byte block can be inspected and re-encoded directly:

```python
block = Block.from_bytes(bytes([0x90, 0x00, 0x01, 0x64, 0xAE, 0x76, 0x46, 0x42, 0x3E]))
print(block.header.real_shift, block.header.filter)
samples, warm_up = block.decode((0, 0))
again = Block.encode(warm_up, samples, LoopEndFlags.NOTHING)
assert len(again.to_bytes()) == 9
```

Modules:

- `spcbrr.block`: `Block`, `Header`, `LPCFilter`, `LoopEndFlags`,
  `CompressionLevel`, the filter coefficient functions and
  `split_bytes_into_nybbles`.
- `spcbrr.stream`: `encode_to_brr`, `decode_from_brr` and `BrrError`, raised
  when the data is not a whole number of nine-byte blocks.
- `spcbrr.dsp`: `apply_hardware_gauss_filter`,
  `apply_precise_treble_boost_filter`, `apply_brrtools_treble_boost_filter`
  and the general symmetric `apply_fir_filter`.
- `spcbrr.wav`: `read_wav_for_brr` (path or binary file) and `write_wav`;
  `WavError` is raised for unsupported or malformed input.
- `spcbrr.elf`: `write_to_elf(output_stream, segments, entry_point)` writes a
  mapping of start address to bytes as `.text_XXXX` sections of a 32-bit
  little-endian ELF executable.
- `spcbrr.formatting`: `pretty_hex`, `span_to_string` and
  `byte_vec_to_string` for text dumps of byte data.
- `spcbrr.change`: `Change`, a modified/unmodified marker combined with `|`.

## What this package does not do

There is no SPC700 assembler here: no parsing of assembly source, no
directives, macros or label resolution. `write_to_elf` and the formatting
helpers work on bytes you have already produced. There is also no sample
rate conversion and no sample playback.