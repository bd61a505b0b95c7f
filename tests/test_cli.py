import math

import pytest

from spcbrr.cli import main, parse_lenient_i16
from spcbrr.stream import decode_from_brr, encode_to_brr
from spcbrr.wav import read_wav_for_brr, write_wav

DATA_BLOCK_1 = [0x90, 0x00, 0x01, 0x64, 0xAE, 0x76, 0x46, 0x42, 0x3E]
DECODED_BLOCK_1 = [
    0, 0, 0, 0x100, 0x600, 0x400, -0x600, -0x200,
    0x700, 0x600, 0x400, 0x600, 0x400, 0x200, 0x300, -0x200,
]


def test_parse_plain_decimal():
    assert parse_lenient_i16("5") == 5
    assert parse_lenient_i16("-5") == -5


def test_parse_hex():
    assert parse_lenient_i16("0x10") == 16
    assert parse_lenient_i16("-0x10") == -16
    assert parse_lenient_i16("0xFFFF") == -1


def test_parse_wraps_decimal():
    for n in (-300, 0, 1234, 32767):
        assert parse_lenient_i16(str(n + 65536)) == parse_lenient_i16(str(n)) == n


def test_parse_rejects_garbage():
    with pytest.raises(ValueError):
        parse_lenient_i16("abc")
    with pytest.raises(ValueError):
        parse_lenient_i16("0x10000")


def test_decode_block_output(capsys):
    assert main(["decode-block", *map(str, DATA_BLOCK_1)]) == 0
    out = capsys.readouterr().out
    assert "shift:           8" in out
    assert "filter:          0" in out
    expected = [s * 2 for s in DECODED_BLOCK_1]
    assert f"Decoded samples: {expected}" in out


def test_decode_block_rejects_large_byte():
    with pytest.raises(SystemExit):
        main(["decode-block", "256", *["0"] * 8])


def test_encode_block_reports_all_filters(capsys):
    samples = [str(s * 2) for s in DECODED_BLOCK_1]
    assert main(["encode-block", *samples]) == 0
    out = capsys.readouterr().out
    for filter in range(4):
        assert f"filter {filter}:" in out
    assert out.count("optimal shift for this filter") == 4
    assert "optimal encoding: filter" in out


def test_encode_rejects_bad_compression():
    with pytest.raises(SystemExit):
        main(["encode", "in.wav", "-c", "7"])


def _sine(count):
    return [int(8000 * math.sin(i / 5)) for i in range(count)]


def test_encode_then_decode_round_trip(tmp_path):
    samples = _sine(100)
    wav_path = tmp_path / "input.wav"
    write_wav(wav_path, samples)

    assert main(["encode", str(wav_path)]) == 0
    brr_path = tmp_path / "input.brr"
    encoded = brr_path.read_bytes()
    assert encoded == encode_to_brr(samples)

    out_wav = tmp_path / "decoded.wav"
    assert main(["decode", str(brr_path), str(out_wav)]) == 0
    assert read_wav_for_brr(out_wav) == decode_from_brr(encoded)
    assert len(read_wav_for_brr(out_wav)) % 16 == 0


def test_encode_verbose_reports_loop_point(tmp_path, capsys):
    wav_path = tmp_path / "loop.wav"
    write_wav(wav_path, _sine(64))
    out_path = tmp_path / "loop.brr"
    assert main(["-v", "encode", str(wav_path), str(out_path), "-l", "20"]) == 0
    out = capsys.readouterr().out
    assert "Encoded 64 samples" in out
    assert "Loop point: 16" in out
    assert out_path.read_bytes() == encode_to_brr(_sine(64), 20)


def test_decode_truncated_input_fails(tmp_path, capsys):
    brr_path = tmp_path / "bad.brr"
    brr_path.write_bytes(bytes(5))
    assert main(["decode", str(brr_path)]) == 1
    assert "Cut off BRR block (size 5)" in capsys.readouterr().err


def test_encode_missing_input_fails(tmp_path, capsys):
    assert main(["encode", str(tmp_path / "missing.wav")]) == 1
    assert capsys.readouterr().err.startswith("error:")