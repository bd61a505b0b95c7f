import pytest

from spcbrr.block import (
    Block,
    CompressionLevel,
    Header,
    LoopEndFlags,
    LPCFilter,
    coefficient_15_16,
    split_bytes_into_nybbles,
)

DATA_BLOCK_1 = bytes([0x90, 0x00, 0x01, 0x64, 0xAE, 0x76, 0x46, 0x42, 0x3E])
DATA_BLOCK_2 = bytes([0x8C, 0xA0, 0x07, 0x77, 0x55, 0xF9, 0xB8, 0x75, 0x64])
DECODED_BLOCK_1 = (
    0, 0, 0, 0x100, 0x600, 0x400, -0x600, -0x200,
    0x700, 0x600, 0x400, 0x600, 0x400, 0x200, 0x300, -0x200,
)
DECODED_BLOCK_2 = (
    -0x908, -0xE9B, -0x12E9, -0x129E, -0xE97, -0x798, 0xB4, 0x9EE,
    0x10C4, 0x128E, 0x1137, 0xBDA, 0xACE, 0xC48, 0x1049, 0x1548,
)


def halve(samples):
    return tuple(int(s / 2) for s in samples)


@pytest.mark.parametrize(
    "expected_shifts, samples",
    [
        ((-1, 0), [1, 2] * 8),
        ((4, 3), [64] * 16),
        ((0, -1), [1, -1] * 8),
    ],
)
def test_filter_0_roundtrip(expected_shifts, samples):
    data = tuple(s * 2 for s in samples)
    block = Block.encode_with_filter_best((0, 0), data, LPCFilter.ZERO, LoopEndFlags.NOTHING)
    assert block.header.real_shift in expected_shifts
    decoded, _ = block.decode((0, 0))
    assert decoded == data


def test_header_decode():
    plain = Header.from_byte(0b0001_00_00)
    assert plain.filter == LPCFilter.ZERO
    assert plain.flags == LoopEndFlags.NOTHING
    assert plain.real_shift == 0
    assert Header.from_byte(0b0000_00_00).real_shift == -1
    assert Header.from_byte(0b1111_00_00).real_shift == 14
    assert Header.from_byte(0b0101_01_11).flags == LoopEndFlags.LOOP
    assert Header.from_byte(0b0001_11_01).filter == LPCFilter.THREE
    assert Header.from_byte(0b0010_10_10).flags == LoopEndFlags.IGNORED


def test_full_decode():
    block_1 = Block.from_bytes(DATA_BLOCK_1)
    assert block_1.header.real_shift == 8
    assert block_1.header.filter == LPCFilter.ZERO
    decoded_1, warm_up = block_1.decode((0, 0))
    assert halve(decoded_1) == DECODED_BLOCK_1
    block_2 = Block.from_bytes(DATA_BLOCK_2)
    assert block_2.header.real_shift == 7
    assert block_2.header.filter == LPCFilter.THREE
    assert halve(block_2.decode(warm_up)[0]) == DECODED_BLOCK_2


def test_multiple_roundtrips():
    _, warm_up = Block.from_bytes(DATA_BLOCK_1).decode((0, 0))
    block_2 = Block.from_bytes(DATA_BLOCK_2)
    previous, _ = block_2.decode(warm_up)
    for _ in range(15):
        next_block = Block.encode_with_filter_best(
            warm_up, previous, block_2.header.filter, block_2.header.flags
        )
        previous, _ = next_block.decode(warm_up)
        assert halve(previous) == DECODED_BLOCK_2


def test_packing():
    assert Block.from_bytes(DATA_BLOCK_1).to_bytes() == DATA_BLOCK_1
    assert Block.from_bytes(DATA_BLOCK_2).to_bytes() == DATA_BLOCK_2


def test_encode_block_best():
    _, warm_up = Block.from_bytes(DATA_BLOCK_1).decode((0, 0))
    next_block = Block.encode(warm_up, [s * 2 for s in DECODED_BLOCK_2], LoopEndFlags.NOTHING)
    assert halve(next_block.decode(warm_up)[0]) == DECODED_BLOCK_2


def test_encode_with_good_shift_reproduces_block():
    _, warm_up = Block.from_bytes(DATA_BLOCK_1).decode((0, 0))
    samples = [s * 2 for s in DECODED_BLOCK_2]
    best = Block.encode(warm_up, samples, LoopEndFlags.NOTHING)
    estimated = Block.encode_with_good_shift(warm_up, samples, LoopEndFlags.NOTHING)
    assert estimated.total_encode_error(warm_up, samples) >= best.total_encode_error(warm_up, samples)


def test_encode_with_filter_yields_all_shifts():
    blocks = list(
        Block.encode_with_filter((0, 0), [0] * 16, LPCFilter.TWO, LoopEndFlags.LOOP)
    )
    assert [b.header.real_shift for b in blocks] == list(range(-1, 12))
    assert all(b.header.filter == LPCFilter.TWO for b in blocks)


def test_encode_exact_keeps_parameters():
    block = Block.encode_exact((0, 0), [64] * 16, LPCFilter.ONE, LoopEndFlags.END_WITHOUT_LOOPING, 5)
    assert block.header == Header(5, LPCFilter.ONE, LoopEndFlags.END_WITHOUT_LOOPING)
    assert block.is_end()
    assert not block.is_loop()


def test_header_byte_roundtrip():
    for value in range(256):
        assert Header.from_byte(value).to_byte() == value


def test_header_byte_out_of_range():
    with pytest.raises(ValueError):
        Header.from_byte(256)


def test_perform_shift_with_edges():
    assert Header.perform_shift_with(0, 7) == 7
    assert Header.perform_shift_with(-1, -3) == -2
    assert Header.perform_shift_with(4, 0x1000) == 0
    assert Header.perform_shift_with(16, 1) == 0x7FFF
    assert Header.perform_shift_with(-16, 0) == -0x8000


def test_loop_end_flags():
    assert LoopEndFlags.from_bits(True, True) == LoopEndFlags.LOOP
    assert LoopEndFlags.from_bits(False, True) == LoopEndFlags.IGNORED
    assert LoopEndFlags.from_bits(True, False) == LoopEndFlags.END_WITHOUT_LOOPING
    assert str(LoopEndFlags.LOOP) == "loop, end"
    assert str(LoopEndFlags.IGNORED) == "loop"
    assert str(LoopEndFlags.END_WITHOUT_LOOPING) == "end"
    assert not LoopEndFlags.IGNORED.will_loop_afterwards()


def test_lpc_filter_str_and_list():
    assert [str(f) for f in LPCFilter.all_filters()] == ["0", "1", "2", "3"]
    assert LPCFilter.ONE.coefficients()[0] is coefficient_15_16


def test_compression_levels():
    assert CompressionLevel.ONLY_FILTER_ZERO.estimates_shift()
    assert CompressionLevel.ESTIMATE_SHIFT.estimates_shift()
    assert not CompressionLevel.MAX.estimates_shift()


def test_split_bytes_into_nybbles():
    assert split_bytes_into_nybbles([0x12, 0xAF]) == [1, 2, 0xA, 0xF]


def test_decode_block_third_matches_full_decode():
    block = Block.from_bytes(DATA_BLOCK_1)
    third = Block.decode_block_third(block.header, block.encoded_samples[:4], (0, 0))
    assert third == block.decode((0, 0))[0][:4]


def test_from_bytes_wrong_length():
    with pytest.raises(ValueError):
        Block.from_bytes(b"\x00" * 8)


def test_encode_wrong_sample_count():
    with pytest.raises(ValueError):
        Block.encode((0, 0), [0] * 15, LoopEndFlags.NOTHING)