import pytest

from spcbrr.dsp import (
    apply_brrtools_treble_boost_filter,
    apply_fir_filter,
    apply_hardware_gauss_filter,
    apply_precise_treble_boost_filter,
)

SAMPLES = [1, -5, 300, -32768, 32767, 0, 42]


def test_fir_empty():
    assert apply_fir_filter((1.0, 0.5), []) == []


@pytest.mark.parametrize("coefficients", [(1.0,), (1.0, 0.0, 0.0)])
def test_fir_identity(coefficients):
    assert apply_fir_filter(coefficients, SAMPLES) == SAMPLES


def test_fir_unit_gain_preserves_constant():
    assert apply_fir_filter((0.5, 0.25), [100] * 5) == [100] * 5


def test_fir_saturates():
    assert apply_fir_filter((2.0,), [32767, -32768]) == [32767, -32768]


def test_fir_requires_coefficients():
    with pytest.raises(ValueError):
        apply_fir_filter((), SAMPLES)


@pytest.mark.parametrize(
    "filter_function", [apply_brrtools_treble_boost_filter, apply_precise_treble_boost_filter]
)
def test_treble_filters_keep_silence_and_length(filter_function):
    assert filter_function([0] * 40) == [0] * 40
    assert len(filter_function(SAMPLES)) == len(SAMPLES)
    assert filter_function([]) == []


def test_precise_treble_filter_keeps_constant():
    assert apply_precise_treble_boost_filter([1000] * 30) == [1000] * 30


def test_gauss_short_inputs():
    assert apply_hardware_gauss_filter([]) == []
    assert apply_hardware_gauss_filter([42]) == [42]


def test_gauss_two_samples_rejected():
    with pytest.raises(ValueError):
        apply_hardware_gauss_filter([1, 2])


@pytest.mark.parametrize("length", [3, 6, 50])
def test_gauss_preserves_constant(length):
    assert apply_hardware_gauss_filter([500] * length) == [500] * length


def test_gauss_preserves_extremes():
    assert apply_hardware_gauss_filter([32767] * 4) == [32767] * 4
    assert apply_hardware_gauss_filter([-32768] * 4) == [-32768] * 4


def test_gauss_does_not_modify_input():
    samples = list(SAMPLES)
    result = apply_hardware_gauss_filter(samples)
    assert samples == SAMPLES
    assert len(result) == len(SAMPLES)
    assert all(-32768 <= value <= 32767 for value in result)