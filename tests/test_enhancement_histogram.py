import numpy as np
import pytest

from enhancement_histogram import (
    InvalidImageError,
    build_equalization_map,
    calc_cumulative_histogram,
    calc_histogram,
    equalize_grayscale,
    remap_image,
    validate_grayscale,
)


@pytest.fixture
def dark_image():
    rng = np.random.default_rng(0)
    return rng.integers(10, 70, size=(64, 48), dtype=np.uint8)


def test_histogram_counts_every_pixel(dark_image):
    hist = calc_histogram(dark_image)
    assert hist.shape == (256,)
    assert hist.sum() == dark_image.size
    assert np.all(hist[:10] == 0)
    assert np.all(hist[70:] == 0)
    assert hist[int(dark_image[0, 0])] >= 1


def test_histogram_with_workers_matches_single_thread(dark_image):
    single = calc_histogram(dark_image)
    for n in (2, 3, 7, 100):
        np.testing.assert_array_equal(calc_histogram(dark_image, n_workers=n), single)


def test_histogram_rejects_bad_worker_count(dark_image):
    with pytest.raises(ValueError):
        calc_histogram(dark_image, n_workers=0)


def test_cumulative_histogram_is_running_sum(dark_image):
    hist = calc_histogram(dark_image)
    cum = calc_cumulative_histogram(hist)
    assert cum[0] == hist[0]
    assert np.all(np.diff(cum) >= 0)
    assert cum[-1] == dark_image.size
    np.testing.assert_array_equal(cum[1:] - cum[:-1], hist[1:])


def test_cumulative_histogram_requires_256_entries():
    with pytest.raises(ValueError):
        calc_cumulative_histogram(np.ones(255, dtype=np.int64))


def test_four_pixel_example():
    img = np.array([[0, 85], [170, 255]], dtype=np.uint8)
    result = equalize_grayscale(img)

    hist = result.histogram
    assert hist[[0, 85, 170, 255]].tolist() == [1, 1, 1, 1]
    assert hist.sum() == 4

    cum = result.cumulative
    assert cum[0] == 1 and cum[84] == 1
    assert cum[85] == 2 and cum[169] == 2
    assert cum[170] == 3 and cum[254] == 3
    assert cum[255] == 4

    mapping = result.mapping
    assert mapping.alpha == pytest.approx(63.75)
    assert mapping.sk[[0, 85, 170, 255]].tolist() == [64, 128, 191, 255]
    assert result.equalized.tolist() == [[64, 128], [191, 255]]


def test_colliding_levels_accumulate_probability():
    # levels 0..84 all scale onto 64, 86..169 onto 128, and so on
    img = np.array([[0, 85], [170, 255]], dtype=np.uint8)
    mapping = build_equalization_map(calc_histogram(img))

    assert mapping.ps.sum() == pytest.approx(1.0)
    for level in (64, 128, 191, 255):
        assert mapping.ps[level] == pytest.approx(0.25)
    assert mapping.final[[64, 128, 191, 255]].tolist() == [64, 64, 64, 64]


def test_collisions_do_not_overwrite():
    # levels 1 and 2 both scale onto 255
    img = np.zeros((10, 100), dtype=np.uint8)
    img[0, 0] = 1
    img[0, 1] = 2
    mapping = build_equalization_map(calc_histogram(img))

    assert mapping.sk[0] == 254
    assert mapping.sk[1] == mapping.sk[2] == 255
    assert mapping.ps[255] == pytest.approx(0.002)
    assert mapping.ps[254] == pytest.approx(0.998)
    assert mapping.ps.sum() == pytest.approx(1.0)


def test_scaled_values_stay_in_range_before_clamping(dark_image):
    hist = calc_histogram(dark_image)
    cum = calc_cumulative_histogram(hist)
    mapping = build_equalization_map(hist, cum)

    raw_sk = np.rint(cum * mapping.alpha)
    assert raw_sk.min() >= 0 and raw_sk.max() <= 255
    np.testing.assert_array_equal(mapping.sk, raw_sk.astype(np.uint8))

    raw_final = np.rint(mapping.ps * 255)
    assert raw_final.min() >= 0 and raw_final.max() <= 255
    np.testing.assert_array_equal(mapping.final, raw_final.astype(np.int64))
    assert mapping.sk.dtype == np.uint8


def test_uniform_image_maps_close_to_identity():
    img = np.repeat(np.arange(256, dtype=np.uint8), 4).reshape(32, 32)
    result = equalize_grayscale(img)
    diff = result.mapping.sk.astype(int) - np.arange(256)
    assert np.all(np.abs(diff) <= 1)


@pytest.mark.parametrize("value", [0, 37, 255])
def test_constant_image_stays_constant(value):
    img = np.full((5, 9), value, dtype=np.uint8)
    result = equalize_grayscale(img)

    assert result.histogram[value] == 45
    assert result.histogram.sum() == 45
    assert np.unique(result.equalized).size == 1
    assert result.equalized[0, 0] == 255


def test_remapped_histogram_matches_final(dark_image):
    result = equalize_grayscale(dark_image)
    hist = np.bincount(result.equalized.ravel(), minlength=256)
    measured = np.rint(hist / dark_image.size * 255)
    assert np.max(np.abs(measured - result.mapping.final)) <= 1


def test_equalization_spreads_dark_image(dark_image):
    result = equalize_grayscale(dark_image)
    assert result.equalized.max() == 255
    assert result.equalized.std() > dark_image.std()


def test_source_image_is_not_modified(dark_image):
    original = dark_image.copy()
    result = equalize_grayscale(dark_image)
    np.testing.assert_array_equal(dark_image, original)
    assert result.equalized is not dark_image
    assert result.equalized.shape == dark_image.shape
    assert result.equalized.dtype == np.uint8


def test_remap_saturates_lookup_table():
    img = np.array([[0, 1], [2, 3]], dtype=np.uint8)
    sk = np.arange(256, dtype=np.int64) * 100
    out = remap_image(img, sk)
    assert out.tolist() == [[0, 100], [200, 255]]


def test_remap_requires_256_entries():
    with pytest.raises(ValueError):
        remap_image(np.zeros((2, 2), dtype=np.uint8), np.arange(10))


@pytest.mark.parametrize("shape", [(0, 0), (0, 5), (5, 0)])
def test_empty_image_is_rejected(shape):
    with pytest.raises(InvalidImageError):
        equalize_grayscale(np.zeros(shape, dtype=np.uint8))


def test_empty_histogram_is_rejected():
    with pytest.raises(InvalidImageError):
        build_equalization_map(np.zeros(256, dtype=np.int64))


def test_negative_histogram_counts_are_rejected():
    hist = np.zeros(256, dtype=np.int64)
    hist[0] = -3
    hist[5] = 7
    with pytest.raises(InvalidImageError, match="non-negative"):
        build_equalization_map(hist)


def test_mismatched_cumulative_histogram_is_rejected():
    hist = np.zeros(256, dtype=np.int64)
    hist[10] = 4
    with pytest.raises(InvalidImageError, match="running sum"):
        build_equalization_map(hist, np.cumsum(hist) * 2)


def test_precomputed_cumulative_histogram_is_accepted(dark_image):
    hist = calc_histogram(dark_image)
    with_cum = build_equalization_map(hist, calc_cumulative_histogram(hist))
    without_cum = build_equalization_map(hist)
    np.testing.assert_array_equal(with_cum.sk, without_cum.sk)
    assert with_cum.ps.sum() == pytest.approx(1.0)


def test_color_image_is_rejected():
    with pytest.raises(InvalidImageError):
        equalize_grayscale(np.zeros((4, 4, 3), dtype=np.uint8))


def test_validate_converts_integer_images():
    img = validate_grayscale([[0, 12], [200, 255]])
    assert img.dtype == np.uint8
    assert img.tolist() == [[0, 12], [200, 255]]


@pytest.mark.parametrize("img", [
    np.array([[0, 256]], dtype=np.int32),
    np.array([[-1, 3]], dtype=np.int32),
    np.array([[0.5, 0.2]], dtype=np.float32),
])
def test_validate_rejects_out_of_range(img):
    with pytest.raises(InvalidImageError):
        validate_grayscale(img)


def test_invalid_image_error_is_value_error():
    assert issubclass(InvalidImageError, ValueError)
