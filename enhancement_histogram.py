"""
Histogram Equalization Module
Grayscale (8-bit) histogram equalization built from four stages:
histogram -> cumulative histogram -> equalization map -> remapped image.
"""

from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

import cv2
import numpy as np

from config import NUM_LEVELS, MAX_INTENSITY


EqualizationMap = namedtuple("EqualizationMap", ["alpha", "pr", "sk", "ps", "final"])
EqualizationResult = namedtuple("EqualizationResult", ["equalized", "histogram", "cumulative", "mapping"])


class InvalidImageError(ValueError):
    """Raised when an image cannot be equalized (empty, multi-channel, out of range)."""


def validate_grayscale(img):
    """
    Check that img is a non-empty single-channel 8-bit image.

    Parameters:
    - img: grayscale image (numpy array or nested sequence)

    Returns:
    - img_u8: the image as a uint8 numpy array (the input is not modified)
    """
    img = np.asarray(img)

    if img.ndim != 2:
        raise InvalidImageError(f"Expected a single-channel (2D) image, got shape {img.shape}")
    if img.size == 0:
        raise InvalidImageError(f"Image has no pixels (shape {img.shape})")

    if img.dtype == np.uint8:
        return img
    if not np.issubdtype(img.dtype, np.integer):
        raise InvalidImageError(f"Expected integer intensities, got dtype {img.dtype}")

    lo, hi = int(img.min()), int(img.max())
    if lo < 0 or hi > MAX_INTENSITY:
        raise InvalidImageError(f"Intensities must lie in [0, {MAX_INTENSITY}], got [{lo}, {hi}]")
    return img.astype(np.uint8)


def _strip_histogram(strip):
    return np.bincount(strip.ravel(), minlength=NUM_LEVELS).astype(np.int64)


def calc_histogram(img, n_workers=1):
    """
    Count the pixels at each of the 256 intensity levels.

    Parameters:
    - img: grayscale image (numpy array)
    - n_workers: number of threads; >1 splits the image into row strips and
      merges the partial histograms

    Returns:
    - hist: int64 array of 256 counts, summing to rows * cols
    """
    if n_workers < 1:
        raise ValueError(f"n_workers must be at least 1, got {n_workers}")
    img = validate_grayscale(img)

    if n_workers == 1:
        return _strip_histogram(img)

    strips = np.array_split(img, n_workers, axis=0)
    hist = np.zeros(NUM_LEVELS, dtype=np.int64)
    with ThreadPoolExecutor(max_workers=n_workers) as pool:
        for partial in pool.map(_strip_histogram, strips):
            hist += partial
    return hist


def calc_cumulative_histogram(hist):
    """
    Running sum over a histogram: C[0] = H[0], C[i] = H[i] + C[i-1].

    Parameters:
    - hist: histogram of 256 counts

    Returns:
    - cum_hist: int64 array of 256 non-decreasing values
    """
    hist = np.asarray(hist, dtype=np.int64)
    if hist.shape != (NUM_LEVELS,):
        raise ValueError(f"Histogram must have {NUM_LEVELS} entries, got shape {hist.shape}")
    return np.cumsum(hist)


def build_equalization_map(hist, cum_hist=None):
    """
    Derive the intensity lookup table from the (cumulative) histogram.

    sk is the table applied to the pixels. ps accumulates the probability of
    every input level that scales onto the same output level, and final is
    ps rescaled to [0, 255]: it describes the equalized distribution and is
    never used to remap pixels.

    Parameters:
    - hist: histogram of 256 counts
    - cum_hist: cumulative histogram (computed from hist when omitted)

    Returns:
    - mapping: EqualizationMap(alpha, pr, sk, ps, final)
    """
    hist = np.asarray(hist, dtype=np.int64)
    if hist.shape != (NUM_LEVELS,):
        raise ValueError(f"Histogram must have {NUM_LEVELS} entries, got shape {hist.shape}")
    if hist.min() < 0:
        raise InvalidImageError(f"Histogram counts must be non-negative, got {hist.min()} at level {hist.argmin()}")
    if cum_hist is None:
        cum_hist = calc_cumulative_histogram(hist)
    cum_hist = np.asarray(cum_hist, dtype=np.int64)
    if cum_hist.shape != (NUM_LEVELS,):
        raise ValueError(f"Cumulative histogram must have {NUM_LEVELS} entries, got shape {cum_hist.shape}")
    if not np.array_equal(cum_hist, np.cumsum(hist)):
        raise InvalidImageError("Cumulative histogram is not the running sum of the histogram")

    total = int(cum_hist[-1])
    if total <= 0:
        raise InvalidImageError("Cannot equalize an image with no pixels")

    alpha = float(MAX_INTENSITY) / total
    pr = hist / total

    # np.rint rounds half to even, like cvRound
    sk = np.clip(np.rint(cum_hist * alpha), 0, MAX_INTENSITY).astype(np.uint8)

    # scatter-add: levels colliding on the same sk share one bucket
    ps = np.zeros(NUM_LEVELS, dtype=np.float64)
    np.add.at(ps, sk, pr)

    final = np.clip(np.rint(ps * MAX_INTENSITY), 0, MAX_INTENSITY).astype(np.int64)

    return EqualizationMap(alpha=alpha, pr=pr, sk=sk, ps=ps, final=final)


def remap_image(img, sk):
    """
    Apply a 256-entry lookup table to every pixel.

    Parameters:
    - img: grayscale image (numpy array)
    - sk: lookup table, input intensity -> output intensity

    Returns:
    - remapped: new uint8 image with the same shape as img
    """
    img = validate_grayscale(img)
    sk = np.asarray(sk)
    if sk.shape != (NUM_LEVELS,):
        raise ValueError(f"Lookup table must have {NUM_LEVELS} entries, got shape {sk.shape}")

    lut = np.clip(sk, 0, MAX_INTENSITY).astype(np.uint8)
    return cv2.LUT(np.ascontiguousarray(img), lut)


def equalize_grayscale(img, n_workers=1):
    """
    Equalize a grayscale image and return the intermediate tables.

    Parameters:
    - img: grayscale image (numpy array)
    - n_workers: threads used for the histogram

    Returns:
    - result: EqualizationResult(equalized, histogram, cumulative, mapping)
    """
    img = validate_grayscale(img)

    hist = calc_histogram(img, n_workers=n_workers)
    cum_hist = calc_cumulative_histogram(hist)
    mapping = build_equalization_map(hist, cum_hist)
    equalized = remap_image(img, mapping.sk)

    return EqualizationResult(equalized=equalized, histogram=hist, cumulative=cum_hist, mapping=mapping)
