import math

import cv2
import numpy as np
from skimage.metrics import structural_similarity as ssim

from config import NUM_LEVELS, MAX_INTENSITY
from enhancement_histogram import validate_grayscale


def reference_equalization(img):
    """
    Equalize with OpenCV's built-in equalizeHist, for comparison only.

    Parameters:
    - img: grayscale image (numpy array)

    Returns:
    - ref_img: equalized image produced by OpenCV
    """
    img = validate_grayscale(img)
    return cv2.equalizeHist(np.ascontiguousarray(img))


def reference_histogram(img):
    """
    Histogram of an image computed by cv2.calcHist.

    Returns:
    - hist: int64 array of 256 counts
    """
    img = validate_grayscale(img)
    hist = cv2.calcHist([np.ascontiguousarray(img)], [0], None, [NUM_LEVELS], [0, NUM_LEVELS])
    return hist.ravel().astype(np.int64)


def mse(img1, img2):
    """
    Mean Squared Error between two images.

    Parameters:
    - img1: first image (numpy array)
    - img2: second image (numpy array)

    Returns:
    - mse_val: mean squared error, 0 when the images agree on every pixel
    """
    return float(np.mean((img1.astype(np.float64) - img2.astype(np.float64)) ** 2))


def psnr(img1, img2):
    """
    Peak Signal-to-Noise Ratio in dB.

    Parameters:
    - img1: first image (numpy array)
    - img2: second image (numpy array)

    Returns:
    - psnr_val: PSNR in decibels, inf for identical images
    """
    mse_val = mse(img1, img2)
    if mse_val == 0:
        return float('inf')
    return 20 * math.log10(MAX_INTENSITY / math.sqrt(mse_val))


def ssim_score(img1, img2):
    """
    Structural Similarity Index of two grayscale images.

    The window shrinks for images smaller than 7 px on a side; below 3 px
    SSIM is undefined and NaN is returned.
    """
    win_size = min(7, *img1.shape)
    if win_size % 2 == 0:
        win_size -= 1
    if win_size < 3:
        return float('nan')
    return float(ssim(img1, img2, win_size=win_size, data_range=MAX_INTENSITY))


def compare_with_reference(equalized, reference):
    """
    Score how closely an equalized image agrees with the OpenCV result.

    Parameters:
    - equalized: image produced by equalize_grayscale
    - reference: image produced by reference_equalization

    Returns:
    - metrics: dictionary with 'mse', 'psnr', 'ssim', 'max_abs_diff',
      'agreement' and 'quality_level'
    """
    if equalized.shape != reference.shape:
        raise ValueError(f"Images must have same dimensions. Got {equalized.shape} and {reference.shape}")

    diff = np.abs(equalized.astype(np.int16) - reference.astype(np.int16))

    mse_val = mse(equalized, reference)
    psnr_val = psnr(equalized, reference)
    ssim_val = ssim_score(equalized, reference)

    if psnr_val == float('inf'):
        quality_level = "Identical"
    elif psnr_val > 40:
        quality_level = "Excellent"
    elif psnr_val > 30:
        quality_level = "Good"
    elif psnr_val > 20:
        quality_level = "Fair"
    else:
        quality_level = "Poor"

    return {
        'mse': mse_val,
        'psnr': psnr_val,
        'ssim': ssim_val,
        'max_abs_diff': int(diff.max()),
        'agreement': float(np.mean(diff <= 1)),
        'quality_level': quality_level,
    }


def describe_metric(metric_name, value):
    """
    Color and label for showing a metric value.

    Returns:
    - (color, label): color is 'green', 'orange', 'red' or 'gray'
    """
    if metric_name == 'mse':
        if value < 10:
            return 'green', 'Excellent'
        elif value < 100:
            return 'orange', 'Fair'
        return 'red', 'Poor'

    if metric_name == 'psnr':
        if value == float('inf'):
            return 'green', 'Identical'
        elif value > 30:
            return 'green', 'Good'
        elif value > 20:
            return 'orange', 'Fair'
        return 'red', 'Poor'

    if metric_name == 'ssim':
        if math.isnan(value):
            return 'gray', 'Undefined'
        elif value > 0.95:
            return 'green', 'Excellent'
        elif value > 0.85:
            return 'orange', 'Good'
        return 'red', 'Poor'

    return 'gray', 'Unknown'


def final_histogram_error(equalized, final):
    """
    Largest difference between the 'final' table of an EqualizationMap and
    the histogram actually measured on the remapped image, both on the
    0..255 probability scale.

    Parameters:
    - equalized: remapped image
    - final: EqualizationMap.final

    Returns:
    - err: max absolute difference (0 or 1 for a consistent map)
    """
    equalized = validate_grayscale(equalized)
    hist = np.bincount(equalized.ravel(), minlength=NUM_LEVELS)
    measured = np.rint(hist / equalized.size * MAX_INTENSITY).astype(np.int64)
    return int(np.max(np.abs(measured - np.asarray(final, dtype=np.int64))))
