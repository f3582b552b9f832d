"""
Command-line driver: equalize a grayscale image and check the result
against OpenCV's equalizeHist.

    python main.py [IMAGE] [--workers N] [--save] [--output-dir DIR] [--no-reference]
"""

import argparse
import os
import sys

from config import DEFAULT_IMAGE_PATH, DEFAULT_WORKERS, OUTPUT_FOLDER
from comparison import compare_with_reference, final_histogram_error, reference_equalization, reference_histogram
from enhancement_histogram import equalize_grayscale
from image_loader import load_grayscale, save_image


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Histogram equalization of a grayscale image")
    ap.add_argument("image", nargs="?", default=DEFAULT_IMAGE_PATH, help="input image (default: %(default)s)")
    ap.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="threads for the histogram")
    ap.add_argument("--save", action="store_true", help="write the equalized images to --output-dir")
    ap.add_argument("--output-dir", default=OUTPUT_FOLDER)
    ap.add_argument("--no-reference", action="store_true", help="skip the OpenCV comparison")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    try:
        img = load_grayscale(args.image)
    except FileNotFoundError:
        print("Could not find image")
        print("Error detected. Exiting.")
        return 1

    try:
        result = equalize_grayscale(img, n_workers=args.workers)
    except ValueError as e:
        print(f"Cannot equalize {args.image}: {e}")
        return 1

    rows, cols = img.shape
    print(f"Image: {args.image} ({rows}x{cols}, {rows * cols} pixels)")
    print(f"Intensity range: [{img.min()}, {img.max()}] -> [{result.equalized.min()}, {result.equalized.max()}]")
    print(f"Final histogram error: {final_histogram_error(result.equalized, result.mapping.final)}")

    base = os.path.splitext(os.path.basename(args.image))[0]
    if args.save:
        save_image(result.equalized, f"{base}_equalized.png", output_folder=args.output_dir)

    if args.no_reference:
        return 0

    ref = reference_equalization(img)
    metrics = compare_with_reference(result.equalized, ref)
    print(f"OpenCV agreement: {metrics['agreement'] * 100:.2f}% of pixels within 1 level, "
          f"max diff {metrics['max_abs_diff']}, PSNR {metrics['psnr']:.2f} dB ({metrics['quality_level']})")

    print("")
    print("Equalized Histogram with OpenCV Library:")
    print("")
    print(" ".join(str(v) for v in reference_histogram(ref)))

    if args.save:
        save_image(ref, f"{base}_equalized_opencv.png", output_folder=args.output_dir)

    return 0


if __name__ == "__main__":
    sys.exit(main())
