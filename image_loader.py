import os

import cv2
import numpy as np
from PIL import Image

from config import DEFAULT_IMAGE_PATH, OUTPUT_FOLDER


def load_grayscale(path=None):
    """
    Read an image from disk as 8-bit grayscale.

    Parameters:
    - path: image file (defaults to DEFAULT_IMAGE_PATH)

    Returns:
    - img: uint8 numpy array of shape (rows, cols)
    """
    if path is None:
        path = DEFAULT_IMAGE_PATH

    img = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
    if img is None:
        raise FileNotFoundError(f"Could not find image: {path}")
    return img


def load_grayscale_upload(uploaded_file):
    # uploaded_file is a file-like object (streamlit UploadedFile, BytesIO, open file)
    img_pil = Image.open(uploaded_file).convert("L")
    return np.array(img_pil)


def save_image(img, filename, output_folder=OUTPUT_FOLDER):
    """
    Write an image into output_folder, creating the folder if needed.

    Returns:
    - save_path: path of the written file
    """
    os.makedirs(output_folder, exist_ok=True)
    save_path = os.path.join(output_folder, filename)

    if not cv2.imwrite(save_path, img):
        raise OSError(f"Failed to write image: {save_path}")

    print(f"Image saved at {save_path}")
    return save_path
