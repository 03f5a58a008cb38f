import os

import cv2
import numpy as np

# 400x300 frame with a dense edge pattern over (100, 90)-(300, 210)
SCENE_RECT = (100, 90, 300, 210)


def solid_image(width=200, height=100, rgb=(26, 26, 46)):
    """RGB image filled with one color."""
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:, :] = rgb
    return img


def striped_rect_image(width, height, x1, y1, x2, y2, stripe=2):
    """
    Black RGB image with vertical white/black stripes inside [x1, x2) x [y1, y2).
    Stripes 2 px wide give a non-zero horizontal gradient on every pixel.
    """
    img = np.zeros((height, width, 3), dtype=np.uint8)
    cols = np.arange(x1, x2)
    on = cols[(cols // stripe) % 2 == 0]
    img[y1:y2, on] = 255
    return img


def checker_disk_image(width, height, cx, cy, radius):
    """Black RGB image with a 1-px checkerboard disk (maximal Laplacian response)."""
    img = np.zeros((height, width, 3), dtype=np.uint8)
    yy, xx = np.mgrid[0:height, 0:width]
    inside = (xx - cx) ** 2 + (yy - cy) ** 2 <= radius ** 2
    checker = (xx + yy) % 2 == 0
    img[inside & checker] = 255
    return img


def write_image(filename, rgb_image):
    """Write an RGB image to disk (PNG keeps pixels exact)."""
    cv2.imwrite(str(filename), cv2.cvtColor(rgb_image, cv2.COLOR_RGB2BGR))
    return filename


def remove_test_image(filename):
    """Removes the test image if it exists."""
    if os.path.exists(filename):
        os.remove(filename)


def iou(a, b):
    """Intersection over union of two BBoxes."""
    xi1 = max(a.x, b.x)
    yi1 = max(a.y, b.y)
    xi2 = min(a.x2, b.x2)
    yi2 = min(a.y2, b.y2)
    if xi2 <= xi1 or yi2 <= yi1:
        return 0.0
    inter = (xi2 - xi1) * (yi2 - yi1)
    return inter / (a.area + b.area - inter)
