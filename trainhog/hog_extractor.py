"""
HOG FEATURE EXTRACTOR
Thin wrapper around cv2.HOGDescriptor. Training images must already have the
detector window size: they are never resized, as a resized sample would not
match what the sliding-window detector sees.
"""

from typing import Optional, Tuple

import cv2
import numpy as np


class HOGFeatureExtractor:
    """Compute one HOG feature vector per window-sized grayscale image"""

    def __init__(self, win_size: Tuple[int, int] = (64, 128),
                 block_size: Tuple[int, int] = (16, 16),
                 block_stride: Tuple[int, int] = (8, 8),
                 cell_size: Tuple[int, int] = (8, 8),
                 nbins: int = 9,
                 win_stride: Tuple[int, int] = (8, 8),
                 padding: Tuple[int, int] = (0, 0)):
        self.win_size = tuple(win_size)  # (width, height)
        self.block_size = tuple(block_size)
        self.block_stride = tuple(block_stride)
        self.cell_size = tuple(cell_size)
        self.nbins = nbins
        self.win_stride = tuple(win_stride)
        self.padding = tuple(padding)
        self.hog = self.create_descriptor()

    @classmethod
    def from_config(cls, config) -> "HOGFeatureExtractor":
        return cls(
            win_size=config.HOG_WIN_SIZE,
            block_size=config.HOG_BLOCK_SIZE,
            block_stride=config.HOG_BLOCK_STRIDE,
            cell_size=config.HOG_CELL_SIZE,
            nbins=config.HOG_NBINS,
            win_stride=config.TRAINING_WIN_STRIDE,
            padding=config.TRAINING_PADDING,
        )

    def create_descriptor(self) -> cv2.HOGDescriptor:
        return cv2.HOGDescriptor(
            self.win_size,
            self.block_size,
            self.block_stride,
            self.cell_size,
            self.nbins
        )

    @property
    def feature_length(self) -> int:
        return int(self.hog.getDescriptorSize())

    def extract(self, image: Optional[np.ndarray], name: str = "<image>") -> Optional[np.ndarray]:
        """HOG vector of `image`, or None if it is empty or not window-sized"""
        if image is None or image.size == 0:
            print(f"❌ Error: HOG image '{name}' is empty, features calculation skipped!")
            return None

        height, width = image.shape[:2]
        if (width, height) != self.win_size:
            print(f"❌ Error: Image '{name}' dimensions ({width} x {height}) do not match "
                  f"HOG window size ({self.win_size[0]} x {self.win_size[1]})!")
            return None

        features = self.hog.compute(image, winStride=self.win_stride, padding=self.padding)
        return np.asarray(features, dtype=np.float32).flatten()

    def extract_file(self, image_path: str) -> Optional[np.ndarray]:
        """Read `image_path` as grayscale and extract its HOG vector"""
        image = cv2.imread(image_path, cv2.IMREAD_GRAYSCALE)
        if image is None:
            print(f"❌ Error: Cannot read image '{image_path}', features calculation skipped!")
            return None
        return self.extract(image, name=image_path)
