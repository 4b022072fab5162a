from pathlib import Path

import cv2
import numpy as np
import pytest

from trainhog.config import TrainHogConfig
from trainhog.hog_extractor import HOGFeatureExtractor

# Small window keeps HOG vectors short (324 features) and tests fast
TEST_WIN_SIZE = (32, 32)


def positive_image(rng, size=TEST_WIN_SIZE):
    """Dark background with a bright centered square"""
    width, height = size
    image = rng.integers(0, 40, size=(height, width), dtype=np.uint8)
    image[height // 4:3 * height // 4, width // 4:3 * width // 4] = 220
    return image


def negative_image(rng, size=TEST_WIN_SIZE):
    width, height = size
    return rng.integers(0, 256, size=(height, width), dtype=np.uint8)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def small_extractor():
    return HOGFeatureExtractor(win_size=TEST_WIN_SIZE)


@pytest.fixture
def sample_dirs(tmp_path: Path, rng):
    """
    pos/: 6 window-sized positives + 1 wrong-sized image + 1 undecodable file
    neg/: 6 window-sized negatives + 1 text file (ignored by extension)
    """
    pos = tmp_path / "pos"
    neg = tmp_path / "neg"
    pos.mkdir()
    neg.mkdir()

    for i in range(6):
        cv2.imwrite(str(pos / f"pos_{i}.png"), positive_image(rng))
        cv2.imwrite(str(neg / f"neg_{i}.png"), negative_image(rng))

    cv2.imwrite(str(pos / "wrong_size.png"), positive_image(rng, size=(40, 24)))
    (pos / "broken.png").write_bytes(b"not an image")
    (neg / "notes.txt").write_text("ignored")
    return pos, neg


@pytest.fixture
def small_config(tmp_path: Path, sample_dirs):
    pos, neg = sample_dirs
    config = TrainHogConfig()
    config.POSITIVE_SAMPLES_DIR = str(pos)
    config.NEGATIVE_SAMPLES_DIR = str(neg)
    config.FEATURES_FILE = str(tmp_path / "genfiles" / "features.dat")
    config.MODEL_FILE = str(tmp_path / "genfiles" / "svmmodel.pkl")
    config.DESCRIPTOR_VECTOR_FILE = str(tmp_path / "genfiles" / "descriptorvector.dat")
    config.HOG_WIN_SIZE = TEST_WIN_SIZE
    config.RUN_LIVE_TEST = False
    return config
