"""
DETECTOR TESTS
1. Training set test: run the new detector over the training images.
   This only shows whether training went grossly wrong. It says nothing about
   detection quality, the detector may simply be overfitting; use an
   independent test set for that.
2. Live test: run the detector on camera frames until ESC / 'q'.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np
from tqdm import tqdm

from trainhog.errors import CameraError
from trainhog.hog_extractor import HOGFeatureExtractor
from trainhog.synthesizer import BIAS_APPEND, LinearDetector, to_opencv_detector

Rect = Tuple[int, int, int, int]

LIVE_WINDOW_NAME = "HOG custom detection"
LIVE_WIN_STRIDE = (8, 8)
LIVE_PADDING = (32, 32)
KEY_ESC = 27


class SlidingWindowDetector:
    """cv2.HOGDescriptor loaded with a synthesized LinearDetector"""

    def __init__(self, extractor: HOGFeatureExtractor, detector: LinearDetector,
                 bias_mode: str = BIAS_APPEND):
        vector, self.hit_threshold = to_opencv_detector(detector, bias_mode)
        self.hog = extractor.create_descriptor()
        self.hog.setSVMDetector(vector)
        self.win_size = extractor.win_size
        self.win_stride = extractor.win_stride
        self.padding = extractor.padding

    def detect(self, image: np.ndarray) -> Sequence:
        """Single-scale detection with the training stride and padding"""
        height, width = image.shape[:2]
        if width < self.win_size[0] or height < self.win_size[1]:
            return []
        found, _ = self.hog.detect(image, hitThreshold=self.hit_threshold,
                                   winStride=self.win_stride, padding=self.padding)
        return found

    def detect_multi_scale(self, image: np.ndarray) -> List[Rect]:
        found, _ = self.hog.detectMultiScale(image, hitThreshold=self.hit_threshold,
                                             winStride=LIVE_WIN_STRIDE, padding=LIVE_PADDING)
        return [tuple(int(v) for v in r) for r in found]


def load_grayscale(path: str) -> Optional[np.ndarray]:
    return cv2.imread(path, cv2.IMREAD_GRAYSCALE)


# =============================================================================
# TRAINING SET TEST
# =============================================================================
@dataclass
class EvaluationReport:
    true_positives: int = 0
    true_negatives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    skipped: int = 0

    @property
    def precision(self) -> float:
        found = self.true_positives + self.false_positives
        return self.true_positives / found if found > 0 else 0.0

    @property
    def recall(self) -> float:
        expected = self.true_positives + self.false_negatives
        return self.true_positives / expected if expected > 0 else 0.0

    def print_report(self):
        print("\n📊 Results (training set used as test set, no detection quality conclusion!):")
        print(f"   True Positives:  {self.true_positives}")
        print(f"   True Negatives:  {self.true_negatives}")
        print(f"   False Positives: {self.false_positives}")
        print(f"   False Negatives: {self.false_negatives}")
        if self.skipped:
            print(f"   Skipped (unreadable): {self.skipped}")
        print(f"   Precision: {self.precision * 100:.2f}%")
        print(f"   Recall:    {self.recall * 100:.2f}%")


def evaluate_training_set(detector, positive_files: Sequence[str], negative_files: Sequence[str],
                          image_loader: Callable[[str], Optional[np.ndarray]] = load_grayscale
                          ) -> EvaluationReport:
    """
    Tally detector hits over the training images. `detector.detect(image)`
    returns the hits of one image.

    Positive image: the first hit is a true positive, every further hit counts
    as a false negative (conservatively), no hit is a false negative.
    Negative image: every hit is a false positive, no hit is a true negative.
    """
    report = EvaluationReport()

    for path in tqdm(positive_files, desc="   Positive samples"):
        image = image_loader(path)
        if image is None:
            report.skipped += 1
            continue
        hits = len(detector.detect(image))
        if hits > 0:
            report.true_positives += 1
            report.false_negatives += hits - 1
        else:
            report.false_negatives += 1

    for path in tqdm(negative_files, desc="   Negative samples"):
        image = image_loader(path)
        if image is None:
            report.skipped += 1
            continue
        hits = len(detector.detect(image))
        if hits > 0:
            report.false_positives += hits
        else:
            report.true_negatives += 1

    if report.skipped:
        print(f"⚠️  {report.skipped} image(s) could not be read and were skipped")
    return report


# =============================================================================
# LIVE TEST
# =============================================================================
def _inside(inner: Rect, outer: Rect) -> bool:
    x, y, w, h = inner
    ox, oy, ow, oh = outer
    return ox <= x and oy <= y and x + w <= ox + ow and y + h <= oy + oh


def filter_nested_detections(found: Sequence[Rect]) -> List[Rect]:
    """Drop rectangles lying completely inside another one (keep one of duplicates)"""
    rects = [tuple(int(v) for v in r) for r in found]
    filtered = []
    for i, r in enumerate(rects):
        nested = any(
            j != i and _inside(r, other) and (r != other or j < i)
            for j, other in enumerate(rects)
        )
        if not nested:
            filtered.append(r)
    return filtered


def draw_detections(image: np.ndarray, rects: Sequence[Rect]):
    for x, y, w, h in rects:
        cv2.rectangle(image, (x, y), (x + w, y + h), (64, 255, 64), 3)


@contextmanager
def open_camera(camera_index: int = 0):
    """VideoCapture that is released (and windows closed) on every exit path"""
    cap = cv2.VideoCapture(camera_index)
    try:
        if not cap.isOpened():
            raise CameraError(f"Error opening camera {camera_index}!")
        yield cap
    finally:
        cap.release()
        cv2.destroyAllWindows()


def run_live_detection(detector: SlidingWindowDetector, camera_index: int = 0,
                       should_stop: Optional[Callable[[], bool]] = None,
                       max_frames: Optional[int] = None,
                       window_name: str = LIVE_WINDOW_NAME) -> int:
    """
    Show detections on camera frames. Stops on ESC / 'q', when `should_stop()`
    returns True, after `max_frames` frames or when the camera delivers no frame.
    Returns the number of processed frames.
    """
    frames = 0
    print("\n🎥 Testing custom detection using camera (ESC or 'q' to quit)")

    with open_camera(camera_index) as cap:
        try:
            while True:
                if should_stop is not None and should_stop():
                    break

                ret, frame = cap.read()
                if not ret:
                    print("⚠️  Camera delivered no frame, stopping")
                    break

                found = detector.detect_multi_scale(frame)
                draw_detections(frame, filter_nested_detections(found))
                cv2.imshow(window_name, frame)
                frames += 1

                if max_frames is not None and frames >= max_frames:
                    break

                key = cv2.waitKey(10) & 0xFF
                if key == ord('q') or key == KEY_ESC:
                    break
        except KeyboardInterrupt:
            print("\n\n⚠ Processing interrupted by user")

    print(f"✓ Live test finished after {frames} frames")
    return frames
