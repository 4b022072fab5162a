"""
SINGLE DETECTING VECTOR
For a linear kernel the SVM decision function

    f(x) = sum_i (alpha_i * y_i) <sv_i, x> - b

equals <w, x> - b with w = sum_i (alpha_i * y_i) sv_i. Computing w once lets
the HOG sliding-window detector score a window with a single dot product.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from trainhog.errors import DetectorFileError, KernelMismatchError
from trainhog.numeric_locale import format_float, parse_float
from trainhog.trainers import LINEAR, TrainedModel

BIAS_APPEND = "append"
BIAS_SEPARATE = "separate"
BIAS_MODES = (BIAS_APPEND, BIAS_SEPARATE)


@dataclass
class LinearDetector:
    weights: np.ndarray  # length D
    bias: float  # threshold b, window score = dot(weights, x) - bias

    @property
    def n_features(self) -> int:
        return len(self.weights)

    def score(self, features) -> float:
        return float(np.dot(self.weights, features) - self.bias)


@dataclass
class SynthesisResult:
    detector: LinearDetector
    support_vector_count: int
    skipped_components: int


def synthesize_linear_detector(model: TrainedModel, n_features: Optional[int] = None) -> SynthesisResult:
    """
    Collapse the support vectors of a linear-kernel model into one dense
    weight vector of length `n_features` (defaults to the model's).
    Components with an index outside 1..n_features are reported and skipped.
    """
    kernel = model.kernel_type()
    if kernel != LINEAR:
        raise KernelMismatchError(
            f"Cannot build a single detecting vector from a '{kernel}' kernel model, "
            f"only '{LINEAR}' models collapse into one vector")

    if n_features is None:
        n_features = model.n_features

    print("Calculating single descriptor vector out of support vectors")
    weights = np.zeros(n_features, dtype=np.float64)
    support_vectors = model.support_vectors()
    skipped = 0

    for sv_number, sv in enumerate(support_vectors):
        for index, value in sv.components.items():
            if index < 1 or index > n_features:
                print(f"⚠️  Support vector {sv_number} has feature index {index} outside "
                      f"1..{n_features} (feature length changed between runs?), skipping")
                skipped += 1
                continue
            weights[index - 1] += sv.weight * value

    print(f"   Support vectors: {len(support_vectors)}")
    print(f"   Resulting vector size: {len(weights)}")
    if skipped:
        print(f"   ⚠️  Skipped components: {skipped}")

    detector = LinearDetector(weights, float(model.bias()))
    return SynthesisResult(detector, len(support_vectors), skipped)


# =============================================================================
# DETECTOR VECTOR FILE
# =============================================================================
def bias_file_path(path: str) -> str:
    return f"{path}.bias"


def check_bias_mode(bias_mode: str):
    if bias_mode not in BIAS_MODES:
        raise DetectorFileError(f"Unknown bias mode '{bias_mode}', expected one of: {', '.join(BIAS_MODES)}")


def to_opencv_detector(detector: LinearDetector, bias_mode: str = BIAS_APPEND) -> Tuple[np.ndarray, float]:
    """
    (vector, hit_threshold) for cv2.HOGDescriptor.setSVMDetector / detect.
    OpenCV adds a trailing (D+1)th component to the dot product, so
    "append" stores -b there with threshold 0, "separate" uses b as threshold.
    """
    check_bias_mode(bias_mode)
    weights = np.asarray(detector.weights, dtype=np.float32)
    if bias_mode == BIAS_APPEND:
        return np.append(weights, np.float32(-detector.bias)), 0.0
    return weights, float(detector.bias)


def save_detector_vector(detector: LinearDetector, path: str, bias_mode: str = BIAS_APPEND):
    check_bias_mode(bias_mode)
    print(f"Saving descriptor vector to file '{path}'")

    values = list(detector.weights)
    if bias_mode == BIAS_APPEND:
        values.append(-detector.bias)

    try:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(" ".join(format_float(v) for v in values) + "\n")
        if bias_mode == BIAS_SEPARATE:
            with open(bias_file_path(path), "w", encoding="utf-8", newline="\n") as f:
                f.write(format_float(detector.bias) + "\n")
    except OSError as e:
        raise DetectorFileError(f"Error writing descriptor vector file '{path}': {e}") from e

    print(f"✅ Saved {len(detector.weights)} descriptor vector features ({bias_mode} bias)")


def load_detector_vector(path: str, bias_mode: str = BIAS_APPEND,
                         n_features: Optional[int] = None) -> LinearDetector:
    """
    Read a descriptor vector file written by save_detector_vector.
    If `n_features` is given the stored length is checked against it.
    """
    check_bias_mode(bias_mode)
    try:
        with open(path, "r", encoding="utf-8") as f:
            tokens = f.read().split()
        values = [parse_float(t) for t in tokens]
        if bias_mode == BIAS_APPEND:
            if not values:
                raise DetectorFileError(f"Descriptor vector file '{path}' is empty")
            weights, bias = values[:-1], -values[-1]
        else:
            with open(bias_file_path(path), "r", encoding="utf-8") as f:
                bias = parse_float(f.read().strip())
            weights = values
    except OSError as e:
        raise DetectorFileError(f"Error reading descriptor vector file '{path}': {e}") from e
    except ValueError as e:
        raise DetectorFileError(f"Malformed descriptor vector file '{path}': {e}") from e

    if n_features is not None and len(weights) != n_features:
        raise DetectorFileError(
            f"Descriptor vector '{path}' has {len(weights)} weights, expected {n_features} "
            f"(wrong bias mode or HOG window size?)")

    return LinearDetector(np.asarray(weights, dtype=np.float64), float(bias))
