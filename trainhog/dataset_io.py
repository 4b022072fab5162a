"""
FEATURES FILE (SVMlight / libsvm sparse text format)

    # optional comment line
    +1 1:0.0123 2:0.25 ... 3780:0.0871
    -1 1:0.101 3:0.0042 ...

One example per line, 1-based strictly increasing feature indices,
zero-valued features omitted.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from trainhog.errors import DatasetFormatError, DatasetWriteError
from trainhog.numeric_locale import format_float, parse_float

INDEX_PATTERN = re.compile(r"[+-]?[0-9]+")  # ASCII digits only, no "_" separators


@dataclass(frozen=True)
class LabeledExample:
    label: int  # +1 / -1
    features: Dict[int, float]  # 1-based index -> value


def format_label(label: int) -> str:
    return "+1" if label > 0 else "-1"


def format_sparse_example(label: int, items) -> str:
    """One dataset line from (index, value) pairs in increasing index order"""
    tokens = [format_label(label)]
    tokens += [f"{index}:{format_float(value)}" for index, value in items]
    return " ".join(tokens)


def format_example(label: int, features) -> str:
    """One dataset line for a dense feature vector (no line break)"""
    return format_sparse_example(
        label, ((i, v) for i, v in enumerate(features, start=1) if v != 0))


class DatasetWriter:
    """
    Streams labeled feature vectors to a features file.
    Use as a context manager; one writer per file.
    """

    def __init__(self, path: str, comment: Optional[str] = None):
        self.path = str(path)
        self.comment = comment
        self.lines_written = 0
        self._file = None

    def open(self):
        try:
            self._file = open(self.path, "w", encoding="utf-8", newline="\n")
        except OSError as e:
            raise DatasetWriteError(f"Error opening file '{self.path}': {e}") from e
        if self.comment:
            self._file.write(f"# {self.comment}\n")
        return self

    def write(self, label: int, features) -> bool:
        """Write one example. Empty vectors (failed extraction) are dropped."""
        if features is None or len(features) == 0:
            return False
        self._write_line(format_example(label, features))
        return True

    def write_example(self, example: LabeledExample):
        self._write_line(format_sparse_example(example.label, sorted(example.features.items())))

    def _write_line(self, line: str):
        if self._file is None:
            raise DatasetWriteError(f"Features file '{self.path}' is not open")
        self._file.write(line + "\n")
        self.lines_written += 1

    def close(self):
        if self._file is not None:
            self._file.flush()
            self._file.close()
            self._file = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def write_dataset(path: str, examples: List[LabeledExample], comment: Optional[str] = None) -> int:
    """Write already sparse examples. Returns the number of lines written."""
    with DatasetWriter(path, comment) as writer:
        for example in examples:
            writer.write_example(example)
        return writer.lines_written


def parse_line(line: str, path: str, line_number: int) -> Optional[LabeledExample]:
    """Parse one line; None for blank and comment lines"""
    content = line.split("#", 1)[0].strip()
    if not content:
        return None

    tokens = content.split()
    try:
        label = parse_float(tokens[0])
    except ValueError:
        raise DatasetFormatError(path, line_number, f"missing or malformed label '{tokens[0]}'")
    if label not in (1.0, -1.0):
        raise DatasetFormatError(path, line_number, f"label must be +1 or -1, got '{tokens[0]}'")

    features = {}
    last_index = 0
    for token in tokens[1:]:
        index_text, sep, value_text = token.partition(":")
        if not sep:
            raise DatasetFormatError(path, line_number, f"expected 'index:value', got '{token}'")
        if not INDEX_PATTERN.fullmatch(index_text):
            raise DatasetFormatError(path, line_number, f"malformed feature index '{index_text}'")
        index = int(index_text)
        if index < 1:
            raise DatasetFormatError(path, line_number, f"feature indices are 1-based, got {index}")
        if index <= last_index:
            raise DatasetFormatError(
                path, line_number,
                f"feature index {index} is not greater than previous index {last_index}")
        try:
            value = parse_float(value_text)
        except ValueError:
            raise DatasetFormatError(path, line_number, f"malformed feature value '{value_text}'")
        features[index] = value
        last_index = index

    return LabeledExample(int(label), features)


def read_dataset(path: str) -> List[LabeledExample]:
    """Read a features file. Any malformed line is fatal."""
    path = str(path)
    examples = []
    try:
        with open(path, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                example = parse_line(line, path, line_number)
                if example is not None:
                    examples.append(example)
    except OSError as e:
        raise DatasetFormatError(path, None, f"cannot read features file: {e}") from e
    except UnicodeDecodeError as e:
        raise DatasetFormatError(path, None, f"not a text features file: {e}") from e
    return examples


def examples_to_arrays(examples: List[LabeledExample],
                       n_features: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Dense (X, y) for the trainer. Columns follow the 1-based indices."""
    max_index = max((max(e.features) for e in examples if e.features), default=0)
    if n_features is None:
        n_features = max_index
    elif max_index > n_features:
        raise DatasetFormatError(
            "<examples>", None,
            f"feature index {max_index} exceeds expected feature length {n_features}")

    X = np.zeros((len(examples), n_features), dtype=np.float64)
    y = np.empty(len(examples), dtype=np.int32)
    for row, example in enumerate(examples):
        y[row] = example.label
        for index, value in example.features.items():
            X[row, index - 1] = value
    return X, y
