import locale

import numpy as np
import pytest

from trainhog.dataset_io import (DatasetWriter, LabeledExample, examples_to_arrays,
                                 format_example, read_dataset, write_dataset)
from trainhog.errors import DatasetFormatError, DatasetWriteError
from trainhog.numeric_locale import format_float, parse_float, pin_numeric_locale

COMMA_LOCALES = ["de_DE.UTF-8", "de_DE.utf8", "fr_FR.UTF-8", "fr_FR.utf8", "nl_NL.UTF-8", "ru_RU.UTF-8"]


def test_line_format():
    assert format_example(1, [0.5, 0.0, 3.5]) == "+1 1:0.5 3:3.5"
    assert format_example(-1, np.array([0.25, 1.0], dtype=np.float32)) == "-1 1:0.25 2:1"


def test_write_then_read_round_trip(tmp_path, rng):
    path = tmp_path / "features.dat"
    vectors = [rng.random(50).astype(np.float32) for _ in range(4)]
    vectors[1][[3, 7, 8]] = 0.0
    labels = [1, -1, 1, -1]

    with DatasetWriter(str(path), comment="generated for a test") as writer:
        for label, vector in zip(labels, vectors):
            writer.write(label, vector)

    examples = read_dataset(str(path))

    assert [e.label for e in examples] == labels
    for example, vector in zip(examples, vectors):
        expected = {i + 1: float(v) for i, v in enumerate(vector) if v != 0}
        assert list(example.features) == list(expected)
        for index, value in expected.items():
            assert example.features[index] == pytest.approx(value, rel=1e-6)


def test_sparse_examples_round_trip(tmp_path):
    path = tmp_path / "features.dat"
    examples = [
        LabeledExample(1, {1: 2.0, 5: -0.125}),
        LabeledExample(-1, {2: 1e-7, 3: 123456.75}),
    ]

    assert write_dataset(str(path), examples) == 2
    assert read_dataset(str(path)) == examples


def test_empty_vectors_are_omitted(tmp_path):
    path = tmp_path / "features.dat"

    with DatasetWriter(str(path)) as writer:
        assert writer.write(1, None) is False
        assert writer.write(-1, np.array([], dtype=np.float32)) is False
        assert writer.write(-1, [1.0]) is True

    assert path.read_text() == "-1 1:1\n"
    assert writer.lines_written == 1


def test_comment_line_is_written_and_ignored(tmp_path):
    path = tmp_path / "features.dat"

    with DatasetWriter(str(path), comment="Use this file to train") as writer:
        writer.write(1, [1.5])

    lines = path.read_text().splitlines()
    assert lines[0] == "# Use this file to train"
    assert read_dataset(str(path)) == [LabeledExample(1, {1: 1.5})]


def test_reader_ignores_blank_lines_and_trailing_comments(tmp_path):
    path = tmp_path / "features.dat"
    path.write_text("# header\n\n+1 1:0.5 2:1 # info\n   \n-1 2:3\n")

    assert read_dataset(str(path)) == [
        LabeledExample(1, {1: 0.5, 2: 1.0}),
        LabeledExample(-1, {2: 3.0}),
    ]


@pytest.mark.parametrize("bad_line, reason", [
    ("+1 1:0.5 2:abc", "malformed feature value"),
    ("+1 1:0.5 x:1", "malformed feature index"),
    ("+1 2:0.5 2:1", "not greater than previous"),
    ("+1 3:0.5 1:1", "not greater than previous"),
    ("+1 0:0.5", "1-based"),
    ("1:0.5 2:1", "missing or malformed label"),
    ("+2 1:0.5", "label must be +1 or -1"),
    ("+1 1:0.5 0.7", "expected 'index:value'"),
    ("+1 1:1_0", "malformed feature value"),
    ("+1 1:\u0661.5", "malformed feature value"),
    ("+1 1_0:0.5", "malformed feature index"),
    ("+1 \u0661:0.5", "malformed feature index"),
])
def test_malformed_lines_fail_with_line_number(tmp_path, bad_line, reason):
    path = tmp_path / "features.dat"
    path.write_text(f"# header\n+1 1:0.5\n{bad_line}\n-1 1:1\n", encoding="utf-8")

    with pytest.raises(DatasetFormatError) as excinfo:
        read_dataset(str(path))

    assert excinfo.value.line_number == 3
    assert reason in str(excinfo.value)
    assert f"{path}:3:" in str(excinfo.value)


def test_missing_dataset_file(tmp_path):
    with pytest.raises(DatasetFormatError):
        read_dataset(str(tmp_path / "missing.dat"))


def test_unwritable_dataset_file(tmp_path):
    with pytest.raises(DatasetWriteError):
        with DatasetWriter(str(tmp_path / "no_such_dir" / "features.dat")):
            pass


def test_examples_to_arrays():
    examples = [LabeledExample(1, {1: 2.0, 3: 1.0}), LabeledExample(-1, {2: 4.0})]

    X, y = examples_to_arrays(examples)

    np.testing.assert_array_equal(X, [[2.0, 0.0, 1.0], [0.0, 4.0, 0.0]])
    np.testing.assert_array_equal(y, [1, -1])
    assert examples_to_arrays(examples, n_features=5)[0].shape == (2, 5)


def test_examples_to_arrays_rejects_too_long_examples():
    with pytest.raises(DatasetFormatError):
        examples_to_arrays([LabeledExample(1, {4: 1.0})], n_features=3)


def test_float_codec_uses_decimal_point():
    assert format_float(3.5) == "3.5"
    assert parse_float("3.5") == 3.5
    with pytest.raises(ValueError):
        parse_float("3,5")
    with pytest.raises(ValueError):
        parse_float("\u0661.5")


@pytest.fixture
def comma_locale(monkeypatch):
    """
    Switch LC_NUMERIC to a decimal-comma locale. Where none is installed,
    localeconv() is made to report one, which is what locale-aware
    formatting and parsing consult.
    """
    previous = locale.setlocale(locale.LC_NUMERIC)
    for name in COMMA_LOCALES:
        try:
            locale.setlocale(locale.LC_NUMERIC, name)
            break
        except locale.Error:
            continue
    else:
        conventions = dict(locale.localeconv(), decimal_point=",", thousands_sep=".")
        monkeypatch.setattr(locale, "localeconv", lambda: conventions)

    yield
    locale.setlocale(locale.LC_NUMERIC, previous)


def test_locale_independence(tmp_path, comma_locale):
    assert locale.localeconv()["decimal_point"] == ","

    path = tmp_path / "features.dat"
    with DatasetWriter(str(path)) as writer:
        writer.write(1, [3.5, 0.25])

    assert path.read_text() == "+1 1:3.5 2:0.25\n"
    assert read_dataset(str(path)) == [LabeledExample(1, {1: 3.5, 2: 0.25})]
    assert format_float(3.5) == "3.5"


def test_pin_numeric_locale():
    previous = locale.setlocale(locale.LC_NUMERIC)
    try:
        pin_numeric_locale()
        assert locale.setlocale(locale.LC_NUMERIC) in ("C", "POSIX")
        assert locale.localeconv()["decimal_point"] == "."
    finally:
        locale.setlocale(locale.LC_NUMERIC, previous)
