import argparse

import pytest

from trainhog.cli import build_parser, config_from_args, main, parse_win_size


def generated_paths(tmp_path):
    genfiles = tmp_path / "genfiles"
    return [
        "--features-file", str(genfiles / "features.dat"),
        "--model-file", str(genfiles / "svmmodel.pkl"),
        "--descriptor-file", str(genfiles / "descriptorvector.dat"),
    ]


def test_parse_win_size():
    assert parse_win_size("64x128") == (64, 128)
    assert parse_win_size("32X32") == (32, 32)
    for bad in ("64", "64x", "axb", "1x2x3"):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_win_size(bad)


def test_config_from_args():
    args = build_parser().parse_args([
        "train", "--positive-dir", "a/", "--negative-dir", "b/", "--extensions", "PNG, bmp",
        "--win-size", "48x96", "--backend", "sgd", "-c", "0.5", "--bias-mode", "separate",
        "--no-test", "--live", "--camera", "2",
    ])

    config = config_from_args(args)

    assert config.POSITIVE_SAMPLES_DIR == "a/"
    assert config.NEGATIVE_SAMPLES_DIR == "b/"
    assert config.VALID_EXTENSIONS == ("png", "bmp")
    assert config.HOG_WIN_SIZE == (48, 96)
    assert config.TRAINER_BACKEND == "sgd"
    assert config.SVM_C == 0.5
    assert config.DETECTOR_BIAS_MODE == "separate"
    assert config.RUN_TRAINING_SET_TEST is False
    assert config.RUN_LIVE_TEST is True
    assert config.CAMERA_INDEX == 2


def test_defaults_keep_the_64x128_window():
    config = config_from_args(build_parser().parse_args(["train"]))
    assert config.HOG_WIN_SIZE == (64, 128)
    assert config.TRAINER_BACKEND == "svr"


def test_bad_window_size_is_a_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        main(["train", "--win-size", "big"])
    assert excinfo.value.code == 2


def test_train_with_empty_directories(tmp_path, capsys):
    (tmp_path / "pos").mkdir()
    (tmp_path / "neg").mkdir()

    code = main(["train", "--positive-dir", str(tmp_path / "pos"),
                 "--negative-dir", str(tmp_path / "neg")] + generated_paths(tmp_path))

    assert code == 0
    assert "nothing to do" in capsys.readouterr().out
    assert not (tmp_path / "genfiles" / "features.dat").exists()


def test_train_then_evaluate(tmp_path, sample_dirs, capsys):
    pos, neg = sample_dirs
    common = ["--positive-dir", str(pos), "--negative-dir", str(neg),
              "--win-size", "32x32"] + generated_paths(tmp_path)

    assert main(["train", "--no-test"] + common) == 0
    assert (tmp_path / "genfiles" / "descriptorvector.dat").exists()
    capsys.readouterr()

    assert main(["evaluate"] + common) == 0
    out = capsys.readouterr().out
    assert "Loaded descriptor vector" in out
    assert "True Positives:" in out


def test_evaluate_without_descriptor_fails(tmp_path, sample_dirs, capsys):
    pos, neg = sample_dirs

    code = main(["evaluate", "--positive-dir", str(pos), "--negative-dir", str(neg),
                 "--win-size", "32x32"] + generated_paths(tmp_path))

    assert code == 1
    assert "❌ Error:" in capsys.readouterr().out


def test_evaluate_with_mismatched_window_fails(tmp_path, sample_dirs):
    pos, neg = sample_dirs
    common = ["--positive-dir", str(pos), "--negative-dir", str(neg)] + generated_paths(tmp_path)

    assert main(["train", "--no-test", "--win-size", "32x32"] + common) == 0
    # default 64x128 window expects 3780 components
    assert main(["evaluate"] + common) == 1


def test_training_failure_returns_error_code(tmp_path, sample_dirs, capsys):
    pos, _ = sample_dirs
    (tmp_path / "empty_neg").mkdir()

    code = main(["train", "--positive-dir", str(pos), "--negative-dir", str(tmp_path / "empty_neg"),
                 "--win-size", "32x32"] + generated_paths(tmp_path))

    assert code == 1
    assert "both positive and negative" in capsys.readouterr().out
