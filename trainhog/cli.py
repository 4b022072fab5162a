"""
Command line entry point.

    trainhog train --positive-dir pos/ --negative-dir neg/
    trainhog evaluate --descriptor-file genfiles/descriptorvector.dat
    trainhog live --descriptor-file genfiles/descriptorvector.dat --camera 0
"""

import argparse
import sys

from trainhog.config import TrainHogConfig
from trainhog.errors import TrainHogError
from trainhog.evaluator import SlidingWindowDetector, evaluate_training_set, run_live_detection
from trainhog.hog_extractor import HOGFeatureExtractor
from trainhog.numeric_locale import pin_numeric_locale
from trainhog.pipeline import NOTHING_TO_DO, TrainingPipeline, print_banner
from trainhog.sample_catalog import scan_samples
from trainhog.synthesizer import BIAS_MODES, load_detector_vector
from trainhog.trainers import TRAINERS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trainhog",
        description="Train a custom HOG detecting vector for cv2.HOGDescriptor.setSVMDetector")
    parser.add_argument('mode', choices=['train', 'evaluate', 'live'],
                        help='train a detector, re-test a saved one on the training set, or run it on a camera')
    parser.add_argument('--positive-dir', default=TrainHogConfig.POSITIVE_SAMPLES_DIR,
                        help='Directory with positive sample images')
    parser.add_argument('--negative-dir', default=TrainHogConfig.NEGATIVE_SAMPLES_DIR,
                        help='Directory with negative sample images')
    parser.add_argument('--extensions', default=",".join(TrainHogConfig.VALID_EXTENSIONS),
                        help='Comma separated image file extensions (case-insensitive)')
    parser.add_argument('--features-file', default=TrainHogConfig.FEATURES_FILE,
                        help='Features file to write (SVMlight format)')
    parser.add_argument('--model-file', default=TrainHogConfig.MODEL_FILE,
                        help='Trained SVM model file')
    parser.add_argument('--descriptor-file', default=TrainHogConfig.DESCRIPTOR_VECTOR_FILE,
                        help='Single detecting vector file')
    parser.add_argument('--win-size', default=None,
                        help='HOG window size WIDTHxHEIGHT (default 64x128)')
    parser.add_argument('--backend', choices=sorted(TRAINERS), default=TrainHogConfig.TRAINER_BACKEND,
                        help='SVM trainer backend')
    parser.add_argument('-c', type=float, default=TrainHogConfig.SVM_C,
                        help='SVM regularization parameter C')
    parser.add_argument('--bias-mode', choices=BIAS_MODES, default=TrainHogConfig.DETECTOR_BIAS_MODE,
                        help='Append -b to the detecting vector or keep b in <descriptor-file>.bias')
    parser.add_argument('--camera', type=int, default=TrainHogConfig.CAMERA_INDEX,
                        help='Camera index for the live test')
    parser.add_argument('--live', action='store_true',
                        help='Run the live camera test after training')
    parser.add_argument('--no-test', action='store_true',
                        help='Skip the training set test after training')
    parser.add_argument('--verbose', action='store_true',
                        help='List every accepted / skipped sample file')
    return parser


def parse_win_size(text: str):
    try:
        width, height = (int(v) for v in text.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid window size '{text}', expected WIDTHxHEIGHT")
    return (width, height)


def config_from_args(args) -> TrainHogConfig:
    config = TrainHogConfig()
    config.POSITIVE_SAMPLES_DIR = args.positive_dir
    config.NEGATIVE_SAMPLES_DIR = args.negative_dir
    config.VALID_EXTENSIONS = tuple(e.strip().lower() for e in args.extensions.split(",") if e.strip())
    config.FEATURES_FILE = args.features_file
    config.MODEL_FILE = args.model_file
    config.DESCRIPTOR_VECTOR_FILE = args.descriptor_file
    if args.win_size:
        config.HOG_WIN_SIZE = parse_win_size(args.win_size)
    config.TRAINER_BACKEND = args.backend
    config.SVM_C = args.c
    config.DETECTOR_BIAS_MODE = args.bias_mode
    config.CAMERA_INDEX = args.camera
    config.RUN_LIVE_TEST = args.live
    config.RUN_TRAINING_SET_TEST = not args.no_test
    config.VERBOSE = args.verbose
    return config


def load_saved_detector(config: TrainHogConfig):
    extractor = HOGFeatureExtractor.from_config(config)
    detector = load_detector_vector(config.DESCRIPTOR_VECTOR_FILE, config.DETECTOR_BIAS_MODE,
                                    n_features=extractor.feature_length)
    print(f"✅ Loaded descriptor vector '{config.DESCRIPTOR_VECTOR_FILE}' ({detector.n_features} features)")
    return SlidingWindowDetector(extractor, detector, config.DETECTOR_BIAS_MODE)


def run_train(config: TrainHogConfig) -> int:
    print_banner("🚀 HOG DETECTOR TRAINING")
    config.print_summary()
    result = TrainingPipeline(config).run()
    if result.status == NOTHING_TO_DO:
        print("   Put sample images into the positive / negative directories and run again.")
    return 0


def run_evaluate(config: TrainHogConfig) -> int:
    pin_numeric_locale()
    sliding_window = load_saved_detector(config)
    catalog = scan_samples(config.POSITIVE_SAMPLES_DIR, config.NEGATIVE_SAMPLES_DIR,
                           config.VALID_EXTENSIONS, verbose=config.VERBOSE)
    if len(catalog) == 0:
        print("\nNo sample files found, nothing to do!")
        return 0
    report = evaluate_training_set(sliding_window, catalog.positive_files, catalog.negative_files)
    report.print_report()
    return 0


def run_live(config: TrainHogConfig) -> int:
    pin_numeric_locale()
    sliding_window = load_saved_detector(config)
    run_live_detection(sliding_window, config.CAMERA_INDEX)
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    try:
        if args.mode == 'train':
            return run_train(config)
        if args.mode == 'evaluate':
            return run_evaluate(config)
        return run_live(config)
    except (TrainHogError, OSError) as e:
        print(f"\n❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
