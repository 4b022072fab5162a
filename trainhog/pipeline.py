"""
TRAINING PIPELINE
1. Read positive and negative training sample image files
2. Calculate their HOG features and save them, with their classes, to the features file
3. Read the features file back and train the SVM
4. Collapse the support vectors into a single detecting vector and save it
5. Dry-run the detector against the training set (and a camera, if requested)
"""

import os
import time
from dataclasses import dataclass
from typing import Optional

from tqdm import tqdm

from trainhog.dataset_io import DatasetWriter, read_dataset
from trainhog.errors import DatasetWriteError, DetectorFileError, TrainingError
from trainhog.evaluator import (EvaluationReport, SlidingWindowDetector,
                                evaluate_training_set, run_live_detection)
from trainhog.hog_extractor import HOGFeatureExtractor
from trainhog.numeric_locale import pin_numeric_locale
from trainhog.sample_catalog import SampleCatalog, scan_samples
from trainhog.synthesizer import (LinearDetector, SynthesisResult,
                                  save_detector_vector, synthesize_linear_detector)
from trainhog.trainers import SVMTrainer, TrainedModel, create_trainer

NOTHING_TO_DO = "nothing_to_do"
TRAINED = "trained"


@dataclass
class ExtractionStats:
    found: int = 0
    written: int = 0
    skipped: int = 0


@dataclass
class PipelineResult:
    status: str
    catalog: SampleCatalog
    extraction: Optional[ExtractionStats] = None
    model: Optional[TrainedModel] = None
    synthesis: Optional[SynthesisResult] = None
    evaluation: Optional[EvaluationReport] = None

    @property
    def detector(self) -> Optional[LinearDetector]:
        return self.synthesis.detector if self.synthesis else None


def print_banner(title: str):
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)


def ensure_parent_dir(path: str):
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


class TrainingPipeline:
    """Owns one trainer and one HOG extractor for a training session"""

    def __init__(self, config, trainer: Optional[SVMTrainer] = None,
                 extractor: Optional[HOGFeatureExtractor] = None):
        self.config = config
        self.extractor = extractor or HOGFeatureExtractor.from_config(config)
        self.trainer = trainer or create_trainer(config.TRAINER_BACKEND, config.hyperparameters())

    def scan(self) -> SampleCatalog:
        print_banner("📂 READING SAMPLE FILES")
        return scan_samples(
            self.config.POSITIVE_SAMPLES_DIR,
            self.config.NEGATIVE_SAMPLES_DIR,
            self.config.VALID_EXTENSIONS,
            verbose=self.config.VERBOSE,
        )

    def extract_features(self, catalog: SampleCatalog) -> ExtractionStats:
        """Compute HOG features of every sample and stream them to the features file"""
        features_file = self.config.FEATURES_FILE
        print_banner("🔍 CALCULATING HOG FEATURES")
        print(f"   Writing features to '{features_file}'")

        try:
            ensure_parent_dir(features_file)
        except OSError as e:
            raise DatasetWriteError(f"Cannot create directory for '{features_file}': {e}") from e

        comment = (f"Use this file to train, e.g. SVMlight by issuing "
                   f"$ svm_learn -i 1 -a weights.txt {features_file}")
        stats = ExtractionStats(found=len(catalog))
        start_time = time.time()

        with DatasetWriter(features_file, comment) as writer:
            for sample in tqdm(catalog.samples, desc="   Extracting features"):
                features = self.extractor.extract_file(sample.path)
                if writer.write(sample.sign, features):
                    stats.written += 1
                else:
                    stats.skipped += 1

        print(f"\n✅ Feature extraction done in {time.time() - start_time:.2f}s")
        print(f"   Files found: {stats.found}")
        print(f"   Examples written: {stats.written}")
        print(f"   Skipped (unreadable / wrong size): {stats.skipped}")
        print(f"   Feature dimension: {self.extractor.feature_length}")
        return stats

    def train(self) -> TrainedModel:
        """Read the features file back, fit the SVM and save the model file"""
        print_banner(f"🎓 TRAINING {self.trainer.name}")
        examples = read_dataset(self.config.FEATURES_FILE)
        print(f"   Read {len(examples)} examples from '{self.config.FEATURES_FILE}'")

        model = self.trainer.fit(examples, n_features=self.extractor.feature_length)

        try:
            ensure_parent_dir(self.config.MODEL_FILE)
            model.save(self.config.MODEL_FILE)
        except OSError as e:
            raise TrainingError(f"Cannot save model to '{self.config.MODEL_FILE}': {e}") from e
        print(f"💾 Model saved to: {self.config.MODEL_FILE}")
        print(f"   {model.describe()}")
        return model

    def synthesize(self, model: TrainedModel) -> SynthesisResult:
        print_banner("🧮 GENERATING SINGLE DETECTING VECTOR")
        result = synthesize_linear_detector(model, self.extractor.feature_length)

        try:
            ensure_parent_dir(self.config.DESCRIPTOR_VECTOR_FILE)
        except OSError as e:
            raise DetectorFileError(
                f"Cannot create directory for '{self.config.DESCRIPTOR_VECTOR_FILE}': {e}") from e
        save_detector_vector(result.detector, self.config.DESCRIPTOR_VECTOR_FILE,
                             self.config.DETECTOR_BIAS_MODE)
        return result

    def sliding_window_detector(self, detector: LinearDetector) -> SlidingWindowDetector:
        return SlidingWindowDetector(self.extractor, detector, self.config.DETECTOR_BIAS_MODE)

    def test_training_set(self, catalog: SampleCatalog, detector: LinearDetector) -> EvaluationReport:
        print_banner("📊 TESTING DETECTOR ON TRAINING SET")
        print("   Just to check if training is ok, no detection quality conclusion with this!")
        report = evaluate_training_set(
            self.sliding_window_detector(detector),
            catalog.positive_files,
            catalog.negative_files,
        )
        report.print_report()
        return report

    def test_live(self, detector: LinearDetector) -> int:
        print_banner("🎥 LIVE TEST")
        return run_live_detection(self.sliding_window_detector(detector), self.config.CAMERA_INDEX)

    def run(self) -> PipelineResult:
        pin_numeric_locale()
        catalog = self.scan()

        if len(catalog) == 0:
            print("\nNo training sample files found, nothing to do!")
            return PipelineResult(NOTHING_TO_DO, catalog)

        stats = self.extract_features(catalog)
        model = self.train()
        synthesis = self.synthesize(model)
        result = PipelineResult(TRAINED, catalog, stats, model, synthesis)

        if self.config.RUN_TRAINING_SET_TEST:
            result.evaluation = self.test_training_set(catalog, synthesis.detector)
        if self.config.RUN_LIVE_TEST:
            self.test_live(synthesis.detector)

        print_banner("✅ TRAINING COMPLETED SUCCESSFULLY!")
        print(f"📁 Descriptor vector: {self.config.DESCRIPTOR_VECTOR_FILE}")
        return result
