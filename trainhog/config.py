"""
CONFIGURATION
All paths and parameters of a training run.
HOG geometry MUST MATCH the detection side (setSVMDetector / detectMultiScale).
"""

from trainhog.trainers import SVMHyperparameters


class TrainHogConfig:
    """Configuration for detector training"""

    # Dataset paths
    POSITIVE_SAMPLES_DIR = "pos/"  # Images containing the object, cropped to the window size
    NEGATIVE_SAMPLES_DIR = "neg/"  # Background images of the same size
    VALID_EXTENSIONS = ("jpg", "png", "ppm")

    # Generated files
    FEATURES_FILE = "genfiles/features.dat"
    MODEL_FILE = "genfiles/svmmodel.pkl"
    DESCRIPTOR_VECTOR_FILE = "genfiles/descriptorvector.dat"

    # HOG parameters (64x128 is the window size used in the Dalal-Triggs paper)
    HOG_WIN_SIZE = (64, 128)
    HOG_BLOCK_SIZE = (16, 16)
    HOG_BLOCK_STRIDE = (8, 8)
    HOG_CELL_SIZE = (8, 8)
    HOG_NBINS = 9

    # Not part of cv2.HOGDescriptor, passed to compute() / detect()
    TRAINING_WIN_STRIDE = (8, 8)
    TRAINING_PADDING = (0, 0)

    # SVM parameters
    TRAINER_BACKEND = "svr"  # svr | svc | sgd
    SVM_C = 0.01  # Soft classifier as in the HOG paper
    SVM_KERNEL = "linear"  # Only linear models can be collapsed into one vector
    SVM_TOLERANCE = 1e-3
    SVM_MAX_ITER = 100000
    SVM_EPSILON = 0.1

    # Detector vector file: "append" writes -b as last component (OpenCV layout),
    # "separate" keeps b in <file>.bias and uses it as hit threshold
    DETECTOR_BIAS_MODE = "append"

    # Tests after training
    RUN_TRAINING_SET_TEST = True
    RUN_LIVE_TEST = False
    CAMERA_INDEX = 0

    VERBOSE = False

    def hyperparameters(self) -> SVMHyperparameters:
        return SVMHyperparameters(
            c=self.SVM_C,
            kernel=self.SVM_KERNEL,
            tolerance=self.SVM_TOLERANCE,
            max_iter=self.SVM_MAX_ITER,
            epsilon=self.SVM_EPSILON,
        )

    def print_summary(self):
        print("\n📝 Configuration:")
        print(f"   Positive samples: {self.POSITIVE_SAMPLES_DIR}")
        print(f"   Negative samples: {self.NEGATIVE_SAMPLES_DIR}")
        print(f"   Extensions: {', '.join(self.VALID_EXTENSIONS)}")
        print(f"   HOG window: {self.HOG_WIN_SIZE[0]}x{self.HOG_WIN_SIZE[1]}")
        print(f"   Features file: {self.FEATURES_FILE}")
        print(f"   Model file: {self.MODEL_FILE}")
        print(f"   Descriptor vector file: {self.DESCRIPTOR_VECTOR_FILE} (bias: {self.DETECTOR_BIAS_MODE})")
        print(f"   Trainer: {self.TRAINER_BACKEND} (C={self.SVM_C}, kernel={self.SVM_KERNEL})")
