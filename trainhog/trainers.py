"""
SVM TRAINERS
Every backend returns a TrainedModel exposing the same three things the
synthesizer needs: support vectors (with signed weights), the bias and the
kernel type.

Bias convention for every backend: decision(x) = dot(w, x) - bias
(bias is the SVMlight threshold b; scikit-learn's intercept_ is -b).
"""

import pickle
import time
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import SGDClassifier
from sklearn.svm import SVC, SVR

from trainhog.dataset_io import LabeledExample, examples_to_arrays
from trainhog.errors import TrainingError

LINEAR = "linear"


@dataclass(frozen=True)
class SVMHyperparameters:
    c: float = 0.01
    kernel: str = LINEAR
    tolerance: float = 1e-3
    max_iter: int = 100000
    epsilon: float = 0.1  # epsilon-SVR tube width


@dataclass(frozen=True)
class SupportVector:
    components: Dict[int, float]  # 1-based feature index -> value
    weight: float  # alpha * label sign


def sparse_components(row: np.ndarray) -> Dict[int, float]:
    return {int(j) + 1: float(row[j]) for j in np.flatnonzero(row)}


# =============================================================================
# FITTED MODELS
# =============================================================================
class TrainedModel(ABC):
    """A fitted model as seen by the synthesizer"""

    name = "SVM"

    def __init__(self, n_features: int):
        self.n_features = n_features

    @abstractmethod
    def support_vectors(self) -> List[SupportVector]:
        ...

    @abstractmethod
    def bias(self) -> float:
        ...

    @abstractmethod
    def kernel_type(self) -> str:
        ...

    def save(self, path: str):
        with open(path, "wb") as f:
            pickle.dump(self, f)

    def describe(self) -> str:
        return (f"{self.name}: kernel {self.kernel_type()}, "
                f"#SVs {len(self.support_vectors())}, bias b {self.bias():.5f}, "
                f"{self.n_features} features")


class SklearnSVMModel(TrainedModel):
    """Dual-form scikit-learn SVM (SVR / SVC): support_vectors_ + dual_coef_"""

    def __init__(self, estimator, n_features: int, name: str):
        super().__init__(n_features)
        self.estimator = estimator
        self.name = name

    def support_vectors(self) -> List[SupportVector]:
        # dual_coef_ already holds alpha_i * y_i (alpha_i - alpha_i* for SVR)
        weights = self.estimator.dual_coef_[0]
        return [SupportVector(sparse_components(sv), float(w))
                for sv, w in zip(self.estimator.support_vectors_, weights)]

    def bias(self) -> float:
        return -float(self.estimator.intercept_[0])

    def kernel_type(self) -> str:
        return str(self.estimator.kernel)


class PrimalLinearModel(TrainedModel):
    """
    Primal linear model (SGDClassifier): its weight vector is reported as a
    single support vector of weight 1, so synthesis returns it unchanged.
    """

    name = "SGD linear SVM"

    def __init__(self, estimator, n_features: int):
        super().__init__(n_features)
        self.estimator = estimator

    def support_vectors(self) -> List[SupportVector]:
        return [SupportVector(sparse_components(self.estimator.coef_[0]), 1.0)]

    def bias(self) -> float:
        return -float(self.estimator.intercept_[0])

    def kernel_type(self) -> str:
        return LINEAR


def load_model(path: str) -> TrainedModel:
    with open(path, "rb") as f:
        model = pickle.load(f)
    if not isinstance(model, TrainedModel):
        raise TrainingError(f"'{path}' does not contain a trained model")
    print(f"✅ Loaded model from {path}")
    print(f"   {model.describe()}")
    return model


# =============================================================================
# TRAINERS
# =============================================================================
class SVMTrainer(ABC):
    """Fits a TrainedModel from labeled examples"""

    name = "SVM"

    def __init__(self, hyperparameters: Optional[SVMHyperparameters] = None):
        self.hyperparameters = hyperparameters or SVMHyperparameters()

    @abstractmethod
    def create_estimator(self, n_samples: int):
        ...

    @abstractmethod
    def wrap(self, estimator, n_features: int) -> TrainedModel:
        ...

    def fit(self, examples: List[LabeledExample], n_features: Optional[int] = None) -> TrainedModel:
        X, y = examples_to_arrays(examples, n_features)
        if len(y) == 0:
            raise TrainingError("No training examples, cannot train")
        classes = np.unique(y)
        if len(classes) < 2:
            raise TrainingError(
                f"Training needs both positive and negative examples, only got class {classes[0]:+d}")

        params = self.hyperparameters
        print(f"\n⚙️  {self.name} Configuration:")
        print(f"   Kernel: {params.kernel}")
        print(f"   C: {params.c}")
        print(f"   Training samples: {len(y)} ({np.sum(y == 1)} positive, {np.sum(y == -1)} negative)")
        print(f"   Feature dimension: {X.shape[1]}")
        print(f"\n⏳ Training in progress...")

        estimator = self.create_estimator(len(y))
        start_time = time.time()
        with warnings.catch_warnings():
            warnings.simplefilter("error", ConvergenceWarning)
            try:
                estimator.fit(X, y)
            except ConvergenceWarning as e:
                raise TrainingError(f"{self.name} did not converge: {e}") from e
            except ValueError as e:
                raise TrainingError(f"{self.name} training failed: {e}") from e

        print(f"✅ Training completed in {time.time() - start_time:.2f}s")
        return self.wrap(estimator, X.shape[1])


class SVRTrainer(SVMTrainer):
    """epsilon-SVR on +1/-1 targets (the SVMlight regression setup)"""

    name = "SVR (epsilon-SVR)"

    def create_estimator(self, n_samples: int):
        params = self.hyperparameters
        return SVR(
            kernel=params.kernel,
            C=params.c,
            epsilon=params.epsilon,
            tol=params.tolerance,
            max_iter=params.max_iter,
            shrinking=False,
        )

    def wrap(self, estimator, n_features: int) -> TrainedModel:
        return SklearnSVMModel(estimator, n_features, self.name)


class SVCTrainer(SVMTrainer):
    """C-SVC (the libsvm classification setup)"""

    name = "SVC (C-SVC)"

    def create_estimator(self, n_samples: int):
        params = self.hyperparameters
        return SVC(
            kernel=params.kernel,
            C=params.c,
            tol=params.tolerance,
            max_iter=params.max_iter,
            shrinking=False,
        )

    def wrap(self, estimator, n_features: int) -> TrainedModel:
        return SklearnSVMModel(estimator, n_features, self.name)


class SGDTrainer(SVMTrainer):
    """Hinge-loss SGDClassifier: a linear SVM solved in the primal"""

    name = "SGD (hinge loss)"

    def create_estimator(self, n_samples: int):
        params = self.hyperparameters
        if params.kernel != LINEAR:
            raise TrainingError(f"{self.name} only supports the linear kernel, got '{params.kernel}'")
        return SGDClassifier(
            loss="hinge",
            penalty="l2",
            alpha=1.0 / (params.c * n_samples),  # C = 1 / (alpha * n_samples)
            max_iter=params.max_iter,
            tol=params.tolerance,
            random_state=42,
        )

    def wrap(self, estimator, n_features: int) -> TrainedModel:
        return PrimalLinearModel(estimator, n_features)


TRAINERS = {
    "svr": SVRTrainer,
    "svc": SVCTrainer,
    "sgd": SGDTrainer,
}


def create_trainer(backend: str, hyperparameters: Optional[SVMHyperparameters] = None) -> SVMTrainer:
    try:
        trainer_class = TRAINERS[backend]
    except KeyError:
        raise TrainingError(
            f"Unknown trainer backend '{backend}', expected one of: {', '.join(TRAINERS)}") from None
    return trainer_class(hyperparameters)
