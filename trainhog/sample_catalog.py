"""
SAMPLE CATALOG
Collects positive / negative training image files from their directories.
"""

import os
from dataclasses import dataclass, field
from typing import Iterable, List

POSITIVE = "positive"
NEGATIVE = "negative"


@dataclass(frozen=True)
class Sample:
    path: str
    label: str

    @property
    def sign(self) -> int:
        """SVM class: +1 for positives, -1 for negatives"""
        return 1 if self.label == POSITIVE else -1


@dataclass
class SampleCatalog:
    positives: List[Sample] = field(default_factory=list)
    negatives: List[Sample] = field(default_factory=list)

    @property
    def samples(self) -> List[Sample]:
        return self.positives + self.negatives

    @property
    def positive_files(self) -> List[str]:
        return [s.path for s in self.positives]

    @property
    def negative_files(self) -> List[str]:
        return [s.path for s in self.negatives]

    def __len__(self):
        return len(self.positives) + len(self.negatives)


def file_extension(file_name: str) -> str:
    """Lower-cased text after the last '.', empty if there is none"""
    dot = file_name.rfind(".")
    if dot < 0:
        return ""
    return file_name[dot + 1:].lower()


def list_files_in_directory(directory: str, valid_extensions: Iterable[str],
                            verbose: bool = False) -> List[str]:
    """
    List the files in `directory` whose extension is in `valid_extensions`.
    Sub-directories and dot-files are skipped. The result is sorted by name.
    A directory that cannot be opened yields no files.
    """
    extensions = {ext.lower().lstrip(".") for ext in valid_extensions}
    print(f"Opening directory {directory}")

    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as e:
        print(f"⚠️  Error opening directory '{directory}': {e}")
        return []

    file_names = []
    for entry in entries:
        if entry.name.startswith(".") or entry.is_dir():
            continue
        if file_extension(entry.name) in extensions:
            if verbose:
                print(f"   Found matching data file '{entry.name}'")
            file_names.append(os.path.join(directory, entry.name))
        elif verbose:
            print(f"   Found file does not match required file type, skipping: '{entry.name}'")

    return file_names


def scan_samples(positive_dir: str, negative_dir: str,
                 valid_extensions: Iterable[str], verbose: bool = False) -> SampleCatalog:
    """Scan both sample directories. Positives come first."""
    valid_extensions = tuple(valid_extensions)
    positives = [Sample(p, POSITIVE)
                 for p in list_files_in_directory(positive_dir, valid_extensions, verbose)]
    negatives = [Sample(p, NEGATIVE)
                 for p in list_files_in_directory(negative_dir, valid_extensions, verbose)]

    print(f"   Positive files: {len(positives)}")
    print(f"   Negative files: {len(negatives)}")
    return SampleCatalog(positives, negatives)
