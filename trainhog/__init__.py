"""Train a custom HOG detecting vector for cv2.HOGDescriptor.setSVMDetector"""

__version__ = "0.1.0"
