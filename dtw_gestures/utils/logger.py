"""
Logging utilities for recording, training and prediction events.
"""

import datetime
import logging
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger with a console and optional file handler.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path that also receives every record.

    Returns:
        The configured "dtw_gestures" logger.
    """
    root = logging.getLogger("dtw_gestures")
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root


class RecognitionLogger:
    """Prints session events and mirrors them to an optional debug file."""

    def __init__(self, debug_file: Optional[str] = None, verbose: bool = True):
        self.verbose = verbose
        self.debug_file = None
        if debug_file:
            try:
                self.debug_file = open(debug_file, 'w')
                self.debug_file.write(f"Debug logging started at {datetime.datetime.now()}\n")
                self.debug_file.flush()
            except OSError as e:
                logger.warning(f"Could not open debug file: {e}")

    def _emit(self, message: str):
        timestamp = datetime.datetime.now().strftime("%H:%M:%S.%f")[:-3]
        line = f"[{timestamp}] {message}"
        if self.verbose:
            print(line)
        if self.debug_file:
            self.debug_file.write(line + "\n")
            self.debug_file.flush()

    def log_recording(self, recording: bool, class_label: int, num_samples: int = 0):
        """Log a recording start or stop."""
        if recording:
            self._emit(f"RECORDING class {class_label}")
        else:
            self._emit(f"STOPPED recording class {class_label} [{num_samples} samples]")

    def log_training(self, success: bool, num_classes: int = 0, error: Optional[str] = None):
        """Log the outcome of a training call."""
        if success:
            self._emit(f"Pipeline trained: {num_classes} classes")
        else:
            self._emit(f"WARNING: Failed to train pipeline ({error})")

    def log_prediction(self, result):
        """Log a prediction result."""
        if not result.success:
            self._emit(f"Prediction unavailable: {result.message}")
            return

        label = result.predicted_label
        status = " (null rejected)" if result.rejected else ""
        self._emit(f"Predicted class {label}{status} likelihood {result.maximum_likelihood:.3f}")
        for class_label, distance in sorted(result.class_distances.items()):
            likelihood = result.class_likelihoods.get(class_label, 0.0)
            self._emit(f"   Class {class_label}: distance {distance:.4f} likelihood {likelihood:.3f}")

    def log_info(self, message: str):
        self._emit(message)

    def close(self):
        """Close the debug file."""
        if self.debug_file:
            self.debug_file.close()
            self.debug_file = None
