"""
Command line interface for recording-free training and prediction.

Usage:
  dtw-gestures train TrainingData.txt --model model.joblib --coeff 3
  dtw-gestures predict model.joblib TestData.txt
  dtw-gestures stream model.joblib mouse_rows.txt
  dtw-gestures evaluate TrainingData.txt --test-fraction 0.3
  dtw-gestures info TrainingData.txt
"""

import argparse
import logging
from typing import List, Optional

import numpy as np

from .config.settings import DTWConfig, DTWDefaults
from .core.pipeline import GestureRecognitionPipeline
from .exceptions import DTWGestureError
from .gestures.dataset import TimeSeriesDataset
from .utils.logger import RecognitionLogger, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dtw-gestures",
        description="Train and run a DTW gesture classifier with null rejection.")
    parser.add_argument("--log-level", default="INFO", type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--debug-file", default=None, help="Mirror session events to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    p_train = sub.add_parser("train", help="Train a model from a dataset file")
    p_train.add_argument("dataset")
    p_train.add_argument("--model", required=True, help="Output model path")
    _add_config_args(p_train)

    p_predict = sub.add_parser("predict", help="Classify every series of a dataset file")
    p_predict.add_argument("model")
    p_predict.add_argument("dataset")

    p_stream = sub.add_parser("stream", help="Feed feature vectors one row at a time")
    p_stream.add_argument("model")
    p_stream.add_argument("rows", help="Whitespace separated file, one feature vector per line")

    p_eval = sub.add_parser("evaluate", help="Train/test split evaluation")
    p_eval.add_argument("dataset")
    p_eval.add_argument("--test-fraction", type=float, default=0.3)
    p_eval.add_argument("--seed", type=int, default=None)
    _add_config_args(p_eval)

    p_info = sub.add_parser("info", help="Summarise a dataset file")
    p_info.add_argument("dataset")

    return parser


def _add_config_args(parser: argparse.ArgumentParser):
    parser.add_argument("--coeff", type=float, default=DTWDefaults.NULL_REJECTION_COEFF,
                        help="Null rejection coefficient")
    parser.add_argument("--no-null-rejection", action="store_true")
    parser.add_argument("--no-trim", action="store_true")
    parser.add_argument("--trim-threshold", type=float, default=DTWDefaults.TRIM_THRESHOLD)
    parser.add_argument("--trim-max-percent", type=float, default=DTWDefaults.TRIM_MAX_PERCENT)
    parser.add_argument("--no-offset", action="store_true")
    parser.add_argument("--unconstrained", action="store_true",
                        help="Search the whole cost matrix")
    parser.add_argument("--band-width", type=int, default=None)
    parser.add_argument("--normalize", action="store_true",
                        help="Divide distances by the warping path length")
    parser.add_argument("--template-mode", choices=DTWDefaults.TEMPLATE_MODES,
                        default=DTWDefaults.TEMPLATE_MODE)
    parser.add_argument("--jobs", type=int, default=DTWDefaults.N_JOBS)


def config_from_args(args: argparse.Namespace) -> DTWConfig:
    return DTWConfig(
        null_rejection_enabled=not args.no_null_rejection,
        null_rejection_coeff=args.coeff,
        trim_training_data=not args.no_trim,
        trim_threshold=args.trim_threshold,
        trim_max_percent=args.trim_max_percent,
        offset_using_first_sample=not args.no_offset,
        constrain_warping_path=not args.unconstrained,
        warping_band_width=args.band_width,
        normalize_by_path_length=args.normalize,
        template_mode=args.template_mode,
        n_jobs=args.jobs,
    )


def cmd_train(args, session: RecognitionLogger) -> int:
    dataset = TimeSeriesDataset.load(args.dataset)
    pipeline = GestureRecognitionPipeline(config=config_from_args(args))
    trained = pipeline.train(dataset)
    session.log_training(trained, pipeline.get_num_classes(), pipeline.last_error)
    if not trained:
        return 1
    for label, stats in pipeline.get_classifier().get_diagnostics()['classes'].items():
        session.log_info(f"Class {label}: threshold {stats['threshold']:.4f} "
                         f"(mu {stats['training_mu']:.4f}, sigma {stats['training_sigma']:.4f})")
    return 0 if pipeline.save_model(args.model) else 1


def cmd_predict(args, session: RecognitionLogger) -> int:
    pipeline = GestureRecognitionPipeline()
    if not pipeline.load_model(args.model):
        return 1
    dataset = TimeSeriesDataset.load(args.dataset)
    y_true, y_pred = [], []
    for i, sample in enumerate(dataset):
        session.log_info(f"Sample {i} (true class {sample.class_label})")
        result = pipeline.predict(sample.series)
        session.log_prediction(result)
        if result.success:
            y_true.append(sample.class_label)
            y_pred.append(result.predicted_label)

    report = pipeline.summarize(y_true, y_pred)
    if report['success']:
        session.log_info(f"Accuracy {report['accuracy']:.3f}, "
                         f"rejection rate {report['rejection_rate']:.3f}")
    return 0


def cmd_stream(args, session: RecognitionLogger) -> int:
    pipeline = GestureRecognitionPipeline()
    if not pipeline.load_model(args.model):
        return 1
    rows = np.atleast_2d(np.loadtxt(args.rows))
    for row in rows:
        result = pipeline.predict_sample(row)
        if result.success:
            session.log_prediction(result)
    return 0


def cmd_evaluate(args, session: RecognitionLogger) -> int:
    dataset = TimeSeriesDataset.load(args.dataset)
    train, test = dataset.split(args.test_fraction, random_state=args.seed)
    pipeline = GestureRecognitionPipeline(config=config_from_args(args))
    trained = pipeline.train(train)
    session.log_training(trained, pipeline.get_num_classes(), pipeline.last_error)
    if not trained:
        return 1

    report = pipeline.test(test)
    if not report['success']:
        session.log_info(f"Evaluation failed: {report['message']}")
        return 1
    session.log_info(f"Accuracy {report['accuracy']:.3f} on {report['num_samples']} samples, "
                     f"rejection rate {report['rejection_rate']:.3f}")
    session.log_info(f"Labels {report['labels']}")
    for label, row in zip(report['labels'], report['confusion_matrix']):
        session.log_info(f"   {label}: {' '.join(str(int(v)) for v in row)}")
    return 0


def cmd_info(args, session: RecognitionLogger) -> int:
    dataset = TimeSeriesDataset.load(args.dataset)
    session.log_info(f"NumDimensions: {dataset.num_dimensions}")
    session.log_info(f"NumTrainingSamples: {dataset.num_samples}")
    for label, count in dataset.get_class_counts().items():
        lengths = [s.length for s in dataset if s.class_label == label]
        session.log_info(f"   Class {label}: {count} samples, lengths {min(lengths)}-{max(lengths)}")
    return 0


COMMANDS = {
    'train': cmd_train,
    'predict': cmd_predict,
    'stream': cmd_stream,
    'evaluate': cmd_evaluate,
    'info': cmd_info,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line interface."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    session = RecognitionLogger(args.debug_file)
    try:
        return COMMANDS[args.command](args, session)
    except (DTWGestureError, OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    finally:
        session.close()
