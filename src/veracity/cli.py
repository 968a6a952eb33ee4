# ============================================
# Veracity - src/veracity/cli.py
# Command line entry point: fit a KNN model on one CSV and score it on another
# ============================================

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

from .data.column import Column
from .data.loaders.csv_loader import CSVLoader, CSVLoaderSettings
from .data.table import Table
from .models.neighbors.enums import DistanceMetric, KNeighborsWeights
from .models.neighbors.knn_classifier import KNeighborsClassifier
from .models.neighbors.knn_regressor import KNeighborsRegressor
from .models.neighbors.settings import KNeighborsClassifierSettings, KNeighborsRegressorSettings
from .utils.exceptions import VeracityBaseException, log_exception
from .utils.logger import get_logger, set_log_format, set_log_level, set_logging_context

logger = get_logger('cli')

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='veracity-knn',
        description='Fit a k-nearest-neighbors model on a training CSV and score it on a test CSV'
    )
    parser.add_argument('--train', required=True, help='Path to the training CSV')
    parser.add_argument('--test', required=True, help='Path to the test CSV')
    parser.add_argument('--label-column', required=True, help='Name of the label/target column')
    parser.add_argument('--task', choices=['classification', 'regression'], default='classification',
                        help='Model to fit (default: classification)')
    parser.add_argument('--k', type=int, dest='n_neighbors', help='Number of neighbors')
    parser.add_argument('--weights', choices=[member.value for member in KNeighborsWeights],
                        help='Neighbor weighting')
    parser.add_argument('--metric', choices=[member.value for member in DistanceMetric],
                        help='Distance metric')
    parser.add_argument('--p', type=float, help='Minkowski exponent')
    parser.add_argument('--score-metric', help='Classification metric used for scoring (default: accuracy)')
    parser.add_argument('--separator', default=',', help='Field separator (default: ",")')
    parser.add_argument('--n-jobs', type=int, help='Parallel jobs for the neighbor search')
    parser.add_argument('--log-format', choices=['text', 'json'], default='text',
                        help='Log record format on stderr (default: text)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    return parser

def _settings_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Settings given on the command line; omitted options keep their configured defaults"""
    overrides = {
        'n_neighbors': args.n_neighbors,
        'weights': args.weights,
        'metric': args.metric,
        'p': args.p,
        'n_jobs': args.n_jobs,
    }
    if args.task == 'classification':
        overrides['score_metric'] = args.score_metric
    return {key: value for key, value in overrides.items() if value is not None}

def _split_labels(table: Table, label_column: str) -> Tuple[Table, Column]:
    labels = table.get_column(label_column)
    return table.exclude_column(label_column), labels

def run(args: argparse.Namespace) -> Tuple[str, float]:
    """Load both files, fit on the training set and return (metric name, test score)"""
    loader = CSVLoader(CSVLoaderSettings(separator=args.separator))
    train_features, train_labels = _split_labels(loader.load_from(args.train), args.label_column)
    test_features, test_labels = _split_labels(loader.load_from(args.test), args.label_column)

    overrides = _settings_overrides(args)
    if args.task == 'classification':
        model = KNeighborsClassifier(KNeighborsClassifierSettings(**overrides))
        metric_name = model.settings.score_metric.value
    else:
        model = KNeighborsRegressor(KNeighborsRegressorSettings(**overrides))
        metric_name = "r2"

    model.fit(train_features, train_labels)
    return metric_name, model.score(test_features, test_labels)

def main(argv: Optional[List[str]] = None) -> int:
    """Main function for command line usage"""
    args = build_parser().parse_args(argv)

    if args.verbose:
        set_log_level(logging.DEBUG)
    set_log_format(args.log_format)
    set_logging_context(task=args.task, label_column=args.label_column)

    try:
        metric_name, score = run(args)
    except VeracityBaseException as e:
        log_exception(e, logger)
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    print(f"{metric_name}: {score:.6f}")
    return 0

if __name__ == '__main__':
    sys.exit(main())
