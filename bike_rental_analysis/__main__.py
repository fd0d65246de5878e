"""
Command-line entry point.

Usage examples:
    python -m bike_rental_analysis --input hour.csv
    python -m bike_rental_analysis --input hour.csv --output-dir results --glm-family poisson
    python -m bike_rental_analysis --input hour.csv --criterion bic --direction backward --profile
"""
import argparse
import os

from .config import CRITERIA, DIRECTIONS, GLM_FAMILIES, AnalysisConfig
from .pipeline import run_analysis


# ---------------------------------------------------------
# CLI ARGUMENTS
# ---------------------------------------------------------
def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Hourly bike rental regression analysis (LM + count GLM)")
    parser.add_argument(
        '--input',
        required=True,
        help='Path to the hourly bike rental CSV (e.g. hour.csv)'
    )
    parser.add_argument(
        '--output-dir',
        default="bike_rental_results",
        help='Directory for tables, plots and the rendered report'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Random seed for the train/test split'
    )
    parser.add_argument(
        '--test-size',
        type=float,
        default=0.2,
        help='Share of rows held out for testing'
    )
    parser.add_argument(
        '--glm-family',
        choices=GLM_FAMILIES,
        default="auto",
        help='Count model family; auto switches to Negative Binomial when overdispersed'
    )
    parser.add_argument(
        '--criterion',
        choices=CRITERIA,
        default="aic",
        help='Information criterion for stepwise selection'
    )
    parser.add_argument(
        '--direction',
        choices=DIRECTIONS,
        default="both",
        help='Stepwise search direction'
    )
    parser.add_argument(
        '--profile',
        action='store_true',
        help='Also build an HTML data profile (ydata-profiling)'
    )
    return parser.parse_args(argv)


def config_from_args(args) -> AnalysisConfig:
    return AnalysisConfig(
        input_path=args.input,
        output_dir=args.output_dir,
        random_state=args.seed,
        test_size=args.test_size,
        glm_family=args.glm_family,
        criterion=args.criterion,
        direction=args.direction,
        build_profile=args.profile,
    )


def main(argv=None):
    args = parse_args(argv)
    if not os.path.exists(args.input):
        raise SystemExit(f"File {args.input} does not exist")

    run_analysis(config_from_args(args))


if __name__ == "__main__":
    main()
