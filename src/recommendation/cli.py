#!/usr/bin/env python3
"""
Benchmark a collaborative filtering engine on a MovieLens dataset
Builds (or loads) the model on the training ratings and reports RMSE on the
test ratings.
"""
import argparse
import sys
from typing import List, Optional

from .algorithms.factory import get_engine
from .config import EngineConfig, configure_logging
from .data_loader import catalog_from_dataframe, read_items, read_ratings
from .evaluation import evaluate, split_ratings
from .models.recommendation import Algorithm, MethodType, SimilarityMethod


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Benchmark collaborative filtering engines')
    parser.add_argument('--method-type', required=True, choices=[m.value for m in MethodType])
    parser.add_argument('--algorithm', required=True, choices=[a.value for a in Algorithm])
    parser.add_argument('--ratings', required=True, help='Training ratings file (e.g. ml-100k/ua.base)')
    parser.add_argument('--test-ratings', help='Test ratings file (e.g. ml-100k/ua.test); '
                                               'a random split is used when omitted')
    parser.add_argument('--items', help='Item file (e.g. ml-100k/u.item)')
    parser.add_argument('--sep', default='\t', help='Ratings field separator')
    parser.add_argument('--test-size', type=float, default=0.2)
    parser.add_argument('--similarity', choices=[s.value for s in SimilarityMethod])
    parser.add_argument('--top-k', type=int, default=None, help='Neighbors kept per entity')
    parser.add_argument('--model-file', help='Where to save or load the computed model')
    parser.add_argument('--load', action='store_true', help='Load the model file instead of recomputing')
    parser.add_argument('--log-level', default='INFO')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.log_level)

    ratings_df = read_ratings(args.ratings, sep=args.sep)
    if args.test_ratings:
        train_df, test_df = ratings_df, read_ratings(args.test_ratings, sep=args.sep)
    else:
        train_df, test_df = split_ratings(ratings_df, test_size=args.test_size)

    items_df = read_items(args.items) if args.items else None
    catalog = catalog_from_dataframe(train_df, items_df)

    # unset flags fall back to the CF_* environment
    overrides = {}
    if args.top_k is not None:
        overrides['similar_objects_count'] = args.top_k
    if args.model_file:
        overrides['file_path'] = args.model_file
    if args.similarity:
        overrides['similarity_method'] = args.similarity
    config = EngineConfig.from_env(**overrides)

    engine = get_engine(args.method_type, args.algorithm, config)
    if engine is None:
        print(f"Unsupported combination: {args.method_type} / {args.algorithm}", file=sys.stderr)
        return 2

    engine.set_data(catalog)
    engine.precompute(force_recompute=not args.load)

    metrics = evaluate(engine, catalog, test_df)

    print("=" * 60)
    print(f"   {args.method_type} / {args.algorithm}")
    print("=" * 60)
    print(f"   Users   : {len(catalog.users)}")
    print(f"   Items   : {len(catalog.items)}")
    print(f"   Ratings : {catalog.rating_count}")
    print(f"   RMSE    : {metrics['rmse']:.4f}")
    print(f"   MAE     : {metrics['mae']:.4f}")
    print(f"   Coverage: {metrics['coverage']:.1f}% ({metrics['n_predictions']} predictions)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
