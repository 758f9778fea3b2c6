"""Command-line interface for Autentica."""
import argparse
import json
import logging
import sys
from pathlib import Path

from .definition import DefinitionAnalyzer
from .digital_signature import SignatureAnalyzer
from .signatures import load_taxonomy
from .vectors import CATALOGUE, FeatureVectorAnalyzer, get_analyzer, list_analyzers


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_result(result) -> None:
    score = "n/a" if result.score is None else result.score
    print(f"[{result.analyzer_name}] score: {score}")
    message = result.details.get("message")
    if message:
        print(f"  {message}")
    for key, value in result.details.items():
        if key in ("message", "features", "indicators"):
            continue
        print(f"  {key}: {value}")
    print(f"  duration: {result.duration_ms} ms")


def analyze_command(args):
    """Analyze an image file command."""
    _setup_logging(getattr(args, "verbose", False))

    image_path = Path(args.file)
    if not image_path.is_file():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        sys.exit(1)

    taxonomy = load_taxonomy(args.taxonomy) if getattr(args, "taxonomy", None) else None
    analyzers = [
        DefinitionAnalyzer(max_workers=getattr(args, "workers", 1)),
        SignatureAnalyzer(taxonomy=taxonomy),
    ]
    correlation_id = getattr(args, "correlation_id", None) or "N/A"

    futures = [
        a.analyze_async(str(image_path), correlation_id, image_path.name)
        for a in analyzers
    ]
    results = [f.result() for f in futures]

    if args.json:
        print(json.dumps({
            "file": str(image_path.resolve()),
            "results": [r.to_dict() for r in results],
        }, indent=2))
    else:
        print(f"\n{'='*60}")
        print("  Image Authenticity Report")
        print(f"{'='*60}\n")
        print(f"File: {image_path.resolve()}")
        print(f"Correlation ID: {correlation_id}\n")
        for result in results:
            _print_result(result)
            print()
        print(f"{'='*60}\n")

    sys.exit(0 if all(not r.failed for r in results) else 1)


def vector_command(args):
    """Score a feature vector command."""
    _setup_logging(getattr(args, "verbose", False))

    models_dir = getattr(args, "models_dir", None)
    if models_dir:
        analyzer = FeatureVectorAnalyzer(CATALOGUE[args.name], models_dir=models_dir)
    else:
        analyzer = get_analyzer(args.name)
    result = analyzer.analyze(list(args.values))

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"\n{'='*60}")
        print(f"  Vector Analysis: {args.name}")
        print(f"{'='*60}\n")
        _print_result(result)
        features = result.details.get("features")
        if features:
            print("\nFeatures:")
            for name, value in features.items():
                print(f"  • {name}: {value}")
        if not result.metadata.get("model_loaded"):
            print("\n⚠ Trained weights not found; network output is untrained.")
        print(f"\n{'='*60}\n")

    sys.exit(0 if not result.failed else 1)


def analyzers_command(args):
    """List vector analyzers command."""
    for entry in list_analyzers():
        print(f"{entry['name']} ({entry['kind']}, {entry['range']}): {entry['description']}")
        for i, feature in enumerate(entry["features"], start=1):
            print(f"  {i:2d}. {feature}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="autentica",
        description="Image authenticity scoring"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze an image file")
    analyze_parser.add_argument("file", help="Image file to analyze")
    analyze_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    analyze_parser.add_argument("-t", "--taxonomy", help="Signature taxonomy JSON file")
    analyze_parser.add_argument("-c", "--correlation-id", help="Correlation ID echoed in results")
    analyze_parser.add_argument("-w", "--workers", type=int, default=1, help="Number of parallel threads for pixel statistics (default: 1)")
    analyze_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    analyze_parser.set_defaults(func=analyze_command)

    vector_parser = subparsers.add_parser("vector", help="Score a normalised feature vector")
    vector_parser.add_argument("name", choices=sorted(CATALOGUE), help="Vector analyzer")
    vector_parser.add_argument("values", nargs="+", help="Feature values in [0, 1]")
    vector_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    vector_parser.add_argument("-m", "--models-dir", help="Directory with <name>.json weights")
    vector_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    vector_parser.set_defaults(func=vector_command)

    analyzers_parser = subparsers.add_parser("analyzers", help="List vector analyzers")
    analyzers_parser.set_defaults(func=analyzers_command)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
