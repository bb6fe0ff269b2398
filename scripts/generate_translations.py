#!/usr/bin/env python3
"""
Generate synthetic translations for performance testing.

Usage:
  python scripts/generate_translations.py 100000 \
    --locales en,fr,es \
    --tags web,mobile,desktop
"""

from __future__ import annotations

import argparse
import random
import sys

from sqlalchemy.exc import SQLAlchemyError

from translation_hub.config import settings
from translation_hub.database import build_engine, build_session_factory
from translation_hub.logging_config import configure_logging
from translation_hub.services import TranslationGenerator
from translation_hub.tables import metadata


def _split(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate test translations for performance testing.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "count",
        nargs="?",
        type=int,
        default=100000,
        help="Number of translations to generate.",
    )
    parser.add_argument(
        "--locales",
        default=",".join(settings.generator_locales),
        help="Comma-separated list of locales.",
    )
    parser.add_argument(
        "--tags",
        default=",".join(settings.generator_tags),
        help="Comma-separated list of tags.",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=settings.generator_chunk_size,
        help="Rows inserted per transaction.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for tag selection.",
    )
    parser.add_argument(
        "--database-dsn",
        default=settings.database_dsn,
        help="SQLAlchemy database URL.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(settings)

    locales = _split(args.locales)
    tags = _split(args.tags)
    if not locales or not tags:
        print("Both --locales and --tags need at least one value.", file=sys.stderr)
        return 2
    if args.chunk_size < 1:
        print("--chunk-size must be positive.", file=sys.stderr)
        return 2

    engine = build_engine(args.database_dsn)
    metadata.create_all(bind=engine)
    generator = TranslationGenerator(
        build_session_factory(engine),
        rng=random.Random(args.seed),
    )

    print(f"Generating {args.count} translations for locales: {', '.join(locales)}")
    try:
        report = generator.run(args.count, locales, tags, chunk_size=args.chunk_size)
    except SQLAlchemyError as exc:
        print(f"Error generating translations: {exc}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    for locale, created in report.per_locale.items():
        print(f"  {locale}: {created}")
    print(
        f"Generated {report.created} translations successfully! "
        f"(skipped {report.skipped} existing)"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
