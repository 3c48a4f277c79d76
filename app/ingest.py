"""Load movie quotes from a CSV file into the quote index.

Run with: python -m app.ingest movie_quotes.csv

Expected columns: quote, movie, year. Optional: actor, character,
situations (semicolon-separated), mood. Rows without a quote are skipped.
"""

import argparse
import asyncio
import csv
import logging
from pathlib import Path

from app.config import settings
from app.services.embedding import EmbeddingService
from app.services.vector_store import VectorRecord, VectorStore

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
OPTIONAL_COLUMNS = ("actor", "character", "situations", "mood")


def load_quotes(path: Path) -> list[tuple[int, dict[str, str]]]:
    """Read CSV rows that have quote text, keeping their row numbers."""
    with path.open(newline="", encoding="utf-8") as f:
        return [
            (i, row)
            for i, row in enumerate(csv.DictReader(f))
            if (row.get("quote") or "").strip()
        ]


def row_metadata(row: dict[str, str]) -> dict[str, str]:
    metadata = {
        "text": row["quote"].strip(),
        "movie": (row.get("movie") or "").strip(),
        "year": (row.get("year") or "").strip(),
    }
    for column in OPTIONAL_COLUMNS:
        value = (row.get(column) or "").strip()
        if value:
            metadata[column] = value
    return metadata


async def ingest(
    path: Path,
    embedding_service: EmbeddingService,
    store: VectorStore,
    namespace: str,
    batch_size: int = BATCH_SIZE,
) -> int:
    """Embed and upsert every quote in the file; returns the number stored."""
    rows = load_quotes(path)
    logger.info(f"Loaded {len(rows)} quotes from {path}")

    stored = 0
    for start in range(0, len(rows), batch_size):
        batch = rows[start : start + batch_size]
        metadata = [row_metadata(row) for _, row in batch]
        vectors = await embedding_service.embed_many([m["text"] for m in metadata])
        store.upsert(
            [
                VectorRecord(id=f"quote-{i}", values=vector, metadata=meta)
                for (i, _), vector, meta in zip(batch, vectors, metadata)
            ],
            namespace=namespace,
        )
        stored += len(batch)
        logger.info(f"Upserted {stored}/{len(rows)} quotes")
    return stored


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("csv_path", type=Path, help="CSV file of movie quotes")
    parser.add_argument("--namespace", default=settings.quote_namespace)
    parser.add_argument("--batch-size", type=int, default=BATCH_SIZE)
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    embedding_service = EmbeddingService()
    embedding_service.initialize()
    store = VectorStore(settings.quote_index_name)
    store.connect()
    try:
        count = asyncio.run(
            ingest(args.csv_path, embedding_service, store, args.namespace, args.batch_size)
        )
    finally:
        store.close()
    logger.info(f"Finished ingesting {count} quotes")


if __name__ == "__main__":
    main()
