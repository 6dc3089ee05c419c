"""
Batch catalogue construction from a directory of photos.

Fingerprints every image in a directory and writes a JSON catalogue:
one record per image with its encoded fingerprint, in the same form the
items API stores. Useful for seeding a collection or re-fingerprinting it
when switching methods (an explicit migration rather than reinterpreting
stored values).
"""

import os
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import List

from .codec import decode_item, encode_item
from .engine import FingerprintEngine
from .errors import FingerprintError
from .models import CatalogItem
from .preprocessing import load_image

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.webp'}


def build_catalog(image_dir: str,
                  output_path: str,
                  method: str = None,
                  size: int = None) -> dict:
    """
    Fingerprint all images in a directory and save them as a catalogue.

    Args:
        image_dir: Directory containing photos.
        output_path: JSON file to write.
        method: Fingerprint method, see FingerprintEngine.
        size: Extractor grid size.

    Returns:
        Dict with 'success', 'processed', 'errors', 'catalog_path', 'kind'.
    """
    engine = FingerprintEngine(method=method, size=size)

    filenames = sorted(
        f for f in os.listdir(image_dir)
        if os.path.splitext(f)[1].lower() in IMAGE_EXTENSIONS
    )

    records = []
    errors = 0

    logger.info(f"Building catalogue from {len(filenames)} images in {image_dir}")

    for i, filename in enumerate(filenames):
        filepath = os.path.join(image_dir, filename)
        try:
            image = load_image(filepath)
            result = engine.fingerprint(image)
        except FingerprintError as e:
            logger.warning(f"Failed to process {filename}: {e}")
            errors += 1
            continue

        item = CatalogItem(
            id=uuid.uuid4().hex,
            name=os.path.splitext(filename)[0],
            fingerprint=result.fingerprint,
            photo_url=filepath,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        records.append(encode_item(item))

        if (i + 1) % 500 == 0:
            logger.info(f"Processed {i + 1}/{len(filenames)} images")

    if not records:
        return {"success": False, "error": "No valid images processed", "errors": errors}

    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(records, f, indent=2)

    logger.info(f"Catalogue built: {len(records)} items, {errors} errors → {output_path}")

    return {
        "success": True,
        "processed": len(records),
        "errors": errors,
        "catalog_path": output_path,
        "kind": engine.kind.value,
    }


def load_catalog(path: str) -> List[CatalogItem]:
    """Read a JSON catalogue written by build_catalog() or exported by the items API."""
    with open(path, 'r', encoding='utf-8') as f:
        records = json.load(f)

    items = [decode_item(record) for record in records]
    logger.info(f"Loaded {len(items)} catalogue items from {path}")
    return items
