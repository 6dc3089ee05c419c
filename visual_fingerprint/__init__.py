"""
visual_fingerprint: perceptual fingerprints for a personal photo collection.

Reduces photos to compact fingerprints (dHash bit strings or legacy
hue/saturation vectors), stores them as stable text, and ranks a
collection against a newly captured photo.

Modules:
    engine          FingerprintEngine facade
    dhash           Difference-hash extraction
    hsv_mean        Legacy blurred hue/saturation fingerprint
    preprocessing   Decoding, resampling and preview rendering
    codec           Hex / JSON / int64 encodings and catalogue records
    scoring         Euclidean, cosine, manhattan and Hamming metrics
    ranking         Collection ranking, threshold gating, text search
    index_builder   Batch catalogue construction
    errors          Named failure kinds
"""

__version__ = "1.0.0"
