"""Shared test fixtures for fingerprint tests."""

import numpy as np
import cv2
import pytest

from visual_fingerprint.models import CatalogItem, Fingerprint


@pytest.fixture
def red_square_image():
    """Generate a 200x200 red square on white background."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 255
    img[40:160, 40:160] = [200, 30, 30]  # Red square
    return img


@pytest.fixture
def blue_circle_image():
    """Generate a 200x200 blue circle on white background."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 255
    cv2.circle(img, (100, 100), 60, (30, 30, 200), -1)
    return img


@pytest.fixture
def increasing_gradient_image():
    """Generate a 160x240 image whose brightness rises left to right."""
    row = np.linspace(0, 255, 240).astype(np.uint8)
    channel = np.tile(row, (160, 1))
    return np.dstack([channel, channel, channel])


@pytest.fixture
def decreasing_gradient_image(increasing_gradient_image):
    """Mirror of the increasing gradient: brightness falls left to right."""
    return np.ascontiguousarray(increasing_gradient_image[:, ::-1])


@pytest.fixture
def noise_image():
    """Generate a 200x200 random noise image."""
    rng = np.random.RandomState(42)
    return rng.randint(0, 255, (200, 200, 3), dtype=np.uint8)


@pytest.fixture
def other_noise_image():
    """A second, unrelated noise image."""
    rng = np.random.RandomState(7)
    return rng.randint(0, 255, (200, 200, 3), dtype=np.uint8)


@pytest.fixture
def vector_catalog():
    """Two items with tiny HSV-mean style vectors: [0, 0] and [3, 4]."""
    return [
        CatalogItem(id="origin", name="Origin", fingerprint=Fingerprint.hsv_mean([0, 0])),
        CatalogItem(id="far", name="Far", fingerprint=Fingerprint.hsv_mean([3, 4])),
    ]


@pytest.fixture
def tagged_catalog():
    """Items with names, descriptions and tags for text search."""
    fp = Fingerprint.dhash("0" * 64)
    return [
        CatalogItem(id="1", name="Blue Mug", description="Ceramic, chipped handle",
                    fingerprint=fp, tags=("kitchen",)),
        CatalogItem(id="2", name="Red Kettle", description="Enamel kettle",
                    fingerprint=fp, tags=("kitchen", "vintage")),
        CatalogItem(id="3", name="Postcard", description="Lisbon, 1974",
                    fingerprint=fp, tags=("travel",)),
    ]
