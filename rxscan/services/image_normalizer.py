"""
Image Normalization Service
Converts uploaded prescription photos into an OCR-friendly raster:
- Grayscale conversion (removes chromatic noise)
- Histogram normalization (full dynamic range)
- Unsharp masking for phone-camera blur
- Linear contrast boost to saturate faint ink
- Upscaling of small scans
"""
import io
import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np
from PIL import Image, ImageFilter, ImageOps

from rxscan.config import settings

logger = logging.getLogger(__name__)

UNSHARP_RADIUS = 1.5
UNSHARP_PERCENT = 150
CONTRAST_GAIN = 1.5
CONTRAST_OFFSET = -0.2


@dataclass
class NormalizationResult:
    """Normalized raster plus the steps that produced it"""
    content: bytes
    steps_applied: List[str] = field(default_factory=list)
    width: int = 0
    height: int = 0
    fell_back: bool = False


class ImageNormalizer:
    """Canonicalizes raw image bytes for Tesseract"""

    def __init__(self, min_width: int = None, target_width: int = None):
        self.min_width = min_width or settings.MIN_RASTER_WIDTH
        self.target_width = target_width or settings.TARGET_RASTER_WIDTH

    def normalize(self, image_bytes: bytes) -> bytes:
        """Return normalized PNG bytes, or the input unchanged if processing fails"""
        return self.normalize_with_details(image_bytes).content

    def normalize_with_details(self, image_bytes: bytes) -> NormalizationResult:
        steps = []

        try:
            img = Image.open(io.BytesIO(image_bytes))
            img.load()
            source_width = img.width

            # 1. Grayscale
            img = ImageOps.grayscale(img)
            steps.append("grayscale")

            # 2. Stretch contrast to the full range
            img = ImageOps.autocontrast(img)
            steps.append("normalize")

            # 3. Sharpen
            img = img.filter(ImageFilter.UnsharpMask(radius=UNSHARP_RADIUS, percent=UNSHARP_PERCENT, threshold=0))
            steps.append("unsharp_mask")

            # 4. Linear boost: p' = p * 1.5 - 0.2
            img = self._linear_boost(img, CONTRAST_GAIN, CONTRAST_OFFSET)
            steps.append(f"linear_{CONTRAST_GAIN}x")

            # 5. Upscale small scans
            if source_width < self.min_width:
                height = max(1, round(img.height * self.target_width / img.width))
                img = img.resize((self.target_width, height), Image.Resampling.LANCZOS)
                steps.append(f"resize_{self.target_width}")

            # 6. Lossless encode
            output = io.BytesIO()
            img.save(output, format='PNG')

            return NormalizationResult(
                content=output.getvalue(),
                steps_applied=steps,
                width=img.width,
                height=img.height
            )

        except Exception as e:
            logger.warning(f"Image preprocessing failed after {steps or 'no steps'}: {e}")
            return NormalizationResult(content=image_bytes, steps_applied=steps, fell_back=True)

    @staticmethod
    def _linear_boost(img: Image.Image, gain: float, offset: float) -> Image.Image:
        pixels = np.asarray(img, dtype=np.float32)
        boosted = np.clip(pixels * gain + offset, 0, 255)
        return Image.fromarray(boosted.astype(np.uint8))


image_normalizer = ImageNormalizer()


def normalize(image_bytes: bytes) -> bytes:
    """Module-level shortcut using the default normalizer"""
    return image_normalizer.normalize(image_bytes)
