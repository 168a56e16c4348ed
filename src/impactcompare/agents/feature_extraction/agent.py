"""Feature extraction agent — one screenshot in, one VisionFeatures record out."""

from __future__ import annotations

import logging
import re
from typing import Any

from impactcompare.agents.base import BaseAgent, extract_json
from impactcompare.agents.feature_extraction.prompts import EXTRACTION_PROMPT
from impactcompare.errors import UpstreamError
from impactcompare.schemas.features import DEFAULT_FEATURES, VisionFeatures

logger = logging.getLogger(__name__)

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/=\s]+$")

# attribute name -> wire name
_FEATURE_KEYS = {
    name: field.alias or name for name, field in VisionFeatures.model_fields.items()
}


def to_image_url(image: str) -> str:
    """Return something the backend accepts in an ``image_url`` part.

    http(s) and ``data:`` URLs pass through; a bare base64 payload is
    wrapped as a PNG data URL.  Anything else is sent unchanged and left
    for the backend to reject.
    """
    image = image.strip()
    if image.startswith(("http://", "https://", "data:")):
        return image
    if _BASE64_RE.match(image):
        return f"data:image/png;base64,{''.join(image.split())}"
    return image


class FeatureExtractionAgent(BaseAgent):
    """Sends one variant's image to the vision backend and parses the reply.

    A transport failure propagates (tagged with the variant).  A reply
    without a usable JSON block yields ``DEFAULT_FEATURES`` so the pipeline
    continues in degraded mode; the same policy applies to both variants.
    """

    @property
    def name(self) -> str:
        return "Feature Extraction"

    def get_system_prompt(self) -> str:
        return ""  # the instruction travels with the image in the user turn

    def parse_output(self, raw_text: str) -> VisionFeatures:
        data = extract_json(raw_text)
        present = [name for name, key in _FEATURE_KEYS.items() if key in data or name in data]
        if not present:
            raise ValueError(
                f"JSON object has no feature fields (keys: {sorted(data)[:10]})"
            )
        features = VisionFeatures.model_validate(data)

        missing = [_FEATURE_KEYS[name] for name in _FEATURE_KEYS if name not in present]
        if missing:
            logger.warning(
                "Vision output is missing %s; filled from the default record (degraded mode)",
                ", ".join(missing),
            )
        return features

    def build_content(self, image: str) -> list[dict[str, Any]]:
        return [
            {"type": "text", "text": EXTRACTION_PROMPT},
            {"type": "image_url", "image_url": {"url": to_image_url(image)}},
        ]

    async def run_extraction(
        self,
        image: str,
        *,
        variant: str,
        on_progress: Any | None = None,
    ) -> VisionFeatures:
        if on_progress:
            on_progress(f"Extracting features for variant {variant}…")

        try:
            raw = await self.client.vision_completion(content=self.build_content(image))
        except UpstreamError as exc:
            exc.variant = variant
            logger.error("Vision analysis failed for variant %s: %s", variant, exc)
            raise

        logger.debug("Vision response (variant %s): %s", variant, raw[:300])
        features = self.try_parse(raw)
        if features is None:
            logger.warning(
                "Variant %s: vision output had no parseable feature block, "
                "using default features (degraded mode)",
                variant,
            )
            return DEFAULT_FEATURES
        return features
