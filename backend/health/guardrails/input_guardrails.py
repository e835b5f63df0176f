import io
from typing import Any

from django.conf import settings
from PIL import Image, UnidentifiedImageError

from health.images import ImageInputError, InlineImage

SUPPORTED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", "image/heic", "image/heif")
# Pillow cannot open these without a plugin, so they skip the decode check.
UNVERIFIED_MIME_TYPES = ("image/heic", "image/heif")


def run_image_guardrails(image: InlineImage) -> dict[str, Any]:
    mime_result = _check_mime_type(image)
    payload_result = _check_payload(image)

    checks = [mime_result, payload_result]
    safe = all(item["safe"] for item in checks)
    reasons = [item["reason"] for item in checks if item["reason"]]
    return {
        "safe": safe,
        "reason": " | ".join(reasons) if reasons else "",
        "checks": checks,
    }


def _check_mime_type(image: InlineImage) -> dict[str, Any]:
    safe = image.mime_type in SUPPORTED_MIME_TYPES
    return {
        "name": "mime_type",
        "safe": safe,
        "reason": "" if safe else "Please upload a JPG, PNG, WEBP or HEIC image.",
        "meta": {"mime_type": image.mime_type},
    }


def _check_payload(image: InlineImage) -> dict[str, Any]:
    try:
        raw = image.raw_bytes()
    except ImageInputError as exc:
        return {"name": "payload", "safe": False, "reason": str(exc), "meta": {}}

    size = len(raw)
    limit = settings.AI_MAX_IMAGE_BYTES
    if not size:
        return {"name": "payload", "safe": False, "reason": "Image file is empty.", "meta": {"size": 0}}
    if size > limit:
        return {
            "name": "payload",
            "safe": False,
            "reason": f"Image is too large. Maximum size is {limit // (1024 * 1024)} MB.",
            "meta": {"size": size},
        }

    width = height = None
    if image.mime_type not in UNVERIFIED_MIME_TYPES:
        try:
            with Image.open(io.BytesIO(raw)) as opened:
                width, height = opened.size
        except (UnidentifiedImageError, OSError):
            return {
                "name": "payload",
                "safe": False,
                "reason": "Image file could not be read.",
                "meta": {"size": size},
            }

    return {
        "name": "payload",
        "safe": True,
        "reason": "",
        "meta": {"size": size, "width": width, "height": height},
    }
