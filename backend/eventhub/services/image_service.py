"""
EventHub Backend — Image Codec Service
========================================

What:  Validates uploaded event images and converts them to and from the
       base64 text embedded in event documents.
How:   Size check against settings.max_image_size, content type resolved from
       the upload (falling back to the file extension, then the configured
       default), standard base64 with strict decoding.
Who:   Called by EventService on create, update and get-image.

Lifecycle of an uploaded image:
    1. Client sends multipart upload → route reads bytes into memory
    2. ImageService.encode_upload(): size check, content type, base64 encode
    3. Base64 text stored in the event's `image` field
    4. GET /events/{id}/image → ImageService.decode() → raw bytes
"""

import base64
import binascii
import logging
import mimetypes
from typing import Optional, Tuple

from eventhub.config import settings
from eventhub.exceptions import ImageError

logger = logging.getLogger(__name__)


class ImageService:
    """Stateless helpers for the embedded-image round trip."""

    def __init__(
        self,
        max_size: Optional[int] = None,
        default_content_type: Optional[str] = None,
    ):
        self.max_size = max_size or settings.max_image_size
        self.default_content_type = default_content_type or settings.default_image_content_type

    def validate_size(self, size: int) -> None:
        """
        Raises:
            ImageError with a human-readable size limit message
        """
        if size > self.max_size:
            max_mb = self.max_size / (1024 * 1024)
            raise ImageError(
                message=(
                    f"Image size ({size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB."
                ),
                context={"max_size": self.max_size, "actual_size": size},
            )

    def resolve_content_type(
        self,
        declared: Optional[str],
        filename: Optional[str] = None,
    ) -> str:
        """
        Pick the MIME type served back for an image.

        Order: declared image/* type → guessed from filename → default.
        Multipart clients often send application/octet-stream, so a
        non-image declaration is not trusted.
        """
        if declared and declared.lower().startswith("image/"):
            return declared.lower()
        if filename:
            guessed, _ = mimetypes.guess_type(filename)
            if guessed and guessed.startswith("image/"):
                return guessed
        return self.default_content_type

    def encode(self, content: bytes) -> str:
        return base64.b64encode(content).decode("ascii")

    def decode(self, data: str) -> bytes:
        """
        Decode base64 text into bytes.

        Raises:
            ImageError: the text is not valid base64
        """
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageError(
                message="Image must be valid base64",
                context={"reason": str(e)},
            )

    def encode_upload(
        self,
        content: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Tuple[str, str]:
        """
        Complete upload pipeline.

        Returns:
            (base64_text, content_type) ready to be stored on the document.
        """
        self.validate_size(len(content))
        resolved = self.resolve_content_type(content_type, filename)
        encoded = self.encode(content)
        logger.debug(
            "Encoded image %s (%d bytes, %s)",
            filename or "<unnamed>",
            len(content),
            resolved,
        )
        return encoded, resolved

    def validate_encoded(self, data: str) -> str:
        """
        Check replacement base64 text and return its canonical form.

        Text whose trailing bits are not zero (e.g. "QR==") still decodes, so
        the stored value is the re-encoding of the decoded bytes.
        """
        content = self.decode(data)
        self.validate_size(len(content))
        return self.encode(content)


image_service = ImageService()
