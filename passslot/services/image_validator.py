import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Union

from PIL import Image, UnidentifiedImageError

from passslot.core.exceptions import ImageValidationError

logger = logging.getLogger(__name__)

ImagePath = Union[str, os.PathLike]


@dataclass
class ImageAttachment:
    slot: str
    path: str
    content_type: str

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)


class ImageValidator:
    """Validates pass images before they are uploaded to PassSlot."""

    IMAGE_TYPES = ("icon", "logo", "strip", "thumbnail", "background", "footer")
    RETINA_SUFFIX = "2x"
    # Detected by content, never by file extension
    SUPPORTED_FORMATS = {
        "PNG": "image/png",
        "JPEG": "image/jpg",
        "GIF": "image/gif",
    }

    def validate_slot(self, slot: str) -> None:
        """Validate that the slot is a known image type, optionally suffixed with 2x."""
        base = slot[: -len(self.RETINA_SUFFIX)] if slot.endswith(self.RETINA_SUFFIX) else slot
        if base not in self.IMAGE_TYPES:
            raise ImageValidationError(
                f"Image type {slot} not available",
                details={"slot": slot, "supported_types": list(self.IMAGE_TYPES)},
            )

    def sniff_content_type(self, path: str) -> str:
        """Detect the image format from the file content and map it to a MIME type."""
        try:
            with Image.open(path) as image:
                image_format = image.format
        except (UnidentifiedImageError, OSError) as e:
            raise ImageValidationError(
                f"Image {path} is not a readable image",
                details={"path": path, "error": str(e)},
            )

        content_type = self.SUPPORTED_FORMATS.get(image_format)
        if content_type is None:
            raise ImageValidationError(
                f"Image format {image_format} not supported",
                details={"path": path, "supported_formats": list(self.SUPPORTED_FORMATS)},
            )
        return content_type

    def validate(self, slot: str, path: ImagePath) -> ImageAttachment:
        """
        Validate a single image for a pass.

        Checks:
        1. Slot is a known image type
        2. File exists
        3. Content is PNG, JPEG or GIF
        """
        self.validate_slot(slot)

        path = os.fspath(path)
        if not os.path.isfile(path):
            raise ImageValidationError(f"No such image {path}", details={"path": path})

        return ImageAttachment(slot=slot, path=path, content_type=self.sniff_content_type(path))

    def filter_valid(self, images: Dict[str, ImagePath]) -> List[ImageAttachment]:
        """Validate all images, skipping invalid ones with a warning."""
        attachments = []
        for slot, path in images.items():
            try:
                attachments.append(self.validate(slot, path))
            except ImageValidationError as e:
                logger.warning(f"{e.message}. Image will be ignored")
        return attachments


image_validator = ImageValidator()
