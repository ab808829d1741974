"""
File upload validation utilities.
Checks MIME types and sizes of uploaded files.
"""

from typing import Dict, List, Optional
import mimetypes

from flowestate.utils.exceptions import (
    BadRequestError,
    FileSizeExceededError,
    UnsupportedFileTypeError,
)

MB = 1024 * 1024


class FileValidator:
    """Utility class for file validation operations."""

    # Supported image formats and their extensions
    SUPPORTED_FORMATS: Dict[str, List[str]] = {
        "image/jpeg": [".jpg", ".jpeg"],
        "image/jpg": [".jpg", ".jpeg"],
        "image/png": [".png"],
        "image/webp": [".webp"],
        "image/gif": [".gif"],
    }

    PHOTO_MAX_SIZE = 5 * MB
    LOGO_MAX_SIZE = 2 * MB
    AUDIO_MAX_SIZE = 25 * MB

    @classmethod
    def validate_mime_type(cls, mime_type: Optional[str], allowed_types: Optional[List[str]] = None) -> str:
        """
        Validate MIME type.

        Args:
            mime_type: MIME type to validate
            allowed_types: Accepted types, defaults to every supported image type

        Returns:
            Validated MIME type

        Raises:
            UnsupportedFileTypeError: If MIME type is not accepted
        """
        allowed = allowed_types or list(cls.SUPPORTED_FORMATS.keys())
        if not mime_type or mime_type not in allowed:
            raise UnsupportedFileTypeError(mime_type or "unknown", allowed)
        return mime_type

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: int) -> int:
        """
        Validate file size.

        Args:
            file_size: Size of the file in bytes
            max_size: Maximum allowed size in bytes

        Returns:
            Validated file size

        Raises:
            BadRequestError: If the file is empty
            FileSizeExceededError: If file size exceeds limit
        """
        if file_size <= 0:
            raise BadRequestError("File is empty")
        if file_size > max_size:
            raise FileSizeExceededError(file_size, max_size)
        return file_size

    @classmethod
    def extension_for(cls, filename: Optional[str], mime_type: Optional[str], default: str = "jpg") -> str:
        """Extension (without dot) for storing a file."""
        if filename and "." in filename:
            extension = filename.rsplit(".", 1)[-1].lower()
            if extension.isalnum():
                return extension
        if mime_type:
            known = cls.SUPPORTED_FORMATS.get(mime_type.lower())
            guessed = known[0] if known else mimetypes.guess_extension(mime_type.lower())
            if guessed:
                return guessed.lstrip(".")
        return default
