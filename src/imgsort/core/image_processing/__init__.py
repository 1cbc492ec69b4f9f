from .image_decoder import (
    ImageDecoder,
    DecodedImage,
    DecodeError,
    SUPPORTED_EXTENSIONS,
    is_supported_extension,
)

__all__ = [
    "ImageDecoder",
    "DecodedImage",
    "DecodeError",
    "SUPPORTED_EXTENSIONS",
    "is_supported_extension",
]
