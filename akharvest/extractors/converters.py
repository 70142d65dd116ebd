# ==============================================================================
# MEDIA CONVERTERS MODULE
# ==============================================================================
# Turns texture and audio objects into file bytes.
#
#   - encode_image():   Texture2D / Sprite -> PNG bytes (UnityPy + Pillow)
#   - AudioConverter:   AudioClip -> .wav through UnityPy's FMOD bridge,
#                       or the raw audio container when conversion is off
#
# Every converter returns None when the object cannot be converted; the
# handlers log the failure and move on to the next object.
# ==============================================================================

import io
from typing import Any, Optional

from PIL import Image


# AudioCompressionFormat -> extension of the raw audio container
AUDIO_EXTENSIONS = {
    0: ".fsb",   # PCM
    1: ".fsb",   # Vorbis
    2: ".fsb",   # ADPCM
    3: ".fsb",   # MP3
    4: ".fsb",   # PSMVAG
    5: ".fsb",   # HEVAG
    6: ".fsb",   # XMA
    7: ".m4a",   # AAC
    8: ".fsb",   # GCADPCM
    9: ".at9",   # ATRAC9
}

# Formats FMOD can decode to PCM
WAV_CONVERTIBLE = {0, 1, 2, 3, 6}

DEFAULT_AUDIO_EXTENSION = ".AudioClip"


def encode_image(obj: Any) -> Optional[bytes]:
    """
    Encode a texture or sprite as PNG.

    Args:
        obj: BundleObject of kind Texture2D or Sprite

    Returns:
        PNG bytes, or None if the image could not be decoded
    """
    try:
        image: Optional[Image.Image] = obj.read().image
    except Exception as e:
        print(f"[WARN] Could not decode image {obj.path_id}: {e}")
        return None

    if image is None:
        return None

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class AudioConverter:
    """
    Audio export for one AudioClip.

    Attributes:
        obj: BundleObject of kind AudioClip
    """

    def __init__(self, obj: Any):
        self.obj = obj
        self.clip = obj.read()

    @property
    def compression_format(self) -> Optional[int]:
        value = getattr(self.clip, 'm_CompressionFormat', None)
        return None if value is None else int(value)

    @property
    def is_supported(self) -> bool:
        """True if the clip can be converted to .wav."""
        return self.compression_format in WAV_CONVERTIBLE

    @property
    def extension(self) -> str:
        """Extension of the raw (unconverted) audio data."""
        return AUDIO_EXTENSIONS.get(self.compression_format, DEFAULT_AUDIO_EXTENSION)

    def to_wav(self) -> Optional[bytes]:
        """
        Decode the clip to a single .wav file.

        Not thread safe; callers serialize access to FMOD.
        """
        try:
            samples = self.clip.samples
        except Exception as e:
            print(f"[WARN] Could not convert audio {self.obj.path_id}: {e}")
            return None
        if not samples:
            return None
        return next(iter(samples.values()))

    def raw_data(self) -> Optional[bytes]:
        """The clip's audio container as stored in the bundle."""
        data = getattr(self.clip, 'm_AudioData', None)
        if data:
            return bytes(data)

        resource = getattr(self.clip, 'm_Resource', None)
        if resource is None or not resource.m_Size:
            return None
        try:
            from UnityPy.helpers.ResourceReader import get_resource_data
            return get_resource_data(resource.m_Source, self.clip.object_reader.assets_file,
                                     resource.m_Offset, resource.m_Size)
        except Exception as e:
            print(f"[WARN] Could not read audio resource {self.obj.path_id}: {e}")
            return None
