# ==============================================================================
# ASSET HANDLERS MODULE
# ==============================================================================
# One extraction function per supported object kind.
#
# Every handler has the signature:
#   handler(obj: BundleObject, ctx: HandlingContext, options: ExtractOptions)
#
# and writes zero or one file into ctx.directory. The table at the bottom
# (HANDLERS) is what the HandlerRegistry is built from.
# ==============================================================================

import json
import os
import threading
from typing import Any, Callable, Dict

import bson
from bson.errors import InvalidBSON

from .context import ExtractOptions, HandlingContext
from .converters import AudioConverter, encode_image
from .protocol import game_data_offset, try_decrypt


Handler = Callable[[Any, HandlingContext, ExtractOptions], None]

# Extension the origin uses for opaque (possibly encrypted) data
BINARY_EXTENSION = ".bytes"
IMAGE_EXTENSION = ".png"
WAV_EXTENSION = ".wav"

# FMOD is not reentrant
_audio_converter_lock = threading.Lock()


# ==============================================================================
# IMAGES
# ==============================================================================

def _write_image(obj, ctx: HandlingContext, options: ExtractOptions):
    full_name = ctx.output_path(obj.name, IMAGE_EXTENSION, options)
    data = encode_image(obj)
    if data is None:
        print(f"[WARN] Failed to export: {full_name}")
        return
    ctx.write(full_name, data)


def handle_texture2d(obj, ctx: HandlingContext, options: ExtractOptions):
    """Texture2D -> {name}.png"""
    _write_image(obj, ctx, options)


def handle_sprite(obj, ctx: HandlingContext, options: ExtractOptions):
    """Sprite -> {name}.png, cropped from its atlas by UnityPy."""
    _write_image(obj, ctx, options)


# ==============================================================================
# AUDIO
# ==============================================================================

def handle_audio_clip(obj, ctx: HandlingContext, options: ExtractOptions):
    """
    AudioClip -> {name}.wav when conversion is on and the format allows it,
    otherwise the raw audio container ({name}.fsb, .m4a, ...).
    """
    converter = AudioConverter(obj)
    convert = ctx.convert_audio and converter.is_supported
    extension = WAV_EXTENSION if convert else converter.extension
    full_name = ctx.output_path(obj.name, extension, options)

    if convert:
        with _audio_converter_lock:
            data = converter.to_wav()
    else:
        data = converter.raw_data()

    if data is None:
        print(f"[WARN] Failed to export: {full_name}")
        return
    ctx.write(full_name, data)


# ==============================================================================
# TEXT
# ==============================================================================

def text_asset_bytes(data: Any) -> bytes:
    """Raw payload of a TextAsset, whichever attribute UnityPy exposes."""
    script = getattr(data, 'script', None)
    if script is None:
        script = getattr(data, 'm_Script', b'')
    if isinstance(script, str):
        return script.encode('utf-8', 'surrogateescape')
    return bytes(script)


def looks_like_bson(data: bytes) -> bool:
    """
    Check for a BSON document: the first 4 bytes (little endian) hold the
    total length of the payload.
    """
    if len(data) < 4:
        return False
    return int.from_bytes(data[:4], 'little') == len(data)


def bson_to_json(data: bytes) -> bytes:
    """
    Re-serialize a BSON document as indented JSON.

    Raises:
        InvalidBSON: If the payload is not a valid document
    """
    document = bson.decode(data)
    return json.dumps(document, indent=2, ensure_ascii=False, default=str).encode('utf-8')


def handle_text_asset(obj, ctx: HandlingContext, options: ExtractOptions):
    """
    TextAsset -> {name}{ext}

    The name and extension come from the container path when the
    coordinator found one, otherwise from the object's own name. Only an
    object with neither gets a .json or .txt extension picked for it.
    Encrypted gamedata (.bytes) is decrypted, BSON tables are written as JSON.
    """
    data = text_asset_bytes(obj.read())
    own_name = obj.name
    stem, extension = os.path.splitext(own_name)
    if options.name is not None:
        stem = options.name
    if options.extension is not None:
        extension = options.extension
    elif not extension:
        extension = ".json" if ctx.is_game_data and ctx.game_data_dir != "story" else ".txt"

    if ctx.can_decrypt and ctx.is_game_data and extension == BINARY_EXTENSION:
        _, data = try_decrypt(ctx.decrypt_key, ctx.decrypt_iv_mask, data,
                              game_data_offset(ctx.game_data_dir))

    is_data_version = ctx.game_data_dir == "excel" and own_name == "data_version"
    if is_data_version:
        extension = ""
    elif ctx.is_game_data and looks_like_bson(data):
        try:
            data = bson_to_json(data)
            extension = ".json"
            print(f"[INFO] Treat {stem} as BSON")
        except InvalidBSON as e:
            print(f"[WARN] {stem} looked like BSON but did not decode: {e}")

    full_name = ctx.output_path(stem, extension)
    ctx.write(full_name, data)


# ==============================================================================
# REGISTRATION TABLE
# ==============================================================================

HANDLERS: Dict[str, Handler] = {
    "Texture2D": handle_texture2d,
    "Sprite": handle_sprite,
    "AudioClip": handle_audio_clip,
    "TextAsset": handle_text_asset,
}
