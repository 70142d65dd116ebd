# ==============================================================================
# GAME DATA PROTOCOL MODULE
# ==============================================================================
# AES-CBC decryption of encrypted game data text assets.
#
# Payload layout (starting at a per-directory offset):
#   [offset .. offset+16)   IV, XOR-ed with the first 16 bytes of the IV mask
#   [offset+16 .. end)      AES-CBC ciphertext, PKCS#7 padded
#
# The key is the UTF-8 encoded key secret used as-is, so its length picks
# AES-128/192/256. A payload that fails to decrypt is passed through
# unchanged; extraction continues with the bytes it has.
# ==============================================================================

from typing import Dict, Tuple

from Cryptodome.Cipher import AES
from Cryptodome.Util.Padding import pad, unpad


IV_SIZE = 16

# Offset of the encrypted block, by gamedata subdirectory
GAME_DATA_OFFSETS: Dict[str, int] = {
    "[uc]lua.ab": 128,
    "excel": 128,
    "battle": 128,
    "buff_table": 128,
}


def game_data_offset(directory: str) -> int:
    """Offset for a gamedata subdirectory; unknown directories start at 0."""
    return GAME_DATA_OFFSETS.get(directory, 0)


def _unmask(masked: bytes, iv_mask: bytes) -> bytes:
    if len(iv_mask) < IV_SIZE:
        raise ValueError(f"IV mask must be at least {IV_SIZE} bytes, got {len(iv_mask)}")
    if len(masked) < IV_SIZE:
        raise ValueError(f"Data too short for an IV: {len(masked)} bytes")
    return bytes(masked[i] ^ iv_mask[i] for i in range(IV_SIZE))


def try_decrypt(key_string: str, iv_mask_string: str, src: bytes, offset: int = 0) -> Tuple[bool, bytes]:
    """
    Decrypt a game data payload.

    Args:
        key_string: AES key secret
        iv_mask_string: IV mask secret (at least 16 bytes once encoded)
        src: Payload bytes
        offset: Position of the masked IV within src

    Returns:
        (True, plaintext) on success, (False, src) on any failure
    """
    try:
        key = key_string.encode('utf-8')
        iv = _unmask(src[offset:offset + IV_SIZE], iv_mask_string.encode('utf-8'))
        cipher = AES.new(key, AES.MODE_CBC, iv)
        result = unpad(cipher.decrypt(bytes(src[offset + IV_SIZE:])), AES.block_size)
        return True, result
    except (ValueError, KeyError, TypeError) as e:
        print(f"[ERROR] Failed to decrypt: {e}")
        return False, src


def encrypt(key_string: str, iv_mask_string: str, iv: bytes, plaintext: bytes, prefix: bytes = b"") -> bytes:
    """
    Build a payload that try_decrypt() accepts.

    Args:
        key_string: AES key secret
        iv_mask_string: IV mask secret
        iv: The 16 byte IV to use
        plaintext: Data to encrypt
        prefix: Bytes placed before the masked IV (its length is the offset)

    Returns:
        prefix + masked IV + ciphertext
    """
    key = key_string.encode('utf-8')
    masked = _unmask(iv, iv_mask_string.encode('utf-8'))
    cipher = AES.new(key, AES.MODE_CBC, iv)
    return prefix + masked + cipher.encrypt(pad(plaintext, AES.block_size))
