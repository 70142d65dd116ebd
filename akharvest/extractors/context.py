# ==============================================================================
# HANDLING CONTEXT MODULE
# ==============================================================================
# Values passed to every asset handler:
#   - HandlingContext: per-bundle settings, shared by all objects of a bundle
#   - ExtractOptions:  per-call name/extension overrides for one object
#
# Both are frozen. The coordinator builds a fresh ExtractOptions for each
# object instead of setting and clearing fields on the context.
# ==============================================================================

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class HandlingContext:
    """
    Per-bundle extraction settings.

    Attributes:
        directory (str):       Output directory of the bundle
        ab_path (str):         Bundle path relative to the bundle tree, with "/"
        bundle_time (float):   Modification time of the bundle file
        decrypt_key (str):     AES key secret, or None
        decrypt_iv_mask (str): IV mask secret, or None
        convert_audio (bool):  Convert audio clips to .wav
        verbose (bool):        Print every written file
    """
    directory: str
    ab_path: str
    bundle_time: Optional[float] = None
    decrypt_key: Optional[str] = None
    decrypt_iv_mask: Optional[str] = None
    convert_audio: bool = False
    verbose: bool = False

    @property
    def is_game_data(self) -> bool:
        return self.ab_path.startswith("gamedata")

    @property
    def game_data_dir(self) -> str:
        """Second path component under gamedata/, or "" elsewhere."""
        if not self.is_game_data:
            return ""
        parts = self.ab_path.split("/")
        return parts[1] if len(parts) > 1 else ""

    @property
    def can_decrypt(self) -> bool:
        return self.decrypt_key is not None and self.decrypt_iv_mask is not None

    def output_path(self, name: str, extension: str, options: "ExtractOptions" = None) -> str:
        """
        Full path for an extracted file, applying the call's overrides.

        Creates the output directory.
        """
        if options is not None:
            name = options.name if options.name is not None else name
            extension = options.extension if options.extension is not None else extension
        os.makedirs(self.directory, exist_ok=True)
        return os.path.join(self.directory, name + extension)

    def write(self, path: str, data: bytes):
        """Write an extracted file and stamp it with the bundle time."""
        with open(path, 'wb') as f:
            f.write(data)
        if self.bundle_time is not None:
            os.utime(path, (self.bundle_time, self.bundle_time))
        if self.verbose:
            print(f"[DEBUG] Wrote {path}")


@dataclass(frozen=True)
class ExtractOptions:
    """Name and extension overrides for a single handler call."""
    name: Optional[str] = None
    extension: Optional[str] = None


NO_OVERRIDES = ExtractOptions()
