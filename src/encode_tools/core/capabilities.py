"""Optional native module detection.

Checks which compiled modules can be imported in the current process.
Nothing is cached: every call re-attempts the imports, so a module
installed while the process is running shows up on the next check.

Usage:
    modules = detect_native_modules()
    if modules.zstandard:
        print("zstd compression is accelerated")
"""

import importlib
import logging
import sys
from dataclasses import asdict, dataclass, fields
from types import ModuleType
from typing import Final

from ..exceptions import MissingModuleError

logger = logging.getLogger(__name__)

# Capability name -> module to import
NATIVE_MODULES: Final[dict[str, str]] = {
    "zstandard": "zstandard",
    "pyvips": "pyvips",
    "bson_ext": "bson._cbson",
    "xxhash": "xxhash",
    "cbor_ext": "_cbor2",
    "cryptography": "cryptography.hazmat.primitives.hashes",
}


@dataclass(frozen=True)
class AvailableNativeModules:
    """Which optional native modules are currently importable.

    Attributes:
        zstandard: Compression engine (zstd)
        pyvips: Image engine (libvips)
        bson_ext: pymongo's compiled BSON codec
        xxhash: Extended hashing (xxHash family, including XXH3)
        cbor_ext: cbor2's compiled CBOR codec
        cryptography: Cryptographic hash engine
    """

    zstandard: bool = False
    pyvips: bool = False
    bson_ext: bool = False
    xxhash: bool = False
    cbor_ext: bool = False
    cryptography: bool = False

    def to_dict(self) -> dict[str, bool]:
        """Convert to dictionary."""
        return asdict(self)

    def missing(self) -> list[str]:
        """Names of the capabilities that are not available."""
        return [f.name for f in fields(self) if not getattr(self, f.name)]


def safe_load_module(name: str) -> ModuleType | None:
    """Import a module, returning None instead of raising.

    Compiled modules fail in more ways than ImportError (missing shared
    libraries raise OSError, broken builds raise anything), so every
    exception is treated as "not available".

    Args:
        name: Dotted module name

    Returns:
        The module, or None if it cannot be loaded
    """
    if name not in sys.modules:
        # Finder caches would hide packages installed after startup
        importlib.invalidate_caches()

    try:
        return importlib.import_module(name)
    except Exception as e:
        logger.debug(f"Module {name} unavailable: {e}")
        return None


def require_module(name: str) -> ModuleType:
    """Import a module a backend cannot work without.

    Raises:
        MissingModuleError: If the module cannot be loaded
    """
    module = safe_load_module(name)
    if module is None:
        raise MissingModuleError(name)
    return module


def is_module_available(name: str) -> bool:
    """Check whether a module can currently be imported."""
    return safe_load_module(name) is not None


def detect_native_modules() -> AvailableNativeModules:
    """Check every optional native module.

    Returns:
        AvailableNativeModules with one flag per capability
    """
    return AvailableNativeModules(
        **{capability: is_module_available(module) for capability, module in NATIVE_MODULES.items()}
    )
