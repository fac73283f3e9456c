"""Description of the host platform as far as library discovery cares.

Every naming and location rule depends on the operating system, the word
size and (for NVHPC layouts) the CPU architecture. Bundling those in a value
lets the pure discovery functions be exercised for any platform.
"""

import platform as _platform
import sys
from dataclasses import dataclass

# NVHPC ships libraries under targets/<arch>-linux/lib with its own arch tokens
_TARGET_ARCH_ALIASES = {
    "powerpc64le": "ppc64le",
    "aarch64": "sbsa",
    "arm64": "sbsa",
}


@dataclass(frozen=True)
class Platform:
    system: str
    word_size: int
    machine: str

    @classmethod
    def current(cls) -> "Platform":
        return cls(
            system=_platform.system(),
            word_size=64 if sys.maxsize > 2**32 else 32,
            machine=_platform.machine().lower(),
        )

    @property
    def is_windows(self) -> bool:
        return self.system == "Windows"

    @property
    def is_apple(self) -> bool:
        return self.system == "Darwin"

    @property
    def is_linux(self) -> bool:
        return self.system == "Linux"

    @property
    def is_unix(self) -> bool:
        return not self.is_windows

    @property
    def dlext(self) -> str:
        if self.is_windows:
            return "dll"
        if self.is_apple:
            return "dylib"
        return "so"

    @property
    def target_arch(self) -> str:
        return _TARGET_ARCH_ALIASES.get(self.machine, self.machine)
