"""Non-volatile settings kept in an emulated EEPROM.

Each setting has a name, a default value and a fixed binary layout.  The
settings are laid out one after another at aligned addresses, after a
32-bit layout hash.  When the stored hash differs from the hash of the
current setting list, the layout is taken to have changed and every
setting is reset to its default.
"""

from __future__ import annotations

import struct
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

EEPROM_BASE_ADDRESS = 0
EEPROM_ALIGNMENT = 4
EEPROM_MAX_SIZE = 1024

_MASK = 0xFFFFFFFF
_HASH_CODEC = struct.Struct("<I")


def str_hash(text: str) -> int:
    """DJB2 hash of ``text`` as a 32-bit unsigned value."""
    value = 5381
    for byte in text.encode("utf-8"):
        value = ((value << 5) + value + byte) & _MASK
    return value


def circular_shift(value: int, n: int) -> int:
    """Rotate a 32-bit value left by ``n`` bits (right for negative ``n``)."""
    shift = n % 32
    value &= _MASK
    return ((value << shift) | (value >> (32 - shift))) & _MASK


def merge_hashes(a: int, b: int) -> int:
    """Combine two 32-bit hashes."""
    return circular_shift(a ^ b, 13)


def align(address: int, alignment: int) -> int:
    """Round ``address`` up to the next multiple of ``alignment``."""
    if alignment < 1:
        raise ValueError("alignment must be positive")
    padded = address + alignment - 1
    return padded - padded % alignment


def _restore_text(field: Any, template: Any) -> Any:
    if isinstance(template, str) and isinstance(field, bytes):
        return field.split(b"\0", 1)[0].decode("utf-8", errors="replace")
    return field


@dataclass(frozen=True)
class Setting:
    """A persisted value: its name, default and ``struct`` format."""

    name: str
    default: Any
    fmt: str

    def __post_init__(self) -> None:
        self.encode(self.default)

    @property
    def size(self) -> int:
        """Number of bytes the value occupies."""
        return struct.calcsize(self.fmt)

    @property
    def _is_compound(self) -> bool:
        return isinstance(self.default, (tuple, list))

    def hash(self) -> int:
        """Hash of the name combined with the stored size."""
        name_hash = str_hash(self.name)
        return ((name_hash << 5) + name_hash + self.size) & _MASK

    def encode(self, value: Any) -> bytes:
        """Pack ``value`` into its stored bytes."""
        fields = tuple(value) if isinstance(value, (tuple, list)) else (value,)
        fields = tuple(f.encode("utf-8") if isinstance(f, str) else f for f in fields)
        try:
            return struct.pack(self.fmt, *fields)
        except struct.error as exc:
            raise ValueError(f"value {value!r} does not fit setting {self.name!r}: {exc}") from exc

    def decode(self, data: bytes) -> Any:
        """Unpack stored bytes into a value shaped like the default."""
        try:
            fields = struct.unpack(self.fmt, bytes(data))
        except struct.error as exc:
            raise ValueError(f"cannot decode setting {self.name!r}: {exc}") from exc
        template = tuple(self.default) if self._is_compound else (self.default,)
        restored = tuple(_restore_text(f, t) for f, t in zip(fields, template))
        return restored if self._is_compound else restored[0]


class Eeprom:
    """Byte-addressable memory that starts out erased (all 0xFF)."""

    def __init__(self, size: int = EEPROM_MAX_SIZE) -> None:
        if size < 1:
            raise ValueError("EEPROM size must be positive")
        self._cells = bytearray(b"\xff" * size)

    def __len__(self) -> int:
        return len(self._cells)

    def _check(self, address: int, length: int) -> None:
        if address < 0 or length < 0 or address + length > len(self._cells):
            raise IndexError(f"range {address}..{address + length} is outside the EEPROM")

    def read(self, address: int, length: int) -> bytes:
        """Return ``length`` bytes starting at ``address``."""
        self._check(address, length)
        return bytes(self._cells[address:address + length])

    def write(self, address: int, data: bytes) -> None:
        """Store ``data`` starting at ``address``."""
        data = bytes(data)
        self._check(address, len(data))
        self._cells[address:address + len(data)] = data


class PersistentStore:
    """A list of settings backed by an EEPROM, accessed by setting name."""

    def __init__(
        self,
        eeprom: Eeprom,
        settings: Iterable[Setting],
        base_address: int = EEPROM_BASE_ADDRESS,
        alignment: int = EEPROM_ALIGNMENT,
    ) -> None:
        self._eeprom = eeprom
        self._settings: Tuple[Setting, ...] = tuple(settings)
        self._base_address = base_address
        self._alignment = alignment

        if not 0 <= base_address < len(eeprom):
            raise ValueError("base address must lie inside the EEPROM")
        duplicates = [name for name, count in Counter(s.name for s in self._settings).items() if count > 1]
        if duplicates:
            raise ValueError(f"duplicate setting names: {', '.join(duplicates)}")

        self._hash_address = align(base_address, alignment)
        current = align(self._hash_address + _HASH_CODEC.size, alignment)
        self._addresses: Dict[str, int] = {}
        for setting in self._settings:
            self._addresses[setting.name] = current
            current = align(current + setting.size, alignment)
        if current > len(eeprom):
            raise ValueError(
                f"settings need {current} bytes but the EEPROM holds only {len(eeprom)}"
            )

        self._by_name: Dict[str, Setting] = {s.name: s for s in self._settings}
        self._values: Dict[str, Any] = {s.name: s.default for s in self._settings}
        self._saved: Dict[str, Optional[bytes]] = {s.name: None for s in self._settings}

    def hash(self) -> int:
        """Hash of the layout: names, sizes and order of the settings."""
        value = self._base_address & _MASK
        for setting in self._settings:
            value = merge_hashes(value, setting.hash())
        return value

    def addresses(self) -> Dict[str, int]:
        """EEPROM address of each setting, by name."""
        return dict(self._addresses)

    def _stored_hash(self) -> int:
        (value,) = _HASH_CODEC.unpack(self._eeprom.read(self._hash_address, _HASH_CODEC.size))
        return value

    def restore(self) -> bool:
        """Load every setting from the EEPROM.

        Returns True when the stored layout did not match and the defaults
        were written instead, False when the stored values were loaded.
        """
        if self._stored_hash() == self.hash():
            for setting in self._settings:
                data = self._eeprom.read(self._addresses[setting.name], setting.size)
                self._saved[setting.name] = data
                self._values[setting.name] = setting.decode(data)
            return False
        self.restore_defaults()
        return True

    def restore_defaults(self) -> None:
        """Reset every setting to its default and write the layout hash."""
        for setting in self._settings:
            data = setting.encode(setting.default)
            self._eeprom.write(self._addresses[setting.name], data)
            self._saved[setting.name] = data
            self._values[setting.name] = setting.default
        self._eeprom.write(self._hash_address, _HASH_CODEC.pack(self.hash()))

    def save(self) -> int:
        """Write changed bytes of every setting; return how many were written."""
        written = 0
        for setting in self._settings:
            data = setting.encode(self._values[setting.name])
            saved = self._saved[setting.name]
            address = self._addresses[setting.name]
            for offset, byte in enumerate(data):
                if saved is None or saved[offset] != byte:
                    self._eeprom.write(address + offset, bytes((byte,)))
                    written += 1
            self._saved[setting.name] = data
        return written

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __setitem__(self, name: str, value: Any) -> None:
        setting = self._by_name[name]
        setting.encode(value)
        self._values[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._settings)