"""
Venue market header parsing.

The market account is an (owner, data) pair. The header sits at the start of
data, little-endian:

    offset  width  field
    0       u64    discriminant
    8       u32    raw_base_units_per_base_unit
    12      u32    padding
    16      u64    tick_size_in_quote_atoms_per_base_unit
    24      u64    base_lot_size
    32      u64    quote_lot_size
"""
from __future__ import annotations

import struct
from dataclasses import dataclass

from ..errors import FailedToDeserializeMarket, InvalidVenueProgram

PHOENIX_PROGRAM_ID = 'PhoeNiXZ8ByJGLkxNfZRnkUfjvmuYqLR89jjFHGqdXY'
PHOENIX_MARKET_DISCRIMINANT = 8167313896524341111

_HEADER = struct.Struct('<QIIQQQ')


@dataclass(frozen=True)
class MarketAccount:
    owner: str
    data: bytes


@dataclass(frozen=True)
class MarketHeader:
    raw_base_units_per_base_unit: int
    tick_size_in_quote_atoms_per_base_unit: int
    base_lot_size: int
    quote_lot_size: int
    discriminant: int = PHOENIX_MARKET_DISCRIMINANT

    @property
    def tick_size_in_quote_lots_per_base_unit(self) -> int:
        return self.tick_size_in_quote_atoms_per_base_unit // self.quote_lot_size

    def to_bytes(self) -> bytes:
        return _HEADER.pack(
            self.discriminant,
            self.raw_base_units_per_base_unit,
            0,
            self.tick_size_in_quote_atoms_per_base_unit,
            self.base_lot_size,
            self.quote_lot_size,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> 'MarketHeader':
        if data is None or len(data) < _HEADER.size:
            raise FailedToDeserializeMarket('Failed to parse market header')
        discriminant, raw_units, _pad, tick_size, base_lot, quote_lot = _HEADER.unpack_from(data)
        if discriminant != PHOENIX_MARKET_DISCRIMINANT:
            raise InvalidVenueProgram(f'unexpected market discriminant {discriminant}')
        if not raw_units or not tick_size or not base_lot or not quote_lot:
            raise FailedToDeserializeMarket('market header has zero-valued geometry')
        if tick_size // quote_lot == 0:
            raise FailedToDeserializeMarket('tick size is smaller than one quote lot')
        return cls(
            raw_base_units_per_base_unit=raw_units,
            tick_size_in_quote_atoms_per_base_unit=tick_size,
            base_lot_size=base_lot,
            quote_lot_size=quote_lot,
            discriminant=discriminant,
        )


def load_header(account: MarketAccount, program_id: str = PHOENIX_PROGRAM_ID) -> MarketHeader:
    if account is None or account.owner != program_id:
        raise InvalidVenueProgram('market is not owned by the venue program')
    return MarketHeader.from_bytes(account.data)
