"""Token metadata and on-chain scalar helpers."""

from __future__ import annotations

from typing import Annotated, Any

from eth_utils import is_address, to_checksum_address
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

UINT256_MAX = 2**256 - 1


def parse_uint256(value: Any) -> int:
    """Accept an int, a decimal string or a 0x-prefixed hex string."""
    if isinstance(value, bool):
        raise ValueError("booleans are not valid uint256 values")
    if isinstance(value, str):
        text = value.strip()
        number = int(text, 16) if text.lower().startswith("0x") else int(text)
    elif isinstance(value, int):
        number = value
    else:
        raise ValueError(f"cannot interpret {value!r} as uint256")
    if not 0 <= number <= UINT256_MAX:
        raise ValueError(f"{number} is outside the uint256 range")
    return number


def _checksum(value: str) -> str:
    if not is_address(value):
        raise ValueError(f"{value!r} is not an Ethereum address")
    return to_checksum_address(value)


Uint256 = Annotated[int, BeforeValidator(parse_uint256)]
Address = Annotated[str, AfterValidator(_checksum)]


class TokenInfo(BaseModel):
    """One side of the traded pair."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    address: Address
    decimals: int = Field(ge=0, le=77)
