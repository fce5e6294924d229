"""Testnet address generation and validation."""

from __future__ import annotations

import hashlib

from Crypto.Hash import RIPEMD160
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

TESTNET_PUBKEY_HASH_ID = 0x6F
TESTNET_SCRIPT_HASH_ID = 0xC4

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_INDEX = {char: value for value, char in enumerate(_BASE58_ALPHABET)}

_BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_BECH32_INDEX = {char: value for value, char in enumerate(_BECH32_CHARSET)}
_BECH32_GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_SEGWIT_PREFIXES = frozenset({"bc1", "tb1", "bcrt1", "sb1"})


def base58_encode(data: bytes) -> str:
    """Encode bytes in the Bitcoin base58 alphabet."""
    data = bytes(data)
    stripped = data.lstrip(b"\0")
    number = int.from_bytes(stripped, "big")
    chars = []
    while number:
        number, remainder = divmod(number, 58)
        chars.append(_BASE58_ALPHABET[remainder])
    return "1" * (len(data) - len(stripped)) + "".join(reversed(chars))


def base58_decode(text: str) -> bytes:
    """Decode base58 text; raises ValueError on a character outside the alphabet."""
    number = 0
    for char in text:
        try:
            number = number * 58 + _BASE58_INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character {char!r}") from None
    zeros = len(text) - len(text.lstrip("1"))
    return b"\0" * zeros + number.to_bytes((number.bit_length() + 7) // 8, "big")


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def generate_public_key() -> str:
    """Generate a fresh P-256 key and return its DER public key as hex."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    der = private_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return der.hex()


def hash_public_key(pub_key: str) -> str:
    """Return RIPEMD-160(SHA-256(key)) of a hex-encoded key, as hex."""
    digest = hashlib.sha256(bytes.fromhex(pub_key)).digest()
    return RIPEMD160.new(digest).hexdigest()


def create_bitcoin_address(hashed_pub_key: str) -> str:
    """Build a testnet pay-to-pubkey-hash address from a hex key hash."""
    payload = bytes([TESTNET_PUBKEY_HASH_ID]) + bytes.fromhex(hashed_pub_key)
    return base58_encode(payload + _double_sha256(payload)[:4])


def _check_decode(text: str) -> tuple[int, bytes]:
    raw = base58_decode(text)
    if len(raw) < 5:
        raise ValueError("invalid format")
    payload, checksum = raw[:-4], raw[-4:]
    if _double_sha256(payload)[:4] != checksum:
        raise ValueError("checksum mismatch")
    return payload[0], payload[1:]


def _bech32_polymod(values: list[int]) -> int:
    checksum = 1
    for value in values:
        top = checksum >> 25
        checksum = ((checksum & 0x1FFFFFF) << 5) ^ value
        for bit, generator in enumerate(_BECH32_GENERATORS):
            if (top >> bit) & 1:
                checksum ^= generator
    return checksum


def _bech32_hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _bech32_decode(text: str) -> tuple[str, list[int]]:
    if not 8 <= len(text) <= 90:
        raise ValueError("invalid bech32 length")
    if any(not 33 <= ord(c) <= 126 for c in text):
        raise ValueError("invalid bech32 character")
    if text.lower() != text and text.upper() != text:
        raise ValueError("mixed case bech32 string")
    text = text.lower()
    separator = text.rfind("1")
    if separator < 1 or separator + 7 > len(text):
        raise ValueError("invalid bech32 separator position")
    hrp = text[:separator]
    try:
        data = [_BECH32_INDEX[c] for c in text[separator + 1 :]]
    except KeyError:
        raise ValueError("invalid bech32 data character") from None
    if _bech32_polymod(_bech32_hrp_expand(hrp) + data) != 1:
        raise ValueError("invalid bech32 checksum")
    return hrp, data[:-6]


def _convert_bits(data: list[int], from_bits: int, to_bits: int, pad: bool) -> bytes:
    accumulator = 0
    bits = 0
    out = []
    max_value = (1 << to_bits) - 1
    for value in data:
        accumulator = (accumulator << from_bits) | value
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            out.append((accumulator >> bits) & max_value)
    if pad:
        if bits:
            out.append((accumulator << (to_bits - bits)) & max_value)
    elif bits >= from_bits or (accumulator << (to_bits - bits)) & max_value:
        raise ValueError("invalid padding")
    return bytes(out)


def _decode_segwit(address: str) -> None:
    _, data = _bech32_decode(address)
    if not data:
        raise ValueError("empty segwit data")
    version = data[0]
    program = _convert_bits(data[1:], 5, 8, pad=False)
    if not 2 <= len(program) <= 40:
        raise ValueError("invalid witness program length")
    if version > 16:
        raise ValueError("invalid witness version")
    if version == 0 and len(program) not in (20, 32):
        raise ValueError("invalid witness program length for version 0")
    if version != 0:
        raise ValueError(f"unsupported witness version {version}")


def _parse_public_key(raw: bytes) -> None:
    if len(raw) == 65 and raw[0] in (6, 7):
        if (raw[-1] & 1) != (raw[0] & 1):
            raise ValueError("hybrid key parity mismatch")
        raw = b"\x04" + raw[1:]
    ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), raw)


def _decode_address(address: str) -> None:
    one = address.rfind("1")
    if one > 1 and address[: one + 1].lower() in _SEGWIT_PREFIXES:
        _decode_segwit(address)
        return
    if len(address) in (66, 130):
        _parse_public_key(bytes.fromhex(address))
        return
    version, decoded = _check_decode(address)
    if len(decoded) != 20:
        raise ValueError("decoded address is of unknown format")
    if version not in (TESTNET_PUBKEY_HASH_ID, TESTNET_SCRIPT_HASH_ID):
        raise ValueError("unknown address type")


def is_valid_bitcoin_address(address: str) -> bool:
    """Tell whether an address decodes for the Bitcoin test network."""
    try:
        _decode_address(address)
    except ValueError:
        return False
    return True


def generate_new_address() -> str:
    """Create a new random testnet address."""
    address = create_bitcoin_address(hash_public_key(generate_public_key()))
    if not is_valid_bitcoin_address(address):
        raise ValueError(f"Invalid Bitcoin address: {address}")
    return address