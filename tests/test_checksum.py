import zlib

import pytest

from hdfswire.rpc.checksum import ChecksumType, crc32c


def test_crc32c_check_value():
    assert crc32c(b"123456789") == 0xE3069283


def test_crc32c_zero_block():
    assert crc32c(bytes(32)) == 0x8A9136AA


def test_crc32c_empty_is_zero():
    assert crc32c(b"") == 0


def test_crc32c_accepts_bytearray_and_memoryview():
    data = b"some block data"
    assert crc32c(bytearray(data)) == crc32c(data)
    assert crc32c(memoryview(data)) == crc32c(data)


def test_crc32c_detects_single_bit_change():
    data = bytearray(b"abcdefgh" * 64)
    original = crc32c(data)
    data[100] ^= 0x01
    assert crc32c(data) != original


@pytest.mark.parametrize("data", [b"", b"a", b"123456789", bytes(range(256)) * 3])
def test_crc32_matches_zlib(data):
    assert ChecksumType.CRC32.compute(data) == zlib.crc32(data) & 0xFFFFFFFF


@pytest.mark.parametrize("data", [b"", b"123456789", bytes(512)])
def test_crc32c_type_uses_castagnoli(data):
    assert ChecksumType.CRC32C.compute(data) == crc32c(data)


def test_checksum_types_differ():
    data = b"123456789"
    assert ChecksumType.CRC32.compute(data) != ChecksumType.CRC32C.compute(data)


def test_crc32_check_value():
    assert ChecksumType.CRC32.compute(b"123456789") == 0xCBF43926


def test_crc32c_type_check_value():
    assert ChecksumType.CRC32C.compute(b"123456789") == 0xE3069283


def test_crc32_fits_in_32_bits():
    value = ChecksumType.CRC32.compute(bytes(range(256)) * 8)
    assert 0 <= value <= 0xFFFFFFFF


def test_crc32c_fits_in_32_bits():
    value = ChecksumType.CRC32C.compute(bytes(range(256)) * 8)
    assert 0 <= value <= 0xFFFFFFFF