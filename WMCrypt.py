#!/usr/bin/env python3

"""
Signing routines for WebMoney Keeper Classic/Light *.kwm key containers
"""

__author__ = "Visual Studio"
__maintainer__ = "Visual Studio"
__credits__ = ["Visual Studio"]
__version__ = "1.0.0.0"
__license__ = "BSD"
__status__ = "Development"

from os import urandom
from typing import Union, Tuple, Optional, TypeVar, List, Type
from ctypes import LittleEndianStructure, Array, sizeof, c_ubyte, c_uint16, c_uint32

# py -3 -m pip install cryptography
from cryptography.hazmat.primitives.constant_time import bytes_eq

# py -3 -m pip install pycryptodome
from Crypto.Hash import MD4

BinLike = TypeVar("BinLike", bytes, bytearray, memoryview)
CStruct = TypeVar("CStruct", LittleEndianStructure, Array)

# constants
WMCRYPT_KEY_SIZE         = 0xA4
WMCRYPT_BUFFER_SIZE      = 0x8C
WMCRYPT_BUFFER_SHIFT     = 6
WMCRYPT_MD4_DIGEST_SIZE  = 0x10
WMCRYPT_BIGNUM_SIZE      = 0x42
WMCRYPT_WORD_SIZE        = 2
WMCRYPT_SIGN_RANDOM_SIZE = 0x28

# types
BYTE  = c_ubyte
WORD  = c_uint16
DWORD = c_uint32

WMCRYPT_WORD = BYTE * WMCRYPT_WORD_SIZE

class WMCRYPT_KEY_CONTAINER(LittleEndianStructure):
	_fields_ = [
		("reserved", WORD),
		("sign_flag", WORD),
		("crc", BYTE * WMCRYPT_MD4_DIGEST_SIZE),
		("length", DWORD),
		("buffer", BYTE * WMCRYPT_BUFFER_SIZE)
	]

class WMCRYPT_KEY_DATA(LittleEndianStructure):
	_fields_ = [
		("reserved", DWORD),
		("power_base", WORD),
		("power", BYTE * WMCRYPT_BIGNUM_SIZE),  # reversed
		("modulus_base", WORD),
		("modulus", BYTE * WMCRYPT_BIGNUM_SIZE)  # reversed
	]

# every field is naturally aligned so the native layout is the packed layout
assert sizeof(WMCRYPT_KEY_CONTAINER) == WMCRYPT_KEY_SIZE
assert sizeof(WMCRYPT_KEY_DATA) == WMCRYPT_BUFFER_SIZE

# errors
class WmCryptError(Exception):
	pass

class ConfigurationError(WmCryptError):
	"""
	The WMID, key or password is missing or malformed.
	"""
	pass

class FormatError(WmCryptError):
	"""
	The key container is corrupt or has an incompatible layout.
	"""
	pass

class IntegrityError(WmCryptError):
	"""
	The key container decoded but its checksum doesn't match, usually a wrong password.
	"""
	pass

class TransientError(WmCryptError):
	"""
	The secure random source couldn't be read, signing may be retried.
	"""
	pass

# codec
def struct_decode(data: BinLike, struct_type: Type[CStruct]) -> CStruct:
	size = sizeof(struct_type)
	if len(data) < size:
		raise FormatError(f"Expected {size} bytes to decode {struct_type.__name__}, got {len(data)}")
	return struct_type.from_buffer_copy(bytes(data[:size]))

def struct_encode(struct: CStruct) -> bytes:
	return bytes(struct)

class WmCryptExternal:
	# OS and codec primitives, swapped out in tests

	def rand_read(self, cb: int) -> bytes:
		return urandom(cb)

	def struct_decode(self, data: BinLike, struct_type: Type[CStruct]) -> CStruct:
		return struct_decode(data, struct_type)

	def struct_encode(self, struct: CStruct) -> bytes:
		return struct_encode(struct)

DEFAULT_EXTERNAL = WmCryptExternal()

# utilities
def reverse(b: BinLike) -> bytes:
	return bytes(reversed(b))

def reverse_words(words: List[bytes]) -> List[bytes]:
	return list(reversed(words))

def reverse_bytes_as_words(b: BinLike, external: Optional[WmCryptExternal] = None) -> bytes:
	external = external or DEFAULT_EXTERNAL
	if len(b) % 2 != 0:
		b = b"\x00" + bytes(b)
	words = external.struct_decode(b, WMCRYPT_WORD * (len(b) // WMCRYPT_WORD_SIZE))
	words = reverse_words([bytes(w) for w in words])
	return b"".join(words)

def xor(data: BinLike, key: BinLike, shift: int = 0) -> bytes:
	"""
	XOR's data with a repeating key, the first shift bytes are left as is
	"""
	output = bytearray(data)
	for i in range(shift, len(output)):
		output[i] ^= key[(i - shift) % len(key)]
	return bytes(output)

def b2i(b: BinLike) -> int:
	return int.from_bytes(b, "big", signed=False)

def i2b(i: int) -> bytes:
	return i.to_bytes((i.bit_length() + 7) // 8, "big", signed=False)

# hashing
def WmCryptMd4(*args: BinLike) -> bytes:
	h = MD4.new()
	[h.update(x) for x in args]
	return h.digest()

def WmCryptKeyedHash(data: BinLike) -> bytes:
	# the legacy client reads the digest right after the input in the finalized buffer
	length = len(data)
	buf = bytes(data) + WmCryptMd4(data)
	return buf[length:length + WMCRYPT_MD4_DIGEST_SIZE]

# key container
class WmCryptKeyContainer:
	key_struct = None
	external = None
	verified = False

	def __init__(self, key: BinLike, wmid: str, password: str, external: Optional[WmCryptExternal] = None):
		self.reset()

		self.external = external or DEFAULT_EXTERNAL
		self.key_struct = self.external.struct_decode(key, WMCRYPT_KEY_CONTAINER)
		self.decrypt(wmid, password)

	def reset(self) -> None:
		self.key_struct = None
		self.external = None
		self.verified = False

	@staticmethod
	def new(key: BinLike, wmid: str, password: str, external: Optional[WmCryptExternal] = None):
		return WmCryptKeyContainer(key, wmid, password, external)

	@property
	def reserved(self) -> int:
		return self.key_struct.reserved

	@property
	def sign_flag(self) -> int:
		return self.key_struct.sign_flag

	@property
	def crc(self) -> bytes:
		return bytes(self.key_struct.crc)

	@property
	def length(self) -> int:
		return self.key_struct.length

	@property
	def buffer(self) -> bytes:
		return bytes(self.key_struct.buffer)

	@property
	def is_verified(self) -> bool:
		return self.verified

	def decrypt(self, wmid: str, password: str) -> None:
		mask = WmCryptKeyedHash((wmid + password).encode("UTF8"))
		dec = xor(self.buffer, mask, WMCRYPT_BUFFER_SHIFT)
		self.key_struct.buffer = (BYTE * WMCRYPT_BUFFER_SIZE).from_buffer_copy(dec)
		self.verified = False

	def verify(self) -> bool:
		# the checksum covers the whole header with sign_flag and crc zeroed
		view = WMCRYPT_KEY_CONTAINER()
		view.reserved = self.key_struct.reserved
		view.length = self.key_struct.length
		view.buffer = self.key_struct.buffer
		try:
			data = self.external.struct_encode(view)
		except Exception:
			self.verified = False
			return False
		self.verified = bytes_eq(WmCryptKeyedHash(data), self.crc)
		return self.verified

	def extract(self) -> Tuple[int, int]:
		if not self.verified:
			raise FormatError("The key container must be verified before extraction")
		key_data = self.external.struct_decode(self.buffer, WMCRYPT_KEY_DATA)
		power = b2i(reverse(bytes(key_data.power)))
		modulus = b2i(reverse(bytes(key_data.modulus)))
		return (power, modulus)

# signer
class WmCryptSigner:
	def __init__(self, power: int, modulus: int, external: Optional[WmCryptExternal] = None):
		assert modulus > 0, "Modulus must be a positive integer"
		assert power >= 0, "Power must be a non-negative integer"

		self._power = power
		self._modulus = modulus
		self.external = external or DEFAULT_EXTERNAL

	@staticmethod
	def new(power: int, modulus: int, external: Optional[WmCryptExternal] = None):
		return WmCryptSigner(power, modulus, external)

	@property
	def power(self) -> int:
		return self._power

	@property
	def modulus(self) -> int:
		return self._modulus

	def sign(self, data: Union[str, BinLike]) -> str:
		if isinstance(data, str):
			data = data.encode("UTF8")
		base = WmCryptKeyedHash(data)

		try:
			rnd = self.external.rand_read(WMCRYPT_SIGN_RANDOM_SIZE)
		except OSError as e:
			raise TransientError(f"Unable to read from the random source: {e}") from e
		if rnd is None or len(rnd) != WMCRYPT_SIGN_RANDOM_SIZE:
			raise TransientError("Short read from the random source")
		base += bytes(rnd)

		# only the low byte is a length, the second byte is always zero
		buf = bytes([len(base) & 0xFF, 0]) + base
		result = pow(b2i(reverse(buf)), self._power, self._modulus)
		return reverse_bytes_as_words(i2b(result), self.external).hex()

# constants
__all__ = [
	"WMCRYPT_KEY_SIZE",
	"WMCRYPT_BUFFER_SIZE",
	"WMCRYPT_BUFFER_SHIFT",
	"WMCRYPT_MD4_DIGEST_SIZE",
	"WMCRYPT_BIGNUM_SIZE",
	"WMCRYPT_WORD_SIZE",
	"WMCRYPT_SIGN_RANDOM_SIZE"
]

# structures
__all__.extend([
	"WMCRYPT_WORD",
	"WMCRYPT_KEY_CONTAINER",
	"WMCRYPT_KEY_DATA"
])

# errors
__all__.extend([
	"WmCryptError",
	"ConfigurationError",
	"FormatError",
	"IntegrityError",
	"TransientError"
])

# functions
__all__.extend([
	"WmCryptMd4",
	"WmCryptKeyedHash"
])

# classes
__all__.extend([
	"WmCryptExternal",
	"WmCryptKeyContainer",
	"WmCryptSigner",
	"DEFAULT_EXTERNAL"
])

# utility functions
__all__.extend([
	"struct_decode",
	"struct_encode",
	"reverse",
	"reverse_words",
	"reverse_bytes_as_words",
	"xor",
	"b2i",
	"i2b"
])
