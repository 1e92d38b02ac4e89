#!/usr/bin/env python3

import re
import logging
from pathlib import Path
from binascii import Error as BinasciiError
from base64 import b64decode, b64encode
from typing import Callable, Optional, Union

from WMCrypt import *

WMID_REGEX = re.compile("[0-9]{12}")

KeyContainerFn = Callable[[bytes, str, str, WmCryptExternal], WmCryptKeyContainer]

def check_options(wmid: Optional[str], key: Optional[str], password: Optional[str]) -> None:
	if not wmid:
		raise ConfigurationError("the WebMoney WMID identifier isn't configured")
	if not WMID_REGEX.search(wmid):
		raise ConfigurationError("the WebMoney WMID identifier is incorrect")
	if not key:
		raise ConfigurationError("the WebMoney *.kwm key isn't configured")
	if not password:
		raise ConfigurationError("the password to the WebMoney *.kwm key isn't configured")

def decode_key(key: str) -> bytes:
	try:
		data = b64decode(key, validate=True)
	except (BinasciiError, ValueError) as e:
		raise FormatError(f"Invalid base64 key data: {e}") from e
	if len(data) != WMCRYPT_KEY_SIZE:
		raise FormatError("key file is broken")
	return data

def read_key_file(path: Union[str, Path]) -> str:
	return b64encode(Path(path).read_bytes()).decode("ASCII")

def load_and_verify_key(wmid: str, key: str, password: str, new_key_container_fn: Optional[KeyContainerFn] = None, external: Optional[WmCryptExternal] = None) -> WmCryptSigner:
	check_options(wmid, key, password)

	new_key_container_fn = new_key_container_fn or WmCryptKeyContainer.new
	external = external or DEFAULT_EXTERNAL

	data = decode_key(key)
	logging.debug(f"Decoded {len(data)} bytes of key data for WMID {wmid}")

	container = new_key_container_fn(data, wmid, password, external)
	if not container.verify():
		logging.info(f"Key checksum mismatch for WMID {wmid}")
		raise IntegrityError("key file is broken")

	(power, modulus) = container.extract()
	logging.info(f"Loaded a {modulus.bit_length()}-bit key for WMID {wmid}")
	return WmCryptSigner.new(power, modulus, external)

__all__ = [
	"WMID_REGEX",
	"check_options",
	"decode_key",
	"read_key_file",
	"load_and_verify_key"
]
