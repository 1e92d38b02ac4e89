#!/usr/bin/env python3

__description__ = "A script to verify WebMoney *.kwm keys and sign W3S request strings"

import logging
from pathlib import Path
from argparse import ArgumentParser, Namespace

from WMCrypt import *
from w3s_request import encode_sign_string
from keystore import read_key_file, load_and_verify_key

def valid_file(parser: ArgumentParser, filename: str) -> Path:
	if not Path(filename).is_file():
		parser.error(f"The file \"{filename}\" doesn't exist!")
	else:
		return Path(filename)

def load_signer(args: Namespace) -> WmCryptSigner:
	key = read_key_file(args.key_file) if args.key_file else args.key
	return load_and_verify_key(args.wmid, key, args.password)

def main(argv: list = None) -> int:
	logging.basicConfig(level=logging.INFO)

	parser = ArgumentParser(description=__description__)
	parser.add_argument("--wmid", type=str, required=True, help="The 12 digit WMID the key belongs to")
	parser.add_argument("--password", type=str, required=True, help="The password to the key")
	key_group = parser.add_mutually_exclusive_group(required=True)
	key_group.add_argument("--key", type=str, help="The base64 encoded key")
	key_group.add_argument("--key-file", type=lambda x: valid_file(parser, x), help="The *.kwm key file")
	subparsers = parser.add_subparsers(dest="command", required=True)

	subparsers.add_parser("verify", help="Check the key decrypts and passes its checksum")

	sign_parser = subparsers.add_parser("sign", help="Sign a string")
	sign_parser.add_argument("message", type=str, help="The string to sign")
	sign_parser.add_argument("--w3s", action="store_true", help="Encode the string as windows-1251 before signing")

	args = parser.parse_args(argv)

	try:
		signer = load_signer(args)
		if args.command == "verify":
			logging.info("Key verified")
		elif args.command == "sign":
			message = encode_sign_string(args.message) if args.w3s else args.message
			print(signer.sign(message))
	except WmCryptError as e:
		logging.error(e)
		return 1

	return 0

if __name__ == "__main__":
	exit(main())
