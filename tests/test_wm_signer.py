from base64 import b64decode

import pytest

import wm_signer

from test_WMCrypt import TEST_WMID, TEST_KEY, TEST_PASSWORD

def test_verify():
	assert wm_signer.main(["--wmid", TEST_WMID, "--password", TEST_PASSWORD, "--key", TEST_KEY, "verify"]) == 0

def test_sign_key_file(tmp_path, capsys):
	path = tmp_path / "test.kwm"
	path.write_bytes(b64decode(TEST_KEY))
	assert wm_signer.main(["--wmid", TEST_WMID, "--password", TEST_PASSWORD, "--key-file", str(path), "sign", "1234567890"]) == 0
	out = capsys.readouterr().out.strip()
	assert out
	int(out, 16)

def test_sign_w3s(capsys):
	assert wm_signer.main(["--wmid", TEST_WMID, "--password", TEST_PASSWORD, "--key", TEST_KEY, "sign", "--w3s", "Оплата"]) == 0
	assert capsys.readouterr().out.strip()

def test_wrong_password():
	assert wm_signer.main(["--wmid", TEST_WMID, "--password", "wrong", "--key", TEST_KEY, "verify"]) == 1

def test_missing_key_file(tmp_path):
	with pytest.raises(SystemExit):
		wm_signer.main(["--wmid", TEST_WMID, "--password", TEST_PASSWORD, "--key-file", str(tmp_path / "missing.kwm"), "verify"])

def test_sign_w3s_unencodable(capsys):
	assert wm_signer.main(["--wmid", TEST_WMID, "--password", TEST_PASSWORD, "--key", TEST_KEY, "sign", "--w3s", "pay 😀"]) == 1
	assert capsys.readouterr().out == ""
