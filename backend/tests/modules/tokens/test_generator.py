"""Tests for code and token generation."""

import re

from modules.tokens.generator import (
    code_hint,
    constant_time_equals,
    generate_recovery_code,
    generate_secure_token,
    generate_verification_code,
    hash_token,
)


class TestVerificationCode:
    def test_six_digits_in_range(self):
        for _ in range(200):
            code = generate_verification_code()
            assert re.fullmatch(r"\d{6}", code)
            assert 100000 <= int(code) <= 999999


class TestRecoveryCode:
    def test_format(self):
        for _ in range(50):
            assert re.fullmatch(r"[A-Z0-9]{5}-[A-Z0-9]{5}", generate_recovery_code())

    def test_codes_differ(self):
        assert len({generate_recovery_code() for _ in range(50)}) == 50


class TestSecureToken:
    def test_hex_encoded_32_bytes(self):
        token = generate_secure_token()
        assert re.fullmatch(r"[0-9a-f]{64}", token)

    def test_hash_is_sha256_hex(self):
        digest = hash_token("abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_code_hint_is_last_three(self):
        assert code_hint("ABCDE-FGHIJ") == "HIJ"

    def test_constant_time_equals(self):
        assert constant_time_equals("same", "same")
        assert not constant_time_equals("same", "diff")
