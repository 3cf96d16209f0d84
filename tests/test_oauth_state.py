"""Tests for signed OAuth state values and stored-token encryption."""

import uuid

from src.UAA.utils import (
    OAUTH_STATE_TTL_SECONDS,
    create_oauth_state,
    decrypt_token,
    encrypt_token,
    verify_oauth_state,
)


class TestOAuthState:
    def test_round_trip_returns_user_id(self):
        user_id = str(uuid.uuid4())
        state = create_oauth_state(user_id)

        assert state.endswith(f"_{user_id}")
        assert verify_oauth_state(state) == user_id

    def test_states_are_unique(self):
        user_id = str(uuid.uuid4())
        assert create_oauth_state(user_id) != create_oauth_state(user_id)

    def test_malformed_values_are_rejected(self):
        for state in ["abc", "", "_", "nonce_", "_user", "a_b_c", "a.b_user"]:
            assert verify_oauth_state(state) is None, state

    def test_swapped_user_id_is_rejected(self):
        state = create_oauth_state(str(uuid.uuid4()))
        nonce = state.split("_")[0]
        assert verify_oauth_state(f"{nonce}_{uuid.uuid4()}") is None

    def test_tampered_signature_is_rejected(self):
        user_id = str(uuid.uuid4())
        random_hex, issued, signature = create_oauth_state(user_id).split("_")[0].split(".")
        forged = f"{random_hex}.{issued}.{'0' * len(signature)}_{user_id}"
        assert verify_oauth_state(forged) is None

    def test_expired_state_is_rejected(self):
        user_id = str(uuid.uuid4())
        state = create_oauth_state(user_id)
        issued = int(state.split("_")[0].split(".")[1])

        assert verify_oauth_state(state, now_ts=issued + OAUTH_STATE_TTL_SECONDS) == user_id
        assert verify_oauth_state(state, now_ts=issued + OAUTH_STATE_TTL_SECONDS + 1) is None


class TestTokenEncryption:
    def test_ciphertext_hides_plaintext(self):
        ciphertext = encrypt_token("li-access")
        assert ciphertext != "li-access"
        assert decrypt_token(ciphertext) == "li-access"

    def test_none_passes_through(self):
        assert encrypt_token(None) is None
        assert decrypt_token(None) is None

    def test_undecryptable_value_reads_as_missing(self):
        assert decrypt_token("not-a-fernet-token") is None
